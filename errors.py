"""Error taxonomy for the analysis pipeline.

Every terminal error derives from ``AnalysisError``. The orchestrator stamps
the phase it was raised in, providers set the external dependency involved.
``DegradedDataWarning`` is never raised: it is logged and attached to the
result so callers can flag advisory data that fell back to defaults.
"""


class AnalysisError(Exception):
    status_code = 500

    def __init__(self, message: str, *, dependency: str | None = None, phase: str | None = None):
        super().__init__(message)
        self.message = message
        self.dependency = dependency
        self.phase = phase

    def describe(self) -> str:
        where = [p for p in (self.phase, self.dependency) if p]
        if not where:
            return self.message
        return f"{self.message} ({', '.join(where)})"


class ValidationError(AnalysisError):
    status_code = 400


class NotFoundError(AnalysisError):
    pass


class DataUnavailableError(AnalysisError):
    pass


class GenerationError(AnalysisError):
    pass


class DegradedDataWarning(UserWarning):
    def __init__(self, source: str, message: str):
        super().__init__(message)
        self.source = source
        self.message = message

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"
