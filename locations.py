from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Iterable

import pandas as pd

from config import DISTRICTS_CSV
from errors import NotFoundError


@dataclass(frozen=True)
class Region:
    name: str
    state: str
    lat: float
    lon: float


class LocationRegistry:
    """Read-only district lookup, built once and shared across analyses."""

    def __init__(self, regions: Iterable[Region]):
        self._regions = tuple(regions)
        self._by_name = MappingProxyType({r.name.lower(): r for r in self._regions})

    @classmethod
    def from_csv(cls, path: Path = DISTRICTS_CSV) -> "LocationRegistry":
        df = pd.read_csv(path)
        regions = [
            Region(name=str(r["name"]).strip(), state=str(r["state"]).strip(), lat=float(r["lat"]), lon=float(r["lon"]))
            for _, r in df.iterrows()
        ]
        return cls(regions)

    def __len__(self) -> int:
        return len(self._regions)

    def find_region(self, name: str) -> Region:
        region = self._by_name.get((name or "").strip().lower())
        if region is None:
            raise NotFoundError(f'District "{name}" not found in database', dependency="location registry")
        return region

    def list_states(self) -> list[str]:
        return sorted({r.state for r in self._regions})

    def list_regions_in_state(self, state: str) -> list[Region]:
        key = (state or "").strip().lower()
        return [r for r in self._regions if r.state.lower() == key]
