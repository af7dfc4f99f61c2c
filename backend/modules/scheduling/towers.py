"""
modules/scheduling/towers.py - Static tower configuration.

Towers and their floors are fixed for the lifetime of the process; the record
store derives its key space from them.
"""

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True)
class Tower:
    id: str
    name: str
    floors: tuple[int, ...]

    def has_floor(self, floor: int) -> bool:
        return floor in self.floors


def _floors(*ranges: range) -> tuple[int, ...]:
    return tuple(f for r in ranges for f in r)


# Floor 13 does not exist in either tower.
DEFAULT_TOWERS: tuple[Tower, ...] = (
    Tower(id="harbor", name="HARBOR", floors=_floors(range(5, 13), range(14, 41))),
    Tower(id="seaport", name="SEAPORT", floors=_floors(range(4, 13), range(14, 33))),
)


def index_towers(towers: Iterable[Tower]) -> dict[str, Tower]:
    """Map tower id to Tower, preserving configuration order."""
    indexed: dict[str, Tower] = {}
    for tower in towers:
        if tower.id in indexed:
            raise ValueError(f"Duplicate tower id '{tower.id}'")
        if len(set(tower.floors)) != len(tower.floors):
            raise ValueError(f"Tower '{tower.id}' lists a floor more than once")
        indexed[tower.id] = tower
    return indexed
