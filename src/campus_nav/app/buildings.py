# app/buildings.py
from collections.abc import Iterable

from campus_nav.config.models import BuildingModel
from campus_nav.domain.entities.geometry import Vec3

CURRENT_LOCATION = "Current Location"
CURRENT_LOCATION_ID = "_CURRENT_LOCATION_"


class BuildingDirectory:
    """
    In-memory BuildingLookup. Names match exactly first, then case-insensitively;
    display names are aliases of the internal name.
    """

    def __init__(self):
        self._positions: dict[str, Vec3] = {}
        self._aliases: dict[str, str] = {}

    @classmethod
    def from_models(cls, models: Iterable[BuildingModel]) -> "BuildingDirectory":
        d = cls()
        for m in models:
            d.add(m.name, m.position.to_vec3(), display_name=m.display_name)
        return d

    def add(self, name: str, position: Vec3, *, display_name: str | None = None) -> None:
        if name in (CURRENT_LOCATION, CURRENT_LOCATION_ID):
            raise ValueError(f"{name!r} is reserved")
        self._positions[name] = position
        if display_name and display_name != name:
            self._aliases[display_name] = name

    def resolve_name(self, name: str) -> str | None:
        if name == CURRENT_LOCATION:
            return CURRENT_LOCATION_ID
        if name in self._positions or name == CURRENT_LOCATION_ID:
            return name
        if name in self._aliases:
            return self._aliases[name]
        folded = name.strip().casefold()
        for known in (*self._positions, *self._aliases):
            if known.casefold() == folded:
                return self._aliases.get(known, known)
        return None

    def find_building(self, name: str) -> Vec3 | None:
        key = self.resolve_name(name)
        return self._positions.get(key) if key else None

    def names(self) -> list[str]:
        return sorted(self._positions)

    def __len__(self) -> int:
        return len(self._positions)
