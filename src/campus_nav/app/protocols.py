from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from campus_nav.domain.entities.geometry import Vec3


@runtime_checkable
class BuildingLookup(Protocol):
    """Resolves a building name to its world position, or None when unknown."""

    def find_building(self, name: str) -> Vec3 | None: ...


@runtime_checkable
class RenderSink(Protocol):
    """
    Receives paths to draw. The core never renders; a scene layer implements this.
    Paths are world space and ordered start to end.
    """

    def visualize_path(self, path: Sequence[Vec3]) -> None: ...
    def clear_path(self) -> None: ...


@runtime_checkable
class PositionSource(Protocol):
    """
    Schedules PositionUpdate events on the kernel it was built with. Subscribers (navigation,
    tracking) are wired to the event type, never to the source itself.
    """

    kind: str

    def seed(self) -> None: ...


class NullRenderSink:
    def visualize_path(self, path: Sequence[Vec3]) -> None:
        pass

    def clear_path(self) -> None:
        pass
