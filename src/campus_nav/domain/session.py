# domain/session.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.graph import PointId

WALKING_SPEED_MPS = 1.4


class NavState(str, Enum):
    IDLE = "idle"
    ROUTE_CALCULATED = "route_calculated"
    NAVIGATING = "navigating"
    ARRIVED = "arrived"


@dataclass
class Route:
    destination: str
    target: Vec3  # world position the destination resolved to
    point_ids: list[PointId]
    world_path: list[Vec3]  # simplified waypoints, world space

    @property
    def waypoint_count(self) -> int:
        return len(self.world_path)


@dataclass
class NavigationSession:
    route: Route
    waypoint_index: int = 0

    @property
    def finished(self) -> bool:
        return self.waypoint_index >= self.route.waypoint_count

    def current_waypoint(self) -> Vec3 | None:
        if self.finished:
            return None
        return self.route.world_path[self.waypoint_index]

    def advance(self) -> int:
        self.waypoint_index += 1
        return self.waypoint_index


def instruction_for(index: int, count: int) -> str:
    if index < 0 or index >= count:
        return "Follow the route"
    if index == count - 1:
        return "Arriving at your destination"
    if index == 0:
        return "Start following the path"
    return f"Continue to waypoint {index + 1} of {count}"


def eta_seconds(distance: float, speed_mps: float = WALKING_SPEED_MPS) -> int:
    return round(distance / speed_mps)


def format_eta(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} seconds"
    m, s = divmod(seconds, 60)
    return f"{m} min {s} sec"
