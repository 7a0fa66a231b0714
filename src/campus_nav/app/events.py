# app/events.py
from dataclasses import dataclass, field
from typing import Literal

from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.entities.positions import PositionFix
from campus_nav.sim.event import BaseEvent

FailureReason = Literal["destination_not_found", "position_unavailable", "no_path", "no_route"]


# Inputs
@dataclass(order=True)
class PositionUpdate(BaseEvent):
    fix: PositionFix = field(compare=False)
    source: str = "device"


@dataclass(order=True)
class NavigationTick(BaseEvent):
    task_id: int  # versioning to make stale ticks harmless


@dataclass(order=True)
class SimulationTick(BaseEvent):
    task_id: int


# Session lifecycle
@dataclass(order=True)
class RouteCalculated(BaseEvent):
    destination: str
    waypoints: int
    graph_points: int
    cost: float


@dataclass(order=True)
class NavigationStarted(BaseEvent):
    destination: str
    task_id: int
    start: Vec3 = field(compare=False)


@dataclass(order=True)
class NavigationProgress(BaseEvent):
    instruction: str
    distance: float
    eta_s: int
    eta_text: str
    waypoint_index: int
    waypoint_count: int
    heading: tuple[float, float] = field(compare=False)  # unit (dx, dz) toward the waypoint


@dataclass(order=True)
class WaypointReached(BaseEvent):
    waypoint_index: int
    waypoint_count: int


@dataclass(order=True)
class RouteRecalculated(BaseEvent):
    destination: str
    off_path: float
    success: bool


@dataclass(order=True)
class DestinationReached(BaseEvent):
    destination: str
    task_id: int


@dataclass(order=True)
class NavigationStopped(BaseEvent):
    destination: str | None
    task_id: int
    reason: str = "user"


@dataclass(order=True)
class NavigationFailed(BaseEvent):
    destination: str | None
    reason: FailureReason
