# app/controllers/tracking.py
from collections import deque

from campus_nav.app.events import PositionUpdate
from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.entities.positions import GpsFix, GroundPosition, PositionFix
from campus_nav.domain.geo import GeoProjector

MAX_TRAIL_POINTS = 500


class PositionTracker:
    """Recent world positions (bounded trail) and the last raw fix, for any subscriber."""

    def __init__(self, projector: GeoProjector, max_points: int = MAX_TRAIL_POINTS):
        self.projector = projector
        self.trail: deque[Vec3] = deque(maxlen=max_points)
        self.last_fix: PositionFix | None = None
        self.updates = 0
        self.distance_walked = 0.0

    def on_position_update(self, ev: PositionUpdate):
        pos = self.to_world(ev.fix)
        if self.trail:
            self.distance_walked += self.trail[-1].planar_distance_to(pos)
        self.trail.append(pos)
        self.last_fix = ev.fix
        self.updates += 1
        return []

    def to_world(self, fix: PositionFix) -> Vec3:
        if isinstance(fix, GpsFix):
            return self.projector.fix_to_world(fix)
        if isinstance(fix, GroundPosition):
            return Vec3.ground(fix.x, fix.z)
        raise TypeError(f"unsupported position fix {type(fix).__name__}")

    def world_position(self) -> Vec3 | None:
        return self.trail[-1] if self.trail else None

    @property
    def accuracy(self) -> float | None:
        return self.last_fix.accuracy if isinstance(self.last_fix, GpsFix) else None
