# domain/entities/geometry.py
from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float

    @classmethod
    def ground(cls, x: float, z: float) -> Vec3:
        return cls(float(x), 0.0, float(z))

    def __add__(self, o: Vec3) -> Vec3:
        return Vec3(self.x + o.x, self.y + o.y, self.z + o.z)

    def __sub__(self, o: Vec3) -> Vec3:
        return Vec3(self.x - o.x, self.y - o.y, self.z - o.z)

    def scaled(self, k: float) -> Vec3:
        return Vec3(self.x * k, self.y * k, self.z * k)

    def dot(self, o: Vec3) -> float:
        return self.x * o.x + self.y * o.y + self.z * o.z

    def distance_to(self, o: Vec3) -> float:
        return math.dist((self.x, self.y, self.z), (o.x, o.y, o.z))

    def planar_distance_to(self, o: Vec3) -> float:
        # ground plane (x/z); the y axis is up
        return math.hypot(self.x - o.x, self.z - o.z)

    def flat(self) -> Vec3:
        return Vec3(self.x, 0.0, self.z)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def as_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}


ORIGIN = Vec3(0.0, 0.0, 0.0)


def closest_point_on_segment(p: Vec3, a: Vec3, b: Vec3) -> Vec3:
    """Projection of p onto segment ab, clamped to the endpoints."""
    ab = b - a
    denom = ab.dot(ab)
    if denom == 0.0:
        return a
    t = (p - a).dot(ab) / denom
    t = min(1.0, max(0.0, t))
    return a + ab.scaled(t)


def closest_point_on_path(p: Vec3, path: Sequence[Vec3]) -> Vec3 | None:
    """Closest point to p over every segment of the polyline; None for an empty path."""
    if not path:
        return None
    best = path[0]
    best_d = p.distance_to(best)
    for a, b in zip(path, path[1:]):
        c = closest_point_on_segment(p, a, b)
        d = p.distance_to(c)
        if d < best_d:
            best, best_d = c, d
    return best


def distance_from_path(p: Vec3, path: Sequence[Vec3]) -> float:
    c = closest_point_on_path(p, path)
    return math.inf if c is None else p.distance_to(c)
