# domain/transform.py
"""
Graph space -> world space.

Fixed pipeline: rotate (Euler XYZ, in the point's own frame), scale by the
calibration per axis, scale by the model's uniform factor, add the model
translation, add the calibration translation. Calibration offsets are
therefore always in final world units.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from campus_nav.domain.entities.geometry import ORIGIN, Vec3


def euler_xyz_matrix(rx: float, ry: float, rz: float) -> np.ndarray:
    """Rotation matrix for intrinsic X, then Y, then Z (R = Rx @ Ry @ Rz)."""
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)
    rot_x = np.array([[1.0, 0.0, 0.0], [0.0, cx, -sx], [0.0, sx, cx]])
    rot_y = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rot_z = np.array([[cz, -sz, 0.0], [sz, cz, 0.0], [0.0, 0.0, 1.0]])
    return rot_x @ rot_y @ rot_z


@dataclass
class CalibrationTransform:
    """User-adjustable alignment of the road graph with the scene. rotate is radians."""

    scale: Vec3 = field(default_factory=lambda: Vec3(1.0, 1.0, 1.0))
    translate: Vec3 = ORIGIN
    rotate: Vec3 = ORIGIN

    def rotation_matrix(self) -> np.ndarray:
        return euler_xyz_matrix(self.rotate.x, self.rotate.y, self.rotate.z)

    def is_identity(self) -> bool:
        return (
            self.scale == Vec3(1.0, 1.0, 1.0) and self.translate == ORIGIN and self.rotate == ORIGIN
        )


@dataclass
class ModelTransform:
    """How the loaded scene content was recentred and scaled."""

    scale: float = 1.0
    translate: Vec3 = ORIGIN


def transform_points(
    points: np.ndarray, calibration: CalibrationTransform, model: ModelTransform
) -> np.ndarray:
    """Vectorized pipeline over an (N, 3) array of graph-space points."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if not np.any(calibration.rotate.as_array()):
        out = pts.copy()
    else:
        out = pts @ calibration.rotation_matrix().T
    out *= calibration.scale.as_array()
    out *= model.scale
    out += model.translate.as_array()
    out += calibration.translate.as_array()
    return out


def to_world(point: Vec3, calibration: CalibrationTransform, model: ModelTransform) -> Vec3:
    x, y, z = transform_points(point.as_array(), calibration, model)[0]
    return Vec3(float(x), float(y), float(z))


@dataclass
class WorldFrame:
    """
    The transforms one map instance renders with. Mutating `calibration`
    takes effect on the next query; nothing derived from it is cached.
    """

    calibration: CalibrationTransform = field(default_factory=CalibrationTransform)
    model: ModelTransform = field(default_factory=ModelTransform)

    def to_world(self, point: Vec3) -> Vec3:
        return to_world(point, self.calibration, self.model)

    def to_world_many(self, points: np.ndarray) -> np.ndarray:
        return transform_points(points, self.calibration, self.model)
