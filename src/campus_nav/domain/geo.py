# domain/geo.py
from __future__ import annotations

import math
from dataclasses import dataclass

from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.entities.positions import GpsFix, GroundPosition

EARTH_RADIUS_M = 6_371_000.0

# surveyed anchor of the deployed campus model (the library entrance)
REFERENCE_LATITUDE = 8.5644027
REFERENCE_LONGITUDE = 76.8879752
REFERENCE_WORLD_X = 114.95
REFERENCE_WORLD_Z = -49.85
DEFAULT_CALIBRATION_FACTOR = 0.6163


# -------------------------
# Great-circle & bearings
# -------------------------
def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance on a sphere of EARTH_RADIUS_M."""
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dphi = p2 - p1
    dl = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2.0) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2.0) ** 2
    return EARTH_RADIUS_M * 2.0 * math.atan2(math.sqrt(a), math.sqrt(1.0 - a))


def initial_bearing_rad(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial bearing from point 1 to point 2, radians clockwise from north in (-pi, pi]."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dl = math.radians(lon2 - lon1)
    y = math.sin(dl) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dl)
    return math.atan2(y, x)


@dataclass
class GeoProjector:
    """
    Local tangent-plane projection of GPS fixes onto the scene's ground plane.
    North is world -Z and east is world +X. Accuracy falls off with distance
    from the reference; fine over a campus, wrong over a city.
    """

    reference_latitude: float = REFERENCE_LATITUDE
    reference_longitude: float = REFERENCE_LONGITUDE
    reference_x: float = REFERENCE_WORLD_X
    reference_z: float = REFERENCE_WORLD_Z
    calibration_factor: float = DEFAULT_CALIBRATION_FACTOR  # scene units per meter

    def __post_init__(self):
        self.set_calibration_factor(self.calibration_factor)

    def set_calibration_factor(self, factor: float) -> None:
        if not (factor > 0.0 and math.isfinite(factor)):
            raise ValueError(f"calibration_factor must be a positive number, got {factor!r}")
        self.calibration_factor = float(factor)

    def distance_bearing(self, lat: float, lon: float) -> tuple[float, float]:
        """(meters, bearing radians) from the reference to (lat, lon)."""
        ref_lat, ref_lon = self.reference_latitude, self.reference_longitude
        return (
            haversine_m(ref_lat, ref_lon, lat, lon),
            initial_bearing_rad(ref_lat, ref_lon, lat, lon),
        )

    def geo_to_world(self, lat: float, lon: float) -> GroundPosition:
        meters, bearing = self.distance_bearing(lat, lon)
        d = meters * self.calibration_factor
        return GroundPosition(
            x=self.reference_x + d * math.sin(bearing),
            z=self.reference_z - d * math.cos(bearing),
        )

    def fix_to_world(self, fix: GpsFix) -> Vec3:
        g = self.geo_to_world(fix.latitude, fix.longitude)
        return Vec3.ground(g.x, g.z)
