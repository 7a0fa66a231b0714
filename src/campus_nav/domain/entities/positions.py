# domain/entities/positions.py
from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass


@dataclass(frozen=True)
class GpsFix:
    """A device fix in WGS84 degrees. accuracy is the 1-sigma radius in meters."""

    latitude: float
    longitude: float
    accuracy: float | None = None
    heading: float | None = None  # degrees clockwise from north
    timestamp: float | None = None  # ms since the Unix epoch

    def __post_init__(self):
        if not (math.isfinite(self.latitude) and -90.0 <= self.latitude <= 90.0):
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not (math.isfinite(self.longitude) and -180.0 <= self.longitude <= 180.0):
            raise ValueError(f"longitude out of range: {self.longitude}")
        if self.accuracy is not None and not self.accuracy >= 0.0:
            raise ValueError(f"accuracy must be >= 0, got {self.accuracy}")

    @classmethod
    def from_payload(cls, payload: Mapping) -> GpsFix:
        """
        Parse the browser geolocation shape
        `{coords: {latitude, longitude, accuracy, heading?}, timestamp}`.
        A bare mapping without `coords` is read as the coords block itself.
        """
        coords = payload.get("coords", payload)
        try:
            lat = float(coords["latitude"])
            lon = float(coords["longitude"])
        except (KeyError, TypeError) as exc:
            raise ValueError(f"position payload has no latitude/longitude: {payload!r}") from exc
        try:
            heading = _optional_float(coords.get("heading"))
            accuracy = _optional_float(coords.get("accuracy"))
            ts = _optional_float(payload.get("timestamp"))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"position payload has a non-numeric field: {payload!r}") from exc
        return cls(
            latitude=lat,
            longitude=lon,
            accuracy=accuracy,
            # browsers report NaN heading while stationary
            heading=heading if heading is not None and math.isfinite(heading) else None,
            timestamp=ts,
        )


@dataclass(frozen=True)
class GroundPosition:
    """A position already in world space, on the ground plane."""

    x: float
    z: float

    @classmethod
    def from_payload(cls, payload: Mapping) -> GroundPosition:
        try:
            return cls(float(payload["x"]), float(payload["z"]))
        except (KeyError, TypeError) as exc:
            raise ValueError(f"position payload has no x/z: {payload!r}") from exc


PositionFix = GpsFix | GroundPosition


def parse_position(payload: Mapping) -> PositionFix:
    if "coords" in payload or "latitude" in payload:
        return GpsFix.from_payload(payload)
    return GroundPosition.from_payload(payload)


def _optional_float(v) -> float | None:
    return None if v is None else float(v)
