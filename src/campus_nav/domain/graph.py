# domain/graph.py
from __future__ import annotations

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import numpy as np
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from campus_nav.domain.entities.geometry import Vec3

log = logging.getLogger(__name__)

PointId = int | float | str  # any JSON number or string

CONNECTION_KEYS = ("connections", "edges", "links")


class MalformedGraphError(ValueError):
    """Raised at load time; no pathfinder is ever built on a graph that fails this."""


# ---------------- boundary schemas ----------------


class _RawVec3(BaseModel):
    model_config = ConfigDict(extra="ignore")
    x: float
    y: float = 0.0
    z: float

    @classmethod
    def coerce(cls, v: Any) -> Any:
        if isinstance(v, (list, tuple)):
            if len(v) != 3:
                raise ValueError(f"position needs 3 components, got {len(v)}")
            return {"x": v[0], "y": v[1], "z": v[2]}
        return v


class _RawPoint(BaseModel):
    model_config = ConfigDict(extra="ignore")
    id: PointId
    position: _RawVec3

    @field_validator("position", mode="before")
    @classmethod
    def _seq_to_xyz(cls, v):
        return _RawVec3.coerce(v)


class _RawConnection(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    from_id: PointId = Field(validation_alias=AliasChoices("from", "source", "from_id"))
    to_id: PointId = Field(validation_alias=AliasChoices("to", "target", "to_id"))
    cost: float | None = None


# ---------------- domain types ----------------


@dataclass(frozen=True)
class GraphPoint:
    id: PointId
    position: Vec3  # graph space


@dataclass(frozen=True)
class GraphConnection:
    from_id: PointId
    to_id: PointId
    cost: float


def normalize_document(raw: Mapping) -> dict:
    """
    Bring legacy layouts to {points, connections}:
      1. `nodes` (position as [x, y, z]) stands in for a missing `points`
      2. connections come from `connections`, else `edges`, else `links`
      3. none at all -> a chain over the points in array order
    The result is still raw (unvalidated) data.
    """
    if not isinstance(raw, Mapping):
        raise MalformedGraphError(f"graph document must be a mapping, got {type(raw).__name__}")
    points = raw.get("points")
    if points is None and raw.get("nodes") is not None:
        if any(not isinstance(n, Mapping) for n in raw["nodes"]):
            raise MalformedGraphError("every node must be a mapping")
        # position stays a sequence here; _RawPoint turns it into {x, y, z}
        points = [{"id": n.get("id"), "position": n.get("position")} for n in raw["nodes"]]
    if points is None:
        raise MalformedGraphError("graph has no `points` or `nodes`")

    connections = None
    for key in CONNECTION_KEYS:
        if raw.get(key) is not None:
            connections = raw[key]
            break
    return {"points": list(points), "connections": connections}


class RoadGraph:
    """Walkable points plus undirected weighted connections, immutable after load."""

    def __init__(
        self,
        points: Sequence[GraphPoint],
        connections: Sequence[GraphConnection],
        *,
        synthesized_connections: bool = False,
    ):
        self.points: tuple[GraphPoint, ...] = tuple(points)
        self.connections: tuple[GraphConnection, ...] = tuple(connections)
        self.synthesized_connections = synthesized_connections
        self._by_id: dict[PointId, GraphPoint] = {}
        for p in self.points:
            if p.id in self._by_id:
                raise MalformedGraphError(f"duplicate point id {p.id!r}")
            self._by_id[p.id] = p
        for c in self.connections:
            for end in (c.from_id, c.to_id):
                if end not in self._by_id:
                    raise MalformedGraphError(
                        f"connection {c.from_id!r}-{c.to_id!r} references unknown point {end!r}"
                    )
            if not (c.cost >= 0.0 and math.isfinite(c.cost)):
                raise MalformedGraphError(
                    f"connection {c.from_id!r}-{c.to_id!r} has invalid cost {c.cost!r}"
                )

    # ---------------- loading ----------------

    @classmethod
    def load(cls, raw: Mapping) -> RoadGraph:
        doc = normalize_document(raw)
        try:
            raw_points = [_RawPoint.model_validate(p) for p in doc["points"]]
        except ValidationError as exc:
            raise MalformedGraphError(f"invalid point data: {exc}") from exc
        points = [
            GraphPoint(p.id, Vec3(p.position.x, p.position.y, p.position.z)) for p in raw_points
        ]
        by_id = {p.id: p for p in points}

        if doc["connections"] is None:
            connections = [
                GraphConnection(a.id, b.id, a.position.distance_to(b.position))
                for a, b in zip(points, points[1:])
            ]
            log.warning(
                "graph has no connections; chaining %d points in array order", len(points)
            )
            return cls(points, connections, synthesized_connections=True)

        connections = []
        try:
            for c in doc["connections"]:
                rc = _RawConnection.model_validate(c)
                cost = rc.cost
                if cost is None:
                    a, b = by_id.get(rc.from_id), by_id.get(rc.to_id)
                    # unknown endpoints are reported by the constructor
                    cost = a.position.distance_to(b.position) if a and b else 0.0
                connections.append(GraphConnection(rc.from_id, rc.to_id, cost))
        except ValidationError as exc:
            raise MalformedGraphError(f"invalid connection data: {exc}") from exc
        return cls(points, connections)

    def to_document(self) -> dict:
        return {
            "points": [{"id": p.id, "position": p.position.as_dict()} for p in self.points],
            "connections": [
                {"from": c.from_id, "to": c.to_id, "cost": c.cost} for c in self.connections
            ],
        }

    # ---------------- queries ----------------

    def __len__(self) -> int:
        return len(self.points)

    def __contains__(self, pid: object) -> bool:
        return pid in self._by_id

    def point(self, pid: PointId) -> GraphPoint:
        return self._by_id[pid]

    def get(self, pid: PointId) -> GraphPoint | None:
        return self._by_id.get(pid)

    def positions_array(self) -> np.ndarray:
        """(N, 3) graph-space positions in load order."""
        if not self.points:
            return np.empty((0, 3), dtype=float)
        return np.array([[p.position.x, p.position.y, p.position.z] for p in self.points])

    def has_metric_costs(self, rel_tol: float = 1e-9) -> bool:
        """True when no connection is cheaper than the straight line between its endpoints."""
        for c in self.connections:
            straight = self._by_id[c.from_id].position.distance_to(self._by_id[c.to_id].position)
            if c.cost < straight * (1.0 - rel_tol) - 1e-12:
                return False
        return True
