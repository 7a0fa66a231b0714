# domain/pathfinding.py
from __future__ import annotations

import heapq
import logging
import math
from collections.abc import Sequence
from typing import Literal

import numpy as np

from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.graph import PointId, RoadGraph
from campus_nav.domain.transform import WorldFrame

log = logging.getLogger(__name__)

HeuristicMode = Literal["auto", "euclidean", "zero"]


class PathfinderEngine:
    """
    A* over a RoadGraph, plus nearest-point lookup in world space.

    The heuristic is the graph-space straight-line distance. It is only
    admissible when no connection is cheaper than its straight line, so in
    "auto" mode a graph with cheaper (non-metric) connections falls back to a
    zero heuristic, i.e. plain Dijkstra, and the answer stays optimal.
    """

    def __init__(
        self,
        graph: RoadGraph,
        frame: WorldFrame | None = None,
        *,
        heuristic: HeuristicMode = "auto",
    ):
        self.graph = graph
        self.frame = frame or WorldFrame()
        self.adjacency: dict[PointId, list[tuple[PointId, float]]] = {
            p.id: [] for p in graph.points
        }
        self._edge_cost: dict[tuple[PointId, PointId], float] = {}
        for c in graph.connections:
            self.adjacency[c.from_id].append((c.to_id, c.cost))
            self.adjacency[c.to_id].append((c.from_id, c.cost))
            for key in ((c.from_id, c.to_id), (c.to_id, c.from_id)):
                self._edge_cost[key] = min(c.cost, self._edge_cost.get(key, math.inf))
        self._ids: list[PointId] = [p.id for p in graph.points]
        self._raw_positions = graph.positions_array()

        if heuristic == "auto":
            self.use_heuristic = graph.has_metric_costs()
            if not self.use_heuristic:
                log.warning(
                    "connection costs undercut straight-line distances; searching without heuristic"
                )
        else:
            self.use_heuristic = heuristic == "euclidean"

    # ---------------- geometry ----------------

    def heuristic(self, a: PointId, b: PointId) -> float:
        if not self.use_heuristic:
            return 0.0
        return self.graph.point(a).position.distance_to(self.graph.point(b).position)

    def world_point(self, pid: PointId) -> Vec3:
        return self.frame.to_world(self.graph.point(pid).position)

    def world_positions(self, ids: Sequence[PointId]) -> list[Vec3]:
        return [self.world_point(pid) for pid in ids]

    def find_nearest_point_world(self, position: Vec3) -> PointId | None:
        """
        Id of the point whose world position is closest to `position`.
        Exact ties go to the earliest point in load order; None for an empty graph.
        """
        if not self._ids:
            return None
        world = self.frame.to_world_many(self._raw_positions)
        d2 = np.sum((world - position.as_array()) ** 2, axis=1)
        # argmin returns the first index among equal minima
        return self._ids[int(np.argmin(d2))]

    # ---------------- search ----------------

    def find_path(self, start_id: PointId, end_id: PointId) -> list[PointId] | None:
        """Lowest-cost id sequence from start to end inclusive, or None when unreachable."""
        if start_id not in self.graph or end_id not in self.graph:
            log.warning("find_path: unknown point id (start=%r, end=%r)", start_id, end_id)
            return None
        if start_id == end_id:
            return [start_id]

        g: dict[PointId, float] = {start_id: 0.0}
        came_from: dict[PointId, PointId] = {}
        closed: set[PointId] = set()
        seq = 0
        open_heap: list[tuple[float, int, PointId]] = [
            (self.heuristic(start_id, end_id), seq, start_id)
        ]

        while open_heap:
            _, _, cur = heapq.heappop(open_heap)
            if cur in closed:
                continue  # stale heap entry
            if cur == end_id:
                return self._reconstruct(came_from, cur)
            closed.add(cur)
            g_cur = g[cur]
            for nbr, cost in self.adjacency[cur]:
                if nbr in closed:
                    continue
                tentative = g_cur + cost
                if tentative < g.get(nbr, math.inf):
                    came_from[nbr] = cur
                    g[nbr] = tentative
                    seq += 1
                    heapq.heappush(open_heap, (tentative + self.heuristic(nbr, end_id), seq, nbr))

        log.warning(
            "no path between %r and %r; they may be in disconnected parts of the graph",
            start_id,
            end_id,
        )
        return None

    def _reconstruct(self, came_from: dict[PointId, PointId], cur: PointId) -> list[PointId]:
        path = [cur]
        while cur in came_from:
            cur = came_from[cur]
            assert self.graph.get(cur) is not None, f"predecessor {cur!r} is not a graph point"
            path.append(cur)
        path.reverse()
        return path

    def path_cost(self, ids: Sequence[PointId]) -> float:
        """Sum of connection costs along ids; inf if two consecutive ids are not connected."""
        return sum(self._edge_cost.get((a, b), math.inf) for a, b in zip(ids, ids[1:]))
