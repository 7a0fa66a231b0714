import itertools
import math

import numpy as np
import pytest

from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.graph import RoadGraph
from campus_nav.domain.pathfinding import PathfinderEngine
from campus_nav.domain.transform import CalibrationTransform, ModelTransform, WorldFrame


def square_graph() -> RoadGraph:
    return RoadGraph.load(
        {
            "points": [
                {"id": 1, "position": {"x": 0, "y": 0, "z": 0}},
                {"id": 2, "position": {"x": 1, "y": 0, "z": 0}},
                {"id": 3, "position": {"x": 1, "y": 0, "z": 1}},
                {"id": 4, "position": {"x": 0, "y": 0, "z": 1}},
            ],
            "connections": [
                {"from": 1, "to": 2, "cost": 1},
                {"from": 2, "to": 3, "cost": 1},
                {"from": 3, "to": 4, "cost": 1},
                {"from": 4, "to": 1, "cost": 1},
                {"from": 1, "to": 3, "cost": 1.5},
            ],
        }
    )


def random_graph(seed: int, n: int = 8, p_edge: float = 0.35, metric: bool = True) -> RoadGraph:
    rng = np.random.default_rng(seed)
    xyz = rng.uniform(0, 100, size=(n, 3))
    xyz[:, 1] = 0
    points = [{"id": i, "position": list(map(float, xyz[i]))} for i in range(n)]
    connections = []
    for a, b in itertools.combinations(range(n), 2):
        if rng.random() < p_edge:
            straight = float(np.linalg.norm(xyz[a] - xyz[b]))
            factor = rng.uniform(1.0, 1.5) if metric else rng.uniform(0.1, 1.5)
            connections.append({"from": a, "to": b, "cost": straight * factor})
    return RoadGraph.load({"points": points, "connections": connections})


def brute_force_cost(graph: RoadGraph, start, end) -> float:
    adj: dict = {}
    for c in graph.connections:
        adj.setdefault(c.from_id, []).append((c.to_id, c.cost))
        adj.setdefault(c.to_id, []).append((c.from_id, c.cost))
    best = math.inf

    def dfs(u, seen, cost):
        nonlocal best
        if cost >= best:
            return
        if u == end:
            best = cost
            return
        for v, w in adj.get(u, ()):
            if v not in seen:
                seen.add(v)
                dfs(v, seen, cost + w)
                seen.remove(v)

    dfs(start, {start}, 0.0)
    return best


def test_square_prefers_the_cheaper_diagonal():
    pf = PathfinderEngine(square_graph())
    assert pf.find_path(1, 3) == [1, 3]
    assert pf.path_cost([1, 3]) == 1.5
    assert pf.path_cost([1, 2, 3]) == 2.0


def test_adjacency_is_symmetric():
    pf = PathfinderEngine(square_graph())
    assert (1, 1.5) in pf.adjacency[3]
    assert (3, 1.5) in pf.adjacency[1]
    assert pf.find_path(3, 1) == [3, 1]


@pytest.mark.parametrize("seed", range(12))
def test_astar_matches_exhaustive_search(seed):
    g = random_graph(seed)
    pf = PathfinderEngine(g)
    assert pf.use_heuristic
    for start, end in [(0, 7), (1, 5), (3, 6)]:
        path = pf.find_path(start, end)
        best = brute_force_cost(g, start, end)
        if math.isinf(best):
            assert path is None
        else:
            assert path[0] == start and path[-1] == end
            assert abs(pf.path_cost(path) - best) < 1e-9


@pytest.mark.parametrize("seed", range(6))
def test_non_metric_costs_fall_back_to_dijkstra_and_stay_optimal(seed):
    g = random_graph(100 + seed, metric=False)
    pf = PathfinderEngine(g)
    if g.has_metric_costs():
        pytest.skip("random draw happened to be metric")
    assert not pf.use_heuristic
    for start, end in [(0, 7), (2, 4)]:
        path = pf.find_path(start, end)
        best = brute_force_cost(g, start, end)
        if math.isinf(best):
            assert path is None
        else:
            assert abs(pf.path_cost(path) - best) < 1e-9


def test_repeated_queries_are_identical():
    g = random_graph(3, n=10, p_edge=0.5)
    pf = PathfinderEngine(g)
    first = pf.find_path(0, 9)
    for _ in range(5):
        assert pf.find_path(0, 9) == first
    assert PathfinderEngine(g).find_path(0, 9) == first


def test_disconnected_components_have_no_path():
    g = RoadGraph.load(
        {
            "points": [{"id": i, "position": [i, 0, 0]} for i in range(4)],
            "connections": [{"from": 0, "to": 1, "cost": 1}, {"from": 2, "to": 3, "cost": 1}],
        }
    )
    pf = PathfinderEngine(g)
    assert pf.find_path(0, 3) is None
    assert pf.find_path(0, 1) == [0, 1]


def test_unknown_ids_and_trivial_paths():
    pf = PathfinderEngine(square_graph())
    assert pf.find_path(1, 42) is None
    assert pf.find_path("x", 1) is None
    assert pf.find_path(2, 2) == [2]
    assert pf.path_cost([2]) == 0
    assert math.isinf(pf.path_cost([2, 4]))


@pytest.mark.parametrize("seed", range(5))
def test_nearest_point_matches_brute_force(seed):
    g = random_graph(seed, n=15)
    frame = WorldFrame(
        calibration=CalibrationTransform(
            scale=Vec3(1.1, 1, 0.9), translate=Vec3(3, 2, 7), rotate=Vec3(-math.pi / 2, 0, 0.3)
        ),
        model=ModelTransform(scale=0.8, translate=Vec3(-10, 0, 4)),
    )
    pf = PathfinderEngine(g, frame)
    rng = np.random.default_rng(seed)
    for q in rng.uniform(-50, 150, size=(20, 3)):
        query = Vec3(*map(float, q))
        expected = min(g.points, key=lambda p: frame.to_world(p.position).distance_to(query)).id
        assert pf.find_nearest_point_world(query) == expected


def test_nearest_point_ties_go_to_the_first_point():
    g = RoadGraph.load(
        {"points": [{"id": "b", "position": [-1, 0, 0]}, {"id": "a", "position": [1, 0, 0]}]}
    )
    pf = PathfinderEngine(g)
    assert pf.find_nearest_point_world(Vec3(0, 0, 0)) == "b"


def test_nearest_point_on_empty_graph_is_none():
    pf = PathfinderEngine(RoadGraph.load({"points": []}))
    assert pf.find_nearest_point_world(Vec3(0, 0, 0)) is None


def test_world_positions_use_the_frame():
    frame = WorldFrame()
    frame.calibration.translate = Vec3(0, 5, 0)
    pf = PathfinderEngine(square_graph(), frame)
    assert pf.world_positions([1, 3]) == [Vec3(0, 5, 0), Vec3(1, 5, 1)]
