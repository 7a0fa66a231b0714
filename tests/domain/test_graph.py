import math

import pytest

from campus_nav.domain.graph import MalformedGraphError, RoadGraph, normalize_document


def pts(*coords):
    return [{"id": i + 1, "position": {"x": x, "y": 0, "z": z}} for i, (x, z) in enumerate(coords)]


def test_canonical_document_loads():
    g = RoadGraph.load(
        {
            "points": pts((0, 0), (3, 4)),
            "connections": [{"from": 1, "to": 2, "cost": 5.0}],
        }
    )
    assert len(g) == 2
    assert 1 in g and 3 not in g
    assert g.connections[0].cost == 5.0
    assert not g.synthesized_connections
    assert g.has_metric_costs()


def test_legacy_nodes_and_edges():
    g = RoadGraph.load(
        {
            "nodes": [{"id": "a", "position": [0, 1, 2]}, {"id": "b", "position": [3, 1, 2]}],
            "edges": [{"source": "a", "target": "b"}],
        }
    )
    assert g.point("a").position.y == 1.0
    # missing cost defaults to the straight line
    assert g.connections[0].cost == 3.0


def test_links_are_used_when_nothing_else_is_present():
    g = RoadGraph.load({"points": pts((0, 0), (1, 0)), "links": [{"from": 1, "to": 2, "cost": 1}]})
    assert len(g.connections) == 1


def test_connections_win_over_edges_and_links():
    doc = normalize_document(
        {
            "points": pts((0, 0), (1, 0)),
            "connections": [{"from": 1, "to": 2, "cost": 1}],
            "edges": [{"from": 2, "to": 1, "cost": 9}],
        }
    )
    assert doc["connections"] == [{"from": 1, "to": 2, "cost": 1}]


def test_empty_connection_list_is_not_replaced_by_a_chain():
    g = RoadGraph.load({"points": pts((0, 0), (1, 0)), "connections": []})
    assert g.connections == ()
    assert not g.synthesized_connections


def test_missing_connections_synthesize_a_chain():
    g = RoadGraph.load({"points": pts((0, 0), (3, 4), (3, 10))})
    assert g.synthesized_connections
    assert [(c.from_id, c.to_id) for c in g.connections] == [(1, 2), (2, 3)]
    assert abs(g.connections[0].cost - 5.0) < 1e-9
    assert abs(g.connections[1].cost - 6.0) < 1e-9


@pytest.mark.parametrize(
    "doc",
    [
        {},
        {"connections": []},
        {"points": [{"id": 1}]},
        {"points": [{"id": 1, "position": [0, 0]}]},
        {"points": pts((0, 0)), "connections": [{"from": 1, "to": 99, "cost": 1}]},
        {"points": pts((0, 0), (1, 0)), "connections": [{"from": 1, "to": 2, "cost": -1}]},
        {"points": pts((0, 0), (1, 0)), "connections": [{"from": 1, "cost": 1}]},
        {"points": pts((0, 0)) + pts((5, 5)), "connections": []},
        {"nodes": ["not-a-node"]},
    ],
)
def test_malformed_graphs_raise(doc):
    with pytest.raises(MalformedGraphError):
        RoadGraph.load(doc)


def test_non_mapping_document_raises():
    with pytest.raises(MalformedGraphError):
        RoadGraph.load([1, 2, 3])


def test_malformed_graph_error_is_a_value_error():
    assert issubclass(MalformedGraphError, ValueError)


def test_shortcut_costs_are_not_metric():
    g = RoadGraph.load(
        {"points": pts((0, 0), (10, 0)), "connections": [{"from": 1, "to": 2, "cost": 2}]}
    )
    assert not g.has_metric_costs()


def test_to_document_reloads_to_the_same_graph():
    nodes = [{"id": 1, "position": [0, 0, 0]}, {"id": 2, "position": [1, 2, 2]}]
    g = RoadGraph.load({"nodes": nodes})
    again = RoadGraph.load(g.to_document())
    assert again.points == g.points
    assert again.connections == g.connections
    assert abs(again.connections[0].cost - 3.0) < 1e-9


def test_positions_array_in_load_order():
    g = RoadGraph.load({"points": pts((1, 2), (3, 4))})
    arr = g.positions_array()
    assert arr.shape == (2, 3)
    assert arr[1].tolist() == [3.0, 0.0, 4.0]
    assert RoadGraph.load({"points": []}).positions_array().shape == (0, 3)
    assert math.isclose(g.point(2).position.x, 3.0)


def test_fractional_numeric_ids_are_accepted():
    g = RoadGraph.load(
        {
            "points": [{"id": 1.5, "position": [0, 0, 0]}, {"id": 2, "position": [3, 0, 4]}],
            "connections": [{"from": 1.5, "to": 2}],
        }
    )
    assert 1.5 in g and 2 in g
    assert g.connections[0].cost == 5.0
    assert g.get(7) is None
