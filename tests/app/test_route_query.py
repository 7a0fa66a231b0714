from campus_nav.app.buildings import CURRENT_LOCATION, BuildingDirectory
from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.graph import RoadGraph
from campus_nav.domain.pathfinding import PathfinderEngine
from campus_nav.services.route_query import RouteQueryService


class Sink:
    def __init__(self):
        self.paths = []

    def visualize_path(self, path):
        self.paths.append(list(path))

    def clear_path(self):
        self.paths.clear()


def make_service(position=None):
    graph = RoadGraph.load(
        {
            "points": [{"id": i, "position": [x, 0, 0]} for i, x in enumerate((0, 10, 20, 30))],
            "connections": [{"from": i, "to": i + 1} for i in range(3)],
        }
    )
    buildings = BuildingDirectory()
    buildings.add("admin_block", Vec3(1, 0, 1), display_name="Admin Block")
    buildings.add("Library", Vec3(29, 0, -2))
    sink = Sink()
    svc = RouteQueryService(PathfinderEngine(graph), buildings, position=position, renderer=sink)
    return svc, sink


def test_path_between_buildings():
    svc, _ = make_service()
    assert svc.find_path_between_buildings("admin_block", "Library") == [0, 1, 2, 3]
    assert svc.find_path_between_buildings("Library", "Admin Block") == [3, 2, 1, 0]
    assert svc.find_path_between_buildings("library", "admin block") == [3, 2, 1, 0]


def test_unknown_buildings_give_no_path():
    svc, _ = make_service()
    assert svc.find_path_between_buildings("Library", "Gym") is None


def test_current_location_uses_the_position_provider():
    svc, _ = make_service(position=lambda: Vec3(19, 0, 0))
    assert svc.find_path_between_buildings(CURRENT_LOCATION, "Library") == [2, 3]
    nowhere, _ = make_service()
    assert nowhere.find_path_between_buildings(CURRENT_LOCATION, "Library") is None


def test_show_path_renders_world_positions():
    svc, sink = make_service()
    world = svc.show_path_between_buildings("Admin Block", "Library")
    assert world == [Vec3(0, 0, 0), Vec3(10, 0, 0), Vec3(20, 0, 0), Vec3(30, 0, 0)]
    assert sink.paths == [world]
    assert svc.show_path_between_buildings("Admin Block", "Gym") is None
    assert len(sink.paths) == 1


def test_directory_rejects_reserved_names():
    import pytest

    d = BuildingDirectory()
    with pytest.raises(ValueError):
        d.add(CURRENT_LOCATION, Vec3(0, 0, 0))
    assert d.find_building(CURRENT_LOCATION) is None
