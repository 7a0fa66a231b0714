# services/route_query.py
import logging
from collections.abc import Callable

from campus_nav.app.buildings import CURRENT_LOCATION, CURRENT_LOCATION_ID
from campus_nav.app.protocols import BuildingLookup, NullRenderSink, RenderSink
from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.graph import PointId
from campus_nav.domain.pathfinding import PathfinderEngine

log = logging.getLogger(__name__)


class RouteQueryService:
    """
    Building-to-building paths on demand, outside any navigation session.
    "Current Location" resolves through `position`.
    """

    def __init__(
        self,
        pathfinder: PathfinderEngine,
        buildings: BuildingLookup,
        *,
        position: Callable[[], Vec3 | None] | None = None,
        renderer: RenderSink | None = None,
    ):
        self.pathfinder = pathfinder
        self.buildings = buildings
        self.position = position or (lambda: None)
        self.renderer = renderer or NullRenderSink()

    def resolve(self, name: str) -> Vec3 | None:
        if name in (CURRENT_LOCATION, CURRENT_LOCATION_ID):
            return self.position()
        return self.buildings.find_building(name)

    def find_path_between_buildings(self, start: str, end: str) -> list[PointId] | None:
        start_pos, end_pos = self.resolve(start), self.resolve(end)
        if start_pos is None or end_pos is None:
            log.warning("cannot resolve %s", start if start_pos is None else end)
            return None
        start_id = self.pathfinder.find_nearest_point_world(start_pos)
        end_id = self.pathfinder.find_nearest_point_world(end_pos)
        if start_id is None or end_id is None:
            return None
        return self.pathfinder.find_path(start_id, end_id)

    def show_path_between_buildings(self, start: str, end: str) -> list[Vec3] | None:
        """Find the path and hand its world positions to the render sink."""
        ids = self.find_path_between_buildings(start, end)
        if not ids:
            return None
        world = self.pathfinder.world_positions(ids)
        self.renderer.visualize_path(world)
        return world
