# app/controllers/navigation.py
import logging

from campus_nav.app.events import (
    DestinationReached,
    FailureReason,
    NavigationFailed,
    NavigationProgress,
    NavigationStarted,
    NavigationStopped,
    NavigationTick,
    PositionUpdate,
    RouteCalculated,
    RouteRecalculated,
    WaypointReached,
)
from campus_nav.app.protocols import BuildingLookup, NullRenderSink, RenderSink
from campus_nav.config.models import NavigationModel
from campus_nav.domain.entities.geometry import Vec3, distance_from_path
from campus_nav.domain.entities.positions import GpsFix, GroundPosition, PositionFix
from campus_nav.domain.geo import GeoProjector
from campus_nav.domain.pathfinding import PathfinderEngine
from campus_nav.domain.session import (
    NavigationSession,
    NavState,
    Route,
    eta_seconds,
    format_eta,
    instruction_for,
)
from campus_nav.domain.simplify import simplify_path
from campus_nav.sim.event import BaseEvent
from campus_nav.sim.kernel import Kernel

log = logging.getLogger(__name__)


class NavigationController:
    """
    Owns the single navigation session of one map.

    Position updates and periodic ticks both land in `update_navigation`.
    Ticks carry a task id; `stop()` bumps it so ticks already queued are
    ignored when they come due.
    """

    def __init__(
        self,
        kernel: Kernel,
        pathfinder: PathfinderEngine,
        projector: GeoProjector,
        buildings: BuildingLookup,
        cfg: NavigationModel,
        renderer: RenderSink | None = None,
    ):
        self.kernel = kernel
        self.pathfinder = pathfinder
        self.projector = projector
        self.buildings = buildings
        self.cfg = cfg
        self.renderer = renderer or NullRenderSink()

        self.state = NavState.IDLE
        self.session: NavigationSession | None = None
        self.destination: str | None = None
        self.last_position: PositionFix | None = None
        self.last_progress: NavigationProgress | None = None
        self.last_failure: FailureReason | None = None

        self.recalculations = 0
        self.dropped_updates = 0
        self._last_recalc_t: float | None = None
        self._task_id = 0
        self._processing = False

    # ---------------- queries ----------------

    def is_active(self) -> bool:
        return self.state is NavState.NAVIGATING

    @property
    def route(self) -> Route | None:
        return self.session.route if self.session else None

    @property
    def waypoint_index(self) -> int:
        return self.session.waypoint_index if self.session else 0

    def current_waypoint(self) -> Vec3 | None:
        if not self.is_active():
            return None
        return self.session.current_waypoint()

    def current_position(self) -> Vec3 | None:
        """Last known position on the world ground plane, or None."""
        fix = self.last_position
        if isinstance(fix, GpsFix):
            return self.projector.fix_to_world(fix)
        if isinstance(fix, GroundPosition):
            return Vec3.ground(fix.x, fix.z)
        return None

    # ---------------- commands ----------------

    def navigate_to(self, name: str) -> bool:
        target = self.buildings.find_building(name)
        if target is None:
            return self._fail(name, "destination_not_found")

        if self.last_position is None and not self.cfg.use_real_gps:
            ox, oz = self.cfg.simulation_origin
            self.last_position = GroundPosition(ox, oz)
        origin = self.current_position()
        if origin is None:
            return self._fail(name, "position_unavailable")

        self.clear()
        route = self._plan(name, target, origin)
        if route is None:
            return self._fail(name, "no_path")

        self.session = NavigationSession(route=route)
        self.destination = name
        self.state = NavState.ROUTE_CALCULATED
        self.last_failure = None
        self.renderer.visualize_path(route.world_path)
        self._publish(
            RouteCalculated(
                t=self.kernel.now,
                destination=name,
                waypoints=route.waypoint_count,
                graph_points=len(route.point_ids),
                cost=self.pathfinder.path_cost(route.point_ids),
            )
        )
        return True

    def start(self) -> bool:
        if self.session is None:
            return self._fail(self.destination, "no_route")
        if self.is_active():
            return True

        now = self.kernel.now
        s = self.session
        s.waypoint_index = 0
        self._task_id += 1
        self._last_recalc_t = None
        self.state = NavState.NAVIGATING

        head = s.route.world_path[0]
        if not self.cfg.use_real_gps:
            # simulated walks begin at the head of the route
            self.last_position = GroundPosition(head.x, head.z)

        self._publish(
            NavigationStarted(
                t=now, destination=s.route.destination, task_id=self._task_id, start=head
            )
        )
        self.kernel.schedule(
            NavigationTick(t=now + self.cfg.update_interval_s, task_id=self._task_id)
        )
        self.update_navigation()
        return True

    def stop(self, reason: str = "user") -> bool:
        if self.state is NavState.IDLE and self.session is None:
            return True
        was_active = self.is_active()
        cancelled = self._task_id
        self._task_id += 1
        self.session = None
        self.state = NavState.IDLE
        if was_active:
            self._publish(
                NavigationStopped(
                    t=self.kernel.now,
                    destination=self.destination,
                    task_id=cancelled,
                    reason=reason,
                )
            )
        return True

    def clear(self) -> None:
        self.stop(reason="cleared")
        self.renderer.clear_path()
        self.destination = None
        self.last_progress = None

    def set_use_real_gps(self, use_real_gps: bool) -> None:
        """Switch between device fixes and the simulated walker; an active session restarts."""
        if use_real_gps == self.cfg.use_real_gps:
            return
        self.cfg = self.cfg.model_copy(update={"use_real_gps": use_real_gps})
        if self.is_active():
            route = self.session.route
            self.stop(reason="mode_change")
            self.session = NavigationSession(route=route)
            self.state = NavState.ROUTE_CALCULATED
            self.start()

    # ---------------- event handlers ----------------

    def on_position_update(self, ev: PositionUpdate):
        self.last_position = ev.fix
        if self.is_active():
            self.update_navigation()
        return []

    def on_navigation_tick(self, ev: NavigationTick):
        if ev.task_id != self._task_id or not self.is_active():
            return []  # stale
        self.update_navigation()
        if ev.task_id != self._task_id or not self.is_active():
            return []
        return [NavigationTick(t=ev.t + self.cfg.update_interval_s, task_id=ev.task_id)]

    # ---------------- update loop ----------------

    def update_navigation(self) -> bool:
        """One progress evaluation. Returns False when nothing was evaluated."""
        if self._processing:
            self.dropped_updates += 1
            log.debug("update_navigation already running; update dropped")
            return False
        if not self.is_active():
            return False
        pos = self.current_position()
        if pos is None:
            return False

        self._processing = True
        try:
            self._advance(pos)
            if self.is_active():
                self._check_off_path(pos)
        finally:
            self._processing = False
        return True

    def _advance(self, pos: Vec3) -> None:
        s = self.session
        now = self.kernel.now
        count = s.route.waypoint_count
        target = s.current_waypoint()
        distance = pos.planar_distance_to(target)
        while distance <= self.cfg.arrival_distance:
            s.advance()
            self._publish(
                WaypointReached(t=now, waypoint_index=s.waypoint_index - 1, waypoint_count=count)
            )
            target = s.current_waypoint()
            if target is None:
                self._arrive()
                return
            distance = pos.planar_distance_to(target)
        self._report_progress(pos, target, distance)

    def _report_progress(self, pos: Vec3, target: Vec3, distance: float) -> None:
        s = self.session
        count = s.route.waypoint_count
        eta = eta_seconds(distance, self.cfg.walking_speed_mps)
        if distance > 0:
            heading = ((target.x - pos.x) / distance, (target.z - pos.z) / distance)
        else:
            heading = (0.0, 0.0)
        ev = NavigationProgress(
            t=self.kernel.now,
            instruction=instruction_for(s.waypoint_index, count),
            distance=distance,
            eta_s=eta,
            eta_text=format_eta(eta),
            waypoint_index=s.waypoint_index,
            waypoint_count=count,
            heading=heading,
        )
        self.last_progress = ev
        self._publish(ev)

    def _arrive(self) -> None:
        destination = self.session.route.destination
        log.info("arrived at %s", destination)
        finished = self._task_id
        self._task_id += 1
        self.session = None
        self.state = NavState.ARRIVED
        self._publish(
            DestinationReached(t=self.kernel.now, destination=destination, task_id=finished)
        )

    def _check_off_path(self, pos: Vec3) -> None:
        path = [p.flat() for p in self.session.route.world_path]
        off = distance_from_path(pos, path)
        if off <= self.cfg.recalculation_distance:
            return
        now = self.kernel.now
        if (
            self._last_recalc_t is not None
            and now - self._last_recalc_t < self.cfg.recalc_cooldown_s
        ):
            log.debug("off path by %.1f but recalculation is cooling down", off)
            return
        self._last_recalc_t = now
        self._recalculate(pos, off)

    def _recalculate(self, pos: Vec3, off: float) -> bool:
        s = self.session
        old = s.route
        self.recalculations += 1
        log.info("off path by %.1f; recalculating route to %s", off, old.destination)
        route = self._plan(old.destination, old.target, pos)
        if route is None:
            log.warning("recalculation to %s failed; keeping current route", old.destination)
            self._publish(
                RouteRecalculated(
                    t=self.kernel.now, destination=old.destination, off_path=off, success=False
                )
            )
            return False
        s.route = route
        s.waypoint_index = 0
        self.renderer.visualize_path(route.world_path)
        self._publish(
            RouteRecalculated(
                t=self.kernel.now, destination=old.destination, off_path=off, success=True
            )
        )
        return True

    # ---------------- helpers ----------------

    def _plan(self, name: str, target: Vec3, origin: Vec3) -> Route | None:
        start_id = self.pathfinder.find_nearest_point_world(origin)
        end_id = self.pathfinder.find_nearest_point_world(target)
        if start_id is None or end_id is None:
            log.warning("road graph is empty; cannot route to %s", name)
            return None
        ids = self.pathfinder.find_path(start_id, end_id)
        if not ids:
            return None
        world = self.pathfinder.world_positions(ids)
        if self.cfg.smooth_path:
            world = simplify_path(world, self.cfg.path_simplify_threshold)
        return Route(destination=name, target=target, point_ids=ids, world_path=world)

    def _fail(self, destination: str | None, reason: FailureReason) -> bool:
        log.warning("navigation to %s failed: %s", destination, reason)
        self.last_failure = reason
        self._publish(NavigationFailed(t=self.kernel.now, destination=destination, reason=reason))
        return False

    def _publish(self, *events: BaseEvent) -> None:
        self.kernel.publish(*events)
