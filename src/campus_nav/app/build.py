# campus_nav/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from campus_nav.app.buildings import BuildingDirectory
from campus_nav.app.controllers.navigation import NavigationController
from campus_nav.app.controllers.tracking import PositionTracker
from campus_nav.app.protocols import BuildingLookup, PositionSource, RenderSink
from campus_nav.app.sources import SimulatedWalker
from campus_nav.app.wiring import wire
from campus_nav.config.models import MapModel
from campus_nav.domain.geo import GeoProjector
from campus_nav.domain.graph import RoadGraph
from campus_nav.domain.pathfinding import PathfinderEngine
from campus_nav.domain.transform import CalibrationTransform, ModelTransform, WorldFrame
from campus_nav.io.kernel_logging import KernelLogging, default_json_logger
from campus_nav.runtime.registries import make_position_source, resolve_graph
from campus_nav.services.route_query import RouteQueryService
from campus_nav.sim.clock import SimClock
from campus_nav.sim.hooks import NoopHooks
from campus_nav.sim.kernel import Kernel
from campus_nav.sim.rng import RNGRegistry


@dataclass
class App:
    kernel: Kernel
    clock: SimClock
    rng: RNGRegistry
    graph: RoadGraph
    frame: WorldFrame
    pathfinder: PathfinderEngine
    projector: GeoProjector
    buildings: BuildingLookup
    navigation: NavigationController
    tracker: PositionTracker
    routes: RouteQueryService
    source: PositionSource


def build(
    cfg: MapModel | Mapping,
    *,
    use_logging: bool = True,
    renderer: RenderSink | None = None,
    buildings: BuildingLookup | None = None,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, MapModel) else MapModel.model_validate(cfg)

    # 1) Clock & RNG
    clock = SimClock.utc_epoch(*model.epoch)
    rng_registry = RNGRegistry(model.seed, scenario=model.name)

    # 2) Kernel (with hooks)
    if use_logging:
        default_json_logger(level=model.log.level)
        hooks = KernelLogging(
            run_id=model.run_id,
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
    else:
        hooks = NoopHooks()
    kernel = Kernel(hooks=hooks)

    # 3) Graph & transforms; a malformed graph stops here
    graph = resolve_graph(model.graph)
    cal = model.calibration
    frame = WorldFrame(
        calibration=CalibrationTransform(
            scale=cal.scale.to_vec3(),
            translate=cal.translate.to_vec3(),
            rotate=cal.rotate.to_vec3(),
        ),
        model=ModelTransform(
            scale=model.model_transform.scale, translate=model.model_transform.translate.to_vec3()
        ),
    )
    pathfinder = PathfinderEngine(graph, frame)
    projector = GeoProjector(
        reference_latitude=model.geo.latitude,
        reference_longitude=model.geo.longitude,
        reference_x=model.geo.world_x,
        reference_z=model.geo.world_z,
        calibration_factor=model.geo.calibration_factor,
    )
    directory = BuildingDirectory.from_models(model.buildings)
    lookup = buildings if buildings is not None else directory

    # 4) Controllers
    navigation = NavigationController(
        kernel,
        pathfinder,
        projector,
        lookup,
        model.navigation,
        renderer=renderer,
    )
    tracker = PositionTracker(projector)
    routes = RouteQueryService(
        pathfinder, lookup, position=navigation.current_position, renderer=renderer
    )

    # 5) Position source
    source = make_position_source(
        model.position_source,
        deps={
            "kernel": kernel,
            "clock": clock,
            "target": navigation.current_waypoint,
            "enabled": lambda: not navigation.cfg.use_real_gps,
            "rng": rng_registry,
        },
    )

    # 6) Wiring
    wire(
        kernel,
        navigation=navigation,
        tracker=tracker,
        walker=source if isinstance(source, SimulatedWalker) else None,
    )
    source.seed()

    return App(
        kernel=kernel,
        clock=clock,
        rng=rng_registry,
        graph=graph,
        frame=frame,
        pathfinder=pathfinder,
        projector=projector,
        buildings=lookup,
        navigation=navigation,
        tracker=tracker,
        routes=routes,
        source=source,
    )
