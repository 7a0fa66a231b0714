# campus_nav/app/wiring.py
from campus_nav.app.controllers.navigation import NavigationController
from campus_nav.app.controllers.tracking import PositionTracker
from campus_nav.app.events import (
    DestinationReached,
    NavigationStarted,
    NavigationStopped,
    NavigationTick,
    PositionUpdate,
    SimulationTick,
)
from campus_nav.app.sources import SimulatedWalker
from campus_nav.sim.kernel import Kernel


def wire(
    kernel: Kernel,
    *,
    navigation: NavigationController,
    tracker: PositionTracker | None = None,
    walker: SimulatedWalker | None = None,
) -> None:
    k = kernel

    # positions fan out to every subscriber; the tracker sees the fix first
    if tracker:
        k.on(PositionUpdate, tracker.on_position_update)
    k.on(PositionUpdate, navigation.on_position_update)

    k.on(NavigationTick, navigation.on_navigation_tick)

    if walker:
        k.on(NavigationStarted, walker.on_navigation_started)
        k.on(SimulationTick, walker.on_tick)
        k.on(DestinationReached, walker.on_navigation_ended)
        k.on(NavigationStopped, walker.on_navigation_ended)
