# app/sources.py
"""Position sources. Each one only schedules PositionUpdate events; wiring decides who listens."""

from collections.abc import Callable, Mapping, Sequence

import numpy as np

from campus_nav.app.events import (
    DestinationReached,
    NavigationStarted,
    NavigationStopped,
    PositionUpdate,
    SimulationTick,
)
from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.entities.positions import (
    GpsFix,
    GroundPosition,
    PositionFix,
    parse_position,
)
from campus_nav.sim.kernel import Kernel

MIN_SIMULATION_SPEED = 1.0


class DevicePositionSource:
    """Fixes pushed in by the host, e.g. a browser geolocation watch."""

    kind = "device"

    def __init__(self, kernel: Kernel):
        self.kernel = kernel
        self.received = 0

    def seed(self) -> None:
        pass  # nothing is known ahead of time

    def push(self, payload: Mapping | PositionFix) -> PositionUpdate:
        """Validate a fix and queue it at the current time. Raises ValueError on bad input."""
        fix = payload if isinstance(payload, (GpsFix, GroundPosition)) else parse_position(payload)
        ev = PositionUpdate(t=self.kernel.now, fix=fix, source=self.kind)
        self.kernel.schedule(ev)
        self.received += 1
        return ev


class ReplayPositionSource:
    """Replays recorded (t, fix) pairs."""

    kind = "replay"

    def __init__(self, kernel: Kernel, fixes: Sequence[tuple[float, PositionFix]]):
        self.kernel = kernel
        self.fixes = sorted(fixes, key=lambda tf: tf[0])

    def seed(self) -> None:
        for t, fix in self.fixes:
            self.kernel.schedule(PositionUpdate(t=t, fix=fix, source=self.kind))


class SimulatedWalker:
    """
    Walks toward whatever waypoint navigation is currently heading for,
    `speed` world units per second in steps of `tick_s`. Starts on
    NavigationStarted and stops when the session ends.
    """

    kind = "simulated"

    def __init__(
        self,
        kernel: Kernel,
        *,
        target: Callable[[], Vec3 | None],
        speed: float = 50.0,
        tick_s: float = 0.1,
        enabled: Callable[[], bool] | None = None,
        rng: np.random.Generator | None = None,
        jitter_sd: float = 0.0,
    ):
        if jitter_sd > 0 and rng is None:
            raise ValueError("jitter_sd > 0 needs an rng")
        self.kernel = kernel
        self.target = target
        self.speed = max(MIN_SIMULATION_SPEED, speed)
        self.tick_s = tick_s
        self.enabled = enabled or (lambda: True)
        self.rng = rng
        self.jitter_sd = jitter_sd
        self.position: Vec3 | None = None
        self.active = False
        self.steps = 0
        self._task_id = 0

    def seed(self) -> None:
        pass  # starts on NavigationStarted

    def set_speed(self, speed: float) -> None:
        self.speed = max(MIN_SIMULATION_SPEED, speed)

    def on_navigation_started(self, ev: NavigationStarted):
        if not self.enabled():
            return []
        self._task_id += 1
        self.active = True
        self.position = ev.start.flat()
        return [SimulationTick(t=ev.t + self.tick_s, task_id=self._task_id)]

    def on_navigation_ended(self, ev: DestinationReached | NavigationStopped):
        self.active = False
        self._task_id += 1
        return []

    def on_tick(self, ev: SimulationTick):
        if ev.task_id != self._task_id or not self.active:
            return []
        target = self.target()
        if target is None:
            self.active = False
            return []
        self.position = self._step_toward(self.position, target.flat())
        self.steps += 1
        x, z = self.position.x, self.position.z
        if self.jitter_sd > 0:
            dx, dz = self.rng.normal(0.0, self.jitter_sd, size=2)
            x, z = x + float(dx), z + float(dz)
        return [
            PositionUpdate(t=ev.t, fix=GroundPosition(x, z), source=self.kind),
            SimulationTick(t=ev.t + self.tick_s, task_id=ev.task_id),
        ]

    def _step_toward(self, pos: Vec3, target: Vec3) -> Vec3:
        step = self.speed * self.tick_s
        d = pos.planar_distance_to(target)
        if d <= step:
            return target
        return pos + (target - pos).scaled(step / d)
