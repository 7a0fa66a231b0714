# tests/app/test_sources.py
import pytest

from campus_nav.app.build import build
from campus_nav.app.events import DestinationReached, PositionUpdate
from campus_nav.app.sources import DevicePositionSource, ReplayPositionSource, SimulatedWalker
from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.entities.positions import GpsFix, GroundPosition
from campus_nav.domain.session import NavState
from campus_nav.sim.kernel import Kernel


def collect(kernel, etype):
    seen = []
    kernel.on(etype, lambda ev: seen.append(ev))
    return seen


def test_device_source_validates_and_queues_fixes():
    k = Kernel()
    seen = collect(k, PositionUpdate)
    src = DevicePositionSource(k)
    ev = src.push({"coords": {"latitude": 8.5, "longitude": 76.9, "accuracy": 5}, "timestamp": 1})
    assert isinstance(ev.fix, GpsFix) and ev.source == "device"
    src.push(GroundPosition(3, 4))
    k.run()
    assert [type(e.fix) for e in seen] == [GpsFix, GroundPosition]
    assert src.received == 2
    with pytest.raises(ValueError):
        src.push({"coords": {"latitude": 200, "longitude": 0}})


def test_replay_source_schedules_in_time_order():
    k = Kernel()
    seen = collect(k, PositionUpdate)
    src = ReplayPositionSource(k, [(2.0, GroundPosition(2, 0)), (1.0, GroundPosition(1, 0))])
    src.seed()
    k.run()
    assert [(e.t, e.fix.x) for e in seen] == [(1.0, 1.0), (2.0, 2.0)]
    assert all(e.source == "replay" for e in seen)


def test_walker_steps_toward_target_and_clamps_speed():
    k = Kernel()
    target = Vec3(10, 0, 0)
    walker = SimulatedWalker(k, target=lambda: target, speed=0.2, tick_s=1.0)
    assert walker.speed == 1.0
    walker.set_speed(4.0)
    assert walker._step_toward(Vec3(0, 0, 0), target) == Vec3(4, 0, 0)
    assert walker._step_toward(Vec3(8, 0, 0), target) == target


def test_walker_needs_rng_for_jitter():
    with pytest.raises(ValueError):
        SimulatedWalker(Kernel(), target=lambda: None, jitter_sd=1.0)


def sim_config(**source):
    return {
        "name": "sim",
        "graph": {
            "by": "inline",
            "data": {
                "points": [
                    {"id": i, "position": [x, 0, 0]} for i, x in enumerate((0, 50, 100, 150))
                ],
                "connections": [{"from": i, "to": i + 1} for i in range(3)],
            },
        },
        "navigation": {"use_real_gps": False},
        "position_source": {"kind": "simulated", "speed": 25.0, "tick_s": 0.1, **source},
        "buildings": [{"name": "Library", "position": [150, 0, 0]}],
    }


def test_simulated_walk_reaches_the_destination():
    app = build(sim_config(), use_logging=False)
    arrivals = collect(app.kernel, DestinationReached)
    assert app.navigation.navigate_to("Library")
    assert app.navigation.start()
    app.kernel.run(until=30.0)
    assert app.navigation.state is NavState.ARRIVED
    assert len(arrivals) == 1
    # 150 units at 25/s, less the 10 unit arrival radius
    assert 5.0 <= arrivals[0].t <= 6.5
    assert not app.source.active
    assert app.tracker.updates > 0
    assert app.navigation.recalculations == 0


def test_jittered_walks_are_reproducible():
    trails = []
    for _ in range(2):
        app = build(sim_config(jitter_sd=2.0), use_logging=False)
        app.navigation.navigate_to("Library")
        app.navigation.start()
        app.kernel.run(until=2.0)
        trails.append(list(app.tracker.trail))
    assert trails[0] == trails[1]
    assert any(p.z != 0 for p in trails[0])


def test_walker_ignores_sessions_in_real_gps_mode():
    app = build(sim_config(), use_logging=False)
    app.navigation.set_use_real_gps(True)
    app.navigation.last_position = GroundPosition(0, 0)
    app.navigation.navigate_to("Library")
    app.navigation.start()
    app.kernel.run(until=5.0)
    assert not app.source.active
    assert app.source.steps == 0
    assert app.navigation.is_active()
