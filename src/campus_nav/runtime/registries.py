# runtime/registries.py
from collections.abc import Callable

from campus_nav.app.protocols import PositionSource
from campus_nav.app.sources import DevicePositionSource, ReplayPositionSource, SimulatedWalker
from campus_nav.config.models import (
    GraphByPath,
    GraphInline,
    GraphRef,
    PositionSourceDeviceModel,
    PositionSourceReplayModel,
    PositionSourceSimulatedModel,
    PositionSourceUnion,
)
from campus_nav.domain.entities.positions import GpsFix, GroundPosition
from campus_nav.domain.graph import RoadGraph
from campus_nav.runtime.resources import load_graph_from_path

SourceFactory = Callable[[PositionSourceUnion, dict], PositionSource]

_source_registry: dict[str, SourceFactory] = {}


def resolve_graph(ref: GraphRef) -> RoadGraph:
    if isinstance(ref, GraphByPath):
        return load_graph_from_path(ref.file, ref.fmt)
    if isinstance(ref, GraphInline):
        return RoadGraph.load(ref.data)
    raise TypeError(ref)


# ------------------- Position sources ---------------------------


def register_position_source(kind: str):
    def deco(fn: SourceFactory):
        _source_registry[kind] = fn
        return fn

    return deco


def make_position_source(cfg: PositionSourceUnion, *, deps: dict) -> PositionSource:
    """
    deps:
      - 'kernel': Kernel            (all)
      - 'clock': SimClock           (replay)
      - 'target': () -> Vec3 | None (simulated)
      - 'enabled': () -> bool       (simulated, optional)
      - 'rng': RNGRegistry          (simulated)
    """
    try:
        factory = _source_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown position source kind {cfg.kind!r}") from None
    return factory(cfg, deps)


@register_position_source("device")
def _make_device(cfg: PositionSourceDeviceModel, deps):
    return DevicePositionSource(deps["kernel"])


@register_position_source("replay")
def _make_replay(cfg: PositionSourceReplayModel, deps):
    fixes = []
    for f in cfg.fixes:
        if f.latitude is not None:
            fix = GpsFix(
                f.latitude,
                f.longitude,
                accuracy=f.accuracy,
                timestamp=deps["clock"].to_epoch_ms(f.t),
            )
        else:
            fix = GroundPosition(f.x, f.z)
        fixes.append((f.t, fix))
    return ReplayPositionSource(deps["kernel"], fixes)


@register_position_source("simulated")
def _make_simulated(cfg: PositionSourceSimulatedModel, deps):
    return SimulatedWalker(
        deps["kernel"],
        target=deps["target"],
        speed=cfg.speed,
        tick_s=cfg.tick_s,
        enabled=deps.get("enabled"),
        rng=deps["rng"].stream("walker_jitter"),
        jitter_sd=cfg.jitter_sd,
    )
