import os
from math import isfinite
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from campus_nav.domain.entities.geometry import Vec3
from campus_nav.domain.geo import (
    DEFAULT_CALIBRATION_FACTOR,
    REFERENCE_LATITUDE,
    REFERENCE_LONGITUDE,
    REFERENCE_WORLD_X,
    REFERENCE_WORLD_Z,
)


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


class Vec3Model(BaseModel):
    model_config = ConfigDict(extra="forbid")
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _from_sequence(cls, v: Any) -> Any:
        # YAML [x, y, z] is accepted as well as {x:, y:, z:}
        if isinstance(v, (list, tuple)):
            if len(v) != 3:
                raise ValueError(f"expected 3 components, got {len(v)}")
            return {"x": v[0], "y": v[1], "z": v[2]}
        return v

    def to_vec3(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)


# ----------------- GRAPH ---------------------


class GraphByPath(BaseModel):
    model_config = ConfigDict(extra="forbid")
    by: Literal["path"] = "path"
    file: str
    fmt: Literal["json", "yaml"] = "json"

    @field_validator("file")
    @classmethod
    def _expand(cls, v: str) -> str:
        return os.path.expandvars(os.path.expanduser(v))


class GraphInline(BaseModel):
    model_config = ConfigDict(extra="forbid")
    by: Literal["inline"] = "inline"
    data: dict[str, Any]


GraphRef = Annotated[GraphByPath | GraphInline, Field(discriminator="by")]


# ----------------- TRANSFORMS ---------------------


class CalibrationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    scale: Vec3Model = Field(default_factory=lambda: Vec3Model(x=1.0, y=1.0, z=1.0))
    translate: Vec3Model = Field(default_factory=Vec3Model)
    rotate: Vec3Model = Field(default_factory=Vec3Model)  # radians, Euler XYZ


class ModelTransformModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    scale: float = 1.0
    translate: Vec3Model = Field(default_factory=Vec3Model)

    @field_validator("scale")
    @classmethod
    def _positive(cls, v: float) -> float:
        if not (v > 0 and isfinite(v)):
            raise ValueError("scale must be > 0")
        return v


class GeoReferenceModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    latitude: float = REFERENCE_LATITUDE
    longitude: float = REFERENCE_LONGITUDE
    world_x: float = REFERENCE_WORLD_X
    world_z: float = REFERENCE_WORLD_Z
    calibration_factor: float = DEFAULT_CALIBRATION_FACTOR

    @field_validator("calibration_factor")
    @classmethod
    def _positive(cls, v: float) -> float:
        if not (v > 0 and isfinite(v)):
            raise ValueError("calibration_factor must be > 0")
        return v


# ----------------- NAVIGATION ---------------------


class NavigationModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    update_interval_s: float = 1.0
    arrival_distance: float = 10.0
    recalculation_distance: float = 30.0
    recalc_cooldown_s: float = 2.0
    smooth_path: bool = True
    path_simplify_threshold: float = 5.0
    use_real_gps: bool = True
    walking_speed_mps: float = 1.4
    simulation_origin: tuple[float, float] = (0.0, 0.0)  # world (x, z)

    @field_validator("update_interval_s", "walking_speed_mps")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if not v > 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator(
        "arrival_distance", "recalculation_distance", "recalc_cooldown_s", "path_simplify_threshold"
    )
    @classmethod
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


# ----------------- POSITION SOURCES ---------------------


class PositionSourceDeviceModel(BaseModel):
    """Fixes are pushed in by the host (a browser geolocation watch, a serial GPS)."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["device"] = "device"


class ReplayFixModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    t: float
    latitude: float | None = None
    longitude: float | None = None
    accuracy: float | None = None
    x: float | None = None
    z: float | None = None

    @model_validator(mode="after")
    def _one_kind(self):
        geo = self.latitude is not None and self.longitude is not None
        ground = self.x is not None and self.z is not None
        if geo == ground:
            raise ValueError("a replay fix needs either latitude/longitude or x/z")
        return self


class PositionSourceReplayModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["replay"] = "replay"
    fixes: list[ReplayFixModel] = Field(default_factory=list)

    @field_validator("fixes")
    @classmethod
    def _sorted(cls, v: list[ReplayFixModel]) -> list[ReplayFixModel]:
        return sorted(v, key=lambda f: f.t)


class PositionSourceSimulatedModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["simulated"] = "simulated"
    speed: float = 50.0  # world units per second
    tick_s: float = 0.1
    jitter_sd: float = 0.0  # world units, gaussian per axis

    @field_validator("speed", "tick_s")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if not v > 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v


PositionSourceUnion = Annotated[
    PositionSourceDeviceModel | PositionSourceReplayModel | PositionSourceSimulatedModel,
    Field(discriminator="kind"),
]


# ------------------------------------------------------------------


class BuildingModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    display_name: str | None = None
    position: Vec3Model  # world space


class MapModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str
    run_id: str = "local"
    epoch: tuple[int, int, int, int, int, int] = (2025, 1, 1, 0, 0, 0)
    seed: int = 0
    log: LogModel = LogModel()
    graph: GraphRef
    calibration: CalibrationModel = Field(default_factory=CalibrationModel)
    model_transform: ModelTransformModel = Field(default_factory=ModelTransformModel)
    geo: GeoReferenceModel = Field(default_factory=GeoReferenceModel)
    navigation: NavigationModel = Field(default_factory=NavigationModel)
    position_source: PositionSourceUnion = Field(default_factory=PositionSourceDeviceModel)
    buildings: list[BuildingModel] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_buildings(self):
        seen: set[str] = set()
        for b in self.buildings:
            for n in {b.name, b.display_name} - {None}:
                if n in seen:
                    raise ValueError(f"duplicate building name {n!r}")
                seen.add(n)
        return self
