"""Culvert sizing inputs, catalog sizes and scenario results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any

from .base import Validatable, is_real, require_positive, string_list
from ..classes_references import UnitSystem
from ..type_helpers import (
    ControlType,
    CulvertMaterial,
    CulvertShape,
    DebrisLoad,
    EnergyDissipator,
    EntranceType,
    ScourPotential,
    TailwaterRatingPoint,
)

MAX_BARRELS = 6
MAX_BLOCKAGE = 0.5
MAX_SKEW_DEGREES = 45.0
MIN_RECOMMENDED_SLOPE = 0.001
MAX_RECOMMENDED_SLOPE = 0.1


def _non_negative(value: float, name: str, prefix: str) -> list[str]:
    if not is_real(value):
        return [f"{prefix}{name} must be a number (got {value!r})."]
    if not math.isfinite(value) or value < 0:
        return [f"{prefix}{name} must be zero or greater (got {value})."]
    return []


@dataclass(frozen=True, slots=True)
class EnvironmentalFactors(Validatable):
    """Debris, sediment and aquatic-passage conditions at the crossing."""

    debris_load: DebrisLoad = DebrisLoad.LOW
    sediment_transport: bool = False
    aquatic_passage: bool = False
    max_passage_velocity: float | None = None
    min_passage_depth: float | None = None

    def validate(self, prefix: str = "") -> list[str]:
        errors: list[str] = []
        if not isinstance(self.debris_load, DebrisLoad):
            errors.append(f"{prefix}debris_load must be low, medium or high (got {self.debris_load!r}).")
        if self.max_passage_velocity is not None:
            errors.extend(require_positive(self.max_passage_velocity, "max_passage_velocity", prefix))
        if self.min_passage_depth is not None:
            errors.extend(require_positive(self.min_passage_depth, "min_passage_depth", prefix))
        return errors


@dataclass(frozen=True, slots=True)
class CulvertParams(Validatable):
    """Design inputs for one culvert crossing.

    Elevations, lengths and depths share the length unit of `units`; flows are
    in cfs or m³/s. `shape=None` evaluates every catalog shape. Project
    metadata is carried through untouched.
    """

    design_flow: float
    upstream_invert: float
    downstream_invert: float
    culvert_length: float
    max_headwater: float
    stream_slope: float = 0.0
    project_name: str = ""
    location: str = ""
    design_date: str = ""
    return_period: float | None = None
    tailwater_depth: float = 0.0
    tailwater_rating: tuple[TailwaterRatingPoint, ...] = ()
    material: CulvertMaterial = CulvertMaterial.CONCRETE
    shape: CulvertShape | None = None
    entrance_type: EntranceType = EntranceType.HEADWALL
    barrels: int = 1
    blockage_factor: float | None = None
    skew_angle: float = 0.0
    min_cover: float = 0.0
    max_width: float = math.inf
    roadway_elevation: float | None = None
    environment: EnvironmentalFactors = field(default_factory=EnvironmentalFactors)
    units: UnitSystem = UnitSystem.ENGLISH

    def validate(self, prefix: str = "") -> list[str]:
        errors: list[str] = []
        errors.extend(require_positive(self.design_flow, "design_flow", prefix))
        errors.extend(require_positive(self.culvert_length, "culvert_length", prefix))
        errors.extend(require_positive(self.max_headwater, "max_headwater", prefix))
        errors.extend(require_positive(self.max_width, "max_width", prefix) if self.max_width != math.inf else [])
        errors.extend(_non_negative(self.stream_slope, "stream_slope", prefix))
        errors.extend(_non_negative(self.tailwater_depth, "tailwater_depth", prefix))
        errors.extend(_non_negative(self.min_cover, "min_cover", prefix))
        for name in ("upstream_invert", "downstream_invert"):
            value: Any = getattr(self, name)
            if not is_real(value) or not math.isfinite(value):
                errors.append(f"{prefix}{name} must be a finite number (got {value!r}).")
        if not errors and self.downstream_invert > self.upstream_invert:
            errors.append(
                f"{prefix}downstream_invert ({self.downstream_invert}) must not be above "
                f"upstream_invert ({self.upstream_invert})."
            )
        if isinstance(self.barrels, bool) or not isinstance(self.barrels, Integral) or not 1 <= self.barrels <= MAX_BARRELS:
            errors.append(f"{prefix}barrels must be an integer between 1 and {MAX_BARRELS} (got {self.barrels!r}).")
        if self.blockage_factor is not None:
            if not is_real(self.blockage_factor) or not 0 <= self.blockage_factor <= MAX_BLOCKAGE:
                errors.append(f"{prefix}blockage_factor must be between 0 and {MAX_BLOCKAGE} (got {self.blockage_factor!r}).")
        if not is_real(self.skew_angle) or not 0 <= self.skew_angle <= MAX_SKEW_DEGREES:
            errors.append(f"{prefix}skew_angle must be between 0 and {MAX_SKEW_DEGREES:g} degrees (got {self.skew_angle!r}).")
        if self.roadway_elevation is not None:
            if not is_real(self.roadway_elevation) or not math.isfinite(self.roadway_elevation):
                errors.append(f"{prefix}roadway_elevation must be a finite number (got {self.roadway_elevation!r}).")
            elif is_real(self.upstream_invert) and self.roadway_elevation <= self.upstream_invert:
                errors.append(f"{prefix}roadway_elevation must be above upstream_invert (got {self.roadway_elevation}).")
        errors.extend(self._validate_rating(prefix))
        if not isinstance(self.material, CulvertMaterial):
            errors.append(f"{prefix}material must be a CulvertMaterial (got {self.material!r}).")
        if self.shape is not None and not isinstance(self.shape, CulvertShape):
            errors.append(f"{prefix}shape must be a CulvertShape or None (got {self.shape!r}).")
        if not isinstance(self.entrance_type, EntranceType):
            errors.append(f"{prefix}entrance_type must be an EntranceType (got {self.entrance_type!r}).")
        errors.extend(self.environment.validate(prefix=f"{prefix}environment: "))
        return errors

    def _validate_rating(self, prefix: str) -> list[str]:
        if not self.tailwater_rating:
            return []
        errors: list[str] = []
        if len(self.tailwater_rating) < 2:
            errors.append(f"{prefix}tailwater_rating needs at least two points.")
        previous: float = -math.inf
        for index, point in enumerate(self.tailwater_rating):
            if not isinstance(point, (tuple, list)) or len(point) != 2 or not all(is_real(value) for value in point):
                errors.append(f"{prefix}tailwater_rating[{index}] must be a (flow, depth) pair of numbers (got {point!r}).")
                continue
            flow, depth = point
            if flow < 0 or depth < 0:
                errors.append(f"{prefix}tailwater_rating[{index}] must not be negative (got {flow}, {depth}).")
            if flow <= previous:
                errors.append(f"{prefix}tailwater_rating flows must be strictly increasing (index {index}).")
            previous = flow
        return errors

    @property
    def barrel_slope(self) -> float:
        return (self.upstream_invert - self.downstream_invert) / self.culvert_length

    @property
    def effective_blockage(self) -> float:
        """Explicit blockage factor when given, otherwise the debris-load default."""

        if self.blockage_factor is not None:
            return self.blockage_factor
        return self.environment.debris_load.blockage_factor

    def advisories(self) -> list[str]:
        notes: list[str] = []
        slope: float = self.barrel_slope
        if slope < MIN_RECOMMENDED_SLOPE:
            notes.append(f"Barrel slope {slope:.4f} is flatter than the recommended minimum of {MIN_RECOMMENDED_SLOPE}.")
        elif slope > MAX_RECOMMENDED_SLOPE:
            notes.append(f"Barrel slope {slope:.3f} is steeper than 10%; check for outlet erosion.")
        recommended_cover: float = 2.0 if self.units is UnitSystem.ENGLISH else 0.6
        if self.min_cover < recommended_cover:
            notes.append(
                f"Minimum cover of {self.min_cover} {self.units.length_unit} is less than the recommended "
                f"{recommended_cover} {self.units.length_unit}."
            )
        if self.skew_angle > 30:
            notes.append(f"High skew angle ({self.skew_angle:g} degrees) complicates construction.")
        if self.effective_blockage > 0:
            notes.append(f"Effective opening reduced by {self.effective_blockage:.0%} for debris blockage.")
        if self.environment.sediment_transport:
            notes.append("Sediment transport expected; consider a depressed invert or a larger barrel.")
        return notes


@dataclass(frozen=True, slots=True)
class CulvertSize:
    """One catalog opening.

    `span` is the horizontal opening and `rise` the vertical one; for a pipe
    both equal the diameter, for a box they are width and height.
    """

    shape: CulvertShape
    span: float
    rise: float
    area: float

    @property
    def diameter(self) -> float | None:
        return self.rise if self.shape is CulvertShape.CIRCULAR else None

    @property
    def width(self) -> float | None:
        return self.span if self.shape is CulvertShape.BOX else None

    @property
    def height(self) -> float | None:
        return self.rise if self.shape is CulvertShape.BOX else None

    def label(self, units: UnitSystem = UnitSystem.ENGLISH) -> str:
        unit: str = units.length_unit
        if self.shape is CulvertShape.CIRCULAR:
            return f"{self.rise:.3g} {unit} diameter"
        return f"{self.span:.3g} x {self.rise:.3g} {unit} {self.shape.value}"

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"shape": self.shape.value, "area": self.area}
        if self.shape is CulvertShape.CIRCULAR:
            payload["diameter"] = self.diameter
        elif self.shape is CulvertShape.BOX:
            payload.update(width=self.width, height=self.height)
        else:
            payload.update(span=self.span, rise=self.rise)
        return payload


@dataclass(frozen=True, slots=True)
class CulvertHydraulics:
    """Single-barrel hydraulics of one candidate size at the design flow."""

    barrel_flow: float
    effective_area: float
    inlet_headwater: float
    outlet_headwater: float
    headwater: float
    control: ControlType
    velocity: float
    outlet_velocity: float
    outlet_depth: float
    critical_depth: float
    normal_depth: float
    froude_number: float
    tailwater_depth: float


@dataclass(frozen=True, slots=True)
class PerformancePoint:
    """Headwater and outlet conditions of one size at a fraction of the design flow."""

    flow: float
    headwater: float
    outlet_velocity: float
    outlet_froude: float

    def to_dict(self) -> dict[str, float]:
        return {
            "flow": self.flow,
            "headwater": self.headwater,
            "outlet_velocity": self.outlet_velocity,
            "outlet_froude": self.outlet_froude,
        }


@dataclass(frozen=True, slots=True)
class FishPassage:
    """Aquatic-passage screening at the outlet.

    Attributes:
        velocity_barrier: Outlet velocity exceeds the passage limit.
        depth_barrier: Outlet depth falls below the passage minimum.
        jump_height: Invert drop not covered by the outlet depth.
        baffle_recommendation: Remedy for a velocity or depth barrier, or "None".
        passable: Neither barrier applies and the jump is below the leap limit.
    """

    velocity_barrier: bool
    depth_barrier: bool
    jump_height: float
    baffle_recommendation: str
    passable: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "velocity_barrier": self.velocity_barrier,
            "depth_barrier": self.depth_barrier,
            "jump_height": self.jump_height,
            "baffle_recommendation": self.baffle_recommendation,
            "passable": self.passable,
        }


@dataclass(frozen=True, slots=True)
class OutletProtection:
    scour_potential: ScourPotential
    energy_dissipator: EnergyDissipator

    def to_dict(self) -> dict[str, str]:
        return {"scour_potential": self.scour_potential.value, "energy_dissipator": self.energy_dissipator.value}


@dataclass(frozen=True, slots=True)
class ScenarioResult:
    """A feasible candidate and its rank among sizes of the same shape.

    `fish_passage` is only screened when the crossing requests aquatic passage.
    """

    size: CulvertSize
    hydraulics: CulvertHydraulics
    rank: int
    warnings: list[str] = field(default_factory=string_list)
    outlet_protection: OutletProtection | None = None
    fish_passage: FishPassage | None = None
    performance: tuple[PerformancePoint, ...] = ()

    @property
    def shape(self) -> CulvertShape:
        return self.size.shape

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "size": self.size.to_dict(),
            "headwater": self.hydraulics.headwater,
            "inlet_headwater": self.hydraulics.inlet_headwater,
            "outlet_headwater": self.hydraulics.outlet_headwater,
            "control": self.hydraulics.control.value,
            "velocity": self.hydraulics.velocity,
            "outlet_velocity": self.hydraulics.outlet_velocity,
            "outlet_protection": self.outlet_protection.to_dict() if self.outlet_protection else None,
            "fish_passage": self.fish_passage.to_dict() if self.fish_passage else None,
            "performance": [point.to_dict() for point in self.performance],
            "warnings": list(self.warnings),
        }


def _scenario_map() -> dict[CulvertShape, list[ScenarioResult]]:
    return {}


@dataclass(frozen=True, slots=True)
class ScenarioReport:
    """Ranked feasible options per evaluated shape."""

    scenarios: dict[CulvertShape, list[ScenarioResult]] = field(default_factory=_scenario_map)
    warnings: list[str] = field(default_factory=string_list)

    def options(self, shape: CulvertShape) -> list[ScenarioResult]:
        return self.scenarios.get(shape, [])

    def best(self) -> ScenarioResult | None:
        """Rank-1 option with the lowest headwater across all shapes."""

        leaders: list[ScenarioResult] = [options[0] for options in self.scenarios.values() if options]
        if not leaders:
            return None
        return min(leaders, key=lambda result: result.hydraulics.headwater)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scenarios": {
                shape.value: [result.to_dict() for result in results] for shape, results in self.scenarios.items()
            },
            "warnings": list(self.warnings),
        }
