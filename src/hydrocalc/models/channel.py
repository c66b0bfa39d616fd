"""Open-channel inputs and result records."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from .base import Validatable, require_positive, string_list
from .geometry import SECTION_TYPES, ChannelGeometry, TrapezoidalSection
from ..classes_references import UnitSystem
from ..type_helpers import FlowRegime


@dataclass(frozen=True, slots=True)
class ChannelInputs(Validatable):
    """Everything a single open-channel calculation needs."""

    flow_rate: float
    slope: float
    manning_n: float
    geometry: ChannelGeometry
    units: UnitSystem = UnitSystem.SI

    def describe(self) -> str:
        return (
            f"ChannelInputs(shape={self.geometry.shape.value}, Q={self.flow_rate:.4f} {self.units.flow_unit}, "
            f"S={self.slope:.5f}, n={self.manning_n:.4f})"
        )

    def __str__(self) -> str:
        return self.describe()

    def validate(self, prefix: str = "") -> list[str]:
        errors: list[str] = []
        errors.extend(require_positive(self.flow_rate, "flow_rate", prefix))
        errors.extend(require_positive(self.slope, "slope", prefix))
        errors.extend(require_positive(self.manning_n, "manning_n", prefix))
        if not isinstance(self.geometry, SECTION_TYPES):
            errors.append(f"{prefix}Unsupported channel geometry {self.geometry!r}.")
        if not isinstance(self.units, UnitSystem):
            errors.append(f"{prefix}Unsupported unit system {self.units!r}.")
        return errors

    def advisories(self) -> list[str]:
        """Return non-fatal warnings about unusual but valid inputs."""

        notes: list[str] = []
        if self.slope > 0.1:
            notes.append("Very steep slope (> 0.1); results may be unrealistic.")
        if self.manning_n < 0.008:
            notes.append("Manning's n is unusually low (< 0.008); check the lining value.")
        elif self.manning_n > 0.2:
            notes.append("Manning's n is unusually high (> 0.2); check the lining value.")
        elif self.manning_n > 0.1:
            notes.append("High Manning's n; make sure it represents actual channel conditions.")
        if isinstance(self.geometry, TrapezoidalSection) and self.geometry.side_slope > 10:
            notes.append("Very flat trapezoid side slopes (> 10:1) may be impractical to construct.")
        return notes

    def to_dict(self) -> dict[str, Any]:
        return {
            "flow_rate": self.flow_rate,
            "slope": self.slope,
            "manning_n": self.manning_n,
            "geometry": self.geometry.to_dict(),
            "units": self.units.cli_flag,
        }


@dataclass(frozen=True, slots=True)
class HydraulicProperties:
    """Cross-section properties at one flow depth."""

    depth: float
    area: float
    wetted_perimeter: float
    hydraulic_radius: float
    top_width: float
    hydraulic_depth: float

    @classmethod
    def from_section(cls, depth: float, area: float, wetted_perimeter: float, top_width: float) -> "HydraulicProperties":
        """Derive the ratio properties, guarding the zero-denominator limits."""

        hydraulic_radius: float = area / wetted_perimeter if wetted_perimeter > 0 else 0.0
        if top_width > 0:
            hydraulic_depth: float = area / top_width
        else:
            # Full circular pipe: no free surface.
            hydraulic_depth = math.inf if area > 0 else 0.0
        return cls(
            depth=depth,
            area=area,
            wetted_perimeter=wetted_perimeter,
            hydraulic_radius=hydraulic_radius,
            top_width=top_width,
            hydraulic_depth=hydraulic_depth,
        )


@dataclass(frozen=True, slots=True)
class FreeboardRecommendation:
    """Recommended freeboard above normal depth."""

    lining: float
    velocity_allowance: float
    controlling: float
    total_depth: float


@dataclass(frozen=True, slots=True)
class HydraulicResults:
    """Outcome of one open-channel calculation."""

    normal_depth: float
    critical_depth: float
    velocity: float
    froude_number: float
    regime: FlowRegime
    specific_energy: float
    critical_slope: float
    reynolds_number: float
    properties: HydraulicProperties
    freeboard: FreeboardRecommendation
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "normal_depth": self.normal_depth,
            "critical_depth": self.critical_depth,
            "velocity": self.velocity,
            "froude_number": self.froude_number,
            "regime": self.regime.value,
            "specific_energy": self.specific_energy,
            "critical_slope": self.critical_slope,
            "reynolds_number": self.reynolds_number,
            "area": self.properties.area,
            "wetted_perimeter": self.properties.wetted_perimeter,
            "hydraulic_radius": self.properties.hydraulic_radius,
            "top_width": self.properties.top_width,
            "hydraulic_depth": self.properties.hydraulic_depth,
            "freeboard": self.freeboard.controlling,
            "total_depth": self.freeboard.total_depth,
        }


@dataclass(frozen=True, slots=True)
class RatingCurvePoint:
    """One (flow, depth) pair of a rating curve with its flow area and velocity."""

    flow: float
    depth: float
    velocity: float
    area: float


@dataclass(frozen=True, slots=True)
class RatingCurve:
    """Flow-ascending rating curve for one channel."""

    points: tuple[RatingCurvePoint, ...]
    refinement_passes: int = 0
    warnings: list[str] = field(default_factory=string_list)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def flows(self) -> list[float]:
        return [point.flow for point in self.points]

    @property
    def depths(self) -> list[float]:
        return [point.depth for point in self.points]
