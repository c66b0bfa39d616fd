"""Single-point open-channel analysis.

`analyze_channel` strings the geometry engine and both depth solvers together
and classifies the result. It never raises for bad input or a failed solve;
those come back as a failed `CalculationResult`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from loguru import logger

from .classes_references import ConvergenceError, UnitSystem, ValidationError
from .geometry import hydraulic_properties
from .models.channel import ChannelInputs, FreeboardRecommendation, HydraulicResults
from .results import CalculationResult
from .solver import DEFAULT_OPTIONS, SolverOptions, SolverResult, critical_depth, normal_depth
from .type_helpers import FlowRegime
from .units import cms_to_cfs, feet_to_metres, metres_to_feet

SUBCRITICAL_LIMIT = 0.95
SUPERCRITICAL_LIMIT = 1.05
HYDRAULIC_JUMP_FROUDE = 1.5
LAMINAR_REYNOLDS = 2000.0

# Velocity thresholds in (ft/s, m/s).
SEDIMENTATION_VELOCITY: dict[UnitSystem, float] = {UnitSystem.ENGLISH: 2.0, UnitSystem.SI: 0.6}
EROSION_VELOCITY: dict[UnitSystem, float] = {UnitSystem.ENGLISH: 20.0, UnitSystem.SI: 6.0}


@dataclass(frozen=True, slots=True)
class FreeboardRule:
    """USBR lining freeboard plus a Froude-scaled velocity-head allowance.

    The coefficient ``C`` in ``F = sqrt(C·y)`` (feet) runs linearly from
    `min_coefficient` at `low_flow_cfs` to `max_coefficient` at `high_flow_cfs`.
    """

    min_coefficient: float = 1.5
    max_coefficient: float = 2.5
    low_flow_cfs: float = 20.0
    high_flow_cfs: float = 3000.0
    minimum_feet: float = 1.0
    velocity_factor: float = 0.5
    max_froude: float = 2.0

    def coefficient(self, flow_cfs: float) -> float:
        if flow_cfs <= self.low_flow_cfs:
            return self.min_coefficient
        if flow_cfs >= self.high_flow_cfs:
            return self.max_coefficient
        fraction: float = (flow_cfs - self.low_flow_cfs) / (self.high_flow_cfs - self.low_flow_cfs)
        return self.min_coefficient + fraction * (self.max_coefficient - self.min_coefficient)

    def recommend(
        self, flow: float, depth: float, velocity: float, froude: float, units: UnitSystem
    ) -> FreeboardRecommendation:
        english: bool = units is UnitSystem.ENGLISH
        flow_cfs: float = flow if english else cms_to_cfs(flow)
        depth_ft: float = depth if english else metres_to_feet(depth)
        lining_ft: float = max(self.minimum_feet, math.sqrt(self.coefficient(flow_cfs) * depth_ft))
        lining: float = lining_ft if english else feet_to_metres(lining_ft)
        velocity_head: float = velocity * velocity / (2 * units.gravity)
        allowance: float = self.velocity_factor * min(froude, self.max_froude) * velocity_head
        controlling: float = lining + allowance
        return FreeboardRecommendation(
            lining=lining,
            velocity_allowance=allowance,
            controlling=controlling,
            total_depth=depth + controlling,
        )


DEFAULT_FREEBOARD = FreeboardRule()


def classify_regime(froude: float) -> FlowRegime:
    """Classify with a ±5 % band around Fr = 1."""

    if froude < SUBCRITICAL_LIMIT:
        return FlowRegime.SUBCRITICAL
    if froude > SUPERCRITICAL_LIMIT:
        return FlowRegime.SUPERCRITICAL
    return FlowRegime.CRITICAL


def critical_slope(inputs: ChannelInputs, depth: float) -> float:
    """Slope at which normal depth equals `depth` for the design flow."""

    props = hydraulic_properties(inputs.geometry, depth)
    conveyance: float = inputs.units.manning_k * props.area * props.hydraulic_radius ** (2 / 3)
    return (inputs.flow_rate * inputs.manning_n / conveyance) ** 2


def _flow_warnings(
    inputs: ChannelInputs,
    velocity: float,
    froude: float,
    regime: FlowRegime,
    reynolds: float,
    normal: SolverResult,
    critical: SolverResult,
) -> list[str]:
    units: UnitSystem = inputs.units
    unit: str = units.velocity_unit
    warnings: list[str] = []
    if regime is FlowRegime.CRITICAL:
        warnings.append(f"Flow is near critical (Fr = {froude:.3f}); the water surface may be unstable.")
    if froude > HYDRAULIC_JUMP_FROUDE:
        warnings.append(f"High Froude number ({froude:.2f}); a hydraulic jump may form downstream.")
    sedimentation: float = SEDIMENTATION_VELOCITY[units]
    if velocity < 0.5 * sedimentation:
        warnings.append(
            f"Low velocity ({velocity:.2f} {unit}) is below half the {sedimentation} {unit} self-cleansing "
            "velocity; sediment deposition is likely."
        )
    erosion: float = EROSION_VELOCITY[units]
    if velocity > erosion:
        warnings.append(f"High velocity ({velocity:.2f} {unit}) exceeds {erosion} {unit}; erosion protection is needed.")
    if normal.at_boundary:
        warnings.append("Normal depth is at the solver's depth limit; check the section size and inputs.")
    if critical.at_boundary:
        warnings.append("Critical depth is at the solver's depth limit; check the section size and inputs.")
    if reynolds < LAMINAR_REYNOLDS:
        warnings.append(f"Laminar flow (Re = {reynolds:.0f}); Manning's equation may not apply.")
    return warnings


def analyze_channel(
    inputs: ChannelInputs,
    options: SolverOptions | None = None,
    freeboard_rule: FreeboardRule = DEFAULT_FREEBOARD,
) -> CalculationResult[HydraulicResults]:
    """
    Solve and classify uniform flow in one channel.

    Args:
        inputs: Flow, slope, roughness, geometry and unit system.
        options: Solver settings; the library defaults when omitted.
        freeboard_rule: Constants for the freeboard recommendation.

    Returns:
        A successful result carrying `HydraulicResults`, or a failure payload of
        kind ``validation`` or ``convergence``.
    """
    solver_options: SolverOptions = options or DEFAULT_OPTIONS
    try:
        inputs.assert_valid()
        normal: SolverResult = normal_depth(
            inputs.geometry, inputs.flow_rate, inputs.slope, inputs.manning_n, inputs.units, solver_options
        )
        critical: SolverResult = critical_depth(inputs.geometry, inputs.flow_rate, inputs.units, solver_options)
        props = hydraulic_properties(inputs.geometry, normal.depth)
        slope_c: float = critical_slope(inputs, critical.depth)
    except (ValidationError, ConvergenceError) as exc:
        logger.info("Channel analysis failed: {error}", error=exc)
        return CalculationResult.from_exception(exc)

    units: UnitSystem = inputs.units
    velocity: float = inputs.flow_rate / props.area
    froude: float = velocity / math.sqrt(units.gravity * props.hydraulic_depth)
    regime: FlowRegime = classify_regime(froude)
    specific_energy: float = normal.depth + velocity * velocity / (2 * units.gravity)
    reynolds: float = 4 * velocity * props.hydraulic_radius / units.kinematic_viscosity
    freeboard: FreeboardRecommendation = freeboard_rule.recommend(
        inputs.flow_rate, normal.depth, velocity, froude, units
    )

    warnings: list[str] = inputs.advisories()
    warnings.extend(_flow_warnings(inputs, velocity, froude, regime, reynolds, normal, critical))
    warnings.append(
        f"Recommended freeboard {freeboard.controlling:.3f} {units.length_unit} "
        f"(total channel depth {freeboard.total_depth:.3f} {units.length_unit})."
    )
    logger.info(
        "Analyzed {inputs}: yn={yn:.4f}, yc={yc:.4f}, Fr={fr:.3f} ({regime})",
        inputs=inputs.describe(),
        yn=normal.depth,
        yc=critical.depth,
        fr=froude,
        regime=regime.value,
    )
    results = HydraulicResults(
        normal_depth=normal.depth,
        critical_depth=critical.depth,
        velocity=velocity,
        froude_number=froude,
        regime=regime,
        specific_energy=specific_energy,
        critical_slope=slope_c,
        reynolds_number=reynolds,
        properties=props,
        freeboard=freeboard,
        warnings=tuple(warnings),
    )
    return CalculationResult.ok(results, warnings)
