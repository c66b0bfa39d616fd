"""Culvert sizing: inlet/outlet control hydraulics over the standard catalog.

Inlet control uses the FHWA HDS-5 form 1 equations; outlet control is a
full-barrel energy balance. The governing headwater (a depth above the
upstream invert) is the larger of the two. `evaluate_culvert_scenarios` scans
each shape's catalog from the smallest opening and keeps the first three
sizes that satisfy the headwater, width and cover constraints. Each kept size
also carries an outlet protection rating, an optional fish passage screen and
a performance curve over 0.1 to 2.0 times the design flow.
"""

from __future__ import annotations

import math
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np
from loguru import logger

from .catalog import catalog_sizes
from .classes_references import ConvergenceError, UnitSystem, ValidationError
from .geometry import hydraulic_properties
from .models.culvert import (
    CulvertHydraulics,
    CulvertParams,
    CulvertSize,
    FishPassage,
    OutletProtection,
    PerformancePoint,
    ScenarioReport,
    ScenarioResult,
)
from .models.geometry import ChannelGeometry, CircularSection, RectangularSection
from .results import CalculationResult
from .solver import critical_depth, normal_depth
from .type_helpers import (
    ControlType,
    CulvertMaterial,
    CulvertShape,
    EnergyDissipator,
    EntranceType,
    ScourPotential,
)

MAX_OPTIONS_PER_SHAPE = 3
UNSUBMERGED_LIMIT = 3.5
SUBMERGED_LIMIT = 4.0
HW_RATIO_LIMIT = 1.5
HIGH_FROUDE = 1.5

# HDS-5 unit conversion constant Ku.
INLET_KU: dict[UnitSystem, float] = {UnitSystem.ENGLISH: 1.0, UnitSystem.SI: 1.811}

# (severe erosion, erosion, deposition) outlet velocities.
OUTLET_VELOCITY_LIMITS: dict[UnitSystem, tuple[float, float, float]] = {
    UnitSystem.ENGLISH: (15.0, 10.0, 2.0),
    UnitSystem.SI: (4.5, 3.0, 0.6),
}
LARGE_OPENING_AREA: dict[UnitSystem, float] = {UnitSystem.ENGLISH: 500.0, UnitSystem.SI: 50.0}

# (high, medium) outlet velocities and Froude numbers for scour potential.
SCOUR_VELOCITIES: dict[UnitSystem, tuple[float, float]] = {
    UnitSystem.ENGLISH: (10.0, 6.0),
    UnitSystem.SI: (3.0, 1.8),
}
SCOUR_FROUDE: tuple[float, float] = (1.5, 1.2)
DISSIPATOR_FROUDE = 1.7

# Highest outlet drop a fish can leap.
MAX_PASSAGE_JUMP: dict[UnitSystem, float] = {UnitSystem.ENGLISH: 1.0, UnitSystem.SI: 0.3}
NO_BAFFLES = "None"
BAFFLE_RECOMMENDATIONS: dict[CulvertShape, str] = {
    CulvertShape.BOX: "Spoiler baffles recommended",
    CulvertShape.CIRCULAR: "Roughening elements recommended",
    CulvertShape.ARCH: "Stream simulation approach recommended",
}

PERFORMANCE_FACTORS: tuple[float, ...] = tuple(round(0.1 * step, 1) for step in range(1, 21))


@dataclass(frozen=True, slots=True)
class InletCoefficients:
    """HDS-5 form 1 constants: unsubmerged K, M and submerged c, Y."""

    k: float
    m: float
    c: float
    y: float


@dataclass(frozen=True, slots=True)
class EntranceLoss:
    """Entrance loss coefficient and the factor it grows by at a 90 degree skew."""

    base: float
    skew_factor: float

    def coefficient(self, skew_degrees: float) -> float:
        return self.base * (1 + (self.skew_factor - 1) * math.sin(math.radians(skew_degrees)))


ENTRANCE_LOSSES: dict[EntranceType, EntranceLoss] = {
    EntranceType.PROJECTING: EntranceLoss(0.9, 1.2),
    EntranceType.HEADWALL: EntranceLoss(0.5, 1.1),
    EntranceType.WINGWALL: EntranceLoss(0.2, 1.05),
}

_SMOOTH_PIPE: dict[EntranceType, InletCoefficients] = {
    EntranceType.PROJECTING: InletCoefficients(0.0045, 2.0, 0.0317, 0.69),
    EntranceType.HEADWALL: InletCoefficients(0.0098, 2.0, 0.0398, 0.67),
    EntranceType.WINGWALL: InletCoefficients(0.0018, 2.0, 0.0292, 0.74),
}
_CORRUGATED_PIPE: dict[EntranceType, InletCoefficients] = {
    EntranceType.PROJECTING: InletCoefficients(0.0340, 1.5, 0.0553, 0.54),
    EntranceType.HEADWALL: InletCoefficients(0.0078, 2.0, 0.0379, 0.69),
    # Mitered to conform to the fill slope.
    EntranceType.WINGWALL: InletCoefficients(0.0210, 1.33, 0.0463, 0.75),
}
_BOX: dict[EntranceType, InletCoefficients] = {
    EntranceType.PROJECTING: InletCoefficients(0.061, 0.75, 0.0423, 0.82),
    EntranceType.HEADWALL: InletCoefficients(0.061, 0.75, 0.0400, 0.80),
    EntranceType.WINGWALL: InletCoefficients(0.026, 1.0, 0.0347, 0.81),
}
_ARCH: dict[EntranceType, InletCoefficients] = {
    EntranceType.PROJECTING: InletCoefficients(0.0340, 1.5, 0.0496, 0.57),
    EntranceType.HEADWALL: InletCoefficients(0.0083, 2.0, 0.0379, 0.69),
    EntranceType.WINGWALL: InletCoefficients(0.0300, 1.0, 0.0463, 0.75),
}


def inlet_coefficients(shape: CulvertShape, material: CulvertMaterial, entrance: EntranceType) -> InletCoefficients:
    if shape is CulvertShape.CIRCULAR:
        table = _CORRUGATED_PIPE if material is CulvertMaterial.CORRUGATED_METAL else _SMOOTH_PIPE
    elif shape is CulvertShape.BOX:
        table = _BOX
    else:
        table = _ARCH
    return table[entrance]


def _barrel_section(size: CulvertSize) -> ChannelGeometry:
    """Open-channel section used for barrel depth solves; arches are treated as rectangles."""

    if size.shape is CulvertShape.CIRCULAR:
        return CircularSection(diameter=size.rise)
    return RectangularSection(bottom_width=size.span)


def full_hydraulic_radius(size: CulvertSize) -> float:
    if size.shape is CulvertShape.CIRCULAR:
        return size.rise / 4
    if size.shape is CulvertShape.BOX:
        return size.area / (2 * (size.span + size.rise))
    a: float = size.span / 2
    b: float = size.rise / 2
    # Ramanujan's ellipse perimeter.
    perimeter: float = math.pi * (3 * (a + b) - math.sqrt((3 * a + b) * (a + 3 * b)))
    return size.area / perimeter


def barrel_critical_depth(size: CulvertSize, flow: float, units: UnitSystem) -> float:
    """Critical depth in the barrel, never above the rise."""

    try:
        solved = critical_depth(_barrel_section(size), flow, units)
    except ConvergenceError as exc:
        logger.debug("Critical depth for {size} fell outside the barrel: {error}", size=size.label(units), error=exc)
        return size.rise
    return min(solved.depth, size.rise)


def inlet_control_headwater(
    size: CulvertSize, flow: float, effective_area: float, dc: float, params: CulvertParams
) -> float:
    """HDS-5 form 1 headwater depth, blending the two forms for 3.5 < X < 4.0."""

    units: UnitSystem = params.units
    coefficients: InletCoefficients = inlet_coefficients(size.shape, params.material, params.entrance_type)
    rise: float = size.rise
    x: float = INLET_KU[units] * flow / (effective_area * math.sqrt(rise))
    slope_term: float = 0.5 * max(params.barrel_slope, 0.0)

    critical_area: float = hydraulic_properties(_barrel_section(size), dc).area
    specific_head: float = dc + (flow / critical_area) ** 2 / (2 * units.gravity)

    def unsubmerged() -> float:
        return specific_head / rise + coefficients.k * x**coefficients.m - slope_term

    def submerged() -> float:
        return coefficients.c * x * x + coefficients.y - slope_term

    if x <= UNSUBMERGED_LIMIT:
        ratio: float = unsubmerged()
    elif x >= SUBMERGED_LIMIT:
        ratio = submerged()
    else:
        weight: float = (x - UNSUBMERGED_LIMIT) / (SUBMERGED_LIMIT - UNSUBMERGED_LIMIT)
        ratio = (1 - weight) * unsubmerged() + weight * submerged()
    return max(ratio * rise, 0.0)


def tailwater_depth(params: CulvertParams, flow: float | None = None) -> float:
    """Tailwater at `flow` (the design flow by default), from the rating when one is supplied."""

    if not params.tailwater_rating:
        return params.tailwater_depth
    flows: list[float] = [point[0] for point in params.tailwater_rating]
    depths: list[float] = [point[1] for point in params.tailwater_rating]
    # Outside the rating the end depths hold.
    return float(np.interp(params.design_flow if flow is None else flow, flows, depths))


def outlet_control_headwater(
    size: CulvertSize, flow: float, effective_area: float, dc: float, tailwater: float, params: CulvertParams
) -> float:
    """Full-barrel energy balance measured from the upstream invert."""

    units: UnitSystem = params.units
    ke: float = ENTRANCE_LOSSES[params.entrance_type].coefficient(params.skew_angle)
    n: float = params.material.manning_n
    radius: float = full_hydraulic_radius(size)
    velocity: float = flow / effective_area
    velocity_head: float = velocity * velocity / (2 * units.gravity)
    friction: float = 2 * units.gravity * n * n * params.culvert_length / (units.manning_k**2 * radius ** (4 / 3))
    losses: float = (1 + ke + friction) * velocity_head
    outlet_level: float = max(tailwater, (dc + size.rise) / 2)
    fall: float = params.upstream_invert - params.downstream_invert
    return max(outlet_level + losses - fall, 0.0)


def _outlet_flow(size: CulvertSize, flow: float, params: CulvertParams) -> tuple[float, float, float]:
    """Return (depth, velocity, Froude number) at the outlet from the barrel's normal depth."""

    slope: float = params.barrel_slope if params.barrel_slope > 0 else params.stream_slope
    section: ChannelGeometry = _barrel_section(size)
    if slope > 0:
        try:
            solved = normal_depth(section, flow, slope, params.material.manning_n, params.units)
        except ConvergenceError as exc:
            logger.debug("Barrel {size} surcharges at Q={flow:.4g}: {error}", size=size.label(params.units), flow=flow, error=exc)
        else:
            if solved.depth < size.rise:
                props = hydraulic_properties(section, solved.depth)
                velocity: float = flow / props.area
                froude: float = velocity / math.sqrt(params.units.gravity * props.hydraulic_depth)
                return solved.depth, velocity, froude
    # Full barrel: pressure flow, no free surface.
    return size.rise, flow / size.area, 0.0


def evaluate_size(params: CulvertParams, size: CulvertSize) -> CulvertHydraulics:
    """
    Compute single-barrel hydraulics of `size` at the design flow.

    Raises:
        ConvergenceError: A depth solve needed for this size failed.
    """
    return hydraulics_at_flow(params, size, params.design_flow)


def hydraulics_at_flow(params: CulvertParams, size: CulvertSize, total_flow: float) -> CulvertHydraulics:
    """Single-barrel hydraulics of `size` when the crossing carries `total_flow`."""

    flow: float = total_flow / params.barrels
    effective_area: float = size.area * (1 - params.effective_blockage)
    dc: float = barrel_critical_depth(size, flow, params.units)
    tailwater: float = tailwater_depth(params, total_flow)
    inlet: float = inlet_control_headwater(size, flow, effective_area, dc, params)
    outlet: float = outlet_control_headwater(size, flow, effective_area, dc, tailwater, params)
    outlet_depth, outlet_velocity, froude = _outlet_flow(size, flow, params)
    control: ControlType = ControlType.INLET if inlet >= outlet else ControlType.OUTLET
    logger.debug(
        "{size}: HWi={inlet:.3f}, HWo={outlet:.3f} ({control} control)",
        size=size.label(params.units),
        inlet=inlet,
        outlet=outlet,
        control=control.value,
    )
    return CulvertHydraulics(
        barrel_flow=flow,
        effective_area=effective_area,
        inlet_headwater=inlet,
        outlet_headwater=outlet,
        headwater=max(inlet, outlet),
        control=control,
        velocity=flow / effective_area,
        outlet_velocity=outlet_velocity,
        outlet_depth=outlet_depth,
        critical_depth=dc,
        normal_depth=outlet_depth,
        froude_number=froude,
        tailwater_depth=tailwater,
    )


def performance_curve(params: CulvertParams, size: CulvertSize) -> list[PerformancePoint]:
    """
    Headwater and outlet conditions of `size` from 0.1 to 2.0 times the design flow.

    Flows are crossing totals; tailwater follows the rating at each flow.

    Raises:
        ConvergenceError: A depth solve needed at one of the flows failed.
    """
    points: list[PerformancePoint] = []
    for factor in PERFORMANCE_FACTORS:
        flow: float = factor * params.design_flow
        hydraulics: CulvertHydraulics = hydraulics_at_flow(params, size, flow)
        points.append(
            PerformancePoint(
                flow=flow,
                headwater=hydraulics.headwater,
                outlet_velocity=hydraulics.outlet_velocity,
                outlet_froude=hydraulics.froude_number,
            )
        )
    return points


def fish_passage(params: CulvertParams, size: CulvertSize, hydraulics: CulvertHydraulics) -> FishPassage | None:
    """Screen the outlet against the passage limits; None when passage is not requested."""

    environment = params.environment
    if not environment.aquatic_passage:
        return None
    velocity_barrier: bool = (
        environment.max_passage_velocity is not None and hydraulics.outlet_velocity > environment.max_passage_velocity
    )
    depth_barrier: bool = (
        environment.min_passage_depth is not None and hydraulics.outlet_depth < environment.min_passage_depth
    )
    jump: float = max(0.0, params.upstream_invert - params.downstream_invert - hydraulics.outlet_depth)
    recommendation: str = NO_BAFFLES
    if velocity_barrier or depth_barrier:
        recommendation = BAFFLE_RECOMMENDATIONS.get(size.shape, NO_BAFFLES)
    return FishPassage(
        velocity_barrier=velocity_barrier,
        depth_barrier=depth_barrier,
        jump_height=jump,
        baffle_recommendation=recommendation,
        passable=not velocity_barrier and not depth_barrier and jump < MAX_PASSAGE_JUMP[params.units],
    )


def outlet_protection(params: CulvertParams, hydraulics: CulvertHydraulics) -> OutletProtection:
    """Rate scour at the outlet and pick a dissipator for strongly supercritical outflow."""

    high_velocity, medium_velocity = SCOUR_VELOCITIES[params.units]
    high_froude, medium_froude = SCOUR_FROUDE
    velocity: float = hydraulics.outlet_velocity
    froude: float = hydraulics.froude_number
    if velocity > high_velocity or froude > high_froude:
        scour: ScourPotential = ScourPotential.HIGH
    elif velocity > medium_velocity or froude > medium_froude:
        scour = ScourPotential.MEDIUM
    else:
        scour = ScourPotential.LOW
    dissipator: EnergyDissipator = EnergyDissipator.NONE
    if froude > DISSIPATOR_FROUDE:
        dissipator = (
            EnergyDissipator.RIPRAP_BASIN
            if hydraulics.tailwater_depth > 0.5 * hydraulics.critical_depth
            else EnergyDissipator.BAFFLED_APRON
        )
    return OutletProtection(scour_potential=scour, energy_dissipator=dissipator)


def cover_depth(params: CulvertParams, size: CulvertSize) -> float:
    """Fill above the crown; without a roadway the headwater limit sets the top."""

    top: float = (
        params.roadway_elevation
        if params.roadway_elevation is not None
        else params.upstream_invert + params.max_headwater
    )
    return top - (params.upstream_invert + size.rise)


def infeasibility_reasons(params: CulvertParams, size: CulvertSize, hydraulics: CulvertHydraulics) -> list[str]:
    """Return the constraints `size` violates; empty when it is feasible."""

    reasons: list[str] = []
    if hydraulics.headwater > params.max_headwater:
        reasons.append("max headwater")
    if params.barrels * size.span > params.max_width:
        reasons.append("max width")
    if cover_depth(params, size) < params.min_cover:
        reasons.append("min cover")
    return reasons


def scenario_warnings(params: CulvertParams, size: CulvertSize, hydraulics: CulvertHydraulics) -> list[str]:
    units: UnitSystem = params.units
    unit: str = units.velocity_unit
    warnings: list[str] = []
    ratio: float = hydraulics.headwater / size.rise
    if ratio > HW_RATIO_LIMIT:
        warnings.append(f"Headwater to rise ratio (HW/D) of {ratio:.2f} exceeds the typical design limit of {HW_RATIO_LIMIT}.")
    severe, erosion, deposition = OUTLET_VELOCITY_LIMITS[units]
    velocity: float = hydraulics.outlet_velocity
    if velocity > severe:
        warnings.append(f"Outlet velocity of {velocity:.1f} {unit} may cause severe erosion.")
    elif velocity > erosion:
        warnings.append(f"Outlet velocity of {velocity:.1f} {unit} may cause erosion problems.")
    elif velocity < deposition:
        warnings.append(f"Low velocity of {velocity:.1f} {unit} may cause sediment deposition.")
    if hydraulics.froude_number > HIGH_FROUDE:
        warnings.append(
            f"High Froude number ({hydraulics.froude_number:.2f}) at the outlet; a hydraulic jump may form."
        )
    if size.area > LARGE_OPENING_AREA[units]:
        warnings.append("Large opening may require special construction considerations.")
    environment = params.environment
    if environment.aquatic_passage:
        if environment.max_passage_velocity is not None and velocity > environment.max_passage_velocity:
            warnings.append(
                f"Aquatic passage: outlet velocity {velocity:.2f} {unit} exceeds the "
                f"{environment.max_passage_velocity} {unit} limit."
            )
        if environment.min_passage_depth is not None and hydraulics.outlet_depth < environment.min_passage_depth:
            warnings.append(
                f"Aquatic passage: outlet depth {hydraulics.outlet_depth:.2f} {units.length_unit} is below the "
                f"{environment.min_passage_depth} {units.length_unit} minimum."
            )
        passage: FishPassage | None = fish_passage(params, size, hydraulics)
        if passage is not None:
            if passage.baffle_recommendation != NO_BAFFLES:
                warnings.append(f"Fish passage may be impaired: {passage.baffle_recommendation.lower()}.")
            if passage.jump_height >= MAX_PASSAGE_JUMP[units]:
                warnings.append(
                    f"Outlet drop of {passage.jump_height:.2f} {units.length_unit} may create a fish passage barrier."
                )
    return warnings


def evaluate_shape(params: CulvertParams, shape: CulvertShape) -> tuple[list[ScenarioResult], list[str]]:
    """
    Rank up to three feasible sizes of one shape.

    Returns:
        The ranked results and shape-level warnings explaining dropped sizes or
        an empty result.
    """
    sizes: list[CulvertSize] = catalog_sizes(shape, params.material, params.units)
    notes: list[str] = []
    if not sizes:
        message: str = f"No {shape.value} sizes are available in {params.material.value}."
        logger.info(message)
        return [], [message]

    results: list[ScenarioResult] = []
    last_reasons: list[str] = []
    for size in sizes:
        try:
            hydraulics: CulvertHydraulics = evaluate_size(params, size)
            last_reasons = infeasibility_reasons(params, size, hydraulics)
            if last_reasons:
                continue
            performance: list[PerformancePoint] = performance_curve(params, size)
        except (ConvergenceError, ValidationError) as exc:
            message = f"Skipped {size.label(params.units)}: {exc}"
            logger.warning(message)
            notes.append(message)
            continue
        results.append(
            ScenarioResult(
                size=size,
                hydraulics=hydraulics,
                rank=len(results) + 1,
                warnings=scenario_warnings(params, size, hydraulics),
                outlet_protection=outlet_protection(params, hydraulics),
                fish_passage=fish_passage(params, size, hydraulics),
                performance=tuple(performance),
            )
        )
        if len(results) == MAX_OPTIONS_PER_SHAPE:
            break

    if not results:
        constraints: str = " and ".join(last_reasons) if last_reasons else "hydraulic"
        notes.append(
            f"No feasible {shape.value} size: {constraints} constraint not satisfiable at the catalog's largest size."
        )
    logger.info(
        "Evaluated {shape} culverts: {count} feasible option(s)",
        shape=shape.value,
        count=len(results),
    )
    return results, notes


def evaluate_culvert_scenarios(
    params: CulvertParams, *, workers: int | None = None
) -> CalculationResult[ScenarioReport]:
    """
    Evaluate the requested shape, or every shape, against the catalog.

    Shapes are independent: one shape without options only adds a warning.
    With `workers` > 1 the shapes run in a thread pool; the report keeps the
    circular, box, arch order either way.
    """
    try:
        params.assert_valid()
    except ValidationError as exc:
        logger.info("Culvert evaluation rejected: {error}", error=exc)
        return CalculationResult.from_exception(exc)

    shapes: list[CulvertShape] = [params.shape] if params.shape is not None else list(CulvertShape)
    outcomes: dict[CulvertShape, tuple[list[ScenarioResult], list[str]]] = {}
    if workers and workers > 1 and len(shapes) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures: dict[Future[tuple[list[ScenarioResult], list[str]]], CulvertShape] = {
                executor.submit(evaluate_shape, params, shape): shape for shape in shapes
            }
            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()
    else:
        for shape in shapes:
            outcomes[shape] = evaluate_shape(params, shape)

    warnings: list[str] = params.advisories()
    scenarios: dict[CulvertShape, list[ScenarioResult]] = {}
    for shape in shapes:
        results, notes = outcomes[shape]
        scenarios[shape] = results
        warnings.extend(notes)
    report = ScenarioReport(scenarios=scenarios, warnings=warnings)
    return CalculationResult.ok(report, warnings)
