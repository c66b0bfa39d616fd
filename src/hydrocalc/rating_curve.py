"""Stage-discharge (rating) curves with curvature-driven refinement."""

from __future__ import annotations

import bisect
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from numbers import Integral
from typing import TYPE_CHECKING, Sequence

import numpy as np
from loguru import logger

from .classes_references import ConvergenceError, InsufficientDataError, ValidationError
from .geometry import hydraulic_properties
from .models.channel import ChannelInputs, RatingCurve, RatingCurvePoint
from .results import CalculationResult
from .solver import DEFAULT_OPTIONS, SolverOptions, normal_depth

if TYPE_CHECKING:
    import pandas as pd

DEFAULT_POINTS = 20
DEFAULT_MAX_MULTIPLE = 2.0
DEFAULT_MIN_FRACTION = 0.01
DEFAULT_CURVATURE_THRESHOLD = 0.5
DEFAULT_MAX_REFINEMENTS = 5

_PointOutcome = tuple[RatingCurvePoint | None, str | None]


def _solve_point(inputs: ChannelInputs, flow: float, options: SolverOptions) -> _PointOutcome:
    """Solve one grid flow; a failed solve becomes a warning instead of an exception."""

    try:
        solved = normal_depth(inputs.geometry, flow, inputs.slope, inputs.manning_n, inputs.units, options)
    except (ConvergenceError, ValidationError) as exc:
        message: str = f"Dropped rating point at Q={flow:.6g} {inputs.units.flow_unit}: {exc}"
        logger.warning(message)
        return None, message
    props = hydraulic_properties(inputs.geometry, solved.depth)
    point = RatingCurvePoint(flow=flow, depth=solved.depth, velocity=flow / props.area, area=props.area)
    return point, None


def _solve_grid(
    inputs: ChannelInputs, flows: Sequence[float], options: SolverOptions, workers: int | None
) -> list[_PointOutcome]:
    """Solve every grid flow, in a thread pool when `workers` > 1, keeping grid order."""

    if not workers or workers <= 1:
        return [_solve_point(inputs, flow, options) for flow in flows]
    outcomes: list[_PointOutcome] = [(None, None)] * len(flows)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures: dict[Future[_PointOutcome], int] = {
            executor.submit(_solve_point, inputs, flow, options): index for index, flow in enumerate(flows)
        }
        for future in as_completed(futures):
            outcomes[futures[future]] = future.result()
    return outcomes


def _max_curvature(points: Sequence[RatingCurvePoint]) -> tuple[int, float]:
    """Return the interior index with the largest dimensionless second difference."""

    q_max: float = points[-1].flow
    d_max: float = max(point.depth for point in points)
    best_index: int = -1
    best_value: float = 0.0
    for index in range(1, len(points) - 1):
        left, mid, right = points[index - 1], points[index], points[index + 1]
        slope_left: float = (mid.depth - left.depth) / (mid.flow - left.flow)
        slope_right: float = (right.depth - mid.depth) / (right.flow - mid.flow)
        second: float = 2 * (slope_right - slope_left) / (right.flow - left.flow)
        value: float = abs(second) * q_max * q_max / d_max
        if value > best_value:
            best_index, best_value = index, value
    return best_index, best_value


def generate_rating_curve(
    inputs: ChannelInputs,
    points: int = DEFAULT_POINTS,
    *,
    max_multiple: float = DEFAULT_MAX_MULTIPLE,
    min_fraction: float = DEFAULT_MIN_FRACTION,
    curvature_threshold: float = DEFAULT_CURVATURE_THRESHOLD,
    max_refinements: int = DEFAULT_MAX_REFINEMENTS,
    workers: int | None = None,
    options: SolverOptions | None = None,
) -> CalculationResult[RatingCurve]:
    """
    Build a flow-ascending rating curve for `inputs`.

    The initial grid spans ``min_fraction·Q`` to ``max_multiple·Q`` in `points`
    uniform steps, plus the design flow itself when the grid misses it. Each
    refinement pass then adds the midpoint of the wider
    interval next to the sharpest bend while the bend's dimensionless curvature
    ``|d''|·Q_max²/d_max`` exceeds `curvature_threshold`.

    Points whose solve fails are dropped with a warning. Fewer than two usable
    points fails the whole curve with ``insufficient_data``.
    """
    solver_options: SolverOptions = options or DEFAULT_OPTIONS
    try:
        inputs.assert_valid()
        errors: list[str] = []
        if isinstance(points, bool) or not isinstance(points, Integral) or points < 2:
            errors.append(f"points must be an integer of at least 2 (got {points!r}).")
        if not 0 < min_fraction < max_multiple:
            errors.append(f"min_fraction must be positive and below max_multiple (got {min_fraction}, {max_multiple}).")
        if max_refinements < 0:
            errors.append(f"max_refinements must be zero or greater (got {max_refinements}).")
        if errors:
            raise ValidationError(errors)
    except ValidationError as exc:
        return CalculationResult.from_exception(exc)

    flows: list[float] = [
        float(flow) for flow in np.linspace(min_fraction * inputs.flow_rate, max_multiple * inputs.flow_rate, points)
    ]
    if not np.isclose(flows, inputs.flow_rate, rtol=1e-9, atol=0.0).any():
        flows = sorted([*flows, float(inputs.flow_rate)])
    warnings: list[str] = inputs.advisories()
    curve: list[RatingCurvePoint] = []
    for point, message in _solve_grid(inputs, flows, solver_options, workers):
        if point is not None:
            curve.append(point)
        elif message:
            warnings.append(message)

    if len(curve) < 2:
        exc = InsufficientDataError(
            f"Only {len(curve)} of {len(flows)} rating points converged; at least 2 are required."
        )
        logger.warning("Rating curve failed: {error}", error=exc)
        return CalculationResult.from_exception(exc, warnings)

    passes: int = 0
    while passes < max_refinements and len(curve) >= 3:
        index, curvature = _max_curvature(curve)
        if index < 0 or curvature <= curvature_threshold:
            break
        left_width: float = curve[index].flow - curve[index - 1].flow
        right_width: float = curve[index + 1].flow - curve[index].flow
        lo, hi = (index - 1, index) if left_width >= right_width else (index, index + 1)
        midpoint: float = (curve[lo].flow + curve[hi].flow) / 2
        flows_so_far: list[float] = [point.flow for point in curve]
        if midpoint <= curve[lo].flow or midpoint >= curve[hi].flow or midpoint in flows_so_far:
            logger.debug("Refinement midpoint {flow} duplicates an existing flow; stopping.", flow=midpoint)
            break
        passes += 1
        point, message = _solve_point(inputs, midpoint, solver_options)
        if point is None:
            warnings.append(message or f"Refinement at Q={midpoint:.6g} failed.")
            break
        curve.insert(bisect.bisect_left(flows_so_far, midpoint), point)
        logger.debug(
            "Refinement pass {passes}: inserted Q={flow:.6g} (curvature {curvature:.3f})",
            passes=passes,
            flow=midpoint,
            curvature=curvature,
        )

    logger.info(
        "Rating curve for {inputs}: {count} points, {passes} refinement passes",
        inputs=inputs.describe(),
        count=len(curve),
        passes=passes,
    )
    result = RatingCurve(points=tuple(curve), refinement_passes=passes, warnings=list(warnings))
    return CalculationResult.ok(result, warnings)


def interpolate_depth(curve: RatingCurve, flow: float) -> float | None:
    """Linearly interpolate depth at `flow`; None outside the curve's flow range."""

    if len(curve) == 0:
        return None
    flows: list[float] = curve.flows
    if flow < flows[0] or flow > flows[-1]:
        return None
    return float(np.interp(flow, flows, curve.depths))


def rating_curve_dataframe(curve: RatingCurve) -> "pd.DataFrame":
    """Return the curve as a pandas DataFrame indexed by flow."""
    import pandas as pd

    rows: list[dict[str, float]] = [
        {"flow": point.flow, "depth": point.depth, "velocity": point.velocity, "area": point.area}
        for point in curve.points
    ]
    df = pd.DataFrame(rows, columns=["flow", "depth", "velocity", "area"])
    if not df.empty:
        df = df.set_index("flow")
    return df
