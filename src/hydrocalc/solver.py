"""Normal and critical depth solvers.

Both depths are roots of a discharge function that increases monotonically with
depth over the solver's domain, so one bracketing routine serves both:
`solve_monotone` finds a sign change of ``func(depth) - target`` and hands the
bracket to `scipy.optimize.brentq`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Integral
from typing import Callable

from loguru import logger
from scipy.optimize import brentq

from .classes_references import ConvergenceError, UnitSystem, ValidationError
from .geometry import hydraulic_properties
from .models.base import Validatable, require_positive
from .models.geometry import ChannelGeometry, CircularSection

# Depth of maximum discharge in a circular pipe, as a fraction of the diameter.
CIRCULAR_NORMAL_LIMIT = 0.938
CIRCULAR_CRITICAL_LIMIT = 0.9999
OPEN_CHANNEL_DEPTH_LIMIT = 1000.0
INITIAL_OPEN_UPPER = 1.0
BOUNDARY_FRACTION = 0.001


@dataclass(frozen=True, slots=True)
class SolverOptions(Validatable):
    """Convergence settings shared by every depth solve."""

    rel_tolerance: float = 1e-6
    depth_tolerance: float = 1e-10
    max_iterations: int = 100
    min_depth: float = 1e-6

    def __post_init__(self) -> None:
        self.assert_valid(prefix="Solver options: ")

    def validate(self, prefix: str = "") -> list[str]:
        errors: list[str] = []
        errors.extend(require_positive(self.rel_tolerance, "rel_tolerance", prefix))
        errors.extend(require_positive(self.depth_tolerance, "depth_tolerance", prefix))
        errors.extend(require_positive(self.min_depth, "min_depth", prefix))
        if not isinstance(self.max_iterations, Integral) or isinstance(self.max_iterations, bool) or self.max_iterations < 1:
            errors.append(f"{prefix}max_iterations must be a positive integer (got {self.max_iterations!r}).")
        return errors


DEFAULT_OPTIONS = SolverOptions()


@dataclass(frozen=True, slots=True)
class SolverResult:
    """Root returned by `solve_monotone` and the diagnostics that came with it.

    Attributes:
        depth: Converged depth.
        iterations: Brent iterations spent on the final bracket.
        residual: ``func(depth) - target`` at the returned depth.
        bracket: Lower and upper depth that straddled the root.
        at_boundary: True when the root sits within 0.1 % of the hard depth
            limit, which usually means the section is undersized for the flow.
    """

    depth: float
    iterations: int
    residual: float
    bracket: tuple[float, float]
    at_boundary: bool = False


def _depth_converged(
    residual: Callable[[float], float], root: float, lower: float, upper: float, depth_tolerance: float
) -> bool:
    """True when the sign change lies within the depth tolerance of `root`."""

    # Brent's final bracket is xtol plus a few ulps wide.
    step: float = 2 * depth_tolerance
    return residual(max(root - step, lower)) <= 0 <= residual(min(root + step, upper))


def solve_monotone(
    func: Callable[[float], float],
    target: float,
    lower: float,
    upper: float,
    *,
    options: SolverOptions = DEFAULT_OPTIONS,
    label: str = "depth",
    expand_limit: float | None = None,
) -> SolverResult:
    """
    Solve ``func(x) == target`` for a monotonically increasing `func`.

    Args:
        func: Increasing function of depth.
        target: Value to match; must be positive.
        lower: Lower bracket; ``func(lower)`` must fall below `target`.
        upper: Initial upper bracket.
        options: Convergence settings.
        label: Name used in log and error messages.
        expand_limit: When given, `upper` doubles until it brackets the root
            or reaches this limit.

    Raises:
        ConvergenceError: No bracket exists or Brent's method did not converge.
    """

    def residual(x: float) -> float:
        return func(x) - target

    low_value: float = residual(lower)
    if low_value > 0:
        raise ConvergenceError(f"Cannot bracket {label}: the target is below the value at the minimum depth {lower}.")

    hard_limit: float = expand_limit if expand_limit is not None else upper
    high_value: float = residual(upper)
    while high_value < 0 and expand_limit is not None and upper < expand_limit:
        upper = min(upper * 2, expand_limit)
        high_value = residual(upper)
    if high_value < 0:
        raise ConvergenceError(
            f"Cannot bracket {label}: the target exceeds the section capacity at depth {upper:.6g}."
        )

    root, info = brentq(
        residual,
        lower,
        upper,
        xtol=options.depth_tolerance,
        maxiter=options.max_iterations,
        full_output=True,
        disp=False,
    )
    if not info.converged:
        raise ConvergenceError(
            f"{label.capitalize()} did not converge within {options.max_iterations} iterations.",
            iterations=info.iterations,
        )
    final_residual: float = residual(root)
    if abs(final_residual) > options.rel_tolerance * abs(target) and not _depth_converged(
        residual, root, lower, upper, options.depth_tolerance
    ):
        raise ConvergenceError(
            f"{label.capitalize()} residual {final_residual:.3g} exceeds the relative tolerance.",
            iterations=info.iterations,
        )
    at_boundary: bool = root >= hard_limit * (1 - BOUNDARY_FRACTION)
    logger.debug(
        "Solved {label}={root:.6f} in {iterations} iterations (bracket {lower:.6g}..{upper:.6g})",
        label=label,
        root=root,
        iterations=info.iterations,
        lower=lower,
        upper=upper,
    )
    return SolverResult(
        depth=float(root),
        iterations=int(info.iterations),
        residual=final_residual,
        bracket=(lower, upper),
        at_boundary=at_boundary,
    )


def manning_discharge(
    geometry: ChannelGeometry, depth: float, slope: float, manning_n: float, units: UnitSystem = UnitSystem.SI
) -> float:
    """Uniform-flow discharge ``Q = (k/n)·A·R^(2/3)·S^(1/2)`` at `depth`."""

    props = hydraulic_properties(geometry, depth)
    return units.manning_k / manning_n * props.area * props.hydraulic_radius ** (2 / 3) * math.sqrt(slope)


def critical_discharge(geometry: ChannelGeometry, depth: float, units: UnitSystem = UnitSystem.SI) -> float:
    """Discharge for which `depth` is critical, ``sqrt(g·A³/T)``."""

    props = hydraulic_properties(geometry, depth)
    if props.top_width <= 0:
        return math.inf if props.area > 0 else 0.0
    return math.sqrt(units.gravity * props.area**3 / props.top_width)


def _check_flow(flow: float, errors: list[str]) -> None:
    errors.extend(require_positive(flow, "flow_rate"))


def normal_depth(
    geometry: ChannelGeometry,
    flow: float,
    slope: float,
    manning_n: float,
    units: UnitSystem = UnitSystem.SI,
    options: SolverOptions = DEFAULT_OPTIONS,
) -> SolverResult:
    """
    Depth at which Manning's equation carries `flow`.

    Circular sections search up to the depth of maximum discharge (0.938·D);
    open sections expand their bracket up to 1000 length units.
    """
    errors: list[str] = []
    _check_flow(flow, errors)
    errors.extend(require_positive(slope, "slope"))
    errors.extend(require_positive(manning_n, "manning_n"))
    if errors:
        raise ValidationError(errors)

    def discharge(depth: float) -> float:
        return manning_discharge(geometry, depth, slope, manning_n, units)

    if isinstance(geometry, CircularSection):
        return solve_monotone(
            discharge,
            flow,
            options.min_depth,
            CIRCULAR_NORMAL_LIMIT * geometry.diameter,
            options=options,
            label="normal depth",
        )
    return solve_monotone(
        discharge,
        flow,
        options.min_depth,
        INITIAL_OPEN_UPPER,
        options=options,
        label="normal depth",
        expand_limit=OPEN_CHANNEL_DEPTH_LIMIT,
    )


def critical_depth(
    geometry: ChannelGeometry,
    flow: float,
    units: UnitSystem = UnitSystem.SI,
    options: SolverOptions = DEFAULT_OPTIONS,
) -> SolverResult:
    """Depth at which the Froude number equals one for `flow`."""

    errors: list[str] = []
    _check_flow(flow, errors)
    if errors:
        raise ValidationError(errors)

    def discharge(depth: float) -> float:
        return critical_discharge(geometry, depth, units)

    if isinstance(geometry, CircularSection):
        return solve_monotone(
            discharge,
            flow,
            options.min_depth,
            CIRCULAR_CRITICAL_LIMIT * geometry.diameter,
            options=options,
            label="critical depth",
        )
    return solve_monotone(
        discharge,
        flow,
        options.min_depth,
        INITIAL_OPEN_UPPER,
        options=options,
        label="critical depth",
        expand_limit=OPEN_CHANNEL_DEPTH_LIMIT,
    )
