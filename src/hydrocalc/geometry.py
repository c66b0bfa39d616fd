"""Cross-section geometry engine.

`hydraulic_properties` is the single entry point used by the solvers; the
per-shape functions are public for callers that already know the section type.
All functions are pure and work in whatever length unit the section was built
with.
"""

from __future__ import annotations

import math

from loguru import logger

from .classes_references import ValidationError
from .models.base import is_real
from .models.channel import HydraulicProperties
from .models.geometry import (
    ChannelGeometry,
    CircularSection,
    RectangularSection,
    TrapezoidalSection,
    TriangularSection,
)


def rectangular_properties(section: RectangularSection, depth: float) -> HydraulicProperties:
    b: float = section.bottom_width
    return HydraulicProperties.from_section(depth, area=b * depth, wetted_perimeter=b + 2 * depth, top_width=b)


def trapezoidal_properties(section: TrapezoidalSection, depth: float) -> HydraulicProperties:
    b: float = section.bottom_width
    z: float = section.side_slope
    area: float = (b + z * depth) * depth
    perimeter: float = b + 2 * depth * math.sqrt(1 + z * z)
    return HydraulicProperties.from_section(depth, area=area, wetted_perimeter=perimeter, top_width=b + 2 * z * depth)


def triangular_properties(section: TriangularSection, depth: float) -> HydraulicProperties:
    z: float = section.side_slope
    area: float = z * depth * depth
    perimeter: float = 2 * depth * math.sqrt(1 + z * z)
    return HydraulicProperties.from_section(depth, area=area, wetted_perimeter=perimeter, top_width=2 * z * depth)


def circular_properties(section: CircularSection, depth: float) -> HydraulicProperties:
    """Partially full pipe properties from the subtended angle of the water surface."""

    diameter: float = section.diameter
    ratio: float = min(max(1 - 2 * depth / diameter, -1.0), 1.0)
    theta: float = 2 * math.acos(ratio)
    area: float = diameter * diameter / 8 * (theta - math.sin(theta))
    perimeter: float = diameter * theta / 2
    # sin(pi) is not exactly zero; a full pipe has no free surface.
    top_width: float = 0.0 if depth >= diameter else diameter * math.sin(theta / 2)
    return HydraulicProperties.from_section(depth, area=area, wetted_perimeter=perimeter, top_width=top_width)


def hydraulic_properties(geometry: ChannelGeometry, depth: float) -> HydraulicProperties:
    """
    Compute area, wetted perimeter, hydraulic radius, top width and hydraulic depth.

    Args:
        geometry: One of the section dataclasses from `hydrocalc.models.geometry`.
        depth: Flow depth measured from the invert, ``0 <= depth <= max_depth``.

    Raises:
        ValidationError: Unknown geometry or a depth outside the section's domain.
    """
    if not is_real(depth) or not math.isfinite(depth):
        raise ValidationError([f"depth must be a finite number (got {depth!r})."])
    if depth < 0:
        raise ValidationError([f"depth must be zero or greater (got {depth})."])

    if isinstance(geometry, RectangularSection):
        return rectangular_properties(geometry, depth)
    if isinstance(geometry, TrapezoidalSection):
        return trapezoidal_properties(geometry, depth)
    if isinstance(geometry, TriangularSection):
        return triangular_properties(geometry, depth)
    if isinstance(geometry, CircularSection):
        if depth > geometry.diameter:
            raise ValidationError([f"depth {depth} exceeds the pipe diameter {geometry.diameter}."])
        return circular_properties(geometry, depth)
    raise ValidationError([f"Unsupported channel geometry {geometry!r}."])


def optimal_trapezoid(area: float, side_slope: float) -> tuple[TrapezoidalSection, float]:
    """
    Return the best hydraulic trapezoid carrying `area` and its flow depth.

    The most efficient section for a fixed side slope has a bottom width of
    ``2y(sqrt(1 + z^2) - z)``; its hydraulic radius equals half the depth.
    """
    if area <= 0 or not math.isfinite(area):
        raise ValidationError([f"area must be greater than zero (got {area})."])
    if side_slope < 0 or not math.isfinite(side_slope):
        raise ValidationError([f"side_slope must be zero or greater (got {side_slope})."])
    root: float = math.sqrt(1 + side_slope * side_slope)
    depth: float = math.sqrt(area / (2 * root - side_slope))
    bottom_width: float = 2 * depth * (root - side_slope)
    logger.debug(
        "Optimal trapezoid for area {area}: b={width:.4f}, y={depth:.4f}",
        area=area,
        width=bottom_width,
        depth=depth,
    )
    return TrapezoidalSection(bottom_width=bottom_width, side_slope=side_slope), depth
