"""Channel cross-section variants.

Each section is a frozen dataclass that validates itself on construction, so a
section object that exists is always usable by the geometry engine. Untyped
input (mappings carrying a ``shape`` tag) enters through
`geometry_from_mapping`, which reports every missing or invalid parameter at
once.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Mapping, Union

from .base import Validatable, is_real, require_positive
from ..classes_references import ValidationError
from ..type_helpers import ChannelShape


@dataclass(frozen=True, slots=True)
class RectangularSection(Validatable):
    """Rectangular channel with vertical walls."""

    shape: ClassVar[ChannelShape] = ChannelShape.RECTANGULAR
    bottom_width: float

    def __post_init__(self) -> None:
        self.assert_valid(prefix="Rectangular section: ")

    def validate(self, prefix: str = "") -> list[str]:
        return require_positive(self.bottom_width, "bottom_width", prefix)

    @property
    def max_depth(self) -> float:
        return math.inf

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "bottom_width": self.bottom_width}


@dataclass(frozen=True, slots=True)
class TrapezoidalSection(Validatable):
    """Trapezoidal channel; `side_slope` is horizontal run per unit rise (z:1)."""

    shape: ClassVar[ChannelShape] = ChannelShape.TRAPEZOIDAL
    bottom_width: float
    side_slope: float

    def __post_init__(self) -> None:
        self.assert_valid(prefix="Trapezoidal section: ")

    def validate(self, prefix: str = "") -> list[str]:
        errors: list[str] = require_positive(self.bottom_width, "bottom_width", prefix)
        if not is_real(self.side_slope):
            errors.append(f"{prefix}side_slope must be a number (got {self.side_slope!r}).")
        elif not math.isfinite(self.side_slope) or self.side_slope < 0:
            errors.append(f"{prefix}side_slope must be zero or greater (got {self.side_slope}).")
        return errors

    @property
    def max_depth(self) -> float:
        return math.inf

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "bottom_width": self.bottom_width, "side_slope": self.side_slope}


@dataclass(frozen=True, slots=True)
class TriangularSection(Validatable):
    """V-shaped channel with symmetric side slopes."""

    shape: ClassVar[ChannelShape] = ChannelShape.TRIANGULAR
    side_slope: float

    def __post_init__(self) -> None:
        self.assert_valid(prefix="Triangular section: ")

    def validate(self, prefix: str = "") -> list[str]:
        return require_positive(self.side_slope, "side_slope", prefix)

    @property
    def max_depth(self) -> float:
        return math.inf

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "side_slope": self.side_slope}


@dataclass(frozen=True, slots=True)
class CircularSection(Validatable):
    """Partially full circular conduit."""

    shape: ClassVar[ChannelShape] = ChannelShape.CIRCULAR
    diameter: float

    def __post_init__(self) -> None:
        self.assert_valid(prefix="Circular section: ")

    def validate(self, prefix: str = "") -> list[str]:
        return require_positive(self.diameter, "diameter", prefix)

    @property
    def max_depth(self) -> float:
        return self.diameter

    def to_dict(self) -> dict[str, Any]:
        return {"shape": self.shape.value, "diameter": self.diameter}


ChannelGeometry = Union[RectangularSection, TrapezoidalSection, TriangularSection, CircularSection]

SECTION_TYPES: tuple[type, ...] = (RectangularSection, TrapezoidalSection, TriangularSection, CircularSection)

# Boundary keys per shape; camelCase aliases come from the form payloads.
_PARAMETER_ALIASES: dict[str, tuple[str, ...]] = {
    "bottom_width": ("bottom_width", "bottomWidth", "width"),
    "side_slope": ("side_slope", "sideSlope"),
    "diameter": ("diameter",),
}

_REQUIRED_PARAMETERS: dict[ChannelShape, tuple[str, ...]] = {
    ChannelShape.RECTANGULAR: ("bottom_width",),
    ChannelShape.TRAPEZOIDAL: ("bottom_width", "side_slope"),
    ChannelShape.TRIANGULAR: ("side_slope",),
    ChannelShape.CIRCULAR: ("diameter",),
}


def geometry_from_mapping(entry: Mapping[str, Any]) -> ChannelGeometry:
    """
    Build a section from an untyped mapping such as a parsed JSON object.

    Args:
        entry: Mapping with a ``shape`` tag and the parameters that shape needs.

    Returns:
        The matching section dataclass.

    Raises:
        ValidationError: The tag is unknown, a parameter is missing, or a value
            is out of range. All problems are reported together.
    """
    raw_shape: Any = entry.get("shape")
    try:
        shape: ChannelShape = ChannelShape(str(raw_shape).strip().lower())
    except ValueError as exc:
        raise ValidationError([f"Unsupported channel shape '{raw_shape}'."]) from exc

    prefix: str = f"{shape.value.capitalize()} section: "
    errors: list[str] = []
    values: dict[str, float] = {}
    for parameter in _REQUIRED_PARAMETERS[shape]:
        raw: Any = None
        for key in _PARAMETER_ALIASES[parameter]:
            if entry.get(key) is not None:
                raw = entry[key]
                break
        if raw is None:
            errors.append(f"{prefix}{parameter} is required.")
            continue
        try:
            values[parameter] = float(raw)
        except (TypeError, ValueError):
            errors.append(f"{prefix}{parameter} must be a number (got {raw!r}).")
    if errors:
        raise ValidationError(errors)

    if shape is ChannelShape.RECTANGULAR:
        return RectangularSection(bottom_width=values["bottom_width"])
    if shape is ChannelShape.TRAPEZOIDAL:
        return TrapezoidalSection(bottom_width=values["bottom_width"], side_slope=values["side_slope"])
    if shape is ChannelShape.TRIANGULAR:
        return TriangularSection(side_slope=values["side_slope"])
    return CircularSection(diameter=values["diameter"])
