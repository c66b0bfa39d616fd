"""Manning roughness coefficients for common channel linings."""

from __future__ import annotations

from dataclasses import dataclass

from .type_helpers import LiningType

VALUE_MATCH_TOLERANCE = 0.001


@dataclass(frozen=True, slots=True)
class ManningCoefficient:
    """Design n for one lining with its typical (min, max) spread."""

    label: str
    value: float
    lining: LiningType
    description: str
    range: tuple[float, float]


MANNING_COEFFICIENTS: tuple[ManningCoefficient, ...] = (
    ManningCoefficient("Concrete", 0.013, LiningType.HARD_SURFACE, "Smooth concrete channels", (0.010, 0.016)),
    ManningCoefficient(
        "Earth, Clean, Straight", 0.022, LiningType.EARTH_LINING, "Well-maintained earth channels", (0.020, 0.025)
    ),
    ManningCoefficient(
        "Earth, Winding, Some Weeds",
        0.025,
        LiningType.EARTH_LINING,
        "Natural earth channels with vegetation",
        (0.023, 0.030),
    ),
    ManningCoefficient(
        "Gravel, Firm, Clean", 0.025, LiningType.EARTH_LINING, "Compacted gravel channels", (0.023, 0.027)
    ),
    ManningCoefficient(
        "Rock Cut, Smooth", 0.035, LiningType.HARD_SURFACE, "Excavated rock channels, smooth finish", (0.030, 0.040)
    ),
    ManningCoefficient(
        "Rock Cut, Jagged", 0.040, LiningType.HARD_SURFACE, "Excavated rock channels, rough finish", (0.035, 0.045)
    ),
    ManningCoefficient("Grass, Short", 0.030, LiningType.EARTH_LINING, "Grass-lined channels, mowed", (0.025, 0.035)),
    ManningCoefficient("Grass, High", 0.035, LiningType.EARTH_LINING, "Grass-lined channels, unmowed", (0.030, 0.050)),
    ManningCoefficient(
        "Brush & Weeds, Dense", 0.050, LiningType.EARTH_LINING, "Heavy vegetation and brush", (0.035, 0.080)
    ),
    ManningCoefficient("Asphalt", 0.016, LiningType.HARD_SURFACE, "Asphalt-lined channels", (0.013, 0.020)),
    ManningCoefficient("Brick", 0.015, LiningType.HARD_SURFACE, "Brick-lined channels", (0.012, 0.018)),
    ManningCoefficient("Rubble Masonry", 0.030, LiningType.HARD_SURFACE, "Stone masonry channels", (0.025, 0.035)),
)

TYPICAL_RANGES: dict[LiningType, tuple[float, float]] = {
    LiningType.HARD_SURFACE: (0.010, 0.045),
    LiningType.EARTH_LINING: (0.020, 0.080),
    LiningType.CUSTOM: (0.008, 0.200),
}


def manning_by_label(label: str) -> ManningCoefficient | None:
    """Exact, case-sensitive lookup by lining label."""

    for coefficient in MANNING_COEFFICIENTS:
        if coefficient.label == label:
            return coefficient
    return None


def manning_by_value(value: float) -> ManningCoefficient | None:
    """
    First table entry whose n lies within 0.001 of `value`.

    Several linings share a value (gravel and winding earth are both 0.025);
    table order decides which one is returned.
    """
    for coefficient in MANNING_COEFFICIENTS:
        if abs(coefficient.value - value) < VALUE_MATCH_TOLERANCE:
            return coefficient
    return None


def lining_type_for(value: float) -> LiningType:
    coefficient: ManningCoefficient | None = manning_by_value(value)
    return coefficient.lining if coefficient is not None else LiningType.CUSTOM


def typical_range(lining: LiningType) -> tuple[float, float]:
    return TYPICAL_RANGES[lining]
