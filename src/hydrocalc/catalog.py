"""Standard culvert sizes by shape and material.

Catalog dimensions are stored in US customary units (pipe diameters in inches,
box and arch dimensions in feet) and converted on demand.
"""

from __future__ import annotations

import math

from .classes_references import UnitSystem
from .models.culvert import CulvertSize
from .type_helpers import CulvertMaterial, CulvertShape
from .units import feet_to_metres, inches_to_feet, square_feet_to_square_metres

CIRCULAR_DIAMETERS_IN: dict[CulvertMaterial, tuple[int, ...]] = {
    CulvertMaterial.CONCRETE: (
        12, 15, 18, 21, 24, 27, 30, 33, 36, 42, 48, 54, 60, 66, 72, 78, 84, 90, 96, 102, 108, 120, 144,
    ),
    CulvertMaterial.CORRUGATED_METAL: (12, 15, 18, 24, 30, 36, 42, 48, 54, 60, 66, 72, 84, 96, 108, 120, 144),
    CulvertMaterial.HDPE: (4, 6, 8, 10, 12, 15, 18, 24, 30, 36, 42, 48, 54, 60, 72),
}

# Precast box (width, height) in feet.
BOX_SIZES_FT: tuple[tuple[float, float], ...] = (
    (2, 2), (2, 3), (2, 4), (3, 2), (3, 3), (3, 4), (3, 5), (4, 2), (4, 3), (4, 4), (4, 5), (4, 6),
    (5, 3), (5, 4), (5, 5), (5, 6), (6, 3), (6, 4), (6, 5), (6, 6), (6, 7), (7, 4), (7, 5), (7, 6),
    (7, 7), (8, 4), (8, 5), (8, 6), (8, 7), (8, 8), (10, 4), (10, 5), (10, 6), (10, 8), (10, 10),
    (12, 6), (12, 8), (12, 10), (12, 12), (14, 8), (14, 10), (14, 12), (14, 14), (16, 10), (16, 12),
    (16, 14), (16, 16),
)

# Pipe-arch (span, rise, area) in feet and square feet.
ARCH_SIZES_FT: tuple[tuple[float, float, float], ...] = (
    (2.17, 1.58, 2.8),
    (2.83, 2.08, 4.8),
    (3.5, 2.5, 7.2),
    (4.17, 3.0, 10.2),
    (5.0, 3.5, 14.2),
    (5.83, 4.0, 18.8),
    (6.5, 4.5, 23.7),
    (7.17, 5.0, 29.0),
    (8.0, 5.5, 35.2),
    (9.0, 6.0, 42.8),
    (10.0, 6.5, 51.2),
    (11.0, 7.0, 60.5),
)

BOX_AND_ARCH_MATERIALS: frozenset[CulvertMaterial] = frozenset(
    {CulvertMaterial.CONCRETE, CulvertMaterial.CORRUGATED_METAL}
)


def _english_sizes(shape: CulvertShape, material: CulvertMaterial) -> list[CulvertSize]:
    if shape is CulvertShape.CIRCULAR:
        sizes: list[CulvertSize] = []
        for inches in CIRCULAR_DIAMETERS_IN.get(material, ()):
            diameter: float = inches_to_feet(inches)
            sizes.append(CulvertSize(shape, span=diameter, rise=diameter, area=math.pi * diameter * diameter / 4))
        return sizes
    if material not in BOX_AND_ARCH_MATERIALS:
        return []
    if shape is CulvertShape.BOX:
        return [CulvertSize(shape, span=float(w), rise=float(h), area=float(w * h)) for w, h in BOX_SIZES_FT]
    return [CulvertSize(shape, span=span, rise=rise, area=area) for span, rise, area in ARCH_SIZES_FT]


def _to_si(size: CulvertSize) -> CulvertSize:
    return CulvertSize(
        size.shape,
        span=feet_to_metres(size.span),
        rise=feet_to_metres(size.rise),
        area=square_feet_to_square_metres(size.area),
    )


def catalog_sizes(
    shape: CulvertShape, material: CulvertMaterial, units: UnitSystem = UnitSystem.ENGLISH
) -> list[CulvertSize]:
    """
    Return the catalog for `shape` in `material`, smallest opening first.

    Ties in area are broken by rise. An empty list means the material is not
    manufactured in that shape.
    """
    sizes: list[CulvertSize] = _english_sizes(shape, material)
    if units is UnitSystem.SI:
        sizes = [_to_si(size) for size in sizes]
    return sorted(sizes, key=lambda size: (size.area, size.rise))
