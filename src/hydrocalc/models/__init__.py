"""
Domain models for open-channel and culvert calculations.

Inputs (`ChannelInputs`, `CulvertParams`) validate through the `Validatable`
protocol; results are frozen records created once per calculation.
"""

from __future__ import annotations

from .base import Validatable
from .geometry import (
    ChannelGeometry,
    CircularSection,
    RectangularSection,
    TrapezoidalSection,
    TriangularSection,
    geometry_from_mapping,
)
from .channel import (
    ChannelInputs,
    FreeboardRecommendation,
    HydraulicProperties,
    HydraulicResults,
    RatingCurve,
    RatingCurvePoint,
)
from .culvert import (
    CulvertHydraulics,
    CulvertParams,
    CulvertSize,
    EnvironmentalFactors,
    FishPassage,
    OutletProtection,
    PerformancePoint,
    ScenarioReport,
    ScenarioResult,
)

__all__: list[str] = [
    "Validatable",
    "ChannelGeometry",
    "CircularSection",
    "RectangularSection",
    "TrapezoidalSection",
    "TriangularSection",
    "geometry_from_mapping",
    "ChannelInputs",
    "FreeboardRecommendation",
    "HydraulicProperties",
    "HydraulicResults",
    "RatingCurve",
    "RatingCurvePoint",
    "CulvertHydraulics",
    "CulvertParams",
    "CulvertSize",
    "EnvironmentalFactors",
    "FishPassage",
    "OutletProtection",
    "PerformancePoint",
    "ScenarioReport",
    "ScenarioResult",
]
