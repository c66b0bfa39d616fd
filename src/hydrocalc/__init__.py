"""Public API for hydrocalc."""

from .analysis import FreeboardRule, analyze_channel, classify_regime
from .catalog import catalog_sizes
from .classes_references import ConvergenceError, InsufficientDataError, UnitSystem, ValidationError
from .config import (
    channel_inputs_from_mapping,
    culvert_params_from_mapping,
    load_channel_inputs_from_json,
    load_culvert_params_from_json,
    solver_options_from_env,
)
from .culvert import evaluate_culvert_scenarios, evaluate_size, fish_passage, outlet_protection, performance_curve
from .geometry import hydraulic_properties, optimal_trapezoid
from .manning import (
    MANNING_COEFFICIENTS,
    ManningCoefficient,
    lining_type_for,
    manning_by_label,
    manning_by_value,
    typical_range,
)
from .models import (
    ChannelGeometry,
    ChannelInputs,
    CircularSection,
    CulvertHydraulics,
    CulvertParams,
    CulvertSize,
    EnvironmentalFactors,
    FishPassage,
    FreeboardRecommendation,
    HydraulicProperties,
    HydraulicResults,
    OutletProtection,
    PerformancePoint,
    RatingCurve,
    RatingCurvePoint,
    RectangularSection,
    ScenarioReport,
    ScenarioResult,
    TrapezoidalSection,
    TriangularSection,
    geometry_from_mapping,
)
from .rating_curve import generate_rating_curve, interpolate_depth, rating_curve_dataframe
from .results import CalculationIssue, CalculationResult, ErrorKind
from .solver import SolverOptions, SolverResult, critical_depth, normal_depth
from .type_helpers import (
    ChannelShape,
    ControlType,
    CulvertMaterial,
    CulvertShape,
    DebrisLoad,
    EnergyDissipator,
    EntranceType,
    FlowRegime,
    LiningType,
    ScourPotential,
)

__all__: list[str] = [
    "FreeboardRule",
    "analyze_channel",
    "classify_regime",
    "catalog_sizes",
    "ConvergenceError",
    "InsufficientDataError",
    "UnitSystem",
    "ValidationError",
    "channel_inputs_from_mapping",
    "culvert_params_from_mapping",
    "load_channel_inputs_from_json",
    "load_culvert_params_from_json",
    "solver_options_from_env",
    "evaluate_culvert_scenarios",
    "evaluate_size",
    "fish_passage",
    "outlet_protection",
    "performance_curve",
    "hydraulic_properties",
    "optimal_trapezoid",
    "MANNING_COEFFICIENTS",
    "ManningCoefficient",
    "lining_type_for",
    "manning_by_label",
    "manning_by_value",
    "typical_range",
    "ChannelGeometry",
    "ChannelInputs",
    "CircularSection",
    "CulvertHydraulics",
    "CulvertParams",
    "CulvertSize",
    "EnvironmentalFactors",
    "FishPassage",
    "FreeboardRecommendation",
    "HydraulicProperties",
    "HydraulicResults",
    "OutletProtection",
    "PerformancePoint",
    "RatingCurve",
    "RatingCurvePoint",
    "RectangularSection",
    "ScenarioReport",
    "ScenarioResult",
    "TrapezoidalSection",
    "TriangularSection",
    "geometry_from_mapping",
    "generate_rating_curve",
    "interpolate_depth",
    "rating_curve_dataframe",
    "CalculationIssue",
    "CalculationResult",
    "ErrorKind",
    "SolverOptions",
    "SolverResult",
    "critical_depth",
    "normal_depth",
    "ChannelShape",
    "ControlType",
    "CulvertMaterial",
    "CulvertShape",
    "DebrisLoad",
    "EnergyDissipator",
    "EntranceType",
    "FlowRegime",
    "LiningType",
    "ScourPotential",
]
