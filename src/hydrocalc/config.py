"""Helpers for loading calculation inputs from configuration files and the environment."""

from __future__ import annotations

import json
import math
import os
from collections.abc import Mapping, Sequence as ABCSequence
from pathlib import Path
from typing import Any, cast

from .classes_references import UnitSystem, ValidationError
from .manning import MANNING_COEFFICIENTS, manning_by_label
from .models.channel import ChannelInputs
from .models.culvert import CulvertParams, EnvironmentalFactors
from .models.geometry import geometry_from_mapping
from .solver import DEFAULT_OPTIONS, SolverOptions
from .type_helpers import CulvertMaterial, CulvertShape, DebrisLoad, EntranceType, TailwaterRatingPoint, coerce_enum

JSONMapping = Mapping[str, Any]

TOLERANCE_ENV = "HYDROCALC_SOLVER_TOLERANCE"
MAX_ITERATIONS_ENV = "HYDROCALC_SOLVER_MAX_ITERATIONS"

_UNIT_ALIASES: dict[str, UnitSystem] = {
    "EN": UnitSystem.ENGLISH,
    "ENGLISH": UnitSystem.ENGLISH,
    "IMPERIAL": UnitSystem.ENGLISH,
    "US": UnitSystem.ENGLISH,
    "SI": UnitSystem.SI,
    "METRIC": UnitSystem.SI,
}

_SHAPE_ALL: frozenset[str] = frozenset({"", "all", "any"})


def read_json_mapping(path: Path) -> JSONMapping:
    """Read a JSON file whose top level must be an object."""

    raw_data: Any = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw_data, Mapping):
        raise ValueError("Top-level JSON document must be an object.")
    return cast(JSONMapping, raw_data)


def load_channel_inputs_from_json(path: Path) -> ChannelInputs:
    """Read a JSON file from disk and create `ChannelInputs`."""

    return channel_inputs_from_mapping(read_json_mapping(path))


def load_culvert_params_from_json(path: Path) -> CulvertParams:
    """Read a JSON file from disk and create `CulvertParams`."""

    return culvert_params_from_mapping(read_json_mapping(path))


def channel_inputs_from_mapping(config: JSONMapping) -> ChannelInputs:
    """
    Build `ChannelInputs` from a parsed configuration mapping.

    Keys are snake_case; the camelCase spellings used by form payloads
    (``flowRate``, ``manningN``) are accepted too. A ``lining`` label from the
    Manning table may stand in for an explicit ``manning_n``. The ``geometry``
    object goes through `geometry_from_mapping`.

    Raises:
        ValueError: A required field is missing or has the wrong type.
        ValidationError: The geometry is malformed.
    """
    geometry_raw: Any = config.get("geometry")
    if not isinstance(geometry_raw, Mapping):
        raise ValueError("Channel 'geometry' must be an object with a 'shape' tag.")
    geometry = geometry_from_mapping(cast(JSONMapping, geometry_raw))
    return ChannelInputs(
        flow_rate=_require_number(config, "flow_rate", "channel", aliases=("flowRate", "flow")),
        slope=_require_number(config, "slope", "channel"),
        manning_n=_manning_n(config),
        geometry=geometry,
        units=_parse_unit_system(_lookup(config, "units", default=UnitSystem.SI.cli_flag)),
    )


def _manning_n(config: JSONMapping) -> float:
    """Explicit ``manning_n`` when present, otherwise the table value for ``lining``."""

    aliases: tuple[str, ...] = ("manningN", "n")
    label: Any = _lookup(config, "lining")
    if label is None or _lookup(config, "manning_n", aliases=aliases) is not None:
        return _require_number(config, "manning_n", "channel", aliases=aliases)
    coefficient = manning_by_label(str(label))
    if coefficient is None:
        known: str = ", ".join(entry.label for entry in MANNING_COEFFICIENTS)
        raise ValueError(f"Unknown lining '{label}' in channel; expected one of: {known}")
    return coefficient.value


def rating_curve_options_from_mapping(config: JSONMapping) -> dict[str, Any]:
    """Return keyword arguments for `generate_rating_curve` from an optional ``rating_curve`` block."""

    section_raw: Any = _lookup(config, "rating_curve", aliases=("ratingCurve",), default={})
    if not isinstance(section_raw, Mapping):
        raise ValueError("'rating_curve' section must be an object.")
    section: JSONMapping = cast(JSONMapping, section_raw)
    options: dict[str, Any] = {}
    if (points := _lookup(section, "points")) is not None:
        options["points"] = int(points)
    for key, alias in (
        ("max_multiple", "maxMultiple"),
        ("min_fraction", "minFraction"),
        ("curvature_threshold", "curvatureThreshold"),
    ):
        value: Any = _lookup(section, key, aliases=(alias,))
        if value is not None:
            options[key] = float(value)
    if (refinements := _lookup(section, "max_refinements", aliases=("maxRefinements",))) is not None:
        options["max_refinements"] = int(refinements)
    return options


def culvert_params_from_mapping(config: JSONMapping) -> CulvertParams:
    """
    Build `CulvertParams` from a parsed configuration mapping.

    Project metadata may sit at the top level or inside a ``project`` object.
    A missing or ``"all"`` shape evaluates every catalog shape.

    Raises:
        ValueError: A required field is missing or an enum value is unknown.
    """
    project_raw: Any = config.get("project", {})
    if not isinstance(project_raw, Mapping):
        raise ValueError("Project section must be an object.")
    project: JSONMapping = cast(JSONMapping, project_raw)
    context: str = "culvert"

    roadway: Any = _lookup(config, "roadway_elevation", aliases=("roadwayElevation",))
    blockage: Any = _lookup(config, "blockage_factor", aliases=("blockageFactor",))
    return_period: Any = _lookup(config, "return_period", aliases=("returnPeriod",))
    max_width: Any = _lookup(config, "max_width", aliases=("maxWidth",))
    return CulvertParams(
        design_flow=_require_number(config, "design_flow", context, aliases=("designFlow",)),
        upstream_invert=_require_number(config, "upstream_invert", context, aliases=("upstreamInvert",)),
        downstream_invert=_require_number(config, "downstream_invert", context, aliases=("downstreamInvert",)),
        culvert_length=_require_number(config, "culvert_length", context, aliases=("culvertLength",)),
        max_headwater=_require_number(config, "max_headwater", context, aliases=("maxHeadwater",)),
        stream_slope=_optional_number(config, "stream_slope", 0.0, aliases=("streamSlope",)),
        project_name=_metadata(project, config, "name", ("project_name", "projectName")),
        location=_metadata(project, config, "location", ("location",)),
        design_date=_metadata(project, config, "design_date", ("design_date", "designDate")),
        return_period=None if return_period is None else float(return_period),
        tailwater_depth=_optional_number(config, "tailwater_depth", 0.0, aliases=("tailwaterDepth",)),
        tailwater_rating=_parse_tailwater_rating(
            _lookup(config, "tailwater_rating", aliases=("tailwaterRatingCurve", "tailwaterRating"), default=[])
        ),
        material=_parse_enum(CulvertMaterial, _lookup(config, "material"), CulvertMaterial.CONCRETE, "culvert material"),
        shape=_parse_shape(_lookup(config, "shape")),
        entrance_type=_parse_enum(
            EntranceType, _lookup(config, "entrance_type", aliases=("entranceType",)), EntranceType.HEADWALL, "entrance type"
        ),
        barrels=int(_lookup(config, "barrels", aliases=("multipleCulverts", "number_of_barrels"), default=1)),
        blockage_factor=None if blockage is None else float(blockage),
        skew_angle=_optional_number(config, "skew_angle", 0.0, aliases=("skewAngle",)),
        min_cover=_optional_number(config, "min_cover", 0.0, aliases=("minCoverDepth", "min_cover_depth")),
        max_width=math.inf if max_width is None else float(max_width),
        roadway_elevation=None if roadway is None else float(roadway),
        environment=_parse_environment(_lookup(config, "environment", aliases=("environmentalFactors",), default={})),
        units=_parse_unit_system(_lookup(config, "units", default=UnitSystem.ENGLISH.cli_flag)),
    )


def solver_options_from_env(environ: Mapping[str, str] | None = None) -> SolverOptions:
    """
    Resolve solver settings from environment variables.

    `HYDROCALC_SOLVER_TOLERANCE` overrides the relative discharge tolerance and
    `HYDROCALC_SOLVER_MAX_ITERATIONS` the iteration cap; unset variables keep
    the library defaults.
    """
    env: Mapping[str, str] = os.environ if environ is None else environ
    tolerance_raw: str | None = env.get(TOLERANCE_ENV)
    iterations_raw: str | None = env.get(MAX_ITERATIONS_ENV)
    try:
        tolerance: float = float(tolerance_raw) if tolerance_raw else DEFAULT_OPTIONS.rel_tolerance
        iterations: int = int(iterations_raw) if iterations_raw else DEFAULT_OPTIONS.max_iterations
    except ValueError as exc:
        raise ValidationError([f"Invalid solver setting in the environment: {exc}"]) from exc
    return SolverOptions(
        rel_tolerance=tolerance,
        depth_tolerance=DEFAULT_OPTIONS.depth_tolerance,
        max_iterations=iterations,
        min_depth=DEFAULT_OPTIONS.min_depth,
    )


def _metadata(project: JSONMapping, config: JSONMapping, key: str, top_level_keys: tuple[str, ...]) -> str:
    """Project metadata from the ``project`` block, falling back to top-level keys."""

    value: Any = _lookup(project, key, aliases=top_level_keys)
    if value is None:
        value = _lookup(config, top_level_keys[0], aliases=top_level_keys[1:], default="")
    return str(value)


def _parse_environment(value: Any) -> EnvironmentalFactors:
    if not isinstance(value, Mapping):
        raise ValueError("'environment' section must be an object.")
    entry: JSONMapping = cast(JSONMapping, value)
    passage_raw: Any = _lookup(entry, "fish_passage", aliases=("fishPassageParams",), default={})
    passage: JSONMapping = cast(JSONMapping, passage_raw) if isinstance(passage_raw, Mapping) else {}
    max_velocity: Any = _lookup(
        entry, "max_passage_velocity", default=_lookup(passage, "max_velocity", aliases=("lowFlowVelocity",))
    )
    min_depth: Any = _lookup(entry, "min_passage_depth", default=_lookup(passage, "min_depth", aliases=("lowFlowDepth",)))
    return EnvironmentalFactors(
        debris_load=_parse_enum(DebrisLoad, _lookup(entry, "debris_load", aliases=("debrisLoad",)), DebrisLoad.LOW, "debris load"),
        sediment_transport=bool(_lookup(entry, "sediment_transport", aliases=("sedimentTransport",), default=False)),
        aquatic_passage=bool(_lookup(entry, "aquatic_passage", aliases=("aquaticPassage",), default=False)),
        max_passage_velocity=None if max_velocity is None else float(max_velocity),
        min_passage_depth=None if min_depth is None else float(min_depth),
    )


def _parse_tailwater_rating(value: Any) -> tuple[TailwaterRatingPoint, ...]:
    """Accept ``[{"flow": q, "depth": d}, ...]`` or ``[[q, d], ...]``, sorted by flow."""

    if not isinstance(value, ABCSequence) or isinstance(value, (str, bytes)):
        raise ValueError("'tailwater_rating' must be a list of points.")
    points: list[TailwaterRatingPoint] = []
    for item in cast(ABCSequence[Any], value):
        if isinstance(item, Mapping):
            mapping: JSONMapping = cast(JSONMapping, item)
            points.append((float(mapping["flow"]), float(mapping["depth"])))
        elif isinstance(item, ABCSequence) and not isinstance(item, (str, bytes)) and len(item) == 2:
            pair: ABCSequence[Any] = cast(ABCSequence[Any], item)
            points.append((float(pair[0]), float(pair[1])))
        else:
            raise ValueError(f"Tailwater rating point {item!r} must be {{flow, depth}} or [flow, depth].")
    return tuple(sorted(points))


def _parse_unit_system(value: Any) -> UnitSystem:
    """
    Coerce a configuration string into the corresponding UnitSystem enum member.

    Accepts the CLI flags (``EN``/``SI``) and the common spellings ``english``,
    ``imperial``, ``us`` and ``metric``, ignoring case and whitespace.
    """
    if isinstance(value, UnitSystem):
        return value
    normalized: str = str(value).strip().upper()
    try:
        return _UNIT_ALIASES[normalized]
    except KeyError as exc:
        raise ValueError(f"Unsupported unit system '{value}'") from exc


def _parse_shape(value: Any) -> CulvertShape | None:
    if value is None or (isinstance(value, str) and value.strip().lower() in _SHAPE_ALL):
        return None
    return _parse_enum(CulvertShape, value, CulvertShape.CIRCULAR, "culvert shape")


def _parse_enum(enum_cls: Any, value: Any, default: Any, label: str) -> Any:
    try:
        return coerce_enum(enum_cls, value, default=default)
    except (ValueError, KeyError) as exc:
        raise ValueError(f"Unsupported {label} '{value}'") from exc


def _lookup(entry: JSONMapping, key: str, *, aliases: tuple[str, ...] = (), default: Any = None) -> Any:
    """Return the first present value among `key` and its aliases."""

    for candidate in (key, *aliases):
        if candidate in entry and entry[candidate] is not None:
            return entry[candidate]
    return default


def _optional_number(entry: JSONMapping, key: str, default: float, *, aliases: tuple[str, ...] = ()) -> float:
    value: Any = _lookup(entry, key, aliases=aliases)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{key}' must be a number (got {value!r})") from exc


def _require_number(entry: JSONMapping, key: str, context: str, *, aliases: tuple[str, ...] = ()) -> float:
    """Fetch a mandatory numeric field or raise a ValueError with context."""
    value: Any = _lookup(entry, key, aliases=aliases)
    if value is None:
        raise ValueError(f"Missing required field '{key}' in {context}")
    if isinstance(value, bool):
        raise ValueError(f"Field '{key}' in {context} must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Field '{key}' in {context} must be a number") from exc
