"""Simple CLI entry point for hydrocalc."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Sequence

import pandas as pd
from loguru import logger

from .analysis import analyze_channel
from .classes_references import ValidationError
from .config import (
    load_channel_inputs_from_json,
    load_culvert_params_from_json,
    rating_curve_options_from_mapping,
    read_json_mapping,
    solver_options_from_env,
)
from .culvert import evaluate_culvert_scenarios
from .models.channel import ChannelInputs
from .models.culvert import CulvertParams, ScenarioResult
from .rating_curve import generate_rating_curve, rating_curve_dataframe
from .solver import SolverOptions
from .results import CalculationResult


def main(argv: Sequence[str] | None = None) -> int:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Open-channel and culvert hydraulic calculations."
    )
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log INFO (-v) or DEBUG (-vv) to stderr.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    channel_parser: argparse.ArgumentParser = subparsers.add_parser(
        name="channel",
        help="Solve normal and critical depth for one channel and flow.",
    )
    rating_parser: argparse.ArgumentParser = subparsers.add_parser(
        name="rating-curve",
        help="Generate a depth-discharge rating curve for a channel.",
    )
    rating_parser.add_argument("--points", type=int, help="Initial number of grid points (default 20).")
    culvert_parser: argparse.ArgumentParser = subparsers.add_parser(
        name="culvert",
        help="Rank standard culvert sizes for a crossing.",
    )
    for sub in (channel_parser, rating_parser, culvert_parser):
        sub.add_argument("--config", type=Path, required=True, help="Path to the JSON configuration file.")
        sub.add_argument(
            "--validate-only",
            action="store_true",
            help="Validate the configuration without running the calculation.",
        )
    for sub in (rating_parser, culvert_parser):
        sub.add_argument("--workers", type=int, default=None, help="Thread pool size for independent solves.")

    args: argparse.Namespace = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.verbose)
    if args.command == "channel":
        return _run_channel(config_path=args.config, validate_only=args.validate_only)
    if args.command == "rating-curve":
        return _run_rating_curve(
            config_path=args.config,
            validate_only=args.validate_only,
            points=args.points,
            workers=args.workers,
        )
    if args.command == "culvert":
        return _run_culvert(config_path=args.config, validate_only=args.validate_only, workers=args.workers)
    parser.error(message=f"Unhandled command {args.command}")
    return 1


def _configure_logging(verbosity: int) -> None:
    logger.remove()
    level: str = "WARNING" if verbosity <= 0 else "INFO" if verbosity == 1 else "DEBUG"
    logger.add(sys.stderr, level=level)


def _run_channel(config_path: Path, validate_only: bool) -> int:
    inputs: ChannelInputs = _load_channel(config_path)
    if validate_only:
        print(f"{config_path} is valid.")
        return 0
    result = analyze_channel(inputs, options=_solver_options())
    if result.success and result.data is not None:
        frame = pd.Series(result.data.to_dict(), name="value").to_frame()
        print(frame.to_string())
    return _report(result)


def _run_rating_curve(config_path: Path, validate_only: bool, points: int | None, workers: int | None) -> int:
    inputs: ChannelInputs = _load_channel(config_path)
    try:
        options: dict[str, Any] = rating_curve_options_from_mapping(read_json_mapping(config_path))
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    if points is not None:
        options["points"] = points
    if validate_only:
        print(f"{config_path} is valid.")
        return 0
    result = generate_rating_curve(inputs, workers=workers, options=_solver_options(), **options)
    if result.success and result.data is not None:
        print(rating_curve_dataframe(result.data).to_string())
    return _report(result)


def _run_culvert(config_path: Path, validate_only: bool, workers: int | None) -> int:
    try:
        params: CulvertParams = _load_culvert(config_path)
        params.assert_valid()
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    if validate_only:
        print(f"{config_path} is valid.")
        return 0
    result = evaluate_culvert_scenarios(params, workers=workers)
    if result.success and result.data is not None:
        rows: list[dict[str, Any]] = [
            _scenario_row(scenario, params) for scenarios in result.data.scenarios.values() for scenario in scenarios
        ]
        print(f"Entrance: {params.entrance_type.label}")
        best: ScenarioResult | None = result.data.best()
        if rows and best is not None:
            print(pd.DataFrame(rows).to_string(index=False))
            print(
                f"Recommended: {best.size.label(params.units)} (headwater {best.hydraulics.headwater:.3f} "
                f"{params.units.length_unit}, {best.hydraulics.control.value} control)"
            )
        else:
            print("No feasible culvert sizes.")
    return _report(result)


def _scenario_row(scenario: ScenarioResult, params: CulvertParams) -> dict[str, Any]:
    hydraulics = scenario.hydraulics
    row: dict[str, Any] = {
        "shape": scenario.shape.value,
        "rank": scenario.rank,
        "size": scenario.size.label(params.units),
        "headwater": round(hydraulics.headwater, 3),
        "control": hydraulics.control.value,
        "outlet_velocity": round(hydraulics.outlet_velocity, 3),
    }
    if scenario.outlet_protection is not None:
        row["scour"] = scenario.outlet_protection.scour_potential.value
        row["dissipator"] = scenario.outlet_protection.energy_dissipator.value
    if scenario.fish_passage is not None:
        row["fish_passable"] = scenario.fish_passage.passable
    return row


def _report(result: CalculationResult[Any]) -> int:
    for warning in result.warnings:
        print(f"warning: {warning}")
    if not result.success:
        for issue in result.errors:
            print(f"error ({issue.kind.value}): {issue.message}", file=sys.stderr)
        return 1
    return 0


def _load_channel(config_path: Path) -> ChannelInputs:
    try:
        _check_suffix(config_path)
        inputs: ChannelInputs = load_channel_inputs_from_json(config_path)
        inputs.assert_valid()
    except (OSError, ValueError) as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc
    return inputs


def _solver_options() -> SolverOptions:
    try:
        return solver_options_from_env()
    except ValidationError as exc:
        raise SystemExit(f"Invalid configuration: {exc}") from exc


def _load_culvert(config_path: Path) -> CulvertParams:
    _check_suffix(config_path)
    return load_culvert_params_from_json(config_path)


def _check_suffix(config_path: Path) -> None:
    if config_path.suffix.lower() != ".json":
        raise ValueError(f"Unsupported configuration extension '{config_path.suffix}'. Use .json.")
