"""Targeted validation coverage for the hydrocalc domain model."""

from __future__ import annotations

import numpy as np
import pytest

from hydrocalc import (
    CalculationResult,
    ConvergenceError,
    CulvertParams,
    EnvironmentalFactors,
    ErrorKind,
    InsufficientDataError,
    RectangularSection,
    ValidationError,
    evaluate_culvert_scenarios,
    hydraulic_properties,
)

from .sample_data import build_culvert_params


def test_section_collects_every_error() -> None:
    with pytest.raises(ValidationError) as excinfo:
        RectangularSection(bottom_width=-2.0)
    assert excinfo.value.errors == ["Rectangular section: bottom_width must be greater than zero (got -2.0)."]


def test_culvert_reports_all_problems_at_once() -> None:
    params: CulvertParams = build_culvert_params(barrels=0, skew_angle=60.0, culvert_length=-5.0)
    errors: list[str] = params.validate("Crossing: ")
    assert any(message.startswith("Crossing: barrels must be an integer") for message in errors)
    assert any("skew_angle must be between 0 and 45" in message for message in errors)
    assert any("culvert_length must be greater than zero" in message for message in errors)
    with pytest.raises(ValidationError, match="barrels"):
        params.assert_valid()


def test_roadway_must_sit_above_upstream_invert() -> None:
    errors: list[str] = build_culvert_params(roadway_elevation=99.0).validate()
    assert any("roadway_elevation must be above upstream_invert" in message for message in errors)


def test_tailwater_rating_flows_must_increase() -> None:
    errors: list[str] = build_culvert_params(tailwater_rating=((10.0, 1.0), (5.0, 2.0))).validate()
    assert any("strictly increasing" in message for message in errors)
    single: list[str] = build_culvert_params(tailwater_rating=((10.0, 1.0),)).validate()
    assert any("at least two points" in message for message in single)


def test_environment_passage_limits_must_be_positive() -> None:
    environment = EnvironmentalFactors(aquatic_passage=True, max_passage_velocity=-1.0)
    errors: list[str] = build_culvert_params(environment=environment).validate()
    assert any(message.startswith("environment: ") for message in errors)


def test_from_exception_extracts_fields() -> None:
    exc = ValidationError(["Channel: flow_rate must be greater than zero (got -1).", "Something else went wrong."])
    result: CalculationResult[float] = CalculationResult.from_exception(exc, warnings=["note"])
    assert not result.success
    assert [issue.field for issue in result.errors] == ["flow_rate", None]
    assert result.warnings == ["note"]
    assert result.to_dict()["errors"][0] == {
        "kind": "validation",
        "message": "Channel: flow_rate must be greater than zero (got -1).",
        "field": "flow_rate",
    }


@pytest.mark.parametrize(
    ("exc", "kind", "raised"),
    [
        (ConvergenceError("no root"), ErrorKind.CONVERGENCE, ConvergenceError),
        (InsufficientDataError("too few points"), ErrorKind.INSUFFICIENT_DATA, InsufficientDataError),
    ],
)
def test_unwrap_reraises_matching_exception(exc: Exception, kind: ErrorKind, raised: type[Exception]) -> None:
    result: CalculationResult[float] = CalculationResult.from_exception(exc)
    assert result.errors[0].kind is kind
    assert result.error_messages == [str(exc)]
    with pytest.raises(raised):
        result.unwrap()


def test_unexpected_exceptions_propagate() -> None:
    with pytest.raises(KeyError):
        CalculationResult.from_exception(KeyError("boom"))


def test_ok_result_unwraps() -> None:
    result: CalculationResult[float] = CalculationResult.ok(1.5, warnings=("check",))
    assert result.unwrap() == 1.5
    assert result.to_dict() == {"success": True, "data": 1.5, "errors": [], "warnings": ["check"]}


def test_non_numeric_roadway_elevation_is_a_validation_failure() -> None:
    result = evaluate_culvert_scenarios(build_culvert_params(roadway_elevation="105"))
    assert not result.success
    assert result.errors[0].kind is ErrorKind.VALIDATION
    assert any("roadway_elevation must be a finite number" in message for message in result.error_messages)


@pytest.mark.parametrize("point", [("10", 1.0), (10.0,), 5.0, (None, 2.0)])
def test_malformed_tailwater_rating_entry(point: object) -> None:
    errors: list[str] = build_culvert_params(tailwater_rating=(point, (50.0, 2.0))).validate()
    assert any("tailwater_rating[0] must be a (flow, depth) pair" in message for message in errors)


def test_numpy_scalars_are_accepted() -> None:
    section = RectangularSection(bottom_width=np.float64(2.0))
    props = hydraulic_properties(section, np.float32(1.0))
    assert props.area == pytest.approx(2.0)
    assert build_culvert_params(design_flow=np.float64(100.0), skew_angle=np.float32(10.0)).validate() == []


def test_booleans_are_not_numbers() -> None:
    with pytest.raises(ValidationError, match="must be a number"):
        RectangularSection(bottom_width=True)


def test_numpy_integers_count_as_integers() -> None:
    assert build_culvert_params(barrels=np.int64(2)).validate() == []
