"""Rating curve ordering, refinement and failure handling."""

from __future__ import annotations

import pandas as pd
import pytest

from hydrocalc import (
    ChannelInputs,
    CircularSection,
    ErrorKind,
    RatingCurve,
    RectangularSection,
    UnitSystem,
    generate_rating_curve,
    interpolate_depth,
    normal_depth,
    rating_curve_dataframe,
)

from .sample_data import build_channel_inputs, build_rectangular_inputs


def test_curve_is_strictly_increasing_in_flow() -> None:
    inputs: ChannelInputs = build_channel_inputs()
    result = generate_rating_curve(inputs, points=15)
    curve: RatingCurve = result.unwrap()
    flows: list[float] = curve.flows
    depths: list[float] = curve.depths
    assert all(later > earlier for earlier, later in zip(flows, flows[1:]))
    assert len(set(flows)) == len(flows)
    assert all(later >= earlier for earlier, later in zip(depths, depths[1:]))
    assert flows[0] == pytest.approx(0.01 * inputs.flow_rate)
    assert flows[-1] == pytest.approx(2.0 * inputs.flow_rate)


def test_points_match_normal_depth() -> None:
    inputs: ChannelInputs = build_rectangular_inputs()
    curve: RatingCurve = generate_rating_curve(inputs, points=8).unwrap()
    for point in curve.points:
        solved = normal_depth(inputs.geometry, point.flow, inputs.slope, inputs.manning_n, inputs.units)
        assert point.depth == pytest.approx(solved.depth, rel=1e-9)
        assert point.velocity == pytest.approx(point.flow / point.area)


def test_refinement_is_bounded() -> None:
    inputs: ChannelInputs = build_rectangular_inputs()
    curve: RatingCurve = generate_rating_curve(inputs, points=10, max_refinements=3).unwrap()
    assert curve.refinement_passes <= 3
    assert 11 <= len(curve) <= 14


def test_refinement_adds_points_near_low_flow_bend() -> None:
    inputs: ChannelInputs = build_rectangular_inputs()
    plain: RatingCurve = generate_rating_curve(inputs, points=10, max_refinements=0).unwrap()
    refined: RatingCurve = generate_rating_curve(inputs, points=10, max_refinements=4).unwrap()
    assert plain.refinement_passes == 0
    assert len(plain) == 11
    assert refined.refinement_passes > 0
    extra: set[float] = set(refined.flows) - set(plain.flows)
    assert extra
    assert min(extra) < plain.flows[2]


def test_grid_always_contains_design_flow() -> None:
    inputs: ChannelInputs = build_rectangular_inputs(flow_rate=5.0)
    curve: RatingCurve = generate_rating_curve(inputs, points=6, max_refinements=0).unwrap()
    assert len(curve) == 7
    assert 5.0 in curve.flows
    design_point = curve.points[curve.flows.index(5.0)]
    solved = normal_depth(inputs.geometry, 5.0, inputs.slope, inputs.manning_n, inputs.units)
    assert design_point.depth == pytest.approx(solved.depth, rel=1e-9)


def test_design_flow_already_on_grid_is_not_duplicated() -> None:
    # 0.01Q..2Q in 200 points puts the 100th point on Q.
    inputs: ChannelInputs = build_rectangular_inputs(flow_rate=5.0)
    curve: RatingCurve = generate_rating_curve(inputs, points=200, max_refinements=0).unwrap()
    assert len(curve) == 200
    assert curve.flows[99] == pytest.approx(5.0)


def test_threaded_solves_keep_order() -> None:
    inputs: ChannelInputs = build_channel_inputs()
    serial: RatingCurve = generate_rating_curve(inputs, points=12).unwrap()
    threaded: RatingCurve = generate_rating_curve(inputs, points=12, workers=4).unwrap()
    assert threaded.points == serial.points


def test_pipe_overflow_points_are_dropped_with_warnings() -> None:
    # Design flow near capacity: the upper half of the 2x range cannot be carried.
    inputs = ChannelInputs(
        flow_rate=0.09, slope=0.001, manning_n=0.013, geometry=CircularSection(diameter=0.4), units=UnitSystem.SI
    )
    result = generate_rating_curve(inputs, points=10, max_refinements=0)
    assert result.success
    curve: RatingCurve = result.unwrap()
    assert 2 <= len(curve) < 11
    dropped: list[str] = [warning for warning in result.warnings if warning.startswith("Dropped rating point")]
    assert len(dropped) == 11 - len(curve)
    assert curve.warnings == result.warnings


def test_too_few_points_is_insufficient_data() -> None:
    inputs = ChannelInputs(
        flow_rate=10.0, slope=0.001, manning_n=0.013, geometry=CircularSection(diameter=0.2), units=UnitSystem.SI
    )
    result = generate_rating_curve(inputs, points=6)
    assert not result.success
    assert result.errors[0].kind is ErrorKind.INSUFFICIENT_DATA
    assert len(result.warnings) >= 5


def test_invalid_point_count_is_validation_failure() -> None:
    result = generate_rating_curve(build_rectangular_inputs(), points=1)
    assert not result.success
    assert result.errors[0].kind is ErrorKind.VALIDATION


def test_interpolate_depth() -> None:
    inputs: ChannelInputs = build_rectangular_inputs()
    curve: RatingCurve = generate_rating_curve(inputs, points=20).unwrap()
    mid_flow: float = (curve.flows[4] + curve.flows[5]) / 2
    depth = interpolate_depth(curve, mid_flow)
    assert depth is not None
    assert curve.depths[4] <= depth <= curve.depths[5]
    assert interpolate_depth(curve, curve.flows[-1] * 2) is None
    assert interpolate_depth(curve, 0.0) is None


def test_dataframe_view() -> None:
    inputs = ChannelInputs(
        flow_rate=3.0, slope=0.004, manning_n=0.02, geometry=RectangularSection(bottom_width=2.0), units=UnitSystem.SI
    )
    curve: RatingCurve = generate_rating_curve(inputs, points=5, max_refinements=0).unwrap()
    frame: pd.DataFrame = rating_curve_dataframe(curve)
    assert list(frame.columns) == ["depth", "velocity", "area"]
    assert frame.index.name == "flow"
    assert len(frame) == 6
    assert frame.index.is_monotonic_increasing
