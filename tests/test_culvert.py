"""Culvert scenario evaluation: ranking, feasibility and hydraulics."""

from __future__ import annotations

import math

import pytest

from hydrocalc import (
    ControlType,
    CulvertHydraulics,
    CulvertMaterial,
    CulvertParams,
    CulvertShape,
    DebrisLoad,
    EnergyDissipator,
    EntranceType,
    EnvironmentalFactors,
    ErrorKind,
    ScenarioReport,
    ScourPotential,
    UnitSystem,
    catalog_sizes,
    evaluate_culvert_scenarios,
    evaluate_size,
    fish_passage,
    outlet_protection,
    performance_curve,
)
from hydrocalc.culvert import ENTRANCE_LOSSES, cover_depth, infeasibility_reasons, tailwater_depth
from hydrocalc.models.culvert import CulvertSize

from .sample_data import build_culvert_params


def test_circular_concrete_scenario() -> None:
    params: CulvertParams = build_culvert_params()
    report: ScenarioReport = evaluate_culvert_scenarios(params).unwrap()
    options = report.options(CulvertShape.CIRCULAR)
    assert 1 <= len(options) <= 3
    assert [option.rank for option in options] == list(range(1, len(options) + 1))
    assert options[0].hydraulics.headwater <= 10.0
    areas: list[float] = [option.size.area for option in options]
    assert areas == sorted(areas)
    assert list(report.scenarios) == [CulvertShape.CIRCULAR]


def test_rank_one_is_smallest_feasible_size() -> None:
    params: CulvertParams = build_culvert_params()
    report: ScenarioReport = evaluate_culvert_scenarios(params).unwrap()
    best = report.options(CulvertShape.CIRCULAR)[0]
    for size in catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE):
        if size.area >= best.size.area:
            break
        assert infeasibility_reasons(params, size, evaluate_size(params, size))


@pytest.mark.parametrize("shape", list(CulvertShape))
def test_headwater_constraint_is_monotone(shape: CulvertShape) -> None:
    previous_count: int = -1
    previous_area: float = math.inf
    for max_headwater in (4.0, 6.0, 8.0, 10.0, 14.0):
        params: CulvertParams = build_culvert_params(shape=shape, max_headwater=max_headwater, max_width=40.0)
        options = evaluate_culvert_scenarios(params).unwrap().options(shape)
        assert len(options) >= previous_count
        if options:
            assert options[0].size.area <= previous_area
            previous_area = options[0].size.area
        previous_count = len(options)


def test_all_shapes_are_evaluated_independently() -> None:
    params: CulvertParams = build_culvert_params(shape=None, material=CulvertMaterial.HDPE)
    result = evaluate_culvert_scenarios(params)
    report: ScenarioReport = result.unwrap()
    assert list(report.scenarios) == [CulvertShape.CIRCULAR, CulvertShape.BOX, CulvertShape.ARCH]
    assert report.options(CulvertShape.CIRCULAR)
    assert report.options(CulvertShape.BOX) == []
    assert report.options(CulvertShape.ARCH) == []
    assert any("No box sizes are available in hdpe" in warning for warning in result.warnings)


def test_threaded_evaluation_matches_serial() -> None:
    params: CulvertParams = build_culvert_params(shape=None)
    serial: ScenarioReport = evaluate_culvert_scenarios(params).unwrap()
    threaded: ScenarioReport = evaluate_culvert_scenarios(params, workers=3).unwrap()
    assert list(threaded.scenarios) == list(serial.scenarios)
    assert threaded.to_dict() == serial.to_dict()


def test_unsatisfiable_headwater_explains_empty_result() -> None:
    params: CulvertParams = build_culvert_params(design_flow=5000.0, max_headwater=3.0)
    result = evaluate_culvert_scenarios(params)
    assert result.success
    assert result.unwrap().options(CulvertShape.CIRCULAR) == []
    assert any(
        warning.startswith("No feasible circular size: max headwater") and "not satisfiable" in warning
        for warning in result.warnings
    )


def test_width_limit_excludes_wide_barrels() -> None:
    params: CulvertParams = build_culvert_params(barrels=3, max_width=6.0)
    for option in evaluate_culvert_scenarios(params).unwrap().options(CulvertShape.CIRCULAR):
        assert option.size.span * 3 <= 6.0


def test_cover_limit_uses_roadway_elevation() -> None:
    params: CulvertParams = build_culvert_params(roadway_elevation=106.0, min_cover=2.0, max_headwater=20.0)
    for option in evaluate_culvert_scenarios(params).unwrap().options(CulvertShape.CIRCULAR):
        assert cover_depth(params, option.size) >= 2.0
        assert option.size.rise <= 4.0


def test_multiple_barrels_split_flow() -> None:
    single: CulvertParams = build_culvert_params()
    double: CulvertParams = build_culvert_params(barrels=2)
    size: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[10]
    assert evaluate_size(double, size).barrel_flow == pytest.approx(50.0)
    assert evaluate_size(double, size).headwater < evaluate_size(single, size).headwater


def test_debris_blockage_raises_headwater() -> None:
    clean: CulvertParams = build_culvert_params()
    debris: CulvertParams = build_culvert_params(environment=EnvironmentalFactors(debris_load=DebrisLoad.HIGH))
    size: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[9]
    assert debris.effective_blockage == pytest.approx(0.30)
    blocked = evaluate_size(debris, size)
    assert blocked.effective_area == pytest.approx(size.area * 0.7)
    assert blocked.headwater > evaluate_size(clean, size).headwater


def test_explicit_blockage_overrides_debris_default() -> None:
    params: CulvertParams = build_culvert_params(
        blockage_factor=0.1, environment=EnvironmentalFactors(debris_load=DebrisLoad.HIGH)
    )
    assert params.effective_blockage == pytest.approx(0.1)


def test_entrance_type_changes_inlet_headwater() -> None:
    size: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[8]
    projecting = evaluate_size(build_culvert_params(entrance_type=EntranceType.PROJECTING), size)
    wingwall = evaluate_size(build_culvert_params(entrance_type=EntranceType.WINGWALL), size)
    assert projecting.inlet_headwater != wingwall.inlet_headwater
    assert projecting.outlet_headwater > wingwall.outlet_headwater


def test_skew_increases_entrance_loss() -> None:
    loss = ENTRANCE_LOSSES[EntranceType.HEADWALL]
    assert loss.coefficient(0.0) == pytest.approx(0.5)
    assert loss.coefficient(30.0) == pytest.approx(0.5 * (1 + 0.1 * 0.5))


def test_tailwater_rating_drives_outlet_control() -> None:
    rating = ((0.0, 0.0), (50.0, 3.0), (200.0, 7.0))
    params: CulvertParams = build_culvert_params(tailwater_rating=rating)
    assert tailwater_depth(params) == pytest.approx(3.0 + (50.0 / 150.0) * 4.0)
    size: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[10]
    hydraulics = evaluate_size(params, size)
    assert hydraulics.tailwater_depth == pytest.approx(tailwater_depth(params))
    assert hydraulics.outlet_headwater > evaluate_size(build_culvert_params(), size).outlet_headwater


def test_governing_headwater_is_larger_control() -> None:
    size: CulvertSize = catalog_sizes(CulvertShape.BOX, CulvertMaterial.CONCRETE)[12]
    hydraulics = evaluate_size(build_culvert_params(shape=CulvertShape.BOX), size)
    assert hydraulics.headwater == max(hydraulics.inlet_headwater, hydraulics.outlet_headwater)
    expected = ControlType.INLET if hydraulics.inlet_headwater >= hydraulics.outlet_headwater else ControlType.OUTLET
    assert hydraulics.control is expected
    assert hydraulics.critical_depth <= size.rise


def test_aquatic_passage_warnings() -> None:
    environment = EnvironmentalFactors(aquatic_passage=True, max_passage_velocity=2.0, min_passage_depth=5.0)
    params: CulvertParams = build_culvert_params(environment=environment)
    options = evaluate_culvert_scenarios(params).unwrap().options(CulvertShape.CIRCULAR)
    assert options
    for option in options:
        assert any(warning.startswith("Aquatic passage: outlet velocity") for warning in option.warnings)
        assert any(warning.startswith("Aquatic passage: outlet depth") for warning in option.warnings)
        assert "Fish passage may be impaired: roughening elements recommended." in option.warnings
        assert option.fish_passage is not None
        assert not option.fish_passage.passable


def test_si_catalog_is_converted() -> None:
    english = catalog_sizes(CulvertShape.BOX, CulvertMaterial.CONCRETE)
    metric = catalog_sizes(CulvertShape.BOX, CulvertMaterial.CONCRETE, UnitSystem.SI)
    assert len(english) == len(metric)
    assert metric[0].span == pytest.approx(english[0].span * 0.3048)
    assert metric[0].area == pytest.approx(english[0].area * 0.3048**2)


def test_catalog_is_sorted_by_area_then_rise() -> None:
    sizes = catalog_sizes(CulvertShape.BOX, CulvertMaterial.CORRUGATED_METAL)
    keys = [(size.area, size.rise) for size in sizes]
    assert keys == sorted(keys)
    assert catalog_sizes(CulvertShape.ARCH, CulvertMaterial.HDPE) == []
    assert catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.HDPE)[0].rise == pytest.approx(4 / 12)


def test_metric_scenario_runs() -> None:
    params: CulvertParams = build_culvert_params(
        design_flow=2.8,
        upstream_invert=30.0,
        downstream_invert=29.4,
        culvert_length=15.0,
        max_headwater=3.0,
        min_cover=0.6,
        max_width=6.0,
        units=UnitSystem.SI,
    )
    options = evaluate_culvert_scenarios(params).unwrap().options(CulvertShape.CIRCULAR)
    assert options
    assert options[0].hydraulics.headwater <= 3.0


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"design_flow": 0.0}, "design_flow"),
        ({"barrels": 7}, "barrels"),
        ({"blockage_factor": 0.6}, "blockage_factor"),
        ({"skew_angle": 50.0}, "skew_angle"),
        ({"downstream_invert": 101.0}, "downstream_invert"),
    ],
)
def test_invalid_params_fail_validation(overrides: dict[str, object], field: str) -> None:
    result = evaluate_culvert_scenarios(build_culvert_params(**overrides))
    assert not result.success
    assert result.errors[0].kind is ErrorKind.VALIDATION
    assert any(field in message for message in result.error_messages)


def test_params_advisories() -> None:
    params: CulvertParams = build_culvert_params(
        downstream_invert=99.99,
        min_cover=1.0,
        skew_angle=35.0,
        environment=EnvironmentalFactors(sediment_transport=True),
    )
    notes: list[str] = params.advisories()
    assert any("flatter than the recommended minimum" in note for note in notes)
    assert any("recommended 2.0 ft" in note for note in notes)
    assert any("skew" in note for note in notes)
    assert any("Sediment transport" in note for note in notes)


def _hydraulics(**overrides: object) -> CulvertHydraulics:
    values: dict[str, object] = {
        "barrel_flow": 100.0,
        "effective_area": 12.57,
        "inlet_headwater": 5.0,
        "outlet_headwater": 4.0,
        "headwater": 5.0,
        "control": ControlType.INLET,
        "velocity": 8.0,
        "outlet_velocity": 8.0,
        "outlet_depth": 1.5,
        "critical_depth": 2.5,
        "normal_depth": 1.5,
        "froude_number": 0.9,
        "tailwater_depth": 0.0,
    }
    values.update(overrides)
    return CulvertHydraulics(**values)  # type: ignore[arg-type]


BOX_SIZE = CulvertSize(CulvertShape.BOX, span=4.0, rise=3.0, area=12.0)


def test_performance_curve_spans_tenth_to_double_design_flow() -> None:
    params: CulvertParams = build_culvert_params()
    size: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[10]
    curve = performance_curve(params, size)
    assert len(curve) == 20
    assert curve[0].flow == pytest.approx(10.0)
    assert curve[-1].flow == pytest.approx(200.0)
    design = curve[9]
    assert design.flow == pytest.approx(100.0)
    assert design.headwater == pytest.approx(evaluate_size(params, size).headwater)
    assert curve[-1].headwater > curve[0].headwater
    assert all(point.outlet_velocity > 0 for point in curve)


def test_performance_curve_follows_tailwater_rating() -> None:
    rating = ((0.0, 0.0), (200.0, 16.0))
    params: CulvertParams = build_culvert_params(tailwater_rating=rating)
    size: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[10]
    plain = performance_curve(build_culvert_params(), size)
    rated = performance_curve(params, size)
    assert rated[-1].headwater > plain[-1].headwater
    assert tailwater_depth(params, 50.0) == pytest.approx(4.0)


def test_feasible_options_carry_outlet_assessment() -> None:
    report: ScenarioReport = evaluate_culvert_scenarios(build_culvert_params()).unwrap()
    for option in report.options(CulvertShape.CIRCULAR):
        assert len(option.performance) == 20
        assert option.outlet_protection is not None
        assert option.fish_passage is None
        payload = option.to_dict()
        assert payload["outlet_protection"]["scour_potential"] in {"low", "medium", "high"}
        assert len(payload["performance"]) == 20
        assert payload["fish_passage"] is None


@pytest.mark.parametrize(
    ("overrides", "units", "scour", "dissipator"),
    [
        ({"outlet_velocity": 4.0, "froude_number": 0.8}, UnitSystem.ENGLISH, ScourPotential.LOW, EnergyDissipator.NONE),
        ({"outlet_velocity": 7.0, "froude_number": 0.8}, UnitSystem.ENGLISH, ScourPotential.MEDIUM, EnergyDissipator.NONE),
        ({"outlet_velocity": 4.0, "froude_number": 1.3}, UnitSystem.ENGLISH, ScourPotential.MEDIUM, EnergyDissipator.NONE),
        ({"outlet_velocity": 11.0, "froude_number": 0.9}, UnitSystem.ENGLISH, ScourPotential.HIGH, EnergyDissipator.NONE),
        ({"outlet_velocity": 3.5, "froude_number": 0.5}, UnitSystem.SI, ScourPotential.HIGH, EnergyDissipator.NONE),
        (
            {"outlet_velocity": 8.0, "froude_number": 1.8, "tailwater_depth": 1.0, "critical_depth": 1.5},
            UnitSystem.ENGLISH,
            ScourPotential.HIGH,
            EnergyDissipator.RIPRAP_BASIN,
        ),
        (
            {"outlet_velocity": 8.0, "froude_number": 1.8, "tailwater_depth": 0.5, "critical_depth": 1.5},
            UnitSystem.ENGLISH,
            ScourPotential.HIGH,
            EnergyDissipator.BAFFLED_APRON,
        ),
    ],
)
def test_outlet_protection(
    overrides: dict[str, object], units: UnitSystem, scour: ScourPotential, dissipator: EnergyDissipator
) -> None:
    protection = outlet_protection(build_culvert_params(units=units), _hydraulics(**overrides))
    assert protection.scour_potential is scour
    assert protection.energy_dissipator is dissipator


def test_fish_passage_skipped_without_aquatic_passage() -> None:
    assert fish_passage(build_culvert_params(), BOX_SIZE, _hydraulics()) is None


@pytest.mark.parametrize(
    ("shape", "recommendation"),
    [
        (CulvertShape.BOX, "Spoiler baffles recommended"),
        (CulvertShape.CIRCULAR, "Roughening elements recommended"),
        (CulvertShape.ARCH, "Stream simulation approach recommended"),
    ],
)
def test_fish_passage_barrier_recommends_baffles(shape: CulvertShape, recommendation: str) -> None:
    environment = EnvironmentalFactors(aquatic_passage=True, max_passage_velocity=4.0)
    params: CulvertParams = build_culvert_params(environment=environment)
    size = CulvertSize(shape, span=4.0, rise=3.0, area=10.0)
    passage = fish_passage(params, size, _hydraulics(outlet_velocity=6.0, outlet_depth=2.5))
    assert passage is not None
    assert passage.velocity_barrier
    assert not passage.depth_barrier
    assert passage.baffle_recommendation == recommendation
    assert not passage.passable


@pytest.mark.parametrize(
    ("outlet_depth", "jump", "passable"),
    [(1.5, 0.5, True), (0.5, 1.5, False), (2.5, 0.0, True)],
)
def test_fish_passage_outlet_drop(outlet_depth: float, jump: float, passable: bool) -> None:
    # The inverts fall 2 ft; fish clear drops under 1 ft.
    environment = EnvironmentalFactors(aquatic_passage=True, max_passage_velocity=10.0, min_passage_depth=0.2)
    params: CulvertParams = build_culvert_params(environment=environment)
    passage = fish_passage(params, BOX_SIZE, _hydraulics(outlet_depth=outlet_depth))
    assert passage is not None
    assert passage.jump_height == pytest.approx(jump)
    assert passage.baffle_recommendation == "None"
    assert passage.passable is passable


def test_metric_fish_passage_uses_metre_leap_limit() -> None:
    environment = EnvironmentalFactors(aquatic_passage=True)
    params: CulvertParams = build_culvert_params(
        upstream_invert=30.0, downstream_invert=29.4, units=UnitSystem.SI, environment=environment
    )
    passage = fish_passage(params, BOX_SIZE, _hydraulics(outlet_depth=0.2))
    assert passage is not None
    assert passage.jump_height == pytest.approx(0.4)
    assert not passage.passable


def test_box_size_dimensions() -> None:
    assert BOX_SIZE.width == 4.0
    assert BOX_SIZE.height == 3.0
    assert BOX_SIZE.diameter is None
    assert BOX_SIZE.to_dict() == {"shape": "box", "area": 12.0, "width": 4.0, "height": 3.0}
    pipe: CulvertSize = catalog_sizes(CulvertShape.CIRCULAR, CulvertMaterial.CONCRETE)[0]
    assert pipe.width is None
    assert pipe.to_dict()["diameter"] == pytest.approx(1.0)


def test_best_option_has_lowest_rank_one_headwater() -> None:
    params: CulvertParams = build_culvert_params(shape=None, max_width=40.0)
    report: ScenarioReport = evaluate_culvert_scenarios(params).unwrap()
    best = report.best()
    assert best is not None
    assert best.rank == 1
    leaders = [options[0] for options in report.scenarios.values() if options]
    assert best.hydraulics.headwater == min(option.hydraulics.headwater for option in leaders)
    assert ScenarioReport().best() is None
