"""Shared sample inputs used across tests."""

from __future__ import annotations

import json

from hydrocalc import (
    ChannelInputs,
    CulvertMaterial,
    CulvertParams,
    CulvertShape,
    EntranceType,
    RectangularSection,
    TrapezoidalSection,
    UnitSystem,
)

CHANNEL_MAPPING: dict[str, object] = {
    "units": "SI",
    "flow_rate": 10.0,
    "slope": 0.001,
    "manning_n": 0.013,
    "geometry": {"shape": "trapezoidal", "bottom_width": 3.0, "side_slope": 2.0},
    "rating_curve": {"points": 12, "max_multiple": 2.0},
}

CHANNEL_JSON: str = json.dumps(CHANNEL_MAPPING, indent=2)

CULVERT_MAPPING: dict[str, object] = {
    "project": {"name": "Mill Creek Crossing", "location": "Station 12+40", "design_date": "2024-05-01"},
    "units": "english",
    "designFlow": 100.0,
    "returnPeriod": 25,
    "upstreamInvert": 100.0,
    "downstreamInvert": 98.0,
    "culvertLength": 50.0,
    "maxHeadwater": 10.0,
    "streamSlope": 0.02,
    "material": "concrete",
    "shape": "circular",
    "entranceType": "headwall",
    "multipleCulverts": 1,
    "minCoverDepth": 2.0,
    "maxWidth": 20.0,
    "environmentalFactors": {"debrisLoad": "low", "sedimentTransport": False, "aquaticPassage": False},
}

CULVERT_JSON: str = json.dumps(CULVERT_MAPPING, indent=2)


def build_channel_inputs() -> ChannelInputs:
    """Construct `ChannelInputs` that mirror `CHANNEL_MAPPING`."""

    return ChannelInputs(
        flow_rate=10.0,
        slope=0.001,
        manning_n=0.013,
        geometry=TrapezoidalSection(bottom_width=3.0, side_slope=2.0),
        units=UnitSystem.SI,
    )


def build_rectangular_inputs(flow_rate: float = 5.0, slope: float = 0.002) -> ChannelInputs:
    return ChannelInputs(
        flow_rate=flow_rate,
        slope=slope,
        manning_n=0.015,
        geometry=RectangularSection(bottom_width=4.0),
        units=UnitSystem.SI,
    )


def build_culvert_params(**overrides: object) -> CulvertParams:
    """Construct `CulvertParams` that mirror `CULVERT_MAPPING`, with keyword overrides."""

    values: dict[str, object] = {
        "design_flow": 100.0,
        "upstream_invert": 100.0,
        "downstream_invert": 98.0,
        "culvert_length": 50.0,
        "max_headwater": 10.0,
        "stream_slope": 0.02,
        "project_name": "Mill Creek Crossing",
        "location": "Station 12+40",
        "design_date": "2024-05-01",
        "return_period": 25.0,
        "material": CulvertMaterial.CONCRETE,
        "shape": CulvertShape.CIRCULAR,
        "entrance_type": EntranceType.HEADWALL,
        "barrels": 1,
        "min_cover": 2.0,
        "max_width": 20.0,
        "units": UnitSystem.ENGLISH,
    }
    values.update(overrides)
    return CulvertParams(**values)  # type: ignore[arg-type]
