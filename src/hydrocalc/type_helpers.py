"""Enums and enum helpers shared between hydrocalc domain models."""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any, TypeVar

TEnum = TypeVar("TEnum", bound=Enum)


def coerce_enum(enum_cls: type[TEnum], value: Any, *, default: TEnum) -> TEnum:
    """Return enum member from the provided value, accepting names/values."""

    if value is None:
        return default
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        normalized: str = value.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return enum_cls[normalized]
        except KeyError:
            pass
        compact: str = normalized.replace("_", "")
        for member in enum_cls:
            if isinstance(member.value, str) and member.value == value.strip().lower():
                return member
            if member.name.replace("_", "") == compact:
                return member
    return enum_cls(value)


class ChannelShape(str, Enum):
    """Open-channel cross-section tags accepted at the input boundary."""

    RECTANGULAR = "rectangular"
    TRAPEZOIDAL = "trapezoidal"
    TRIANGULAR = "triangular"
    CIRCULAR = "circular"


class FlowRegime(str, Enum):
    """Flow classification derived from the Froude number."""

    SUBCRITICAL = "subcritical"
    CRITICAL = "critical"
    SUPERCRITICAL = "supercritical"


class ControlType(str, Enum):
    """Culvert hydraulic control that governs the headwater."""

    INLET = "inlet"
    OUTLET = "outlet"


class DebrisLoad(str, Enum):
    """Debris load categories; elevated loads reduce the effective opening."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def blockage_factor(self) -> float:
        return _DEBRIS_BLOCKAGE[self]


_DEBRIS_BLOCKAGE: dict[DebrisLoad, float] = {
    DebrisLoad.LOW: 0.0,
    DebrisLoad.MEDIUM: 0.15,
    DebrisLoad.HIGH: 0.30,
}


class _DescribedIntEnum(IntEnum):
    """Base class for enums that expose a user-friendly label."""

    _label_: str

    def __new__(cls, value: int, label: str) -> "_DescribedIntEnum":
        obj: _DescribedIntEnum = int.__new__(cls, value)
        obj._value_ = value
        obj._label_ = label
        return obj

    @property
    def label(self) -> str:
        return self._label_


class EntranceType(_DescribedIntEnum):
    """Culvert inlet treatments with distinct entrance coefficients."""

    PROJECTING = 0, "Projecting from fill"
    HEADWALL = 1, "Headwall"
    WINGWALL = 2, "Headwall with wingwalls"


class CulvertShape(str, Enum):
    """Culvert barrel shapes in the standard catalog."""

    CIRCULAR = "circular"
    BOX = "box"
    ARCH = "arch"


class CulvertMaterial(str, Enum):
    """Barrel materials; each carries a Manning roughness."""

    CONCRETE = "concrete"
    CORRUGATED_METAL = "corrugated-metal"
    HDPE = "hdpe"

    @property
    def manning_n(self) -> float:
        if self is CulvertMaterial.CORRUGATED_METAL:
            return 0.024
        return 0.012


TailwaterRatingPoint = tuple[float, float]


class LiningType(str, Enum):
    """Channel lining families used to group Manning roughness values."""

    HARD_SURFACE = "hard-surface"
    EARTH_LINING = "earth-lining"
    CUSTOM = "custom"


class ScourPotential(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EnergyDissipator(str, Enum):
    """Outlet energy dissipator recommended for supercritical outflow."""

    NONE = "None"
    RIPRAP_BASIN = "Riprap Basin"
    BAFFLED_APRON = "Baffled Apron"
