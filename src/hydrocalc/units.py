"""Unit conversion helpers shared across the hydrocalc domain."""

FT_TO_METRES = 0.3048
METRES_TO_FEET: float = 1 / FT_TO_METRES
IN_TO_FT: float = 1 / 12
CFS_TO_CMS = 0.028316846592
CMS_TO_CFS: float = 1 / CFS_TO_CMS
SQFT_TO_SQM: float = FT_TO_METRES**2


def feet_to_metres(value: float) -> float:
    """Convert feet into metres."""
    return value * FT_TO_METRES


def metres_to_feet(value: float) -> float:
    """Convert metres into feet."""
    return value * METRES_TO_FEET


def inches_to_feet(value: float) -> float:
    """Convert inches into feet."""
    return value * IN_TO_FT


def square_feet_to_square_metres(value: float) -> float:
    """Convert square feet into square metres."""
    return value * SQFT_TO_SQM


def cms_to_cfs(value: float) -> float:
    """Convert cubic metres per second into cubic feet per second."""
    return value * CMS_TO_CFS
