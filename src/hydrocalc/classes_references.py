"""Core references shared by every hydrocalc module: unit systems and errors."""
from collections.abc import Sequence
from enum import Enum


class UnitSystem(Enum):
    """Supported unit systems and the physical constants that depend on them."""

    ENGLISH = ("EN", 1.486, 32.2, 1.08e-5)
    SI = ("SI", 1.0, 9.81, 1.004e-6)

    def __init__(self, cli_flag: str, manning_k: float, gravity: float, kinematic_viscosity: float) -> None:
        self.cli_flag: str = cli_flag
        self.manning_k: float = manning_k
        self.gravity: float = gravity
        self.kinematic_viscosity: float = kinematic_viscosity

    @property
    def length_unit(self) -> str:
        return "ft" if self is UnitSystem.ENGLISH else "m"

    @property
    def flow_unit(self) -> str:
        return "cfs" if self is UnitSystem.ENGLISH else "cms"

    @property
    def velocity_unit(self) -> str:
        return "ft/s" if self is UnitSystem.ENGLISH else "m/s"


class ValidationError(ValueError):
    """Exception raised when a model or an input fails validation."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors: list[str] = list(errors)
        message: str = "; ".join(self.errors) if self.errors else "Unknown validation error."
        super().__init__(message)


class ConvergenceError(RuntimeError):
    """Raised when a root-finder cannot bracket or converge on a depth."""

    def __init__(self, message: str, *, iterations: int = 0) -> None:
        self.iterations: int = iterations
        super().__init__(message)


class InsufficientDataError(ValueError):
    """Raised when a batch calculation produced too few usable results."""
