"""Result envelope returned by every top-level calculation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Iterable, TypeVar

from .classes_references import ConvergenceError, InsufficientDataError, ValidationError
from .models.base import string_list

T = TypeVar("T")

# Pulls the field name out of messages such as "Rectangular section: bottom_width must be ...".
FIELD_RE: re.Pattern[str] = re.compile(pattern=r"(?:^|:\s)(?P<field>[a-z][a-z0-9_]*) (?:must|is required)")


class ErrorKind(str, Enum):
    """Failure categories reported in `CalculationResult.errors`."""

    VALIDATION = "validation"
    CONVERGENCE = "convergence"
    INSUFFICIENT_DATA = "insufficient_data"


@dataclass(frozen=True, slots=True)
class CalculationIssue:
    """One structured error entry."""

    kind: ErrorKind
    message: str
    field: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "field": self.field}


def _issue_list() -> list[CalculationIssue]:
    return []


def _field_from_message(message: str) -> str | None:
    match: re.Match[str] | None = FIELD_RE.search(message)
    return match.group("field") if match else None


@dataclass(slots=True)
class CalculationResult(Generic[T]):
    """Success flag, payload, structured errors and warnings.

    Calculations never raise for bad input or numerical failure; they return a
    failed result instead. Callers that prefer exceptions use `unwrap`.
    """

    success: bool
    data: T | None = None
    errors: list[CalculationIssue] = field(default_factory=_issue_list)
    warnings: list[str] = field(default_factory=string_list)

    @classmethod
    def ok(cls, data: T, warnings: Iterable[str] = ()) -> "CalculationResult[T]":
        return cls(success=True, data=data, warnings=list(warnings))

    @classmethod
    def failed(cls, issues: Iterable[CalculationIssue], warnings: Iterable[str] = ()) -> "CalculationResult[T]":
        return cls(success=False, data=None, errors=list(issues), warnings=list(warnings))

    @classmethod
    def from_exception(cls, exc: Exception, warnings: Iterable[str] = ()) -> "CalculationResult[T]":
        """Convert a hydrocalc exception into a failure payload; anything else is re-raised."""

        issues: list[CalculationIssue]
        if isinstance(exc, ValidationError):
            issues = [
                CalculationIssue(ErrorKind.VALIDATION, message, _field_from_message(message)) for message in exc.errors
            ]
        elif isinstance(exc, ConvergenceError):
            issues = [CalculationIssue(ErrorKind.CONVERGENCE, str(exc))]
        elif isinstance(exc, InsufficientDataError):
            issues = [CalculationIssue(ErrorKind.INSUFFICIENT_DATA, str(exc))]
        else:
            raise exc
        return cls.failed(issues, warnings)

    @property
    def error_messages(self) -> list[str]:
        return [issue.message for issue in self.errors]

    def unwrap(self) -> T:
        """Return the payload or raise the exception matching the first error kind."""

        if self.success and self.data is not None:
            return self.data
        kinds: set[ErrorKind] = {issue.kind for issue in self.errors}
        if ErrorKind.VALIDATION in kinds or not kinds:
            raise ValidationError(self.error_messages)
        if ErrorKind.CONVERGENCE in kinds:
            raise ConvergenceError("; ".join(self.error_messages))
        raise InsufficientDataError("; ".join(self.error_messages))

    def to_dict(self) -> dict[str, Any]:
        payload: Any = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        return {
            "success": self.success,
            "data": payload,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": list(self.warnings),
        }
