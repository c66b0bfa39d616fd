"""Shared base helpers for hydrocalc model dataclasses."""

from __future__ import annotations

import math
from abc import abstractmethod
from numbers import Real
from typing import Any

from loguru import logger

from ..classes_references import ValidationError


class Validatable:
    """
    A mixin class that provides a validation interface for domain models.

    Classes that inherit from `Validatable` must implement the `validate` method.
    This mixin supplies the `assert_valid` helper, which invokes `validate` and
    raises a `ValidationError` if any errors are found.
    """

    __slots__ = ()

    def assert_valid(self, prefix: str = "") -> None:
        """
        Raise a `ValidationError` if the model is invalid.

        Args:
            prefix: An optional string to prepend to each validation error message.
        """
        errors: list[str] = self.validate(prefix=prefix)
        if errors:
            logger.debug("Validation failed for {model}: {errors}", model=self.__class__.__name__, errors=errors)
            raise ValidationError(errors)
        logger.debug("Validation succeeded for {model}.", model=self.__class__.__name__)

    @abstractmethod
    def validate(self, prefix: str = "") -> list[str]:
        """
        Return a list of validation errors, or an empty list if the model is valid.

        Args:
            prefix: A string to prepend to each validation error message for context.
        """
        raise NotImplementedError


def is_real(value: Any) -> bool:
    """True for real numbers, numpy scalars included; booleans are rejected."""

    return isinstance(value, Real) and not isinstance(value, bool)


def require_positive(value: float, name: str, prefix: str = "") -> list[str]:
    """Return an error list flagging `value` unless it is a finite number above zero."""

    if not is_real(value):
        return [f"{prefix}{name} must be a number (got {value!r})."]
    if not math.isfinite(value) or value <= 0:
        return [f"{prefix}{name} must be greater than zero (got {value})."]
    return []


def string_list() -> list[str]:
    """
    Return a new `list[str]`.

    This helper function is used as a `default_factory` in dataclasses to avoid
    the use of mutable default arguments.
    """

    return []
