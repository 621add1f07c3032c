"""Exceptions raised when an option or a pricing model cannot be built."""

from __future__ import annotations

from typing import Any


class PricingError(ValueError):
    """Base class for bsgreeks errors.

    Subclasses ``ValueError`` so callers catching the builtin keep working.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class InvalidInputError(PricingError):
    """A field of an Underlying or Instrument violates its constraint."""

    def __init__(self, field: str, value: Any, constraint: str) -> None:
        super().__init__(
            f"{field} must be {constraint}, got {value!r}",
            {"field": field, "value": value, "constraint": constraint},
        )
        self.field = field
        self.value = value


class DegenerateModelError(PricingError):
    """d1/d2 cannot be formed from the given inputs (zero or non-finite)."""
