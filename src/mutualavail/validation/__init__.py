"""Validation module for search constraints and search output."""

from mutualavail.validation.validator import (
    ConstraintFilter,
    SlotValidator,
    ValidationError,
    ValidationErrorType,
)

__all__ = [
    "ConstraintFilter",
    "SlotValidator",
    "ValidationError",
    "ValidationErrorType",
]
