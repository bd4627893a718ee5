"""Constraint checks for availability searches.

``ConstraintFilter`` guards the search: it rejects malformed constraints
before any work is done and enforces the advance-notice horizon on the
generated slots. ``SlotValidator`` is the single source of truth for what a
correct result looks like, and is used to verify search output.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional

from mutualavail.domain.errors import InvalidDuration, InvalidTimeRange
from mutualavail.domain.intervals import FreeWindows
from mutualavail.domain.models import CandidateSlot, SearchConstraints, TimeInterval

MIN_DURATION_MINUTES = 15
MAX_DURATION_MINUTES = 12 * 60


class ConstraintFilter:
    """Validates search constraints and filters slots by horizon."""

    def __init__(
        self,
        min_duration_minutes: int = MIN_DURATION_MINUTES,
        max_duration_minutes: int = MAX_DURATION_MINUTES,
    ):
        self.min_duration_minutes = min_duration_minutes
        self.max_duration_minutes = max_duration_minutes

    def validate(self, constraints: SearchConstraints) -> None:
        """Fail fast on constraints no search could satisfy.

        Raises:
            InvalidTimeRange: The date range is empty or the horizon is negative.
            InvalidDuration: Duration is outside the allowed bounds.
        """
        if constraints.date_range_end <= constraints.date_range_start:
            raise InvalidTimeRange(
                f"End date {constraints.date_range_end} must be after "
                f"start date {constraints.date_range_start}."
            )
        if constraints.min_advance_notice_hours < 0 or constraints.max_advance_days < 0:
            raise InvalidTimeRange("Advance notice and horizon must not be negative.")
        if not (
            self.min_duration_minutes
            <= constraints.duration_minutes
            <= self.max_duration_minutes
        ):
            raise InvalidDuration(
                f"Duration {constraints.duration_minutes} minutes is outside "
                f"{self.min_duration_minutes}-{self.max_duration_minutes} minutes."
            )

    def filter(
        self,
        slots: list[CandidateSlot],
        constraints: SearchConstraints,
        now: datetime,
    ) -> list[CandidateSlot]:
        """Drop slots starting too soon or too far in the future."""
        earliest = constraints.earliest_start(now)
        latest = constraints.latest_start(now)
        return [slot for slot in slots if earliest <= slot.start <= latest]


class ValidationErrorType(Enum):
    """Types of slot validation errors."""

    WRONG_DURATION = "wrong_duration"
    OUTSIDE_FREE_WINDOW_A = "outside_free_window_a"
    OUTSIDE_FREE_WINDOW_B = "outside_free_window_b"
    TOO_LITTLE_NOTICE = "too_little_notice"
    BEYOND_HORIZON = "beyond_horizon"
    OUTSIDE_DATE_RANGE = "outside_date_range"
    DUPLICATE_SLOT = "duplicate_slot"
    OUT_OF_ORDER = "out_of_order"


@dataclass
class ValidationError:
    """A single validation error."""

    error_type: ValidationErrorType
    message: str
    slot: Optional[CandidateSlot] = None
    details: dict = field(default_factory=dict)

    def __str__(self) -> str:
        parts = [f"[{self.error_type.value}]", self.message]
        if self.slot is not None:
            parts.append(f"({self.slot!r})")
        return " ".join(parts)


@dataclass
class ValidationResult:
    """Result of validating a list of slots."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning (doesn't affect validity)."""
        self.warnings.append(warning)


class SlotValidator:
    """Validates search output against every slot invariant.

    Example:
        >>> validator = SlotValidator()
        >>> result = validator.validate(slots, constraints, free_a, free_b, now)
        >>> if not result.is_valid:
        ...     for error in result.errors:
        ...         print(error)
    """

    def validate(
        self,
        slots: list[CandidateSlot],
        constraints: SearchConstraints,
        free_a: Optional[FreeWindows] = None,
        free_b: Optional[FreeWindows] = None,
        now: Optional[datetime] = None,
        local_dates: Optional[list[date]] = None,
    ) -> ValidationResult:
        """Validate slots.

        Args:
            slots: Slots in the order they were returned.
            constraints: Constraints the search ran with.
            free_a: First party's post-subtraction free windows, if known.
            free_b: Second party's post-subtraction free windows, if known.
            now: Reference instant for horizon checks. Skipped if None.
            local_dates: Local start date of each slot, for range checks.
                Skipped if None.

        Returns:
            ValidationResult with is_valid flag and any errors.
        """
        result = ValidationResult(is_valid=True)
        seen: set[tuple[datetime, datetime]] = set()
        previous: Optional[CandidateSlot] = None

        for index, slot in enumerate(slots):
            if slot.duration_minutes != constraints.duration_minutes or (
                slot.end - slot.start != constraints.duration
            ):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.WRONG_DURATION,
                        message=(
                            f"Slot lasts {slot.duration_minutes} minutes, "
                            f"expected {constraints.duration_minutes}"
                        ),
                        slot=slot,
                    )
                )

            key = (slot.start, slot.end)
            if key in seen:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.DUPLICATE_SLOT,
                        message="Slot returned more than once",
                        slot=slot,
                    )
                )
            seen.add(key)

            if previous is not None and slot.start < previous.start:
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OUT_OF_ORDER,
                        message="Slot starts before the previous slot",
                        slot=slot,
                    )
                )
            previous = slot

            if free_a is not None and not _is_contained(slot, free_a):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OUTSIDE_FREE_WINDOW_A,
                        message="Slot is not inside the first party's free time",
                        slot=slot,
                    )
                )
            if free_b is not None and not _is_contained(slot, free_b):
                result.add_error(
                    ValidationError(
                        error_type=ValidationErrorType.OUTSIDE_FREE_WINDOW_B,
                        message="Slot is not inside the second party's free time",
                        slot=slot,
                    )
                )

            if now is not None:
                self._validate_horizon(slot, constraints, now, result)

            if local_dates is not None:
                slot_date = local_dates[index]
                if not (
                    constraints.date_range_start <= slot_date <= constraints.date_range_end
                ):
                    result.add_error(
                        ValidationError(
                            error_type=ValidationErrorType.OUTSIDE_DATE_RANGE,
                            message=f"Slot falls on {slot_date}, outside the search range",
                            slot=slot,
                        )
                    )

        return result

    def _validate_horizon(
        self,
        slot: CandidateSlot,
        constraints: SearchConstraints,
        now: datetime,
        result: ValidationResult,
    ) -> None:
        if slot.start < constraints.earliest_start(now):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.TOO_LITTLE_NOTICE,
                    message=(
                        f"Slot starts less than {constraints.min_advance_notice_hours} "
                        f"hours from now"
                    ),
                    slot=slot,
                )
            )
        if slot.start > constraints.latest_start(now):
            result.add_error(
                ValidationError(
                    error_type=ValidationErrorType.BEYOND_HORIZON,
                    message=(
                        f"Slot starts more than {constraints.max_advance_days} days from now"
                    ),
                    slot=slot,
                )
            )


def _is_contained(slot: CandidateSlot, free_windows: FreeWindows) -> bool:
    interval = TimeInterval(slot.start, slot.end)
    return any(
        window.contains(interval)
        for windows in free_windows.values()
        for window in windows
    )
