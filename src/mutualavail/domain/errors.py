"""Error taxonomy for availability searches.

Every failure the engine can report is an ``AvailabilityError`` subclass
tagged with an ``AvailabilityErrorType``, so callers can either catch a
specific class or switch on ``error.error_type``.
"""

from enum import Enum
from typing import Optional


class AvailabilityErrorType(Enum):
    """Types of availability errors."""

    INVALID_TIME_RANGE = "invalid_time_range"
    INVALID_DURATION = "invalid_duration"
    CALENDAR_SYNC_FAILED = "calendar_sync_failed"
    NETWORK_TIMEOUT = "network_timeout"
    RELATIONSHIP_NOT_FOUND = "relationship_not_found"
    PERMISSION_DENIED = "permission_denied"
    PREFERENCE_CONFLICT = "preference_conflict"
    NO_MUTUAL_AVAILABILITY_FOUND = "no_mutual_availability_found"
    INTERNAL_ERROR = "internal_error"


class ErrorSeverity(Enum):
    """How prominently a caller should surface an error."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AvailabilityError(Exception):
    """Base class for all availability errors.

    Subclasses set the class attributes; ``message`` overrides the default
    description for a single instance.
    """

    error_type: AvailabilityErrorType = AvailabilityErrorType.INTERNAL_ERROR
    title: str = "Error"
    default_message: str = "An unexpected error occurred."
    recovery_suggestion: str = "Try again later or contact support if the issue persists."
    severity: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"[{self.error_type.value}] {self.message}"


class InvalidTimeRange(AvailabilityError):
    error_type = AvailabilityErrorType.INVALID_TIME_RANGE
    title = "Invalid Time Selection"
    default_message = "The specified time range is invalid. End date must be after start date."
    recovery_suggestion = "Please ensure the end date is after the start date."
    severity = ErrorSeverity.INFO


class InvalidDuration(AvailabilityError):
    error_type = AvailabilityErrorType.INVALID_DURATION
    title = "Invalid Time Selection"
    default_message = (
        "Invalid duration specified. Duration must be between 15 minutes and 12 hours."
    )
    recovery_suggestion = "Choose a duration between 15 minutes and 12 hours."
    severity = ErrorSeverity.INFO


class CalendarSyncFailed(AvailabilityError):
    """A calendar provider could not deliver busy periods."""

    error_type = AvailabilityErrorType.CALENDAR_SYNC_FAILED
    title = "Calendar Sync Failed"
    recovery_suggestion = "Check your calendar permissions or try manually setting availability."
    severity = ErrorSeverity.WARNING

    def __init__(self, reason: str = "unknown error"):
        self.reason = reason
        super().__init__(f"Failed to sync with calendar: {reason}")


class NetworkTimeout(AvailabilityError):
    error_type = AvailabilityErrorType.NETWORK_TIMEOUT
    title = "Network Error"
    default_message = "Request timed out. Please check your network connection and try again."
    recovery_suggestion = (
        "Check your internet connection and try again. "
        "If the problem persists, try again later."
    )
    severity = ErrorSeverity.WARNING


class RelationshipNotFound(AvailabilityError):
    error_type = AvailabilityErrorType.RELATIONSHIP_NOT_FOUND
    title = "Relationship Not Found"
    default_message = "The specified relationship could not be found."
    recovery_suggestion = "Return to the relationships screen and try again."
    severity = ErrorSeverity.ERROR


class PermissionDenied(AvailabilityError):
    error_type = AvailabilityErrorType.PERMISSION_DENIED
    title = "Permission Denied"
    default_message = "You don't have permission to access these availability settings."
    recovery_suggestion = "This action requires both partners to agree on changes to settings."
    severity = ErrorSeverity.WARNING


class PreferenceConflict(AvailabilityError):
    """The two parties' weekly rules never overlap within the search range."""

    error_type = AvailabilityErrorType.PREFERENCE_CONFLICT
    title = "Preference Conflict"
    default_message = (
        "Conflict detected between the two parties' availability preferences: "
        "their weekly availability never overlaps."
    )
    recovery_suggestion = "Discuss and align on availability preferences."
    severity = ErrorSeverity.WARNING


class NoMutualAvailabilityFound(AvailabilityError):
    error_type = AvailabilityErrorType.NO_MUTUAL_AVAILABILITY_FOUND
    title = "No Available Times"
    default_message = (
        "No mutual availability found. Try adjusting your date range or duration."
    )
    recovery_suggestion = "Consider different days, times, or shortening the duration."
    severity = ErrorSeverity.INFO


class InternalError(AvailabilityError):
    """Wraps an unexpected failure, keeping the original message."""

    error_type = AvailabilityErrorType.INTERNAL_ERROR

    def __init__(self, message: str):
        self.detail = message
        super().__init__(f"Internal error: {message}")
