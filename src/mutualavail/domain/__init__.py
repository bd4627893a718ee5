"""Domain models, interval algebra and errors for availability searches."""

from mutualavail.domain.errors import (
    AvailabilityError,
    AvailabilityErrorType,
    CalendarSyncFailed,
    ErrorSeverity,
    InternalError,
    InvalidDuration,
    InvalidTimeRange,
    NetworkTimeout,
    NoMutualAvailabilityFound,
    PermissionDenied,
    PreferenceConflict,
    RelationshipNotFound,
)
from mutualavail.domain.models import (
    CandidateSlot,
    DailyTimeRange,
    PartyAvailabilityProfile,
    RankedSlots,
    RecurringCommitment,
    SearchConstraints,
    TimeInterval,
    Weekday,
    WeeklyAvailabilityRule,
    propagate_shared_commitments,
)
from mutualavail.domain.state import SearchState, SearchStatus

__all__ = [
    # Models
    "CandidateSlot",
    "DailyTimeRange",
    "PartyAvailabilityProfile",
    "RankedSlots",
    "RecurringCommitment",
    "SearchConstraints",
    "TimeInterval",
    "Weekday",
    "WeeklyAvailabilityRule",
    "propagate_shared_commitments",
    # Errors
    "AvailabilityError",
    "AvailabilityErrorType",
    "CalendarSyncFailed",
    "ErrorSeverity",
    "InternalError",
    "InvalidDuration",
    "InvalidTimeRange",
    "NetworkTimeout",
    "NoMutualAvailabilityFound",
    "PermissionDenied",
    "PreferenceConflict",
    "RelationshipNotFound",
    # State
    "SearchState",
    "SearchStatus",
]
