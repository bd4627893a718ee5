"""Explicit search state for presentation layers.

The engine itself is a set of plain functions and coroutines. A UI that
needs a single value describing "where the search is" builds one of these
states from the outcome; it decides when to move between them.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from mutualavail.domain.errors import AvailabilityError
from mutualavail.domain.models import RankedSlots


class SearchStatus(Enum):
    """Lifecycle of a search as seen by a caller."""

    EMPTY = "empty"  # Nothing to show (not searched yet, or no slots)
    LOADING = "loading"
    RESULTS = "results"
    ERROR = "error"
    SUCCESS = "success"  # A slot was turned into an event downstream


@dataclass(frozen=True)
class SearchState:
    """A search state and its payload.

    Exactly one payload field is set, matching ``status``: ``slots`` for
    RESULTS, ``error`` for ERROR, ``created_id`` for SUCCESS.
    """

    status: SearchStatus
    slots: Optional[RankedSlots] = None
    error: Optional[AvailabilityError] = None
    created_id: Optional[str] = None

    @classmethod
    def empty(cls) -> "SearchState":
        return cls(SearchStatus.EMPTY)

    @classmethod
    def loading(cls) -> "SearchState":
        return cls(SearchStatus.LOADING)

    @classmethod
    def results(cls, slots: RankedSlots) -> "SearchState":
        """Results state, or EMPTY when the result holds no slots."""
        if slots.is_empty:
            return cls.empty()
        return cls(SearchStatus.RESULTS, slots=slots)

    @classmethod
    def failed(cls, error: AvailabilityError) -> "SearchState":
        return cls(SearchStatus.ERROR, error=error)

    @classmethod
    def success(cls, created_id: str) -> "SearchState":
        return cls(SearchStatus.SUCCESS, created_id=created_id)

    @property
    def is_terminal(self) -> bool:
        return self.status in (SearchStatus.ERROR, SearchStatus.SUCCESS)
