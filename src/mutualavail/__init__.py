"""Mutual availability engine: find times two parties are both free."""

from mutualavail.scheduling.engine import AvailabilityEngine, EngineConfig

__version__ = "0.1.0"

__all__ = [
    "AvailabilityEngine",
    "EngineConfig",
]
