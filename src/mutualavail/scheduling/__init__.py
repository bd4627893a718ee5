"""Availability engine: resolving, intersecting and ranking free time."""

from mutualavail.scheduling.busy_merger import BusyIntervalMerger
from mutualavail.scheduling.engine import AvailabilityEngine, EngineConfig
from mutualavail.scheduling.intersection import IntersectionEngine
from mutualavail.scheduling.pipeline import PipelineOutcome, SlotPipeline
from mutualavail.scheduling.ranker import SlotRanker
from mutualavail.scheduling.resolver import WeeklyAvailabilityResolver
from mutualavail.scheduling.suggester import AlternativeSuggester

__all__ = [
    # Entry point
    "AvailabilityEngine",
    "EngineConfig",
    # Pipeline stages
    "WeeklyAvailabilityResolver",
    "BusyIntervalMerger",
    "IntersectionEngine",
    "SlotRanker",
    "SlotPipeline",
    "PipelineOutcome",
    # Relaxation
    "AlternativeSuggester",
]
