"""Output generation for availability searches."""

from mutualavail.output.debug_generator import DebugGenerator

__all__ = [
    "DebugGenerator",
]
