# windspire_console/generation/__init__.py
"""Batch generation: orchestrator and durable in-progress marker."""

from .marker import MARKER_KEY, InProgressMarker
from .orchestrator import GenerationOrchestrator

__all__ = [
    "GenerationOrchestrator",
    "InProgressMarker",
    "MARKER_KEY",
]
