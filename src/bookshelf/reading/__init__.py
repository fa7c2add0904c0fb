"""Reading session tracking and progress management."""

from .session import (
    MIN_SESSION_MINUTES,
    SessionTracker,
)
from .progress import (
    ProgressLogger,
    validate_progress,
)

__all__ = [
    "MIN_SESSION_MINUTES",
    "SessionTracker",
    "ProgressLogger",
    "validate_progress",
]
