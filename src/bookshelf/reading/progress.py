"""Reading progress logging.

Applies progress updates to a book and records each committed reading
session in the store's history for streak and analytics calculations.
"""

import logging
import math
from numbers import Real
from typing import Optional

from ..db.schemas import ReadingLogEntry
from ..errors import ValidationError
from ..library.store import CollectionStore

logger = logging.getLogger(__name__)


def validate_progress(value: object) -> float:
    """Return ``value`` as a float if it is a finite non-negative number.

    Raises:
        ValidationError: For negatives, NaN, infinities, bools and non-numbers
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"Progress must be a number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ValidationError(f"Progress must be finite, got {value}")
    if value < 0:
        raise ValidationError(f"Progress cannot be negative, got {value}")
    return value


class ProgressLogger:
    """Writes progress to books and appends reading-session history."""

    def __init__(self, store: CollectionStore):
        """Initialize progress logger.

        Args:
            store: Collection store holding the books and history
        """
        self.store = store

    def log_reading(
        self,
        book_id: str,
        new_progress: float,
        duration_minutes: Optional[float] = None,
    ) -> ReadingLogEntry:
        """Set a book's progress and record the session.

        The session delta never goes negative: correcting progress downward
        records a zero-delta entry while still overwriting the stored value.

        Args:
            book_id: Book being read
            new_progress: New absolute progress (pages or chapters)
            duration_minutes: Session length when coming from a timed session

        Returns:
            The history entry that was appended

        Raises:
            ValidationError: If new_progress is not a finite non-negative number
            NotFoundError: If the book does not exist
        """
        progress = validate_progress(new_progress)
        if duration_minutes is not None:
            if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, Real):
                raise ValidationError(f"Duration must be a number, got {duration_minutes!r}")
            if not math.isfinite(duration_minutes) or duration_minutes < 0:
                raise ValidationError(f"Invalid duration: {duration_minutes}")
            duration_minutes = float(duration_minutes)

        with self.store.lock:
            book = self.store.require(book_id)
            delta = max(0.0, progress - book.progress)
            entry = ReadingLogEntry(
                id=self.store.new_id(),
                book_id=book_id,
                progress_delta=delta,
                progress=progress,
                duration_minutes=duration_minutes,
                logged_at=self.store.now(),
            )
            self.store.commit_reading(book_id, progress, entry)

        if progress < book.progress:
            logger.info(
                "Progress for %s corrected from %s to %s", book_id, book.progress, progress
            )
        logger.debug("Logged reading for %s: +%s in %s min", book_id, delta, duration_minutes)
        return entry

    def history(self, book_id: Optional[str] = None) -> list[ReadingLogEntry]:
        """Get logged reading sessions, oldest first.

        Args:
            book_id: Only entries for this book (optional)
        """
        return self.store.reading_logs(book_id)

    def total_read(self, book_id: str) -> float:
        """Sum of session deltas logged for a book."""
        return sum(entry.progress_delta for entry in self.store.reading_logs(book_id))

    def time_spent_minutes(self, book_id: str) -> float:
        """Sum of timed session durations for a book."""
        return sum(entry.duration_minutes or 0 for entry in self.store.reading_logs(book_id))
