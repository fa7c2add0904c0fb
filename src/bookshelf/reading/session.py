"""Reading session management.

Handles starting, stopping, and tracking the single active reading
session. Stopping a session hands its duration and progress to the
ProgressLogger as a committed reading log entry.
"""

import logging
from typing import Callable, Optional

from ..db.schemas import ActiveTimer, BookStatus, ReadingLogEntry
from ..errors import ConflictError, StateError
from ..library.store import CollectionStore
from .progress import ProgressLogger, validate_progress

logger = logging.getLogger(__name__)

# Shorter sessions are rounded up so a double-fired stop never logs zero time
MIN_SESSION_MINUTES = 0.1


class SessionTracker:
    """State machine for the active reading timer: Idle -> Active -> Idle."""

    def __init__(
        self,
        store: CollectionStore,
        progress_logger: Optional[ProgressLogger] = None,
        min_session_minutes: float = MIN_SESSION_MINUTES,
    ):
        """Initialize session tracker.

        Args:
            store: Collection store holding the books
            progress_logger: Receives committed sessions (default: one on the same store)
            min_session_minutes: Floor applied to every session's duration
        """
        self.store = store
        self.progress_logger = progress_logger or ProgressLogger(store)
        self.min_session_minutes = min_session_minutes
        self._active_timer: Optional[ActiveTimer] = None
        self._listeners: list[Callable[[], None]] = []

    @property
    def active_timer(self) -> Optional[ActiveTimer]:
        """Get the active timer, or None when idle."""
        return self._active_timer

    def has_active_session(self) -> bool:
        """Check if there's an active reading session."""
        return self._active_timer is not None

    def start_session(self, book_id: str) -> ActiveTimer:
        """Start timing a reading session.

        Marks the book as ``reading`` (stamping started_at if unset).
        Starting again for the book already being timed is a no-op.

        Returns:
            The active timer

        Raises:
            ConflictError: If a session is active for another book
            NotFoundError: If the book does not exist
        """
        with self.store.lock:
            if self._active_timer:
                if self._active_timer.book_id == book_id:
                    return self._active_timer
                raise ConflictError(self._active_timer.book_id, book_id)

            book = self.store.require(book_id)
            now = self.store.now()
            changes = {}
            if book.status != BookStatus.READING:
                changes["status"] = BookStatus.READING
            if book.started_at is None:
                changes["started_at"] = now
            # Timer goes in first so store listeners already see it
            self._active_timer = ActiveTimer(book_id=book_id, start_time=now)
            if changes:
                version = self.store.version
                try:
                    self.store.update(book_id, changes)
                except Exception:
                    # Only undo the timer if the book was left untouched
                    if self.store.version == version:
                        self._active_timer = None
                    raise

        logger.info("Started reading session for %s", book_id)
        self._notify()
        return self._active_timer

    def elapsed_minutes(self) -> Optional[float]:
        """Minutes since the active session started, or None when idle."""
        timer = self._active_timer
        if timer is None:
            return None
        elapsed = (self.store.now() - timer.start_time).total_seconds() / 60
        return max(0.0, elapsed)

    def stop_session(
        self,
        book_id: str,
        elapsed_minutes: Optional[float] = None,
        progress_delta: Optional[float] = None,
    ) -> ReadingLogEntry:
        """Stop the active session and log it.

        The timer is cleared even if logging the session fails.

        Args:
            book_id: Book the session was started for
            elapsed_minutes: Session length; defaults to wall-clock time since start
            progress_delta: Pages/chapters read during the session

        Returns:
            The reading log entry created for the session

        Raises:
            StateError: If no session is active or it belongs to another book
            ValidationError: If the duration or delta is invalid
        """
        timer = self._active_timer
        if timer is None:
            raise StateError("No active reading session")
        if timer.book_id != book_id:
            raise StateError(
                f"Active session is for book {timer.book_id}, not {book_id}"
            )

        try:
            if elapsed_minutes is None:
                elapsed_minutes = self.elapsed_minutes()
            duration = max(self.min_session_minutes, validate_progress(elapsed_minutes))
            delta = validate_progress(progress_delta) if progress_delta is not None else 0.0

            with self.store.lock:
                book = self.store.require(book_id)
                entry = self.progress_logger.log_reading(
                    book_id, book.progress + delta, duration_minutes=duration
                )
        finally:
            self._active_timer = None
            self._notify()

        logger.info(
            "Stopped reading session for %s after %.1f min (+%s)",
            book_id,
            duration,
            entry.progress_delta,
        )
        return entry

    def cancel_session(self) -> bool:
        """Cancel the active session without logging.

        Returns:
            True if session was cancelled, False if no active session
        """
        if not self._active_timer:
            return False

        logger.info("Cancelled reading session for %s", self._active_timer.book_id)
        self._active_timer = None
        self._notify()
        return True

    def restore(self, timer: Optional[ActiveTimer]) -> None:
        """Replace the timer wholesale, as part of an import."""
        self._active_timer = timer
        self._notify()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` whenever the timer changes. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
