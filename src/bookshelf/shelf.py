"""Bookshelf facade.

Wires the collection store, session tracker, progress logger and backup
codec together, and exposes what a view layer needs: a reactive state
snapshot, memoized filtered views, and one callback per user intent.
"""

import asyncio
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Generator, Iterable, Mapping, Optional, Union

from .backup.codec import BackupCodec, ImportResult, Payload
from .config import Config, get_config
from .db.schemas import (
    ActiveTimer,
    BackupDocument,
    BookCreate,
    BookNote,
    BookRecord,
    BookUpdate,
    ReadingGoal,
    ReadingLogEntry,
    UserProfile,
)
from .db.sqlite import Database
from .library.profile import ProfileState
from .library.store import Clock, CollectionStore, DuplicateCheck
from .library.view import FilterConfig, ViewCache
from .reading.progress import ProgressLogger
from .reading.session import SessionTracker
from .stats.analytics import YearlyStats, calculate_streak, yearly_stats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShelfState:
    """What the view layer renders from."""

    books: tuple[BookRecord, ...]
    loading: bool
    active_timer: Optional[ActiveTimer]
    selected_id: Optional[str] = None


StateListener = Callable[[ShelfState], None]


class Bookshelf:
    """Single entry point for all reads and mutations of one library."""

    def __init__(
        self,
        config: Optional[Config] = None,
        clock: Optional[Clock] = None,
        store: Optional[CollectionStore] = None,
    ):
        """Initialize an empty bookshelf.

        Args:
            config: Configuration (default: loaded from environment)
            clock: Returns the current time; used by a new store
            store: Existing store to wrap (default: a new empty one)
        """
        self.config = config or get_config()
        self.store = store or CollectionStore(clock=clock)
        self.progress = ProgressLogger(self.store)
        self.sessions = SessionTracker(
            self.store,
            self.progress,
            min_session_minutes=self.config.min_session_minutes,
        )
        self.profile = ProfileState(
            reading_goal=ReadingGoal(
                yearly=self.config.goal_yearly,
                monthly=self.config.goal_monthly,
            )
        )
        self.codec = BackupCodec(self.store, self.sessions, self.profile)
        self.views = ViewCache(self.store)

        self._db: Optional[Database] = None
        self._loading = False
        self._selected_id: Optional[str] = None
        self._listeners: list[StateListener] = []
        self._batch_depth = 0
        self._pending_change = False

        self.store.subscribe(self._on_change)
        self.sessions.subscribe(self._on_change)

    # ========================================================================
    # Reactive State
    # ========================================================================

    @property
    def state(self) -> ShelfState:
        """Current state snapshot."""
        return ShelfState(
            books=tuple(self.store.all()),
            loading=self._loading,
            active_timer=self.sessions.active_timer,
            selected_id=self._selected_id,
        )

    @property
    def books(self) -> list[BookRecord]:
        return self.store.all()

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def active_timer(self) -> Optional[ActiveTimer]:
        return self.sessions.active_timer

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with the new state after every change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def view(self, config: Optional[FilterConfig] = None) -> tuple[BookRecord, ...]:
        """Filtered, sorted books for display. Memoized until the next mutation."""
        return self.views.get(config)

    @contextmanager
    def _batched(self) -> Generator[None, None, None]:
        """Collapse the notifications of several mutations into one."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._pending_change:
                self._pending_change = False
                self._on_change()

    def _on_change(self) -> None:
        if self._batch_depth:
            self._pending_change = True
            return
        if self._db is not None and self.config.autosave and not self._loading:
            self.save()
        self._publish()

    def _publish(self) -> None:
        state = self.state
        for listener in list(self._listeners):
            listener(state)

    # ========================================================================
    # Collection Operations
    # ========================================================================

    def add_book(self, book: Union[BookCreate, Mapping[str, Any]]) -> BookRecord:
        return self.store.add(book)

    def update_book(self, book_id: str, changes: Union[BookUpdate, Mapping[str, Any]]) -> BookRecord:
        return self.store.update(book_id, changes)

    def get_book(self, book_id: str) -> Optional[BookRecord]:
        return self.store.get(book_id)

    def delete_book(self, book_id: str) -> BookRecord:
        """Delete one book, cancelling its reading session if one is running."""
        with self._batched(), self.store.lock:
            book = self.store.delete(book_id)
            self._forget([book_id])
        return book

    def bulk_delete_books(self, book_ids: Iterable[str]) -> list[str]:
        """Delete every listed book that exists; unknown ids are ignored."""
        with self._batched(), self.store.lock:
            removed = self.store.bulk_delete(book_ids)
            self._forget(removed)
        return removed

    def _forget(self, removed: Iterable[str]) -> None:
        removed = set(removed)
        timer = self.sessions.active_timer
        if timer is not None and timer.book_id in removed:
            self.sessions.cancel_session()
        if self._selected_id in removed:
            self._selected_id = None

    def add_note(self, book_id: str, content: str) -> BookNote:
        return self.store.add_note(book_id, content)

    def delete_note(self, book_id: str, note_id: str) -> bool:
        return self.store.delete_note(book_id, note_id)

    def check_duplicate(
        self,
        title: Optional[str],
        isbn: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> DuplicateCheck:
        return self.store.check_duplicate(title, isbn, exclude_id)

    # ========================================================================
    # Reading
    # ========================================================================

    def start_reading(self, book_id: str) -> ActiveTimer:
        with self._batched():
            return self.sessions.start_session(book_id)

    def stop_reading(
        self,
        book_id: str,
        elapsed_minutes: Optional[float] = None,
        progress_delta: Optional[float] = None,
    ) -> ReadingLogEntry:
        with self._batched():
            return self.sessions.stop_session(book_id, elapsed_minutes, progress_delta)

    def cancel_reading(self) -> bool:
        return self.sessions.cancel_session()

    def log_reading(
        self,
        book_id: str,
        new_progress: float,
        duration_minutes: Optional[float] = None,
    ) -> ReadingLogEntry:
        return self.progress.log_reading(book_id, new_progress, duration_minutes)

    def reading_history(self, book_id: Optional[str] = None) -> list[ReadingLogEntry]:
        return self.progress.history(book_id)

    # ========================================================================
    # Profile and Stats
    # ========================================================================

    def update_profile(self, **fields: Any) -> UserProfile:
        profile = self.profile.update_profile(**fields)
        self._on_change()
        return profile

    def set_reading_goal(self, yearly: int, monthly: int) -> ReadingGoal:
        goal = self.profile.set_reading_goal(yearly, monthly)
        self._on_change()
        return goal

    def streak(self, today: Optional[date] = None) -> int:
        """Current reading streak in days."""
        return calculate_streak(self.store.reading_logs(), today or self.store.now().date())

    def yearly_stats(self, today: Optional[date] = None) -> YearlyStats:
        return yearly_stats(self.store.all(), today or self.store.now().date())

    # ========================================================================
    # Backup
    # ========================================================================

    def export_snapshot(self) -> BackupDocument:
        return self.codec.export_snapshot()

    def export_json(self, pretty: bool = True) -> str:
        return self.codec.export_json(pretty=pretty)

    def import_snapshot(self, payload: Payload) -> ImportResult:
        """Replace everything with a backup. Listeners see one change."""
        with self._batched():
            result = self.codec.import_snapshot(payload)
            self._selected_id = None
        return result

    async def export_snapshot_async(self, pretty: bool = True) -> str:
        return await self.codec.export_snapshot_async(pretty=pretty)

    async def import_snapshot_async(self, payload: Payload) -> ImportResult:
        """Import a backup, parsing off the event loop."""
        document = await asyncio.to_thread(self.codec.parse, payload)
        return self.import_snapshot(document)

    # ========================================================================
    # Storage
    # ========================================================================

    def attach_storage(self, db: Database) -> Optional[ImportResult]:
        """Load the saved snapshot from ``db`` and save to it from now on.

        ``loading`` is True while the snapshot is being restored.
        """
        self._db = db
        self._loading = True
        self._publish()
        try:
            snapshot = db.load_snapshot()
            result = None
            if snapshot is not None:
                with self._batched():
                    result = self.codec.import_snapshot(snapshot)
        finally:
            self._loading = False
        logger.info("Loaded %d books from %s", len(self.store), db.db_path)
        self._publish()
        return result

    def save(self) -> None:
        """Write the current snapshot to attached storage."""
        if self._db is None:
            return
        self._db.save_snapshot(self.codec.export_snapshot())

    # ========================================================================
    # View-layer Intents
    # ========================================================================

    def on_select(self, book_id: str) -> BookRecord:
        """A book card was selected."""
        book = self.store.require(book_id)
        self._selected_id = book_id
        self._publish()
        return book

    def on_bulk_delete(self, book_ids: Iterable[str]) -> list[str]:
        return self.bulk_delete_books(book_ids)

    def on_start_reading(self, book_id: str) -> ActiveTimer:
        return self.start_reading(book_id)

    def on_stop_reading(self, book_id: str, progress_delta: Optional[float] = None) -> ReadingLogEntry:
        """Stop the timer; the duration is the wall-clock time since start."""
        return self.stop_reading(book_id, progress_delta=progress_delta)

    def on_log_progress(self, book_id: str, value: float) -> ReadingLogEntry:
        return self.log_reading(book_id, value)
