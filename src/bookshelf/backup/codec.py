"""Backup export and import.

Serializes the whole collection, reading history, active timer and profile
to a portable JSON document, and restores it by wholesale replacement.
Import never merges: the current state is either fully replaced or left
untouched.
"""

import asyncio
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

import pydantic

from ..db.schemas import BackupDocument
from ..errors import FormatError
from ..library.profile import ProfileState
from ..library.store import CollectionStore
from ..reading.session import SessionTracker

logger = logging.getLogger(__name__)

BACKUP_VERSION = "v3"

Payload = Union[BackupDocument, Mapping[str, Any], str, bytes]


@dataclass
class ImportResult:
    """Result of an import."""

    book_count: int
    reading_log_count: int = 0
    timer_restored: bool = False


def _upgrade_legacy_books(data: dict[str, Any]) -> dict[str, Any]:
    """Lift per-book ``readingLogs`` of older exports into the top-level history.

    Older documents stored ``{date, pagesRead}`` pairs inside each book,
    where ``pagesRead`` was the absolute progress at that point.
    """
    if data.get("readingLogs") is not None:
        return data

    books = []
    history = []
    for raw in data["books"]:
        if not isinstance(raw, Mapping) or "readingLogs" not in raw:
            books.append(raw)
            continue
        book = dict(raw)
        legacy_logs = book.pop("readingLogs") or []
        book_id = str(book.get("id", ""))
        previous = 0.0
        for index, log in enumerate(legacy_logs):
            if not isinstance(log, Mapping) or "date" not in log:
                continue
            progress = float(log.get("pagesRead") or 0)
            history.append({
                "id": f"{book_id}-log-{index}",
                "bookId": book_id,
                "progressDelta": max(0.0, progress - previous),
                "progress": progress,
                "loggedAt": log["date"],
            })
            previous = progress
        books.append(book)

    return {**data, "books": books, "readingLogs": history}


def _check_unique_ids(document: BackupDocument) -> BackupDocument:
    seen: set[str] = set()
    for book in document.books:
        if book.id in seen:
            raise FormatError(f"Invalid backup document: duplicate book id {book.id}")
        seen.add(book.id)
    return document


class BackupCodec:
    """Builds backup documents and restores them."""

    def __init__(
        self,
        store: CollectionStore,
        tracker: Optional[SessionTracker] = None,
        profile: Optional[ProfileState] = None,
    ):
        """Initialize codec.

        Args:
            store: Collection store to export from / import into
            tracker: Session tracker whose active timer is carried along
            profile: Profile and reading goal carried along
        """
        self.store = store
        self.tracker = tracker
        self.profile = profile or ProfileState()

    # ========================================================================
    # Export
    # ========================================================================

    def export_snapshot(self) -> BackupDocument:
        """Snapshot the full collection plus profile.

        Returns:
            BackupDocument with book_count == len(books)
        """
        with self.store.lock:
            document = BackupDocument(
                version=BACKUP_VERSION,
                exported_at=self.store.now(),
                books=self.store.all(),
                profile=self.profile.profile,
                reading_logs=self.store.reading_logs(),
                active_timer=self.tracker.active_timer if self.tracker else None,
                reading_goal=self.profile.reading_goal,
            )
        logger.info("Exported %d books", document.book_count)
        return document

    def export_json(self, pretty: bool = True) -> str:
        """Export the full snapshot as JSON text."""
        return self.dumps(self.export_snapshot(), pretty=pretty)

    @staticmethod
    def dumps(document: BackupDocument, pretty: bool = True) -> str:
        """Serialize a document to JSON text."""
        if pretty:
            return json.dumps(document.to_wire(), indent=2, ensure_ascii=False)
        return json.dumps(document.to_wire(), ensure_ascii=False)

    # ========================================================================
    # Import
    # ========================================================================

    def parse(self, payload: Payload) -> BackupDocument:
        """Parse and validate a backup payload without touching any state.

        Args:
            payload: BackupDocument, mapping, or JSON text/bytes

        Raises:
            FormatError: If the payload is not a valid backup document
        """
        if isinstance(payload, BackupDocument):
            return _check_unique_ids(payload)

        if isinstance(payload, (str, bytes, bytearray)):
            try:
                payload = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise FormatError(f"Invalid backup file: {e}") from e

        if not isinstance(payload, Mapping):
            raise FormatError("Invalid data format: backup must be a JSON object")

        books = payload.get("books")
        if not isinstance(books, list):
            raise FormatError("Invalid data format: missing books list")

        try:
            data = _upgrade_legacy_books(dict(payload))
        except (TypeError, ValueError) as e:
            raise FormatError(f"Invalid reading logs in backup: {e}") from e

        try:
            document = BackupDocument.model_validate(data)
        except pydantic.ValidationError as e:
            raise FormatError(f"Invalid backup document: {e}") from e

        return _check_unique_ids(document)

    def import_snapshot(self, payload: Payload) -> ImportResult:
        """Replace the collection with the contents of a backup.

        Everything is validated before the swap; on any FormatError the
        current collection, history, timer and profile are left untouched.

        Args:
            payload: BackupDocument, mapping, or JSON text/bytes

        Returns:
            ImportResult with the number of books now in the collection

        Raises:
            FormatError: If the payload is not a valid backup document
        """
        try:
            document = self.parse(payload)
        except FormatError as e:
            logger.warning("Import rejected: %s", e)
            raise

        book_ids = {book.id for book in document.books}
        timer = document.active_timer
        if timer is not None and timer.book_id not in book_ids:
            logger.warning("Dropping imported timer for unknown book %s", timer.book_id)
            timer = None

        with self.store.lock:
            if self.tracker and self.tracker.active_timer and timer is None:
                logger.info("Import discards the active session")
            self.store.replace_all(document.books, document.reading_logs)
            if self.tracker:
                self.tracker.restore(timer)
            self.profile.replace(document.profile, document.reading_goal)

        logger.info("Imported %d books", len(document.books))
        return ImportResult(
            book_count=len(document.books),
            reading_log_count=len(document.reading_logs),
            timer_restored=timer is not None and self.tracker is not None,
        )

    # ========================================================================
    # Async
    # ========================================================================

    async def export_snapshot_async(self, pretty: bool = True) -> str:
        """Export as JSON text, serializing off the event loop.

        The snapshot itself is taken synchronously so it is consistent.
        """
        document = self.export_snapshot()
        return await asyncio.to_thread(self.dumps, document, pretty)

    async def import_snapshot_async(self, payload: Payload) -> ImportResult:
        """Import a backup, parsing off the event loop.

        The swap runs on the caller's thread as one locked step.
        """
        document = await asyncio.to_thread(self.parse, payload)
        return self.import_snapshot(document)
