"""In-memory collection store.

Owns the canonical, insertion-ordered book collection and the reading
history. All mutation passes through this class; every mutation bumps
``version`` so memoized views know to recompute.
"""

import logging
import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Union
from uuid import uuid4

import pydantic

from ..db.schemas import (
    BookCreate,
    BookNote,
    BookRecord,
    BookStatus,
    BookUpdate,
    ReadingLogEntry,
    as_utc,
    utcnow,
)
from ..errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Listener = Callable[[], None]


@dataclass
class DuplicateCheck:
    """Result of a duplicate lookup."""

    exists: bool
    match_type: Optional[str] = None  # "Title" or "ISBN"
    book_id: Optional[str] = None


def _validate(model: type[pydantic.BaseModel], data: Any) -> Any:
    """Validate into ``model``, re-raising pydantic errors as ValidationError."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e


def _new_id() -> str:
    return str(uuid4())


class CollectionStore:
    """Ordered collection of book records with unique ids."""

    def __init__(self, clock: Optional[Clock] = None, id_factory: Optional[Callable[[], str]] = None):
        """Initialize an empty store.

        Args:
            clock: Returns the current time (default: UTC now)
            id_factory: Generates new record ids (default: uuid4)
        """
        self._clock = clock or utcnow
        self._new_id = id_factory or _new_id
        self._books: dict[str, BookRecord] = {}
        self._reading_logs: list[ReadingLogEntry] = []
        self._listeners: list[Listener] = []
        self._version = 0
        self.lock = threading.RLock()

    # ========================================================================
    # Read Accessors
    # ========================================================================

    @property
    def version(self) -> int:
        """Incremented on every mutation."""
        return self._version

    def now(self) -> datetime:
        """Current time according to the store's clock."""
        return as_utc(self._clock())

    def new_id(self) -> str:
        return self._new_id()

    def get(self, book_id: str) -> Optional[BookRecord]:
        """Get a book by ID."""
        return self._books.get(book_id)

    def require(self, book_id: str) -> BookRecord:
        """Get a book by ID, raising NotFoundError if absent."""
        book = self._books.get(book_id)
        if book is None:
            raise NotFoundError(book_id)
        return book

    def all(self) -> list[BookRecord]:
        """Snapshot of all books in insertion order."""
        return list(self._books.values())

    def reading_logs(self, book_id: Optional[str] = None) -> list[ReadingLogEntry]:
        """Snapshot of the reading history in log order."""
        if book_id is None:
            return list(self._reading_logs)
        return [entry for entry in self._reading_logs if entry.book_id == book_id]

    def __len__(self) -> int:
        return len(self._books)

    def __contains__(self, book_id: object) -> bool:
        return book_id in self._books

    def check_duplicate(
        self,
        title: Optional[str],
        isbn: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> DuplicateCheck:
        """Check whether a book with the same title or ISBN is already cataloged.

        Titles match case- and surrounding-whitespace-insensitively; ISBNs
        match exactly. A title match wins over an ISBN match.
        """
        wanted = (title or "").strip().lower()
        isbn_match = None
        for book in self._books.values():
            if book.id == exclude_id:
                continue
            if wanted and book.title.strip().lower() == wanted:
                return DuplicateCheck(exists=True, match_type="Title", book_id=book.id)
            if isbn and isbn_match is None and book.isbn == isbn:
                isbn_match = book
        if isbn_match is not None:
            return DuplicateCheck(exists=True, match_type="ISBN", book_id=isbn_match.id)
        return DuplicateCheck(exists=False)

    # ========================================================================
    # Mutations
    # ========================================================================

    def add(self, book: Union[BookCreate, Mapping[str, Any]]) -> BookRecord:
        """Append a new book with a generated id and added_at = now.

        Raises:
            ValidationError: If the title is empty or a field is invalid
        """
        create = _validate(BookCreate, book)
        with self.lock:
            now = self.now()
            data = create.model_dump()
            data["id"] = self._new_id()
            data["added_at"] = now
            record = _validate(BookRecord, data)
            record = self._apply_status_change(record, previous=None, now=now)
            self._books[record.id] = record
            self._bump()
        logger.debug("Added book %s (%s)", record.id, record.title)
        self._notify()
        return record

    def update(self, book_id: str, changes: Union[BookUpdate, Mapping[str, Any]]) -> BookRecord:
        """Merge fields into an existing book.

        A transition to ``reading`` stamps started_at if unset; ``read``
        stamps finished_at and sets progress to the book's total; ``paused``
        and ``dnf`` stamp paused_at / dnf_at.

        Raises:
            NotFoundError: If the book does not exist
            ValidationError: If the merged record is invalid
        """
        update = _validate(BookUpdate, changes)
        fields = update.model_dump(exclude_unset=True)
        with self.lock:
            current = self.require(book_id)
            merged = current.model_dump()
            merged.update(fields)
            record = _validate(BookRecord, merged)
            record = self._apply_status_change(record, previous=current.status, now=self.now())
            self._books[book_id] = record
            self._bump()
        logger.debug("Updated book %s: %s", book_id, sorted(fields))
        self._notify()
        return record

    def delete(self, book_id: str) -> BookRecord:
        """Remove a single book.

        Raises:
            NotFoundError: If the book does not exist
        """
        with self.lock:
            book = self.require(book_id)
            del self._books[book_id]
            self._bump()
        logger.debug("Deleted book %s", book_id)
        self._notify()
        return book

    def bulk_delete(self, book_ids: Iterable[str]) -> list[str]:
        """Remove every book whose id is in ``book_ids``.

        Unknown ids are ignored. Returns the ids actually removed, in
        collection order.
        """
        wanted = set(book_ids)
        with self.lock:
            removed = [book_id for book_id in self._books if book_id in wanted]
            if not removed:
                return []
            for book_id in removed:
                del self._books[book_id]
            self._bump()
        logger.debug("Bulk deleted %d of %d requested books", len(removed), len(wanted))
        self._notify()
        return removed

    def add_note(self, book_id: str, content: str) -> BookNote:
        """Attach a note to a book."""
        with self.lock:
            book = self.require(book_id)
            note = _validate(
                BookNote,
                {"id": self._new_id(), "content": content, "created_at": self.now()},
            )
            self._books[book_id] = book.model_copy(update={"notes": book.notes + (note,)})
            self._bump()
        self._notify()
        return note

    def delete_note(self, book_id: str, note_id: str) -> bool:
        """Remove a note from a book. Returns False if no such note."""
        with self.lock:
            book = self.require(book_id)
            notes = tuple(note for note in book.notes if note.id != note_id)
            if len(notes) == len(book.notes):
                return False
            self._books[book_id] = book.model_copy(update={"notes": notes})
            self._bump()
        self._notify()
        return True

    def commit_reading(self, book_id: str, progress: float, entry: ReadingLogEntry) -> BookRecord:
        """Write progress and append a history entry as one step."""
        with self.lock:
            book = self.require(book_id)
            record = book.model_copy(update={"progress": float(progress)})
            self._books[book_id] = record
            self._reading_logs.append(entry)
            self._bump()
        self._notify()
        return record

    def replace_all(
        self,
        books: Iterable[BookRecord],
        reading_logs: Iterable[ReadingLogEntry] = (),
    ) -> None:
        """Swap the whole collection and history wholesale.

        Callers validate beforehand; duplicate ids are rejected here before
        anything is replaced.
        """
        new_books: dict[str, BookRecord] = {}
        for book in books:
            if book.id in new_books:
                raise ValidationError(f"Duplicate book id: {book.id}")
            new_books[book.id] = book
        new_logs = list(reading_logs)
        with self.lock:
            self._books = new_books
            self._reading_logs = new_logs
            self._bump()
        self._notify()

    # ========================================================================
    # Change Notification
    # ========================================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every mutation. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _bump(self) -> None:
        self._version += 1

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    @staticmethod
    def _apply_status_change(
        record: BookRecord,
        previous: Optional[BookStatus],
        now: datetime,
    ) -> BookRecord:
        """Stamp dates and progress implied by a status transition.

        A ``reading`` record always ends up with ``started_at`` set, also
        when an update without a status change tries to clear it.
        """
        stamps: dict[str, Any] = {}
        if record.status == BookStatus.READING:
            if record.started_at is None:
                stamps["started_at"] = now
        elif record.status == previous:
            pass
        elif record.status == BookStatus.READ:
            if record.finished_at is None:
                stamps["finished_at"] = now
            stamps["progress"] = record.target_progress()
        elif previous is None:
            # Newly added books keep whatever paused/dnf dates they came with
            pass
        elif record.status == BookStatus.PAUSED:
            stamps["paused_at"] = now
        elif record.status == BookStatus.DNF:
            stamps["dnf_at"] = now

        if not stamps:
            return record
        return record.model_copy(update=stamps)
