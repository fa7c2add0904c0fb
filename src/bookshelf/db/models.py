"""SQLAlchemy ORM models for local SQLite storage.

Tables:
- books: One row per book, full record kept as a JSON payload
- reading_logs: Reading history entries
- app_state: Small key/value documents (profile, reading goal, active timer)
"""

import json
from typing import Any

from sqlalchemy import Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from .schemas import BookRecord, ReadingLogEntry


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Book(Base):
    """Book row. Indexed columns mirror the payload for querying."""

    __tablename__ = "books"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[str] = mapped_column(String(500), default="")
    status: Mapped[str] = mapped_column(String(20), index=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<Book(id={self.id}, title='{self.title[:30]}...')>"

    @classmethod
    def from_record(cls, record: BookRecord, position: int) -> "Book":
        """Build a row from a book record."""
        return cls(
            id=record.id,
            position=position,
            title=record.title,
            author=record.author,
            status=record.status.value,
            payload=json.dumps(record.to_wire(), ensure_ascii=False),
        )

    def to_record(self) -> BookRecord:
        """Rebuild the book record from the stored payload."""
        return BookRecord.model_validate(json.loads(self.payload))


class ReadingLog(Base):
    """Reading history entry.

    No foreign key to books: history outlives deleted books.
    """

    __tablename__ = "reading_logs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    book_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    logged_at: Mapped[str] = mapped_column(String(40), index=True)  # ISO datetime
    payload: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<ReadingLog(book_id={self.book_id}, logged_at={self.logged_at})>"

    @classmethod
    def from_entry(cls, entry: ReadingLogEntry, position: int) -> "ReadingLog":
        return cls(
            id=entry.id,
            position=position,
            book_id=entry.book_id,
            logged_at=entry.logged_at.isoformat(),
            payload=json.dumps(entry.to_wire()),
        )

    def to_entry(self) -> ReadingLogEntry:
        return ReadingLogEntry.model_validate(json.loads(self.payload))


class AppState(Base):
    """Key/value store for small JSON documents."""

    __tablename__ = "app_state"

    key: Mapped[str] = mapped_column(String(50), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def get_value(self) -> Any:
        """Decode the JSON value."""
        return json.loads(self.value)

    def set_value(self, value: Any) -> None:
        """Encode a JSON value."""
        self.value = json.dumps(value, ensure_ascii=False)
