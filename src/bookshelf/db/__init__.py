"""Book schemas and local SQLite storage."""

from .models import AppState, Book, ReadingLog
from .schemas import (
    ActiveTimer,
    BackupDocument,
    BookCreate,
    BookFormat,
    BookRecord,
    BookStatus,
    BookUpdate,
    ProgressMode,
    ReadingLogEntry,
)
from .sqlite import Database, get_db

__all__ = [
    "AppState",
    "Book",
    "ReadingLog",
    "ActiveTimer",
    "BackupDocument",
    "BookCreate",
    "BookFormat",
    "BookRecord",
    "BookStatus",
    "BookUpdate",
    "ProgressMode",
    "ReadingLogEntry",
    "Database",
    "get_db",
]
