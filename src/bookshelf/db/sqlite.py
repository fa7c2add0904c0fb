"""SQLite database operations.

Handles database connection, session management, and saving/loading
whole-collection snapshots.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, delete, func, select
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_config
from .models import AppState, Base, Book, ReadingLog
from .schemas import ActiveTimer, BackupDocument, ReadingGoal, UserProfile

logger = logging.getLogger(__name__)

PROFILE_KEY = "profile"
READING_GOAL_KEY = "reading_goal"
ACTIVE_TIMER_KEY = "active_timer"


class Database:
    """Database connection and snapshot persistence."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:". If None,
                     uses the configured BOOKSHELF_DB_PATH.
        """
        if db_path is None:
            db_path = str(get_config().db_path)

        self.db_path = Path(db_path)
        self._is_memory = str(db_path) == ":memory:"

        if not self._is_memory:
            self._ensure_directory()

        # For in-memory databases, use StaticPool to reuse the same connection
        # This ensures all sessions share the same in-memory database
        if self._is_memory:
            self.engine = create_engine(
                "sqlite:///:memory:",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                connect_args={"check_same_thread": False},
            )
        self.SessionLocal = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)

    def _ensure_directory(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session context manager."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ========================================================================
    # Snapshot Operations
    # ========================================================================

    def save_snapshot(self, document: BackupDocument) -> None:
        """Replace all stored data with ``document`` in one transaction."""
        with self.get_session() as s:
            s.execute(delete(Book))
            s.execute(delete(ReadingLog))
            s.add_all(Book.from_record(book, i) for i, book in enumerate(document.books))
            s.add_all(
                ReadingLog.from_entry(entry, i)
                for i, entry in enumerate(document.reading_logs)
            )
            self._set_state(s, PROFILE_KEY, document.profile.to_wire())
            self._set_state(
                s,
                READING_GOAL_KEY,
                document.reading_goal.to_wire() if document.reading_goal else None,
            )
            self._set_state(
                s,
                ACTIVE_TIMER_KEY,
                document.active_timer.to_wire() if document.active_timer else None,
            )
        logger.debug("Saved snapshot of %d books to %s", document.book_count, self.db_path)

    def load_snapshot(self) -> Optional[BackupDocument]:
        """Load the stored snapshot, or None if nothing has been saved yet."""
        with self.get_session() as s:
            profile = self._get_state(s, PROFILE_KEY)
            books = [
                row.to_record()
                for row in s.execute(select(Book).order_by(Book.position)).scalars()
            ]
            if profile is None and not books:
                return None
            logs = [
                row.to_entry()
                for row in s.execute(select(ReadingLog).order_by(ReadingLog.position)).scalars()
            ]
            goal = self._get_state(s, READING_GOAL_KEY)
            timer = self._get_state(s, ACTIVE_TIMER_KEY)

        return BackupDocument(
            books=books,
            profile=UserProfile.model_validate(profile or {}),
            reading_logs=logs,
            reading_goal=ReadingGoal.model_validate(goal) if goal else None,
            active_timer=ActiveTimer.model_validate(timer) if timer else None,
        )

    def count_books(self) -> int:
        """Number of stored books."""
        with self.get_session() as s:
            return s.execute(select(func.count()).select_from(Book)).scalar_one()

    def _get_state(self, s: Session, key: str):
        row = s.get(AppState, key)
        return row.get_value() if row else None

    def _set_state(self, s: Session, key: str, value) -> None:
        row = s.get(AppState, key)
        if value is None:
            if row:
                s.delete(row)
            return
        if row is None:
            row = AppState(key=key)
            s.add(row)
        row.set_value(value)


# Global database instance
_db: Optional[Database] = None


def get_db(db_path: Optional[str] = None) -> Database:
    """Get or create the global database instance."""
    global _db
    if _db is None:
        _db = Database(db_path)
        _db.create_tables()
    return _db


def reset_db() -> None:
    """Reset the global database instance. Used for testing."""
    global _db
    _db = None
