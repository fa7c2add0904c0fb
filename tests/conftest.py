"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the bookshelf engine, including
a controllable clock, wired-up components, sample books and a temporary
SQLite database.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator

import pytest

from bookshelf.backup.codec import BackupCodec
from bookshelf.config import Config, reset_config
from bookshelf.db.schemas import BookCreate, BookFormat, BookStatus
from bookshelf.db.sqlite import Database, reset_db
from bookshelf.library.profile import ProfileState
from bookshelf.library.store import CollectionStore
from bookshelf.reading.progress import ProgressLogger
from bookshelf.reading.session import SessionTracker
from bookshelf.shelf import Bookshelf


class FakeClock:
    """Clock whose time only moves when told to."""

    def __init__(self, start: datetime = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture(autouse=True)
def reset_globals() -> Generator[None, None, None]:
    """Reset cached config and database between tests."""
    reset_config()
    reset_db()
    yield
    reset_config()
    reset_db()


# ============================================================================
# Component Fixtures
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> CollectionStore:
    return CollectionStore(clock=clock)


@pytest.fixture
def progress_logger(store: CollectionStore) -> ProgressLogger:
    return ProgressLogger(store)


@pytest.fixture
def tracker(store: CollectionStore, progress_logger: ProgressLogger) -> SessionTracker:
    return SessionTracker(store, progress_logger)


@pytest.fixture
def profile() -> ProfileState:
    return ProfileState()


@pytest.fixture
def codec(store: CollectionStore, tracker: SessionTracker, profile: ProfileState) -> BackupCodec:
    return BackupCodec(store, tracker, profile)


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Configuration pointing at a temporary database, autosave on."""
    return Config(
        db_path=tmp_path / "bookshelf.db",
        autosave=True,
        min_session_minutes=0.1,
        goal_yearly=15,
        goal_monthly=2,
    )


@pytest.fixture
def shelf(config: Config, clock: FakeClock) -> Bookshelf:
    return Bookshelf(config=config, clock=clock)


@pytest.fixture
def db(tmp_path: Path) -> Database:
    """Create a test database instance."""
    database = Database(str(tmp_path / "test.db"))
    database.create_tables()
    return database


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_book_data() -> BookCreate:
    """Create sample book data for testing."""
    return BookCreate(
        title="Fourth Wing",
        author="Rebecca Yarros",
        format=BookFormat.PHYSICAL,
        status=BookStatus.WANT_TO_READ,
        total_pages=528,
        is_owned=True,
        price=29.99,
        genres=("Fantasy", "Romance"),
    )


@pytest.fixture
def sample_books(store: CollectionStore, clock: FakeClock) -> list:
    """Add a small, varied library, one minute apart."""
    books_data = [
        dict(
            title="Iron Flame",
            author="Rebecca Yarros",
            format="Ebook",
            status="want-to-read",
            is_want_to_buy=True,
        ),
        dict(
            title="A Court of Thorns and Roses",
            author="Sarah J. Maas",
            format="Physical",
            status="read",
            is_owned=True,
            rating=5,
            spice_rating=3,
            bought_date="2024-05-01",
        ),
        dict(
            title="Fourth Wing",
            author="Rebecca Yarros",
            format="Physical",
            status="reading",
            progress=45,
            total_pages=528,
            is_owned=True,
            bought_date="2024-09-15",
        ),
        dict(
            title="The Silent Patient",
            author="Alex Michaelides",
            format="Audiobook",
            status="dnf",
            rating=2,
            ownership_status="sold",
        ),
        dict(
            title="éclair and Other Stories",
            author="Anon",
            format="Ebook",
            status="paused",
            has_spice=True,
        ),
    ]
    books = []
    for data in books_data:
        books.append(store.add(data))
        clock.advance(minutes=1)
    return books
