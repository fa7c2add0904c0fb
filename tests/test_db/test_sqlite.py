"""Tests for SQLite snapshot persistence."""

from bookshelf.db.models import AppState, Book, ReadingLog
from bookshelf.db.schemas import ActiveTimer, BackupDocument, ReadingGoal, UserProfile
from bookshelf.db.sqlite import Database, get_db, reset_db


class TestDatabaseCreation:
    """Tests for database initialization."""

    def test_database_creates_tables(self, db: Database):
        """Test that database creates all required tables."""
        with db.get_session() as session:
            # These queries should not raise
            session.query(Book).first()
            session.query(ReadingLog).first()
            session.query(AppState).first()

    def test_database_path_created(self, db: Database):
        """Test that database file is created."""
        assert db.db_path.exists()

    def test_in_memory_database(self):
        """Test in-memory databases share one connection."""
        database = Database(":memory:")
        database.create_tables()
        assert database.count_books() == 0
        assert database.load_snapshot() is None

    def test_global_instance(self, tmp_path):
        """Test get_db caches until reset."""
        first = get_db(str(tmp_path / "global.db"))
        assert get_db() is first
        reset_db()
        assert get_db(str(tmp_path / "other.db")) is not first


class TestSnapshots:
    """Tests for save_snapshot and load_snapshot."""

    def test_empty_database_has_no_snapshot(self, db: Database):
        """Test nothing saved yet."""
        assert db.load_snapshot() is None

    def test_save_and_load(self, db: Database, codec, tracker, profile, progress_logger, sample_books):
        """Test the loaded snapshot equals the saved one."""
        progress_logger.log_reading(sample_books[2].id, 80, duration_minutes=25)
        tracker.start_session(sample_books[2].id)
        profile.update_profile(name="Ana", theme="dark")
        profile.set_reading_goal(24, 2)
        document = codec.export_snapshot()

        db.save_snapshot(document)
        loaded = db.load_snapshot()

        assert loaded.books == document.books
        assert loaded.reading_logs == document.reading_logs
        assert loaded.active_timer == document.active_timer
        assert loaded.profile == document.profile
        assert loaded.reading_goal == ReadingGoal(yearly=24, monthly=2)
        assert db.count_books() == len(sample_books)

    def test_order_preserved(self, db: Database, codec, sample_books):
        """Test books come back in collection order."""
        db.save_snapshot(codec.export_snapshot())
        assert [b.id for b in db.load_snapshot().books] == [b.id for b in sample_books]

    def test_save_replaces_previous(self, db: Database, codec, store, sample_books):
        """Test a second save overwrites the first."""
        db.save_snapshot(codec.export_snapshot())
        store.bulk_delete([sample_books[0].id, sample_books[1].id])
        db.save_snapshot(codec.export_snapshot())

        assert db.count_books() == len(sample_books) - 2

    def test_cleared_timer_removed(self, db: Database):
        """Test saving without a timer deletes the stored one."""
        timer = ActiveTimer(book_id="b1", start_time="2025-01-01T10:00:00Z")
        db.save_snapshot(BackupDocument(books=[], active_timer=timer))
        assert db.load_snapshot().active_timer == timer

        db.save_snapshot(BackupDocument(books=[]))
        assert db.load_snapshot().active_timer is None

    def test_profile_only(self, db: Database):
        """Test an empty library with a profile is still a snapshot."""
        db.save_snapshot(BackupDocument(books=[], profile=UserProfile(name="Ana")))
        loaded = db.load_snapshot()
        assert loaded is not None
        assert loaded.books == []
        assert loaded.profile.name == "Ana"

    def test_indexed_columns(self, db: Database, codec, sample_books):
        """Test queryable columns mirror the payload."""
        db.save_snapshot(codec.export_snapshot())
        with db.get_session() as session:
            row = session.get(Book, sample_books[2].id)
            assert row.title == "Fourth Wing"
            assert row.status == "reading"
            assert row.to_record() == sample_books[2]
