"""Tests for reading analytics."""

from datetime import date, datetime, timezone

from bookshelf.db.schemas import BookRecord, ReadingLogEntry
from bookshelf.stats.analytics import (
    calculate_streak,
    calculate_streaks,
    progress_percentage,
    yearly_stats,
)


def _entry(day: date, index: int = 0) -> ReadingLogEntry:
    return ReadingLogEntry(
        id=f"{day.isoformat()}-{index}",
        book_id="b1",
        progress_delta=10,
        progress=10,
        logged_at=datetime(day.year, day.month, day.day, 20, 0, tzinfo=timezone.utc),
    )


def _book(**fields) -> BookRecord:
    data = {"id": "b1", "title": "Dune", "added_at": "2024-01-01"}
    data.update(fields)
    return BookRecord.model_validate(data)


class TestStreaks:
    """Tests for streak calculation."""

    def test_no_entries(self):
        """Test empty history."""
        assert calculate_streaks([], date(2025, 3, 10)) == (0, 0)

    def test_streak_ending_today(self):
        """Test consecutive days up to today."""
        entries = [_entry(date(2025, 3, d)) for d in (8, 9, 10)]
        assert calculate_streaks(entries, date(2025, 3, 10)) == (3, 3)

    def test_streak_ending_yesterday(self):
        """Test the streak survives until the end of today."""
        entries = [_entry(date(2025, 3, d)) for d in (8, 9)]
        assert calculate_streak(entries, date(2025, 3, 10)) == 2

    def test_broken_streak(self):
        """Test a gap before yesterday resets the current streak."""
        entries = [_entry(date(2025, 3, d)) for d in (1, 2, 3, 4, 7)]
        assert calculate_streaks(entries, date(2025, 3, 10)) == (0, 4)

    def test_multiple_entries_same_day(self):
        """Test one day counts once."""
        entries = [_entry(date(2025, 3, 10), i) for i in range(3)]
        assert calculate_streaks(entries, date(2025, 3, 10)) == (1, 1)


class TestProgressPercentage:
    """Tests for progress_percentage."""

    def test_pages(self):
        """Test percentage of total pages."""
        assert progress_percentage(_book(progress=132, total_pages=528)) == 25

    def test_chapters(self):
        """Test chapters mode."""
        book = _book(progress=5, total_chapters=20, progress_mode="chapters")
        assert progress_percentage(book) == 25

    def test_read_is_complete(self):
        """Test finished books are 100."""
        assert progress_percentage(_book(status="read", progress=3, total_pages=500)) == 100

    def test_capped(self):
        """Test overshooting the total caps at 100."""
        assert progress_percentage(_book(progress=600, total_pages=500)) == 100

    def test_without_totals(self):
        """Test progress is read as a percentage."""
        assert progress_percentage(_book(progress=40)) == 40


class TestYearlyStats:
    """Tests for yearly_stats."""

    def test_counts(self):
        """Test per-year and per-month counts."""
        books = [
            _book(id="1", status="read", finished_at="2025-03-02", rating=4),
            _book(id="2", status="read", finished_at="2025-01-15", rating=2),
            _book(id="3", status="read", finished_at="2024-12-30", rating=1),
            _book(id="4", status="reading", added_at="2025-03-01"),
            _book(id="5", status="paused", paused_at="2025-02-01"),
            _book(id="6", status="dnf", dnf_at="2025-03-05", added_at="2025-03-04"),
            _book(id="7", is_owned=True, price=12.5),
            _book(id="8", is_owned=True, price=7.25),
            _book(id="9", is_owned=False, price=100),
        ]

        stats = yearly_stats(books, date(2025, 3, 10))

        assert stats.read_this_year == 2
        assert stats.read_this_month == 1
        assert stats.total_read == 3
        assert stats.reading == 1
        assert stats.want_to_read == 3
        assert stats.paused == 1
        assert stats.paused_this_year == 1
        assert stats.paused_this_month == 0
        assert stats.dnf == 1
        assert stats.dnf_this_month == 1
        assert stats.added_this_month == 2
        assert stats.worst_book.id == "2"
        assert stats.spent == 19.75

    def test_unrated_books_not_worst(self):
        """Test zero ratings are ignored."""
        books = [_book(status="read", finished_at="2025-03-02")]
        assert yearly_stats(books, date(2025, 3, 10)).worst_book is None

    def test_empty_library(self):
        """Test no books."""
        stats = yearly_stats([], date(2025, 3, 10))
        assert stats.year == 2025
        assert stats.total_read == 0
        assert stats.spent == 0
