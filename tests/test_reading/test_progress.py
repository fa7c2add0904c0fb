"""Tests for progress logging."""

import math

import pytest

from bookshelf.errors import NotFoundError, ValidationError
from bookshelf.reading.progress import validate_progress


class TestValidateProgress:
    """Tests for validate_progress."""

    @pytest.mark.parametrize("value", [0, 12, 3.5])
    def test_accepts_non_negative_numbers(self, value):
        """Test valid values come back as floats."""
        assert validate_progress(value) == float(value)

    @pytest.mark.parametrize("value", [-5, -0.1, math.nan, math.inf, "12", None, True])
    def test_rejects_invalid(self, value):
        """Test invalid values raise ValidationError."""
        with pytest.raises(ValidationError):
            validate_progress(value)


class TestLogReading:
    """Tests for ProgressLogger.log_reading."""

    def test_sets_progress_and_records_delta(self, store, progress_logger, clock):
        """Test the entry carries the delta and the book the new value."""
        book = store.add({"title": "Dune", "progress": 10})

        entry = progress_logger.log_reading(book.id, 25)

        assert store.get(book.id).progress == 25
        assert entry.progress_delta == 15
        assert entry.progress == 25
        assert entry.duration_minutes is None
        assert entry.logged_at == clock.current
        assert progress_logger.history(book.id) == [entry]

    def test_negative_progress_leaves_book_unchanged(self, store, progress_logger):
        """Test a rejected value changes nothing."""
        book = store.add({"title": "Dune", "progress": 10})
        version = store.version

        with pytest.raises(ValidationError):
            progress_logger.log_reading(book.id, -5)

        assert store.get(book.id).progress == 10
        assert progress_logger.history() == []
        assert store.version == version

    def test_non_finite_rejected(self, store, progress_logger):
        """Test NaN and infinity fail."""
        book = store.add({"title": "Dune"})
        for value in (math.nan, math.inf):
            with pytest.raises(ValidationError):
                progress_logger.log_reading(book.id, value)

    def test_downward_correction(self, store, progress_logger):
        """Test lowering progress overwrites it with a zero delta."""
        book = store.add({"title": "Dune", "progress": 50})

        entry = progress_logger.log_reading(book.id, 40)

        assert store.get(book.id).progress == 40
        assert entry.progress_delta == 0

    def test_invalid_duration_rejected(self, store, progress_logger):
        """Test negative durations fail."""
        book = store.add({"title": "Dune"})
        with pytest.raises(ValidationError):
            progress_logger.log_reading(book.id, 10, duration_minutes=-1)
        assert store.get(book.id).progress == 0

    def test_unknown_book(self, progress_logger):
        """Test NotFoundError for missing books."""
        with pytest.raises(NotFoundError):
            progress_logger.log_reading("missing", 10)

    def test_totals(self, store, progress_logger):
        """Test summed deltas and durations."""
        book = store.add({"title": "Dune"})
        progress_logger.log_reading(book.id, 20, duration_minutes=30)
        progress_logger.log_reading(book.id, 50, duration_minutes=15)
        progress_logger.log_reading(book.id, 45)

        assert progress_logger.total_read(book.id) == 50
        assert progress_logger.time_spent_minutes(book.id) == 45
        assert len(progress_logger.history()) == 3
