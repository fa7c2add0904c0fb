"""Reading analytics.

Streaks from the reading history, per-year shelf counts, and progress
percentages. Everything here is a pure function of books and log entries.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from ..db.schemas import BookRecord, BookStatus, ReadingLogEntry


@dataclass
class YearlyStats:
    """Shelf counts for the current year and month."""

    year: int
    month: int
    read_this_year: int = 0
    read_this_month: int = 0
    total_read: int = 0
    reading: int = 0
    want_to_read: int = 0
    paused: int = 0
    paused_this_year: int = 0
    paused_this_month: int = 0
    dnf: int = 0
    dnf_this_year: int = 0
    dnf_this_month: int = 0
    added_this_month: int = 0
    worst_book: Optional[BookRecord] = None
    spent: float = 0.0


def progress_percentage(book: BookRecord) -> int:
    """Percentage of the book read, 0-100.

    Finished books are always 100. Without page or chapter totals the
    progress value itself is read as a percentage.
    """
    if book.status == BookStatus.READ:
        return 100
    target = book.target_progress()
    if target <= 0:
        return 0
    return min(100, int(round(book.progress / target * 100)))


def calculate_streaks(entries: Iterable[ReadingLogEntry], today: date) -> tuple[int, int]:
    """Calculate reading streaks from log entries.

    The current streak counts consecutive reading days ending today, or
    yesterday if nothing has been logged yet today.

    Args:
        entries: Reading log entries
        today: Reference date

    Returns:
        Tuple of (current_streak, longest_streak)
    """
    reading_dates = sorted({entry.logged_at.date() for entry in entries}, reverse=True)
    if not reading_dates:
        return 0, 0

    current_streak = 0
    check_date = today

    # Allow for yesterday if not read today
    if reading_dates[0] == check_date - timedelta(days=1):
        check_date = check_date - timedelta(days=1)

    for reading_date in reading_dates:
        if reading_date == check_date:
            current_streak += 1
            check_date -= timedelta(days=1)
        elif reading_date < check_date:
            break

    longest_streak = 1
    current_run = 1
    sorted_dates = sorted(reading_dates)

    for i in range(1, len(sorted_dates)):
        if sorted_dates[i] - sorted_dates[i - 1] == timedelta(days=1):
            current_run += 1
            longest_streak = max(longest_streak, current_run)
        else:
            current_run = 1

    return current_streak, longest_streak


def calculate_streak(entries: Iterable[ReadingLogEntry], today: date) -> int:
    """Current reading streak in days."""
    return calculate_streaks(entries, today)[0]


def _in_month(value: Optional[datetime], year: int, month: int) -> bool:
    return value is not None and value.year == year and value.month == month


def _in_year(value: Optional[datetime], year: int) -> bool:
    return value is not None and value.year == year


def yearly_stats(books: Iterable[BookRecord], today: date) -> YearlyStats:
    """Count finished, paused and abandoned books for the year of ``today``."""
    books = list(books)
    year, month = today.year, today.month
    stats = YearlyStats(year=year, month=month)

    read_this_year = [
        b for b in books if b.status == BookStatus.READ and _in_year(b.finished_at, year)
    ]
    stats.read_this_year = len(read_this_year)
    stats.read_this_month = sum(1 for b in read_this_year if b.finished_at.month == month)
    stats.total_read = sum(1 for b in books if b.status == BookStatus.READ)
    stats.reading = sum(1 for b in books if b.status == BookStatus.READING)
    stats.want_to_read = sum(1 for b in books if b.status == BookStatus.WANT_TO_READ)

    paused = [b for b in books if b.status == BookStatus.PAUSED]
    stats.paused = len(paused)
    stats.paused_this_year = sum(1 for b in paused if _in_year(b.paused_at, year))
    stats.paused_this_month = sum(1 for b in paused if _in_month(b.paused_at, year, month))

    dnf = [b for b in books if b.status == BookStatus.DNF]
    stats.dnf = len(dnf)
    stats.dnf_this_year = sum(1 for b in dnf if _in_year(b.dnf_at, year))
    stats.dnf_this_month = sum(1 for b in dnf if _in_month(b.dnf_at, year, month))

    stats.added_this_month = sum(1 for b in books if _in_month(b.added_at, year, month))

    # Lowest rated book finished this year; unrated books don't count
    rated = [b for b in read_this_year if b.rating > 0]
    if rated:
        stats.worst_book = min(rated, key=lambda b: b.rating)

    stats.spent = round(sum(b.price or 0 for b in books if b.is_owned), 2)
    return stats
