"""Reading statistics and analytics."""

from .analytics import (
    YearlyStats,
    calculate_streak,
    calculate_streaks,
    progress_percentage,
    yearly_stats,
)

__all__ = [
    "YearlyStats",
    "calculate_streak",
    "calculate_streaks",
    "progress_percentage",
    "yearly_stats",
]
