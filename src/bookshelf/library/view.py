"""Filtered and sorted projections of the collection.

``derive_view`` is a pure function of (books, config). ``ViewCache``
memoizes projections against the store's version counter so repeated
renders of an unchanged collection reuse the previous result.
"""

import unicodedata
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Optional

from ..db.schemas import OWNERSHIP_SOLD, BookFormat, BookRecord, BookStatus
from .store import CollectionStore

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class StatusFilter(str, Enum):
    """Logical shelf categories offered by the library screen."""

    ALL = "All"
    READING = "Reading"
    READ = "Read"
    WANT_TO_READ = "Want to Read"
    PAUSED = "Paused"
    DNF = "DNF"
    OWNED = "Owned"
    TO_BUY = "To Buy"
    SOLD = "Sold"
    SPICY = "Spicy"
    WORST_REVIEW = "Worst Review"


class FormatFilter(str, Enum):
    """Format filter; ALL disables it."""

    ALL = "All"
    PHYSICAL = BookFormat.PHYSICAL.value
    EBOOK = BookFormat.EBOOK.value
    AUDIOBOOK = BookFormat.AUDIOBOOK.value


class SortKey(str, Enum):
    """Sort orders for the library screen."""

    ALPHABETICAL = "alphabetical"
    RECENTLY_ADDED = "recently-added"
    RECENTLY_BOUGHT = "recently-bought"


@dataclass(frozen=True)
class FilterConfig:
    """Transient filter/sort settings. Hashable, never persisted."""

    status_filter: StatusFilter = StatusFilter.ALL
    format_filter: FormatFilter = FormatFilter.ALL
    sort_key: SortKey = SortKey.RECENTLY_ADDED

    def __post_init__(self):
        # Accept raw strings from the UI layer
        object.__setattr__(self, "status_filter", StatusFilter(self.status_filter))
        object.__setattr__(self, "format_filter", FormatFilter(self.format_filter))
        object.__setattr__(self, "sort_key", SortKey(self.sort_key))


_STATUS_EQUALITY = {
    StatusFilter.READING: BookStatus.READING,
    StatusFilter.READ: BookStatus.READ,
    StatusFilter.WANT_TO_READ: BookStatus.WANT_TO_READ,
    StatusFilter.PAUSED: BookStatus.PAUSED,
    StatusFilter.DNF: BookStatus.DNF,
}


def matches_status(book: BookRecord, status_filter: StatusFilter) -> bool:
    """Check a book against a shelf category."""
    if status_filter == StatusFilter.ALL:
        return True
    if status_filter in _STATUS_EQUALITY:
        return book.status == _STATUS_EQUALITY[status_filter]
    if status_filter == StatusFilter.OWNED:
        return book.is_owned
    if status_filter == StatusFilter.TO_BUY:
        return book.is_want_to_buy
    if status_filter == StatusFilter.SOLD:
        return book.ownership_status == OWNERSHIP_SOLD
    if status_filter == StatusFilter.SPICY:
        return book.has_spice or book.spice_rating > 0
    if status_filter == StatusFilter.WORST_REVIEW:
        return 0 < book.rating <= 2
    return False


def matches_format(book: BookRecord, format_filter: FormatFilter) -> bool:
    """Check a book against the format filter."""
    if format_filter == FormatFilter.ALL:
        return True
    return book.format is not None and book.format.value == format_filter.value


def title_sort_key(title: str) -> str:
    """Case- and accent-insensitive key. Titles that fold alike tie."""
    decomposed = unicodedata.normalize("NFKD", title)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return folded


def _sort_key_func(sort_key: SortKey) -> tuple[Callable[[BookRecord], object], bool]:
    """Return (key function, reverse) for a sort order."""
    if sort_key == SortKey.ALPHABETICAL:
        return (lambda book: title_sort_key(book.title)), False
    if sort_key == SortKey.RECENTLY_BOUGHT:
        return (lambda book: book.bought_date or EPOCH), True
    return (lambda book: book.added_at), True


def derive_view(books: Iterable[BookRecord], config: Optional[FilterConfig] = None) -> list[BookRecord]:
    """Filter and sort books for display.

    Never mutates ``books``. Python's sort is stable (also with
    ``reverse=True``), so records with equal keys keep insertion order.

    Args:
        books: Books in insertion order
        config: Filter and sort settings (default: everything, recently added)

    Returns:
        New list of the matching books in display order
    """
    config = config or FilterConfig()
    selected = [
        book
        for book in books
        if matches_status(book, config.status_filter)
        and matches_format(book, config.format_filter)
    ]
    key, reverse = _sort_key_func(config.sort_key)
    return sorted(selected, key=key, reverse=reverse)


class ViewCache:
    """Memoizes derived views for one store.

    Entries are keyed by filter config and discarded whenever the store's
    version moves on.
    """

    def __init__(self, store: CollectionStore):
        self.store = store
        self._version = store.version
        self._views: dict[FilterConfig, tuple[BookRecord, ...]] = {}

    def get(self, config: Optional[FilterConfig] = None) -> tuple[BookRecord, ...]:
        """Return the projection for ``config``, recomputing if stale."""
        config = config or FilterConfig()
        with self.store.lock:
            if self._version != self.store.version:
                self._views.clear()
                self._version = self.store.version
            view = self._views.get(config)
            if view is None:
                view = tuple(derive_view(self.store.all(), config))
                self._views[config] = view
            return view

    def invalidate(self) -> None:
        self._views.clear()
