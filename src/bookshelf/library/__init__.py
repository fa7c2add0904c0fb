"""Book collection store and derived views."""

from .profile import ProfileState
from .store import CollectionStore, DuplicateCheck
from .view import (
    FilterConfig,
    FormatFilter,
    SortKey,
    StatusFilter,
    ViewCache,
    derive_view,
)

__all__ = [
    "ProfileState",
    "CollectionStore",
    "DuplicateCheck",
    "FilterConfig",
    "FormatFilter",
    "SortKey",
    "StatusFilter",
    "ViewCache",
    "derive_view",
]
