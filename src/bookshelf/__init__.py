"""Bookshelf: book collection, reading sessions and backups."""

from .errors import (
    BookshelfError,
    ConflictError,
    FormatError,
    NotFoundError,
    StateError,
    ValidationError,
)
from .shelf import Bookshelf, ShelfState

__version__ = "0.3.0"

__all__ = [
    "Bookshelf",
    "ShelfState",
    "BookshelfError",
    "ConflictError",
    "FormatError",
    "NotFoundError",
    "StateError",
    "ValidationError",
]
