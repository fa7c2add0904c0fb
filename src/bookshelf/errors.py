"""Error types raised by the bookshelf engine.

Every error the engine raises derives from BookshelfError so callers can
render a single failure message. The concrete types also subclass the
closest built-in exception (ValueError, LookupError) so code that only
cares about "bad input" or "missing item" can catch those.
"""


class BookshelfError(Exception):
    """Base class for all bookshelf errors."""


class ValidationError(BookshelfError, ValueError):
    """A field or argument is malformed."""


class NotFoundError(BookshelfError, LookupError):
    """An unknown book id was referenced."""

    def __init__(self, book_id: str):
        self.book_id = book_id
        super().__init__(f"Book not found: {book_id}")


class ConflictError(BookshelfError):
    """A reading session is already active for another book."""

    def __init__(self, active_book_id: str, requested_book_id: str):
        self.active_book_id = active_book_id
        self.requested_book_id = requested_book_id
        super().__init__(
            f"Already reading '{active_book_id}'. "
            "Stop the current session first."
        )


class StateError(BookshelfError):
    """The operation is not valid in the current session state."""


class FormatError(BookshelfError, ValueError):
    """A backup document could not be parsed as the expected shape."""
