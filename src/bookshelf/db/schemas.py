"""Pydantic schemas for book data.

These schemas define the canonical shape of a book record, the reading
history, the active timer and the backup document. Python attributes are
snake_case; the wire format (backup files, stored payloads) is camelCase.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


class BookStatus(str, Enum):
    """Reading status. Mutually exclusive."""

    WANT_TO_READ = "want-to-read"
    READING = "reading"
    READ = "read"
    PAUSED = "paused"
    DNF = "dnf"  # Did not finish


class BookFormat(str, Enum):
    """Format of the copy being read."""

    PHYSICAL = "Physical"
    EBOOK = "Ebook"
    AUDIOBOOK = "Audiobook"


class ProgressMode(str, Enum):
    """Unit the progress field is counted in."""

    PAGES = "pages"
    CHAPTERS = "chapters"


OWNERSHIP_SOLD = "sold"

# Bindings seen in older data, mapped onto the three formats
_FORMAT_ALIASES = {
    "physical": BookFormat.PHYSICAL,
    "paperback": BookFormat.PHYSICAL,
    "hardcover": BookFormat.PHYSICAL,
    "hardback": BookFormat.PHYSICAL,
    "ebook": BookFormat.EBOOK,
    "e-book": BookFormat.EBOOK,
    "kindle": BookFormat.EBOOK,
    "epub": BookFormat.EBOOK,
    "audiobook": BookFormat.AUDIOBOOK,
    "audio": BookFormat.AUDIOBOOK,
    "audible": BookFormat.AUDIOBOOK,
}


def _normalize_format(value: Any) -> Any:
    if value is None or isinstance(value, BookFormat):
        return value
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return None
        return _FORMAT_ALIASES.get(cleaned.lower(), cleaned)
    return value


def _coerce_datetime(value: Any) -> Any:
    """Accept plain dates and date-only ISO strings as midnight."""
    if isinstance(value, datetime) or value is None:
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        if len(value) == 10:
            return f"{value}T00:00:00"
    return value


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes are taken to be UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _none_to_zero(value: Any) -> Any:
    return 0 if value is None else value


UtcDatetime = Annotated[datetime, BeforeValidator(_coerce_datetime), AfterValidator(as_utc)]
OptionalUtcDatetime = Annotated[
    Optional[datetime], BeforeValidator(_coerce_datetime), AfterValidator(as_utc)
]
OptionalFormat = Annotated[Optional[BookFormat], BeforeValidator(_normalize_format)]
Progress = Annotated[float, BeforeValidator(_none_to_zero), Field(ge=0, allow_inf_nan=False)]
Rating = Annotated[float, BeforeValidator(_none_to_zero), Field(ge=0, le=5)]


def utcnow() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


# ============================================================================
# Book Schemas
# ============================================================================


class BookNote(CamelModel):
    """A free-text note attached to a book."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: str = Field(..., min_length=1)
    created_at: UtcDatetime


class BookBase(CamelModel):
    """Book fields common to create and stored records."""

    # Descriptive
    title: str = Field(..., min_length=1, description="Book title")
    author: str = ""
    format: OptionalFormat = None
    cover: Optional[str] = Field(None, description="Cover image URL or data URI")
    isbn: Optional[str] = None
    genres: tuple[str, ...] = ()
    review: Optional[str] = None

    # Status
    status: BookStatus = BookStatus.WANT_TO_READ

    # Ownership
    is_owned: bool = False
    is_want_to_buy: bool = Field(
        False,
        validation_alias=AliasChoices("isWantToBuy", "toBuy", "is_want_to_buy"),
        serialization_alias="isWantToBuy",
    )
    ownership_status: Optional[str] = Field(None, description="e.g. 'sold'")
    price: Optional[float] = Field(None, ge=0)
    bought_date: OptionalUtcDatetime = None

    is_favorite: bool = False

    # Progress
    progress: Progress = 0
    progress_mode: ProgressMode = ProgressMode.PAGES
    total_pages: Optional[int] = Field(None, ge=0)
    total_chapters: Optional[int] = Field(None, ge=0)

    # Dates
    started_at: OptionalUtcDatetime = None
    finished_at: OptionalUtcDatetime = None
    paused_at: OptionalUtcDatetime = None
    dnf_at: OptionalUtcDatetime = None

    # Ratings
    rating: Rating = 0
    spice_rating: Rating = 0
    has_spice: bool = False

    notes: tuple[BookNote, ...] = ()

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        """Whitespace-only titles count as empty."""
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator("genres", mode="before")
    @classmethod
    def normalize_genres(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if v is None:
            return ()
        if isinstance(v, str):
            return tuple(g.strip() for g in v.split(",") if g.strip())
        return v

    def target_progress(self) -> float:
        """Progress value that means "finished" for this book."""
        if self.progress_mode == ProgressMode.CHAPTERS:
            totals = (self.total_chapters, self.total_pages)
        else:
            totals = (self.total_pages, self.total_chapters)
        for total in totals:
            if total:
                return float(total)
        return 100.0


class BookCreate(BookBase):
    """Schema for adding a book. The store assigns id and added_at."""


class BookRecord(BookBase):
    """A cataloged book as held by the collection store. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    added_at: UtcDatetime

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Older exports used numeric ids."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class BookUpdate(CamelModel):
    """Schema for updating an existing book. All fields optional."""

    title: Optional[str] = Field(None, min_length=1)
    author: Optional[str] = None
    format: OptionalFormat = None
    cover: Optional[str] = None
    isbn: Optional[str] = None
    genres: Optional[tuple[str, ...]] = None
    review: Optional[str] = None
    status: Optional[BookStatus] = None
    is_owned: Optional[bool] = None
    is_want_to_buy: Optional[bool] = Field(
        None,
        validation_alias=AliasChoices("isWantToBuy", "toBuy", "is_want_to_buy"),
        serialization_alias="isWantToBuy",
    )
    ownership_status: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    bought_date: OptionalUtcDatetime = None
    is_favorite: Optional[bool] = None
    progress: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    progress_mode: Optional[ProgressMode] = None
    total_pages: Optional[int] = Field(None, ge=0)
    total_chapters: Optional[int] = Field(None, ge=0)
    started_at: OptionalUtcDatetime = None
    finished_at: OptionalUtcDatetime = None
    paused_at: OptionalUtcDatetime = None
    dnf_at: OptionalUtcDatetime = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    spice_rating: Optional[float] = Field(None, ge=0, le=5)
    has_spice: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


# ============================================================================
# Reading Session Schemas
# ============================================================================


class ActiveTimer(CamelModel):
    """Marker of the single in-progress reading session."""

    model_config = ConfigDict(frozen=True)

    book_id: str
    start_time: UtcDatetime


class ReadingLogEntry(CamelModel):
    """One committed reading session, kept for streaks and analytics."""

    model_config = ConfigDict(frozen=True)

    id: str
    book_id: str
    progress_delta: float = Field(..., ge=0)
    progress: float = Field(..., ge=0)
    duration_minutes: Optional[float] = Field(None, ge=0)
    logged_at: UtcDatetime


# ============================================================================
# Profile Schemas
# ============================================================================


class UserProfile(CamelModel):
    """Profile supplied by the outside world. Unknown keys are kept."""

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str = ""
    avatar: str = ""


class ReadingGoal(CamelModel):
    """Yearly and monthly books-read goal."""

    model_config = ConfigDict(frozen=True)

    yearly: int = Field(15, ge=0)
    monthly: int = Field(2, ge=0)


# ============================================================================
# Backup Schemas
# ============================================================================


class BackupDocument(CamelModel):
    """Portable snapshot of the whole collection plus profile."""

    version: str = "v3"
    exported_at: OptionalUtcDatetime = None
    books: list[BookRecord]
    profile: UserProfile = Field(default_factory=UserProfile)
    book_count: Optional[int] = Field(None, ge=0)
    reading_logs: list[ReadingLogEntry] = Field(default_factory=list)
    active_timer: Optional[ActiveTimer] = None
    reading_goal: Optional[ReadingGoal] = None

    @field_validator("profile", mode="before")
    @classmethod
    def default_profile(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("reading_logs", mode="before")
    @classmethod
    def default_logs(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def fill_book_count(self) -> "BackupDocument":
        """bookCount always reflects the books actually carried."""
        self.book_count = len(self.books)
        return self
