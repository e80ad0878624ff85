"""
Core Data Models for Page Ledger

These models define the schemas for all data flowing through the ledger.
They are designed to:
1. Coerce caller input into exact types (int, Decimal, aware datetime)
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Keep the Page as the only unit that is ever persisted

DESIGN DECISION: Entries are embedded inside their Page. They have an
identity of their own, but no existence outside the Page that owns them.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
)


# Epoch numbers above this are read as milliseconds, below as seconds
_EPOCH_MILLIS_THRESHOLD = 100_000_000_000

# Largest integer a JSON (IEEE-754 double) client can hold exactly
MAX_WHOLE_NUMBER = 2**53 - 1


def utc_now() -> datetime:
    """Current instant as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# COERCION HELPERS
# =============================================================================

def coerce_number(value: Any) -> Decimal:
    """
    Convert caller input to a finite Decimal.

    Accepts int, float, Decimal and numeric strings. Booleans, blanks,
    NaN and infinities are rejected instead of being read as 0/1.
    """
    if value is None or isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise ValueError("must be a number, got a blank string")
    try:
        if isinstance(value, float):
            number = Decimal(str(value))
        else:
            number = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"not a number: {value!r}")
    if not number.is_finite():
        raise ValueError("must be a finite number")
    return number


def coerce_whole_number(value: Any) -> int:
    """
    Convert caller input to an int, rejecting fractional values.

    Magnitudes above MAX_WHOLE_NUMBER are rejected.
    """
    number = coerce_number(value)
    if abs(number) > MAX_WHOLE_NUMBER:
        raise ValueError(f"must be between -{MAX_WHOLE_NUMBER} and {MAX_WHOLE_NUMBER}")
    if number != number.to_integral_value():
        raise ValueError(f"must be a whole number, got {value!r}")
    return int(number)


def coerce_timestamp(value: Any) -> datetime:
    """
    Convert caller input to a timezone-aware datetime.

    Accepts datetime, date, ISO-8601 strings and epoch numbers
    (seconds, or milliseconds for large values). Naive values are UTC.
    """
    if isinstance(value, datetime):
        result = value
    elif isinstance(value, date):
        result = datetime.combine(value, time())
    elif isinstance(value, bool) or value is None:
        raise ValueError("must be a date or timestamp")
    elif isinstance(value, (int, float, Decimal)):
        seconds = float(value)
        if abs(seconds) >= _EPOCH_MILLIS_THRESHOLD:
            seconds = seconds / 1000
        try:
            result = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            raise ValueError(f"timestamp out of range: {value!r}")
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            result = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"not a valid date: {value!r}")
    else:
        raise ValueError(f"not a valid date: {value!r}")

    if result.tzinfo is None:
        result = result.replace(tzinfo=timezone.utc)
    return result


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PageType(str, Enum):
    """
    Accounting mode of a page.

    Only neoya pages track interest. The stored entry shape is the same
    for both; deciding whether to show interest is up to the caller.
    """
    DEOYA = "deoya"
    NEOYA = "neoya"

    @property
    def tracks_interest(self) -> bool:
        return self is PageType.NEOYA


# =============================================================================
# CORE LEDGER MODELS
# =============================================================================

class Entry(BaseModel):
    """
    A single financial record inside a page.

    `interest` and `date` always hold a concrete value once an entry exists.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Identity, unique within the owning page"
    )
    no: int = Field(
        ...,
        description="Caller-supplied reference number (not unique, not sorted)"
    )
    money: Decimal = Field(
        ...,
        description="Amount of the entry"
    )
    interest: Decimal = Field(
        default=Decimal("0"),
        description="Interest amount, meaningful for neoya pages"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the entry happened"
    )

    @field_validator("no", mode="before")
    @classmethod
    def validate_no(cls, v: Any) -> int:
        return coerce_whole_number(v)

    @field_validator("money", mode="before")
    @classmethod
    def validate_money(cls, v: Any) -> Decimal:
        return coerce_number(v)

    @field_validator("interest", mode="before")
    @classmethod
    def validate_interest(cls, v: Any) -> Decimal:
        if v is None:
            return Decimal("0")
        return coerce_number(v)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> datetime:
        return coerce_timestamp(v)


class Page(BaseModel):
    """
    Aggregate root: a named, typed container of entries.

    The page keeps an index from entry id to list position so update and
    remove do not scan the list. The index is derived state and is never
    serialized.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique page ID"
    )
    title: str = Field(
        ...,
        min_length=1,
        description="Page title (required)"
    )
    type: PageType = Field(
        ...,
        description="Accounting mode (required)"
    )
    entries: list[Entry] = Field(
        default_factory=list,
        description="Entries in append order"
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        description="When the page was created"
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        description="Last mutation of the page or any of its entries"
    )

    _index: dict[UUID, int] = PrivateAttr(default_factory=dict)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v

    def model_post_init(self, __context: Any) -> None:
        self._reindex()

    def _reindex(self) -> None:
        self._index = {entry.id: pos for pos, entry in enumerate(self.entries)}

    def _position(self, entry_id: UUID) -> Optional[int]:
        pos = self._index.get(entry_id)
        if pos is None or pos >= len(self.entries) or self.entries[pos].id != entry_id:
            # Entries were changed behind the index's back
            self._reindex()
            pos = self._index.get(entry_id)
        return pos

    def find_entry(self, entry_id: UUID) -> Optional[Entry]:
        """Look up an entry by identity."""
        pos = self._position(entry_id)
        return None if pos is None else self.entries[pos]

    def append_entry(self, entry: Entry) -> None:
        """Add an entry at the end of the sequence."""
        self.entries.append(entry)
        self._index[entry.id] = len(self.entries) - 1

    def replace_entry(self, entry: Entry) -> None:
        """Swap in a new version of an entry, keeping its position."""
        pos = self._position(entry.id)
        if pos is None:
            raise KeyError(entry.id)
        self.entries[pos] = entry

    def remove_entry(self, entry_id: UUID) -> Entry:
        """Remove an entry, preserving the order of the rest."""
        pos = self._position(entry_id)
        if pos is None:
            raise KeyError(entry_id)
        removed = self.entries.pop(pos)
        self._reindex()
        return removed


# =============================================================================
# INPUT MODELS - what callers send in
# =============================================================================

class PageCreate(BaseModel):
    """Payload for creating a page."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1)
    type: PageType

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be blank")
        return v


class PageUpdate(BaseModel):
    """Payload for updating a page. Omitted fields keep their value."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    type: Optional[PageType] = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Title cannot be blank")
        return v


class EntryCreate(BaseModel):
    """
    Payload for adding an entry.

    `no` and `money` are required. Missing interest becomes 0 and a
    missing date becomes the current instant when the entry is built.
    """
    model_config = ConfigDict(extra="ignore")

    no: int
    money: Decimal
    interest: Decimal = Decimal("0")
    date: Optional[datetime] = None

    @field_validator("no", mode="before")
    @classmethod
    def validate_no(cls, v: Any) -> int:
        return coerce_whole_number(v)

    @field_validator("money", mode="before")
    @classmethod
    def validate_money(cls, v: Any) -> Decimal:
        return coerce_number(v)

    @field_validator("interest", mode="before")
    @classmethod
    def validate_interest(cls, v: Any) -> Decimal:
        if v is None:
            return Decimal("0")
        return coerce_number(v)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Optional[datetime]:
        if _is_blank(v):
            return None
        return coerce_timestamp(v)

    def to_entry(self) -> Entry:
        """Build a new entry with a fresh identity."""
        return Entry(
            no=self.no,
            money=self.money,
            interest=self.interest,
            date=self.date or utc_now(),
        )


class EntryUpdate(BaseModel):
    """Payload for updating an entry. None means "leave unchanged"."""
    model_config = ConfigDict(extra="ignore")

    no: Optional[int] = None
    money: Optional[Decimal] = None
    interest: Optional[Decimal] = None
    date: Optional[datetime] = None

    @field_validator("no", mode="before")
    @classmethod
    def validate_no(cls, v: Any) -> Optional[int]:
        return None if v is None else coerce_whole_number(v)

    @field_validator("money", "interest", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> Optional[Decimal]:
        return None if v is None else coerce_number(v)

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v: Any) -> Optional[datetime]:
        if _is_blank(v):
            return None
        return coerce_timestamp(v)

    def changes(self) -> dict[str, Any]:
        """Only the fields the caller actually supplied."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if value is not None
        }


# =============================================================================
# DERIVED MODELS - aggregates shown to the caller
# =============================================================================

class PageSummary(BaseModel):
    """Per-page totals, as shown on a page card."""

    page_id: UUID
    title: str
    type: PageType
    entry_count: int = Field(ge=0)
    total_money: Decimal
    total_interest: Decimal
    interest_applies: bool = Field(
        ...,
        description="Whether the page type tracks interest"
    )


class LedgerTotals(BaseModel):
    """Headline totals across all pages, one per page type."""

    deoya_total: Decimal = Decimal("0")
    neoya_total: Decimal = Decimal("0")
    deoya_page_count: int = Field(default=0, ge=0)
    neoya_page_count: int = Field(default=0, ge=0)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single field problem found in caller input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


# Identities arrive from callers either parsed or as plain strings
RecordId = Union[UUID, str]
