from __future__ import annotations

import math
import re
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_core import PydanticCustomError

from .errors import ViolationKind

NAME_MAX_LENGTH = 100

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _missing(message: str) -> PydanticCustomError:
    return PydanticCustomError(ViolationKind.MISSING_FIELD.value, message)


def _invalid(message: str) -> PydanticCustomError:
    return PydanticCustomError(ViolationKind.INVALID_FORMAT.value, message)


def _clean_text(value: Any, label: str, max_length: int = NAME_MAX_LENGTH) -> str:
    """
    Strip whitespace and enforce 1..max_length characters.
    """
    if value is None:
        raise _missing(f"{label} is required")
    if not isinstance(value, str):
        raise _invalid(f"{label} must be a string")
    s = value.strip()
    if not s:
        raise _missing(f"{label} is required")
    if len(s) > max_length:
        raise PydanticCustomError(
            ViolationKind.FIELD_TOO_LONG.value,
            f"{label} cannot exceed {max_length} characters",
        )
    return s


def _parse_amount(value: Any) -> float:
    """
    Accept ints, floats and numeric strings. Booleans, blanks and non-finite
    values are rejected.
    """
    message = "Transaction amount is required and must be a valid number"
    if value is None or isinstance(value, bool):
        raise _missing(message)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise _missing(message)
    elif not isinstance(value, (int, float)):
        raise _missing(message)
    try:
        number = float(value)
    except (ValueError, OverflowError):
        raise _missing(message) from None
    if not math.isfinite(number):
        raise _missing(message)
    return number


def _parse_date(value: Any) -> datetime:
    """
    Normalize a date/datetime/ISO8601 string into an aware UTC datetime.
    - Date-only values become midnight.
    - A trailing 'Z' is read as UTC.
    - Naive values are read as UTC.
    """
    message = (
        "Transaction date must be a valid date. Use an ISO8601 date or datetime string "
        "(e.g., '2024-01-31' or '2024-01-31T13:45:00Z')."
    )
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)

    if isinstance(value, str):
        s = value.strip()
        if s[-1:] in {"Z", "z"}:
            s = s[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(s)
        except ValueError:
            raise _invalid(message) from None

    if not isinstance(value, datetime):
        raise _invalid(message)

    # Offsets near datetime.min/max cannot be shifted to UTC
    try:
        return as_utc(value)
    except (ValueError, OverflowError):
        raise _invalid(message) from None


# PUBLIC_INTERFACE
class TransactionCreate(BaseModel):
    """
    Schema for creating a new transaction. Unknown keys (including id and
    timestamps) are ignored.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "name": "Coffee",
                "amount": 4.5,
                "date": "2024-01-01",
            }
        },
    )

    name: str = Field(..., description="Short label for the transaction (1..100 chars, trimmed)")
    amount: float = Field(..., description="Signed amount; fractional values allowed")
    date: datetime = Field(
        default_factory=utcnow,
        description="When the transaction happened. Accepts ISO8601 date or datetime; defaults to now",
    )

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        return _clean_text(v, "Transaction name")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> float:
        return _parse_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> datetime:
        """
        An explicit null falls back to the current time, like an omitted date.
        """
        if v is None:
            return utcnow()
        return _parse_date(v)


# PUBLIC_INTERFACE
class TransactionUpdate(BaseModel):
    """
    Schema for updating an existing transaction.
    All fields are optional; only provided fields will be updated.
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"amount": 9.99}},
    )

    name: Optional[str] = Field(default=None, description="Short label for the transaction")
    amount: Optional[float] = Field(default=None, description="Signed amount")
    date: Optional[datetime] = Field(default=None, description="When the transaction happened")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        return _clean_text(v, "Transaction name")

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> float:
        return _parse_amount(v)

    @field_validator("date", mode="before")
    @classmethod
    def parse_date(cls, v: Any) -> datetime:
        if v is None:
            raise _missing("Transaction date cannot be empty")
        return _parse_date(v)


def _clean_email(value: Any) -> str:
    email = _clean_text(value, "Email").lower()
    if not _EMAIL_RE.match(email):
        raise _invalid("Please provide a valid email address")
    return email


# PUBLIC_INTERFACE
class UserCreate(BaseModel):
    """Schema for creating a user."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={"example": {"name": "Asha Rao", "email": "asha@example.com"}},
    )

    name: str = Field(..., description="Display name (1..100 chars, trimmed)")
    email: str = Field(..., description="Email address, stored trimmed and lower-cased")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        return _clean_text(v, "Name")

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: Any) -> str:
        return _clean_email(v)


# PUBLIC_INTERFACE
class UserUpdate(BaseModel):
    """Schema for partially updating a user."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Email address")

    @field_validator("name", mode="before")
    @classmethod
    def validate_name(cls, v: Any) -> str:
        return _clean_text(v, "Name")

    @field_validator("email", mode="before")
    @classmethod
    def validate_email(cls, v: Any) -> str:
        return _clean_email(v)


# PUBLIC_INTERFACE
class TransactionOut(BaseModel):
    """
    Schema returned by the API for a transaction.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "65a1c0ffee0123456789abcd",
                "name": "Coffee",
                "amount": 4.5,
                "date": "2024-01-01T00:00:00Z",
                "createdAt": "2024-01-01T08:15:30.123000Z",
                "updatedAt": "2024-01-01T08:15:30.123000Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the transaction")
    name: str = Field(..., description="Short label for the transaction")
    amount: float = Field(..., description="Signed amount")
    date: datetime = Field(..., description="When the transaction happened")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp")


# PUBLIC_INTERFACE
class UserOut(BaseModel):
    """Schema returned by the API for a user."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Unique identifier of the user")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp")


class TransactionEnvelope(BaseModel):
    success: bool = Field(True, description="Always true on success responses")
    message: Optional[str] = Field(default=None, description="Outcome description for mutations")
    data: TransactionOut


class TransactionListEnvelope(BaseModel):
    success: bool = Field(True, description="Always true on success responses")
    count: int = Field(..., description="Number of records in data")
    data: List[TransactionOut]


class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: UserOut


class UserListEnvelope(BaseModel):
    success: bool = True
    count: int
    data: List[UserOut]


class ErrorEnvelope(BaseModel):
    """
    Body of every non-2xx response.
    - errors: field-level messages for validation failures (400)
    - error: underlying store error text (500)
    """

    success: bool = False
    message: str
    errors: Optional[List[str]] = None
    error: Optional[str] = None
