from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Sequence


class ViolationKind(str, Enum):
    """Category of a field-level validation failure."""

    MISSING_FIELD = "missing_field"
    FIELD_TOO_LONG = "field_too_long"
    INVALID_FORMAT = "invalid_format"


@dataclass(frozen=True)
class FieldViolation:
    """A single rejected field with a human readable message."""

    field: str
    kind: ViolationKind
    message: str


class ServiceError(RuntimeError):
    """Base class for errors surfaced by the service layer."""


class RecordValidationError(ServiceError):
    """Raised when a candidate record fails validation. Nothing was persisted."""

    def __init__(self, violations: Sequence[FieldViolation]) -> None:
        self.violations: List[FieldViolation] = list(violations)
        super().__init__("; ".join(v.message for v in self.violations) or "Validation failed")

    @property
    def messages(self) -> List[str]:
        return [v.message for v in self.violations]


class RecordNotFoundError(ServiceError):
    """Raised when an id does not resolve to a stored record."""

    def __init__(self, entity: str, record_id: str) -> None:
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} not found")


class StoreUnavailableError(ServiceError):
    """Raised when the document store is unreachable or failing."""
