"""
Record validators.

Turn an untyped request body into a normalized field mapping, or raise
RecordValidationError listing every rejected field. Nothing here touches the
store.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping, Type

from pydantic import BaseModel, ValidationError

from .errors import FieldViolation, RecordValidationError, ViolationKind
from .schemas import TransactionCreate, TransactionUpdate, UserCreate, UserUpdate

_KINDS = {kind.value: kind for kind in ViolationKind}

# Messages for required fields that are absent from the body altogether
_REQUIRED_MESSAGES = {
    TransactionCreate: {
        "name": "Transaction name is required",
        "amount": "Transaction amount is required and must be a valid number",
    },
    UserCreate: {
        "name": "Name is required",
        "email": "Email is required",
    },
}


def _to_violations(model: Type[BaseModel], exc: ValidationError) -> List[FieldViolation]:
    required = _REQUIRED_MESSAGES.get(model, {})
    violations: List[FieldViolation] = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = str(loc[0]) if loc else "body"
        etype = err.get("type", "")
        if etype == "missing":
            violations.append(
                FieldViolation(field, ViolationKind.MISSING_FIELD, required.get(field, f"{field} is required"))
            )
        elif etype in _KINDS:
            violations.append(FieldViolation(field, _KINDS[etype], err.get("msg", "")))
        elif not loc:
            violations.append(
                FieldViolation("body", ViolationKind.INVALID_FORMAT, "Request body must be a JSON object")
            )
        else:
            violations.append(FieldViolation(field, ViolationKind.INVALID_FORMAT, f"{field}: {err.get('msg', '')}"))
    return violations


def _validate(model: Type[BaseModel], candidate: Any, partial: bool) -> Dict[str, Any]:
    if candidate is None:
        candidate = {}
    try:
        parsed = model.model_validate(candidate)
    except ValidationError as exc:
        raise RecordValidationError(_to_violations(model, exc)) from exc
    if partial:
        # Only fields present in the body take part in the merge
        return parsed.model_dump(include=parsed.model_fields_set)
    return parsed.model_dump()


# PUBLIC_INTERFACE
def validate_transaction(candidate: Mapping[str, Any] | Any, partial: bool = False) -> Dict[str, Any]:
    """
    Validate a transaction candidate.

    Args:
        candidate: Decoded JSON body.
        partial: When True, every field is optional and only present fields
            are validated and returned (update semantics).

    Returns:
        Normalized fields: name trimmed, amount as float, date as UTC datetime
        (defaulting to now on create).

    Raises:
        RecordValidationError: with one violation per rejected field.
    """
    return _validate(TransactionUpdate if partial else TransactionCreate, candidate, partial)


# PUBLIC_INTERFACE
def validate_user(candidate: Mapping[str, Any] | Any, partial: bool = False) -> Dict[str, Any]:
    """Validate a user candidate; email comes back trimmed and lower-cased."""
    return _validate(UserUpdate if partial else UserCreate, candidate, partial)
