from __future__ import annotations

from typing import Any, Callable, Dict, List

from .errors import RecordNotFoundError
from .logging_setup import get_logger
from .models import TRANSACTIONS, USERS, Document
from .repositories import DocumentStore
from .validation import validate_transaction, validate_user

log = get_logger(__name__)


class RecordService:
    """
    CRUD over one collection: validate, then call the store.

    Validation always runs before any write, so a rejected candidate leaves
    the store untouched. Store errors propagate unchanged.
    """

    entity = "Record"
    collection = ""
    sort_field = "created_at"

    def __init__(self, store: DocumentStore, validator: Callable[..., Dict[str, Any]]) -> None:
        self._store = store
        self._validate = validator

    def create(self, candidate: Any) -> Document:
        fields = self._validate(candidate)
        doc = self._store.insert(self.collection, fields)
        log.info("%s_created id=%s", self.collection, doc["id"])
        return doc

    def get_by_id(self, record_id: str) -> Document:
        doc = self._store.find_by_id(self.collection, record_id)
        if doc is None:
            raise RecordNotFoundError(self.entity, record_id)
        return doc

    def list_all(self) -> List[Document]:
        return self._store.find_all(self.collection, self.sort_field, descending=True)

    def update_by_id(self, record_id: str, candidate: Any) -> Document:
        # Existence first: an unknown id is NotFound whatever the body holds
        self.get_by_id(record_id)
        fields = self._validate(candidate, partial=True)
        doc = self._store.update_by_id(self.collection, record_id, fields)
        if doc is None:
            raise RecordNotFoundError(self.entity, record_id)
        log.info("%s_updated id=%s fields=%s", self.collection, record_id, ",".join(sorted(fields)))
        return doc

    def delete_by_id(self, record_id: str) -> Document:
        doc = self._store.delete_by_id(self.collection, record_id)
        if doc is None:
            raise RecordNotFoundError(self.entity, record_id)
        log.info("%s_deleted id=%s", self.collection, record_id)
        return doc


# PUBLIC_INTERFACE
class TransactionService(RecordService):
    """Transactions, listed newest `date` first."""

    entity = "Transaction"
    collection = TRANSACTIONS
    sort_field = "date"

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store, validate_transaction)


# PUBLIC_INTERFACE
class UserService(RecordService):
    """Users, listed newest first."""

    entity = "User"
    collection = USERS
    sort_field = "created_at"

    def __init__(self, store: DocumentStore) -> None:
        super().__init__(store, validate_user)
