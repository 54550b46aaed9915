from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import PyMongoError

from .errors import StoreUnavailableError
from .logging_setup import get_logger
from .models import Document
from .repositories import DocumentStore, is_record_id

log = get_logger(__name__)


@dataclass(frozen=True)
class _Fields:
    id: str = "_id"
    created_at: str = "createdAt"
    updated_at: str = "updatedAt"


_FIELDS = _Fields()

# Python-side metadata names -> names stored in MongoDB
_TO_MONGO = {"created_at": _FIELDS.created_at, "updated_at": _FIELDS.updated_at}


def _as_utc(value: Any) -> Any:
    # The driver hands back naive UTC datetimes unless tz_aware is honored
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MongoDocumentStore(DocumentStore):
    """
    MongoDB-backed store. One collection per entity; documents keep the
    ``_id``/``createdAt``/``updatedAt`` layout so existing data stays readable.
    """

    backend = "mongodb"

    def __init__(
        self,
        uri: Optional[str],
        database: str,
        timeout_ms: int = 5000,
        client_factory: Callable[..., Any] = MongoClient,
    ) -> None:
        self._uri = uri
        self._database_name = database
        self._timeout_ms = timeout_ms
        self._client_factory = client_factory
        self._client: Any = None

    @property
    def _db(self) -> Any:
        if self._client is None:
            raise StoreUnavailableError("Database connection is not established")
        return self._client[self._database_name]

    def connect(self) -> None:
        if not self._uri:
            raise StoreUnavailableError("MONGODB_URI is not set")
        if self._client is None:
            try:
                self._client = self._client_factory(
                    self._uri,
                    serverSelectionTimeoutMS=self._timeout_ms,
                    tz_aware=True,
                )
            except PyMongoError as exc:
                raise StoreUnavailableError(f"Could not connect to MongoDB: {exc}") from exc
        # The client is kept when the first ping fails: it reconnects on its own
        # once the server comes back, so later pings and operations recover
        try:
            self._client.admin.command("ping")
        except PyMongoError as exc:
            raise StoreUnavailableError(f"Could not connect to MongoDB: {exc}") from exc
        log.info("document_store_connected backend=mongodb database=%s", self._database_name)

    def ping(self) -> bool:
        if self._client is None:
            return False
        try:
            self._client.admin.command("ping")
        except PyMongoError:
            log.warning("document_store_ping_failed backend=mongodb", exc_info=True)
            return False
        return True

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _from_mongo(self, raw: Optional[Mapping[str, Any]]) -> Optional[Document]:
        if raw is None:
            return None
        doc: Document = {}
        for key, value in raw.items():
            if key == _FIELDS.id:
                doc["id"] = str(value)
            elif key == _FIELDS.created_at:
                doc["created_at"] = _as_utc(value)
            elif key == _FIELDS.updated_at:
                doc["updated_at"] = _as_utc(value)
            elif key == "__v":
                continue
            else:
                doc[key] = _as_utc(value)
        return doc

    def _to_mongo(self, fields: Mapping[str, Any]) -> dict:
        return {
            _TO_MONGO.get(key, key): value
            for key, value in fields.items()
            if key not in {"id", "created_at", "updated_at"}
        }

    def insert(self, collection: str, fields: Mapping[str, Any]) -> Document:
        now = datetime.now(timezone.utc)
        raw = self._to_mongo(fields)
        raw.update({_FIELDS.created_at: now, _FIELDS.updated_at: now})
        try:
            result = self._db[collection].insert_one(raw)
        except PyMongoError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        raw[_FIELDS.id] = result.inserted_id
        doc = self._from_mongo(raw)
        assert doc is not None
        return doc

    def find_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        if not is_record_id(record_id):
            return None
        try:
            raw = self._db[collection].find_one({_FIELDS.id: ObjectId(record_id)})
        except PyMongoError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return self._from_mongo(raw)

    def find_all(self, collection: str, sort_field: str, descending: bool = True) -> List[Document]:
        field = _TO_MONGO.get(sort_field, sort_field)
        try:
            cursor = self._db[collection].find().sort(
                [(field, DESCENDING if descending else ASCENDING), (_FIELDS.id, ASCENDING)]
            )
            raws = list(cursor)
        except PyMongoError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return [doc for doc in (self._from_mongo(r) for r in raws) if doc is not None]

    def update_by_id(self, collection: str, record_id: str, fields: Mapping[str, Any]) -> Optional[Document]:
        if not is_record_id(record_id):
            return None
        changes = self._to_mongo(fields)
        changes[_FIELDS.updated_at] = datetime.now(timezone.utc)
        try:
            raw = self._db[collection].find_one_and_update(
                {_FIELDS.id: ObjectId(record_id)},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return self._from_mongo(raw)

    def delete_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        if not is_record_id(record_id):
            return None
        try:
            raw = self._db[collection].find_one_and_delete({_FIELDS.id: ObjectId(record_id)})
        except PyMongoError as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return self._from_mongo(raw)
