from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from threading import RLock
from typing import Dict, List, Mapping, Optional

from bson import ObjectId

from .logging_setup import get_logger
from .models import Document
from .settings import Settings, get_settings

log = get_logger(__name__)


def new_record_id() -> str:
    return str(ObjectId())


def is_record_id(value: str) -> bool:
    """True when value has the shape of an id this project's stores assign."""
    return isinstance(value, str) and ObjectId.is_valid(value)


# PUBLIC_INTERFACE
class DocumentStore(ABC):
    """
    Abstract contract for document storage backends.

    Every document handed out carries the store-managed metadata fields
    ``id``, ``created_at`` and ``updated_at``. Ids that are not well formed are
    treated as unknown ids, never as errors. Backend failures surface as
    StoreUnavailableError.
    """

    backend: str = "abstract"

    @abstractmethod
    def connect(self) -> None:
        """Open the connection and verify the store answers. Raise StoreUnavailableError otherwise."""

    @abstractmethod
    def ping(self) -> bool:
        """Return True when the store is currently reachable."""

    def close(self) -> None:
        """Release connections. No-op by default."""

    @abstractmethod
    def insert(self, collection: str, fields: Mapping[str, object]) -> Document:
        """Insert a new document and return it with id and timestamps attached."""

    @abstractmethod
    def find_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        """Return a document by id, or None if not found."""

    @abstractmethod
    def find_all(self, collection: str, sort_field: str, descending: bool = True) -> List[Document]:
        """Return every document ordered by sort_field; ties keep insertion order."""

    @abstractmethod
    def update_by_id(self, collection: str, record_id: str, fields: Mapping[str, object]) -> Optional[Document]:
        """Merge fields into an existing document, bump updated_at, return it or None if not found."""

    @abstractmethod
    def delete_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        """Remove a document by id. Return its last state, or None if not found."""


class InMemoryDocumentStore(DocumentStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    backend = "memory"

    def __init__(self) -> None:
        self._lock = RLock()
        self._collections: Dict[str, Dict[str, Document]] = {}

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    def _collection(self, name: str) -> Dict[str, Document]:
        return self._collections.setdefault(name, {})

    def connect(self) -> None:
        log.info("document_store_connected backend=memory")

    def ping(self) -> bool:
        return True

    def insert(self, collection: str, fields: Mapping[str, object]) -> Document:
        now = self._now()
        doc: Document = dict(fields)
        doc.update({"id": new_record_id(), "created_at": now, "updated_at": now})
        with self._lock:
            self._collection(collection)[doc["id"]] = doc
        return doc.copy()

    def find_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        with self._lock:
            doc = self._collection(collection).get(record_id)
            return None if doc is None else doc.copy()

    def find_all(self, collection: str, sort_field: str, descending: bool = True) -> List[Document]:
        with self._lock:
            docs = list(self._collection(collection).values())
        # sorted() is stable, so equal keys stay in insertion order
        ordered = sorted(docs, key=lambda d: d[sort_field], reverse=descending)
        return [d.copy() for d in ordered]

    def update_by_id(self, collection: str, record_id: str, fields: Mapping[str, object]) -> Optional[Document]:
        with self._lock:
            items = self._collection(collection)
            existing = items.get(record_id)
            if existing is None:
                return None

            updated = existing.copy()
            for key, value in fields.items():
                if key in {"id", "created_at", "updated_at"}:
                    continue
                updated[key] = value
            updated["updated_at"] = self._now()

            items[record_id] = updated
            return updated.copy()

    def delete_by_id(self, collection: str, record_id: str) -> Optional[Document]:
        with self._lock:
            return self._collection(collection).pop(record_id, None)


# PUBLIC_INTERFACE
def build_document_store(settings: Optional[Settings] = None) -> DocumentStore:
    """
    Factory returning the configured store (not yet connected).
    - memory: InMemoryDocumentStore
    - mongodb: MongoDocumentStore
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "mongodb":
        from .db import MongoDocumentStore

        return MongoDocumentStore(
            uri=settings.mongodb_uri,
            database=settings.mongodb_database,
            timeout_ms=settings.mongodb_timeout_ms,
        )
    return InMemoryDocumentStore()
