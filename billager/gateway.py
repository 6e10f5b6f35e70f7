# billager/gateway.py
"""Persistence gateways for listings.

Both implementations honour the same contract: ``list_all``, ``get``,
``insert``, ``update`` and ``delete``, each touching exactly one listing.
Ids and timestamps are always assigned here, never by the caller.
Missing ids raise ``NotFoundError``; store failures raise ``PersistenceError``.
"""
import json
import uuid
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from . import crud
from .config import Settings
from .errors import InvalidDraftError, NotFoundError, PersistenceError
from .schemas import Listing, ListingDraft
from .store import KeyValueStore
from .utils import logger
from .validation import draft_to_fields, validate

STORAGE_KEY = "@billager_cars"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _refreshed(previous: datetime) -> datetime:
    # updated_at must strictly increase even when the clock has not ticked
    now = _now()
    return now if now > previous else previous + timedelta(microseconds=1)


def _checked_fields(draft: ListingDraft) -> Dict[str, Any]:
    errors = validate(draft)
    if errors:
        raise InvalidDraftError(errors)
    return draft_to_fields(draft)


class ListingGateway(ABC):
    @abstractmethod
    def list_all(self) -> List[Listing]:
        ...

    @abstractmethod
    def get(self, listing_id: str) -> Listing:
        ...

    @abstractmethod
    def insert(self, draft: ListingDraft) -> Listing:
        ...

    @abstractmethod
    def update(self, listing_id: str, draft: ListingDraft) -> Listing:
        ...

    @abstractmethod
    def delete(self, listing_id: str) -> None:
        ...


class LocalStoreGateway(ListingGateway):
    """Whole listing set kept as one JSON array under ``STORAGE_KEY``."""

    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key

    def _read(self) -> List[Dict[str, Any]]:
        raw = self.store.get_item(self.key)
        if not raw:
            return []
        try:
            records = json.loads(raw)
        except ValueError as e:
            raise PersistenceError(f"Stored listings are not valid JSON: {e}") from e
        if not isinstance(records, list):
            raise PersistenceError("Stored listings are not a JSON array")
        return records

    def _write(self, records: List[Dict[str, Any]]) -> None:
        self.store.set_item(self.key, json.dumps(records, ensure_ascii=False))

    def _index_of(self, records: List[Dict[str, Any]], listing_id: str) -> int:
        for i, record in enumerate(records):
            if record.get("id") == listing_id:
                return i
        raise NotFoundError(listing_id)

    @staticmethod
    def _parse(record: Dict[str, Any]) -> Listing:
        try:
            return Listing.model_validate(record)
        except ValidationError as e:
            raise PersistenceError(f"Stored listing is malformed: {e}") from e

    def list_all(self) -> List[Listing]:
        return [self._parse(r) for r in self._read()]

    def get(self, listing_id: str) -> Listing:
        records = self._read()
        return self._parse(records[self._index_of(records, listing_id)])

    def insert(self, draft: ListingDraft) -> Listing:
        fields = _checked_fields(draft)
        with self.store.lock:
            records = self._read()
            now = _now()
            listing = Listing(id=uuid.uuid4().hex, created_at=now, updated_at=now, **fields)
            records.append(listing.model_dump(mode="json"))
            self._write(records)
        logger.info("Inserted listing %s (%s %s)", listing.id, listing.brand, listing.model)
        return listing

    def update(self, listing_id: str, draft: ListingDraft) -> Listing:
        fields = _checked_fields(draft)
        with self.store.lock:
            records = self._read()
            i = self._index_of(records, listing_id)
            existing = self._parse(records[i])
            updated = existing.model_copy(update={**fields, "updated_at": _refreshed(existing.updated_at)})
            records[i] = updated.model_dump(mode="json")
            self._write(records)
        logger.info("Updated listing %s", listing_id)
        return updated

    def delete(self, listing_id: str) -> None:
        with self.store.lock:
            records = self._read()
            records.pop(self._index_of(records, listing_id))
            self._write(records)
        logger.info("Deleted listing %s", listing_id)


class TableGateway(ListingGateway):
    """Listings as rows of the ``cars`` table, stamped with the owning user."""

    def __init__(self, session_factory, user_id: Optional[str] = None):
        self.session_factory = session_factory
        self.user_id = user_id

    @contextmanager
    def _session(self):
        db = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Database operation failed: %s", e)
            raise PersistenceError(str(e)) from e
        finally:
            db.close()

    def list_all(self) -> List[Listing]:
        with self._session() as db:
            return [Listing.model_validate(c) for c in crud.list_cars(db)]

    def get(self, listing_id: str) -> Listing:
        with self._session() as db:
            obj = crud.get_car(db, listing_id)
            if not obj:
                raise NotFoundError(listing_id)
            return Listing.model_validate(obj)

    def insert(self, draft: ListingDraft) -> Listing:
        fields = _checked_fields(draft)
        now = _now()
        data = {"id": uuid.uuid4().hex, "user_id": self.user_id, "created_at": now, "updated_at": now, **fields}
        with self._session() as db:
            listing = Listing.model_validate(crud.insert_car(db, data))
        logger.info("Inserted listing %s (%s %s)", listing.id, listing.brand, listing.model)
        return listing

    def update(self, listing_id: str, draft: ListingDraft) -> Listing:
        fields = _checked_fields(draft)
        with self._session() as db:
            obj = crud.get_car(db, listing_id)
            if not obj:
                raise NotFoundError(listing_id)
            previous = Listing.model_validate(obj).updated_at
            obj = crud.update_car(db, listing_id, {**fields, "updated_at": _refreshed(previous)})
            listing = Listing.model_validate(obj)
        logger.info("Updated listing %s", listing_id)
        return listing

    def delete(self, listing_id: str) -> None:
        with self._session() as db:
            if not crud.delete_car(db, listing_id):
                raise NotFoundError(listing_id)
        logger.info("Deleted listing %s", listing_id)


def build_gateway(settings: Settings, session_factory=None, user_id: Optional[str] = None) -> ListingGateway:
    if settings.storage_backend == "local":
        return LocalStoreGateway(KeyValueStore(settings.local_store_path))
    if session_factory is None:
        from .db import SessionLocal as session_factory
    return TableGateway(session_factory, user_id=user_id)
