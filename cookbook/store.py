"""
Document store with live collection queries.

Documents are schema-free JSON bodies addressed by a collection path
(``artifacts/<app>/users/<uid>/recipes``) and a generated id. Every committed
write pushes the full, ordered result set to the watchers of that collection.
"""
import copy
import logging
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .db import init_db, make_engine, make_session_factory

logger = logging.getLogger(__name__)

Snapshot = List[Dict[str, Any]]


class _ServerTimestamp:
    def __repr__(self):
        return "SERVER_TIMESTAMP"


# Placeholder replaced with the store's clock when a write is committed
SERVER_TIMESTAMP = _ServerTimestamp()


class StoreError(Exception):
    """Raised when the store cannot complete an operation."""


class DocumentNotFound(StoreError):
    def __init__(self, path: str, doc_id: str):
        super().__init__(f"No document {doc_id!r} in {path!r}")
        self.path = path
        self.doc_id = doc_id


def collection_path(*segments: str) -> str:
    """Join path segments into a collection path.

    A collection path alternates collection and document names, so it always
    has an odd number of segments.
    """
    if not segments or len(segments) % 2 == 0:
        raise ValueError(f"A collection path needs an odd number of segments, got {len(segments)}")
    for segment in segments:
        if not segment or "/" in segment:
            raise ValueError(f"Invalid path segment: {segment!r}")
    return "/".join(segments)


class _Watch:
    def __init__(self, path: str, order_by: Optional[str], callback: Callable[[Snapshot], None]):
        self.path = path
        self.order_by = order_by
        self.callback = callback


class Subscription:
    """Handle returned by :meth:`DocumentStore.watch`."""

    def __init__(self, store: "DocumentStore", watch: _Watch):
        self._store = store
        self._watch = watch
        self.active = True

    def unsubscribe(self):
        if self.active:
            self._store._remove_watch(self._watch)
            self.active = False


class DocumentStore:
    def __init__(self, session_factory, clock: Optional[Callable[[], datetime]] = None):
        self.session_factory = session_factory
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._watchers: Dict[str, List[_Watch]] = {}
        # Held across commit and notify so watchers see snapshots in write order
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, store_config: Mapping[str, Any]) -> "DocumentStore":
        database_url = store_config.get("database_url")
        if not database_url:
            raise StoreError("Store configuration has no database_url")
        engine = make_engine(database_url)
        init_db(engine)
        return cls(make_session_factory(engine))

    @contextmanager
    def _session(self):
        db: Session = self.session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(str(e)) from e
        finally:
            db.close()

    def _resolve(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        now = None
        resolved = {}
        for key, value in fields.items():
            if value is SERVER_TIMESTAMP:
                if now is None:
                    now = self._clock().isoformat(timespec="microseconds")
                value = now
            resolved[key] = value
        return resolved

    @staticmethod
    def _find(db: Session, path: str, doc_id: str) -> Optional[models.Document]:
        return (
            db.query(models.Document)
            .filter(models.Document.collection == path, models.Document.id == doc_id)
            .first()
        )

    def add(self, path: str, data: Mapping[str, Any]) -> str:
        """Insert a document under a generated id and return the id."""
        doc_id = uuid.uuid4().hex
        with self._lock:
            with self._session() as db:
                db.add(models.Document(id=doc_id, collection=path, data=self._resolve(data)))
                db.commit()
            logger.debug(f"Added {doc_id} to {path}")
            self._notify(path)
        return doc_id

    def update(self, path: str, doc_id: str, fields: Mapping[str, Any]):
        """Merge ``fields`` into an existing document, leaving other fields alone."""
        with self._lock:
            with self._session() as db:
                doc = self._find(db, path, doc_id)
                if doc is None:
                    raise DocumentNotFound(path, doc_id)
                # Reassign so the JSON column registers the change
                doc.data = {**doc.data, **self._resolve(fields)}
                db.commit()
            logger.debug(f"Updated {doc_id} in {path}")
            self._notify(path)

    def delete(self, path: str, doc_id: str):
        with self._lock:
            with self._session() as db:
                doc = self._find(db, path, doc_id)
                if doc is None:
                    raise DocumentNotFound(path, doc_id)
                db.delete(doc)
                db.commit()
            logger.debug(f"Deleted {doc_id} from {path}")
            self._notify(path)

    def get(self, path: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._session() as db:
            doc = self._find(db, path, doc_id)
            if doc is None:
                return None
            return {"id": doc.id, **copy.deepcopy(doc.data)}

    def list(self, path: str, order_by: Optional[str] = None) -> Snapshot:
        """Return every document in a collection.

        With ``order_by``, documents are sorted ascending on that field and
        documents lacking it are left out.
        """
        with self._session() as db:
            docs = (
                db.query(models.Document)
                .filter(models.Document.collection == path)
                .order_by(models.Document.seq)
                .all()
            )
            if order_by is not None:
                docs = [d for d in docs if d.data.get(order_by) is not None]
                docs.sort(key=lambda d: (d.data[order_by], d.seq))
            return [{"id": d.id, **copy.deepcopy(d.data)} for d in docs]

    def watch(
        self,
        path: str,
        callback: Callable[[Snapshot], None],
        order_by: Optional[str] = None,
    ) -> Subscription:
        """Call ``callback`` with the full result set now and after every write."""
        watch = _Watch(path, order_by, callback)
        with self._lock:
            self._watchers.setdefault(path, []).append(watch)
            callback(self.list(path, order_by))
        return Subscription(self, watch)

    def _remove_watch(self, watch: _Watch):
        with self._lock:
            watchers = self._watchers.get(watch.path, [])
            if watch in watchers:
                watchers.remove(watch)
            if not watchers:
                self._watchers.pop(watch.path, None)

    def _notify(self, path: str):
        watchers = list(self._watchers.get(path, []))
        snapshots: Dict[Optional[str], Snapshot] = {}
        for watch in watchers:
            if watch.order_by not in snapshots:
                snapshots[watch.order_by] = self.list(path, watch.order_by)
            try:
                watch.callback(copy.deepcopy(snapshots[watch.order_by]))
            except Exception:
                # The write is already committed; one bad listener must not hide it from the rest
                logger.exception(f"Snapshot listener for {path} failed")
