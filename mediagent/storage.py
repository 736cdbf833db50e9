"""
Storage backends.

Every backend implements the same small document-store interface:
create / get / list / update / delete / search, keyed by
(collection, id). Records are plain camelCase JSON dicts.

Backends:
    - MemoryRepository    (dict per collection, lost on restart)
    - JsonFileRepository  (one <collection>.json file per collection)
    - SqlRepository       (SQLAlchemy `records` table)
"""

import json
import logging
import os
import random
import string
import tempfile
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .db import StoredRecord, make_session_factory
from .errors import StorageError

logger = logging.getLogger(__name__)

Record = Dict[str, Any]


def generate_id() -> str:
    """Epoch-millis in base36 plus a random suffix. Good enough for a demo."""
    millis = int(time.time() * 1000)
    digits = string.digits + string.ascii_lowercase
    out = ""
    while millis:
        millis, rem = divmod(millis, 36)
        out = digits[rem] + out
    suffix = "".join(random.choices(digits, k=9))
    return out + suffix


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class Repository:
    """Base class; subclasses provide the five primitive operations."""

    def create(self, collection: str, record: Record) -> Record:
        raise NotImplementedError

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    def list(self, collection: str) -> List[Record]:
        raise NotImplementedError

    def update(self, collection: str, record_id: str, changes: Record) -> Optional[Record]:
        """Merge `changes` into the stored record. Returns None if missing."""
        raise NotImplementedError

    def delete(self, collection: str, record_id: str) -> bool:
        raise NotImplementedError

    def clear(self, collection: str) -> None:
        for rec in self.list(collection):
            self.delete(collection, rec["id"])

    def search(
        self,
        collection: str,
        query: str,
        fields: Iterable[str],
        exact_case_fields: Iterable[str] = (),
    ) -> List[Record]:
        """
        Substring search over `fields` (case-insensitive) and
        `exact_case_fields` (case-sensitive, e.g. phone numbers).
        """
        lower_query = query.lower()
        fields = list(fields)
        exact_case_fields = list(exact_case_fields)

        matches = []
        for rec in self.list(collection):
            hit = any(lower_query in str(rec.get(f) or "").lower() for f in fields)
            if not hit:
                hit = any(query in str(rec.get(f) or "") for f in exact_case_fields)
            if hit:
                matches.append(rec)
        return matches


class MemoryRepository(Repository):
    def __init__(self):
        self._collections: Dict[str, Dict[str, Record]] = {}
        self._lock = threading.Lock()

    def _bucket(self, collection: str) -> Dict[str, Record]:
        return self._collections.setdefault(collection, {})

    def create(self, collection, record):
        with self._lock:
            self._bucket(collection)[record["id"]] = dict(record)
        return dict(record)

    def get(self, collection, record_id):
        with self._lock:
            rec = self._bucket(collection).get(record_id)
        return dict(rec) if rec is not None else None

    def list(self, collection):
        with self._lock:
            return [dict(r) for r in self._bucket(collection).values()]

    def update(self, collection, record_id, changes):
        with self._lock:
            bucket = self._bucket(collection)
            if record_id not in bucket:
                return None
            bucket[record_id] = {**bucket[record_id], **changes}
            return dict(bucket[record_id])

    def delete(self, collection, record_id):
        with self._lock:
            return self._bucket(collection).pop(record_id, None) is not None

    def clear(self, collection):
        with self._lock:
            self._bucket(collection).clear()


class JsonFileRepository(Repository):
    """
    Persists each collection to <data_dir>/<collection>.json
    (read, modify, write back on every call).

    Every call holds the repository lock, and files are replaced
    atomically, so a reader never sees a half-written file.
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _load(self, collection: str) -> List[Record]:
        path = self._path(collection)
        if not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except ValueError as e:
            logger.error("Store file %s is not valid JSON: %s", path, e)
            raise StorageError(f"Store file {path.name} is corrupted") from e
        if not isinstance(records, list):
            logger.error("Store file %s does not hold a list of records", path)
            raise StorageError(f"Store file {path.name} is corrupted")
        return records

    def _save(self, collection: str, records: List[Record]) -> None:
        path = self._path(collection)
        fd, tmp_name = tempfile.mkstemp(dir=self.data_dir, prefix=f".{collection}-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def create(self, collection, record):
        with self._lock:
            records = self._load(collection)
            records.append(record)
            self._save(collection, records)
        return dict(record)

    def get(self, collection, record_id):
        with self._lock:
            records = self._load(collection)
        for rec in records:
            if rec.get("id") == record_id:
                return rec
        return None

    def list(self, collection):
        with self._lock:
            return self._load(collection)

    def update(self, collection, record_id, changes):
        with self._lock:
            records = self._load(collection)
            for index, rec in enumerate(records):
                if rec.get("id") == record_id:
                    records[index] = {**rec, **changes}
                    self._save(collection, records)
                    return records[index]
        return None

    def delete(self, collection, record_id):
        with self._lock:
            records = self._load(collection)
            kept = [r for r in records if r.get("id") != record_id]
            if len(kept) == len(records):
                return False
            self._save(collection, kept)
        return True

    def clear(self, collection):
        with self._lock:
            self._save(collection, [])


class SqlRepository(Repository):
    def __init__(self, database_url: str):
        self.SessionLocal = make_session_factory(database_url)

    def create(self, collection, record):
        db = self.SessionLocal()
        try:
            row = StoredRecord(collection=collection, record_id=record["id"], payload=dict(record))
            db.add(row)
            db.commit()
            return dict(record)
        finally:
            db.close()

    def _row(self, db, collection, record_id):
        return (
            db.query(StoredRecord)
            .filter(
                StoredRecord.collection == collection,
                StoredRecord.record_id == record_id,
            )
            .first()
        )

    def get(self, collection, record_id):
        db = self.SessionLocal()
        try:
            row = self._row(db, collection, record_id)
            return dict(row.payload) if row else None
        finally:
            db.close()

    def list(self, collection):
        db = self.SessionLocal()
        try:
            rows = (
                db.query(StoredRecord)
                .filter(StoredRecord.collection == collection)
                .order_by(StoredRecord.id)
                .all()
            )
            return [dict(r.payload) for r in rows]
        finally:
            db.close()

    def update(self, collection, record_id, changes):
        db = self.SessionLocal()
        try:
            row = self._row(db, collection, record_id)
            if not row:
                return None
            # assign a new dict so the JSON column is flagged dirty
            row.payload = {**row.payload, **changes}
            db.commit()
            return dict(row.payload)
        finally:
            db.close()

    def delete(self, collection, record_id):
        db = self.SessionLocal()
        try:
            row = self._row(db, collection, record_id)
            if not row:
                return False
            db.delete(row)
            db.commit()
            return True
        finally:
            db.close()

    def clear(self, collection):
        db = self.SessionLocal()
        try:
            db.query(StoredRecord).filter(StoredRecord.collection == collection).delete()
            db.commit()
        finally:
            db.close()


def build_repository(settings) -> Repository:
    """Pick the backend named by settings.STORAGE."""
    kind = (settings.STORAGE or "memory").lower()
    if kind == "memory":
        return MemoryRepository()
    if kind == "file":
        return JsonFileRepository(settings.DATA_DIR)
    if kind == "sql":
        return SqlRepository(settings.DATABASE_URL)
    raise ValueError(f"Unknown storage backend: {settings.STORAGE!r}")
