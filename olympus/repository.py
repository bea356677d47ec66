"""Record repository: CRUD and query over typed collections.

The engine never talks to storage directly. It goes through a Repository,
whose ``upsert`` with a conflict key is where the at-most-once invariants
(one completion per habit per day, one achievement per type) are enforced.
"""

from __future__ import annotations

import copy
import fcntl
import json
import logging
import os
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Sequence

from olympus.errors import NotFoundError, RepositoryError
from olympus.fileio import read_text, write_json_atomic
from olympus.workspace import store_path

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "habits",
    "habit_completions",
    "focus_sessions",
    "tasks",
    "journal_entries",
    "achievements",
)

Record = dict[str, Any]
OrderBy = Sequence[tuple[str, bool]]


def new_id() -> str:
    return uuid.uuid4().hex


def matches(record: Record, filter: dict[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(record.get(k) == v for k, v in filter.items())


def _sort_value(value: Any) -> tuple[int, Any]:
    # None sorts before everything else in ascending order
    return (0, "") if value is None else (1, value)


def apply_order(records: list[Record], order_by: OrderBy | None) -> list[Record]:
    """Stable multi-key sort; the first (field, descending) pair is primary."""
    if not order_by:
        return records
    for fld, descending in reversed(list(order_by)):
        records.sort(key=lambda r: _sort_value(r.get(fld)), reverse=descending)
    return records


class Repository(ABC):
    """Abstract record store over the six Olympus collections."""

    @abstractmethod
    def _load(self) -> dict[str, list[Record]]:
        """Return the current collections (may be a live reference)."""

    @abstractmethod
    def _commit(self, data: dict[str, list[Record]]) -> None:
        """Persist collections after a mutation."""

    def _transaction(self):
        """Context manager wrapping a read-modify-write."""
        return _NullTransaction()

    @staticmethod
    def _check(collection: str) -> None:
        if collection not in COLLECTIONS:
            raise RepositoryError(f"Unknown collection: {collection}")

    # ── Reads ─────────────────────────────────────────────────

    def query(
        self,
        collection: str,
        filter: dict[str, Any] | None = None,
        order_by: OrderBy | None = None,
    ) -> list[Record]:
        self._check(collection)
        rows = [copy.deepcopy(r) for r in self._load().get(collection, []) if matches(r, filter)]
        return apply_order(rows, order_by)

    def get(self, collection: str, record_id: str) -> Record | None:
        rows = self.query(collection, {"id": record_id})
        return rows[0] if rows else None

    def snapshot(self) -> dict[str, list[Record]]:
        data = self._load()
        return {name: copy.deepcopy(data.get(name, [])) for name in COLLECTIONS}

    # ── Writes ────────────────────────────────────────────────

    def insert(self, collection: str, record: Record) -> Record:
        self._check(collection)
        with self._transaction():
            data = self._load()
            stored = copy.deepcopy(record)
            if not stored.get("id"):
                stored["id"] = new_id()
            data.setdefault(collection, []).append(stored)
            self._commit(data)
        logger.debug("insert %s/%s", collection, stored["id"])
        return copy.deepcopy(stored)

    def update(self, collection: str, record_id: str, patch: Record) -> None:
        self._check(collection)
        with self._transaction():
            data = self._load()
            for row in data.get(collection, []):
                if row.get("id") == record_id:
                    row.update({k: copy.deepcopy(v) for k, v in patch.items() if k != "id"})
                    self._commit(data)
                    logger.debug("update %s/%s: %s", collection, record_id, sorted(patch))
                    return
        raise NotFoundError(f"{collection} record not found: {record_id}")

    def delete(self, collection: str, record_id: str) -> None:
        """Delete by id. Deleting a missing record is not an error."""
        self.delete_where(collection, {"id": record_id})

    def delete_where(self, collection: str, filter: dict[str, Any]) -> int:
        self._check(collection)
        if not filter:
            raise RepositoryError("delete_where requires a non-empty filter")
        with self._transaction():
            data = self._load()
            rows = data.get(collection, [])
            kept = [r for r in rows if not matches(r, filter)]
            removed = len(rows) - len(kept)
            if removed:
                data[collection] = kept
                self._commit(data)
        logger.debug("delete %s where %s: %d removed", collection, filter, removed)
        return removed

    def upsert(self, collection: str, record: Record, conflict_keys: Iterable[str]) -> tuple[Record, bool]:
        """Insert *record* unless one with equal conflict keys exists.

        Returns (stored_record, created). The check and the insert happen in
        one transaction, so a second call never produces a duplicate.
        """
        self._check(collection)
        keys = list(conflict_keys)
        if not keys:
            raise RepositoryError("upsert requires at least one conflict key")
        key_filter = {k: record.get(k) for k in keys}
        with self._transaction():
            data = self._load()
            for row in data.get(collection, []):
                if matches(row, key_filter):
                    return copy.deepcopy(row), False
            stored = copy.deepcopy(record)
            if not stored.get("id"):
                stored["id"] = new_id()
            data.setdefault(collection, []).append(stored)
            self._commit(data)
        logger.debug("upsert %s %s: created", collection, key_filter)
        return copy.deepcopy(stored), True


class _NullTransaction:
    def __enter__(self) -> None:
        return None

    def __exit__(self, *exc: object) -> None:
        return None


class MemoryRepository(Repository):
    """In-process repository, used by tests and as a scratch store."""

    def __init__(self, data: dict[str, list[Record]] | None = None):
        self._data: dict[str, list[Record]] = {name: [] for name in COLLECTIONS}
        for name, rows in (data or {}).items():
            self._check(name)
            self._data[name] = copy.deepcopy(rows)

    def _load(self) -> dict[str, list[Record]]:
        return self._data

    def _commit(self, data: dict[str, list[Record]]) -> None:
        self._data = data


class _FileLock:
    """Exclusive flock on a sidecar lock file for the duration of a write."""

    def __init__(self, path: Path):
        self.path = path
        self._fh = None

    def __enter__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh = open(self.path, "a", encoding="utf-8")
        fcntl.flock(self._fh.fileno(), fcntl.LOCK_EX)

    def __exit__(self, *exc: object) -> None:
        if self._fh is not None:
            fcntl.flock(self._fh.fileno(), fcntl.LOCK_UN)
            self._fh.close()
            self._fh = None


class JsonFileRepository(Repository):
    """Repository backed by a single JSON document on disk.

    Every mutation re-reads the file under an exclusive lock and writes it
    back atomically (temp file + rename).
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    def _transaction(self) -> _FileLock:
        return _FileLock(self._lock_path)

    def _load(self) -> dict[str, list[Record]]:
        try:
            text = read_text(self.path)
            raw = json.loads(text) if text.strip() else {}
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to read store %s: %s", self.path, e)
            raise RepositoryError(f"Failed to read store {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise RepositoryError(f"Store {self.path} is not a JSON object")
        return {name: list(raw.get(name) or []) for name in COLLECTIONS}

    def _commit(self, data: dict[str, list[Record]]) -> None:
        try:
            write_json_atomic(self.path, data)
        except OSError as e:
            logger.error("Failed to write store %s: %s", self.path, e)
            raise RepositoryError(f"Failed to write store {self.path}: {e}") from e


def open_repository(root: Path | None = None) -> JsonFileRepository:
    """Open the file-backed repository of a workspace."""
    path = store_path(root)
    if not path.parent.exists():
        os.makedirs(path.parent, exist_ok=True)
    return JsonFileRepository(path)
