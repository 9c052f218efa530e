"""
Persistent storage for the user's task records.

This module manages the file:

    <data dir>/tasks.json

with the schema:

    {"users": {"<user id>": [<task record>, ...]}}

Every store implements the same small contract:

    fetch_all(ctx)            -> list[TaskRecord]
    upsert(ctx, records)      -> None   (keyed by id, idempotent)
    delete_by_ids(ctx, ids)   -> None

The StorageContext is passed explicitly on every call; stores keep no
per-user state of their own. Only templates, standalone tasks and edited
instances are stored, never generated occurrences.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol

from mysemester.model import TaskRecord, link_legacy_instances

LOG = logging.getLogger(__name__)

TASKS_FILENAME = "tasks.json"


class StorageError(RuntimeError):
    """Raised when records cannot be read from or written to a store."""


@dataclass(frozen=True)
class StorageContext:
    """
    Who is reading/writing and where.

    data_dir is used by the JSON store; remote_url / api_key / access_token
    by the remote store.
    """

    user_id: str
    data_dir: Optional[Path] = None
    remote_url: Optional[str] = None
    api_key: Optional[str] = None
    access_token: Optional[str] = None


class TaskStore(Protocol):
    def fetch_all(self, ctx: StorageContext) -> list[TaskRecord]: ...

    def upsert(self, ctx: StorageContext, records: Iterable[TaskRecord]) -> None: ...

    def delete_by_ids(self, ctx: StorageContext, ids: Iterable[str]) -> None: ...


def _records_from_json(raw: Any) -> list[TaskRecord]:
    """
    Convert raw JSON rows into records, skipping rows that are not valid tasks.
    """
    out: list[TaskRecord] = []
    if not isinstance(raw, list):
        return out
    for row in raw:
        if not isinstance(row, dict):
            continue
        try:
            out.append(TaskRecord.from_dict(row))
        except (ValueError, TypeError) as exc:
            LOG.warning("Skipping invalid task record %r: %s", row.get("id"), exc)
    return out


class JsonTaskStore:
    """
    Task store backed by one local JSON file shared by all local users.

    Reading is deliberately defensive: a missing or corrupted file is treated
    as "no tasks yet" instead of crashing the application.
    """

    def _path(self, ctx: StorageContext) -> Path:
        if ctx.data_dir is None:
            raise StorageError("No data directory configured for the JSON task store")
        return Path(ctx.data_dir) / TASKS_FILENAME

    def _load_all(self, path: Path) -> dict[str, Any]:
        # First run: file does not exist yet -> no tasks
        if not path.exists():
            return {}
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
            LOG.warning("Ignoring unreadable task file %s: %s", path, exc)
            return {}
        users = data.get("users") if isinstance(data, dict) else None
        return users if isinstance(users, dict) else {}

    def _save_all(self, path: Path, users: dict[str, Any]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            payload = {"users": users}
            path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Could not write {path}: {exc}") from exc
        LOG.debug("Wrote %s", path)

    def fetch_all(self, ctx: StorageContext) -> list[TaskRecord]:
        users = self._load_all(self._path(ctx))
        records = link_legacy_instances(_records_from_json(users.get(ctx.user_id, [])))
        records.sort(key=lambda t: t.date)
        return records

    def upsert(self, ctx: StorageContext, records: Iterable[TaskRecord]) -> None:
        incoming = list(records)
        if not incoming:
            return
        path = self._path(ctx)
        users = self._load_all(path)
        rows = users.get(ctx.user_id, [])
        rows = list(rows) if isinstance(rows, list) else []

        position = {row.get("id"): i for i, row in enumerate(rows) if isinstance(row, dict)}
        for record in incoming:
            row = record.to_dict()
            if record.id in position:
                rows[position[record.id]] = row
            else:
                position[record.id] = len(rows)
                rows.append(row)

        users[ctx.user_id] = rows
        self._save_all(path, users)

    def delete_by_ids(self, ctx: StorageContext, ids: Iterable[str]) -> None:
        gone = set(ids)
        if not gone:
            return
        path = self._path(ctx)
        users = self._load_all(path)
        rows = users.get(ctx.user_id, [])
        if not isinstance(rows, list):
            rows = []
        users[ctx.user_id] = [row for row in rows if not (isinstance(row, dict) and row.get("id") in gone)]
        self._save_all(path, users)


def persist_change(store: TaskStore, ctx: StorageContext, upserts: Iterable[TaskRecord], deleted_ids: Iterable[str]) -> None:
    """
    Write one change set: upserts first, then deletions.

    The two writes are not atomic. If the upsert fails nothing has been
    deleted yet; if the deletion fails the new records are already stored and
    retrying the same change set is safe (upsert is idempotent).
    """
    records = list(upserts)
    if records:
        store.upsert(ctx, records)
    gone = list(deleted_ids)
    if gone:
        store.delete_by_ids(ctx, gone)
