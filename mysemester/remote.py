"""Task store backed by a Supabase / PostgREST `tasks` table."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

import requests

from mysemester.model import TaskRecord, link_legacy_instances
from mysemester.storage import StorageContext, StorageError

LOG = logging.getLogger(__name__)

TABLE = "tasks"

# TaskRecord field -> column. Columns are snake_case, so the names match.
_COLUMNS = (
    "id",
    "title",
    "description",
    "type",
    "date",
    "completed",
    "notes",
    "start_time",
    "end_time",
    "course_name",
    "activity_type",
    "frequency",
    "semester_id",
    "start_date",
    "end_date",
    "day_of_week",
    "exam_type",
    "exam_session_id",
    "exam_result",
    "credits",
)

# Added after the original table; only sent when they carry information.
#   ALTER TABLE tasks ADD COLUMN template_id text,
#                     ADD COLUMN cancelled boolean DEFAULT false;
_OPTIONAL_COLUMNS = ("template_id", "cancelled")


def record_to_row(record: TaskRecord, user_id: str) -> Dict[str, Any]:
    row: Dict[str, Any] = {}
    for column in _COLUMNS:
        value = getattr(record, column)
        if hasattr(value, "isoformat"):
            value = value.isoformat()
        # empty strings are stored as NULL
        if value == "":
            value = None
        row[column] = value
    # template_id is recovered from the id on read when it is the id prefix
    if record.template_id and not record.id.startswith(record.template_id + "-"):
        row["template_id"] = record.template_id
    if record.cancelled:
        row["cancelled"] = True
    row["user_id"] = user_id
    return row


def _uniform_rows(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    # A bulk insert needs the same keys on every row.
    extra = [c for c in _OPTIONAL_COLUMNS if any(c in row for row in rows)]
    for row in rows:
        for column in extra:
            row.setdefault(column, False if column == "cancelled" else None)
    return rows


def row_to_record(row: Dict[str, Any]) -> TaskRecord:
    data = {column: row.get(column) for column in _COLUMNS + _OPTIONAL_COLUMNS if row.get(column) not in (None, "")}
    data.setdefault("completed", False)
    return TaskRecord.from_dict(data)


class RemoteTaskStore:
    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 30) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def _url(self, ctx: StorageContext) -> str:
        if not ctx.remote_url:
            raise StorageError("No remote URL configured")
        return f"{ctx.remote_url.rstrip('/')}/rest/v1/{TABLE}"

    def _headers(self, ctx: StorageContext) -> Dict[str, str]:
        if not ctx.api_key:
            raise StorageError("No API key configured for the remote store")
        return {
            "apikey": ctx.api_key,
            "Authorization": f"Bearer {ctx.access_token or ctx.api_key}",
            "Content-Type": "application/json",
        }

    def _request(
        self,
        ctx: StorageContext,
        method: str,
        params: Optional[Dict[str, str]] = None,
        json_body: Optional[List[Dict[str, Any]]] = None,
        extra_headers: Optional[Dict[str, str]] = None,
    ) -> requests.Response:
        url = self._url(ctx)
        headers = self._headers(ctx)
        if extra_headers:
            headers.update(extra_headers)
        LOG.debug("%s %s %s", method, url, params or "")
        try:
            resp = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StorageError(f"{method} {url} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise StorageError(f"{method} {url} returned {resp.status_code}: {resp.text[:200]}")
        return resp

    def fetch_all(self, ctx: StorageContext) -> List[TaskRecord]:
        params = {"select": "*", "user_id": f"eq.{ctx.user_id}", "order": "date.asc"}
        resp = self._request(ctx, "GET", params=params)
        try:
            rows = resp.json()
        except ValueError as exc:
            raise StorageError(f"Invalid JSON from remote store: {exc}") from exc

        records: List[TaskRecord] = []
        for row in rows or []:
            try:
                records.append(row_to_record(row))
            except (ValueError, TypeError) as exc:
                LOG.warning("Skipping invalid remote row %r: %s", row.get("id"), exc)
        return link_legacy_instances(records)

    def upsert(self, ctx: StorageContext, records: Iterable[TaskRecord]) -> None:
        rows = _uniform_rows([record_to_row(r, ctx.user_id) for r in records])
        if not rows:
            return
        self._request(
            ctx,
            "POST",
            params={"on_conflict": "id"},
            json_body=rows,
            extra_headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )

    def delete_by_ids(self, ctx: StorageContext, ids: Iterable[str]) -> None:
        quoted = [f'"{i}"' for i in ids]
        if not quoted:
            return
        self._request(ctx, "DELETE", params={"id": f"in.({','.join(quoted)})"})
