from __future__ import annotations

import logging
from typing import Mapping, Optional

import requests

from pst.domain.errors import StoreError, ValidationError
from pst.repositories.contracts import TABLE_COLUMNS

log = logging.getLogger("pst.store")


def _eq(value: object) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


class RestStore:
    """TableStore over a hosted PostgREST endpoint (`{url}/rest/v1/{table}`)."""

    def __init__(self, base_url: str, api_key: str, timeout: float = 10, session: requests.Session | None = None):
        if not base_url:
            raise ValidationError("REST store URL is required.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "Prefer": "return=representation",
            }
        )

    def _url(self, table: str) -> str:
        if table not in TABLE_COLUMNS:
            raise ValidationError(f"Unknown collection: {table}")
        return f"{self.base_url}/rest/v1/{table}"

    def _filters(self, row_id: str | None, filters: Optional[Mapping[str, object]]) -> dict[str, str]:
        params = {}
        if row_id is not None:
            params["id"] = _eq(row_id)
        for col, value in (filters or {}).items():
            params[col] = _eq(value)
        return params

    def _send(self, method: str, table: str, params: dict, payload: object = None) -> list[dict]:
        url = self._url(table)
        try:
            r = self.session.request(method, url, params=params, json=payload, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            log.warning("store_request_failed method=%s table=%s error=%s", method, table, e)
            raise StoreError(f"{method} {table} failed: {e}") from e
        if not r.content:
            return []
        try:
            data = r.json()
        except ValueError as e:
            raise StoreError(f"{method} {table} returned invalid JSON") from e
        if isinstance(data, dict):
            return [data]
        return list(data)

    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, object]] = None,
        order_by: Optional[str] = None,
        descending: bool = True,
    ) -> list[dict]:
        params = {"select": "*", **self._filters(None, filters)}
        if order_by:
            params["order"] = f"{order_by}.{'desc' if descending else 'asc'}"
        return self._send("GET", table, params)

    def get(self, table: str, row_id: str) -> Optional[dict]:
        rows = self._send("GET", table, {"select": "*", **self._filters(row_id, None)})
        return rows[0] if rows else None

    def insert(self, table: str, row: Mapping[str, object]) -> dict:
        rows = self._send("POST", table, {}, dict(row))
        if not rows:
            raise StoreError(f"insert into {table} returned no row")
        return rows[0]

    def update(
        self,
        table: str,
        row_id: str,
        values: Mapping[str, object],
        expected: Optional[Mapping[str, object]] = None,
    ) -> Optional[dict]:
        payload = {k: v for k, v in dict(values).items() if k not in ("id", "created_at", "updated_at")}
        rows = self._send("PATCH", table, self._filters(row_id, expected), payload)
        return rows[0] if rows else None

    def delete(self, table: str, row_id: str, expected: Optional[Mapping[str, object]] = None) -> bool:
        rows = self._send("DELETE", table, self._filters(row_id, expected))
        return bool(rows)
