"""Table REST endpoints (``/rest/v1/<table>``).

Filters are equality-only (``column=eq.value``); that is all the
application needs to scope rows by owner and id.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from avtokontrol._api._common import table_error_from
from avtokontrol._constants import REST_PREFIX
from avtokontrol._transport import Transport
from avtokontrol.exceptions import BackendError, DataFetchError, SessionExpiredError

_RETURN_ROWS = {"prefer": "return=representation"}


def table_endpoint(table: str) -> str:
    return f"{REST_PREFIX}/{table}"


def build_filters(filters: Mapping[str, Any] | None) -> dict[str, str]:
    """Translate ``{"user_id": "u1"}`` into ``{"user_id": "eq.u1"}``."""
    if not filters:
        return {}
    return {column: f"eq.{value}" for column, value in filters.items()}


async def _call(
    transport: Transport,
    method: str,
    table: str,
    *,
    access_token: str,
    params: dict[str, str] | None = None,
    json_body: Any = None,
    headers: dict[str, str] | None = None,
) -> Any:
    try:
        return await transport.request(
            method,
            table_endpoint(table),
            params=params,
            json_body=json_body,
            headers=headers,
            access_token=access_token,
        )
    except (DataFetchError, SessionExpiredError):
        raise
    except BackendError as exc:
        raise table_error_from(exc, table) from exc


def _rows(payload: Any, table: str) -> list[dict[str, Any]]:
    if payload is None:
        return []
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        raise DataFetchError(f"{table}: unexpected response shape", table=table)
    return [row for row in payload if isinstance(row, dict)]


async def select(
    transport: Transport,
    table: str,
    *,
    access_token: str,
    filters: Mapping[str, Any] | None = None,
    columns: str = "*",
    order: str | None = None,
) -> list[dict[str, Any]]:
    """Fetch rows matching all equality *filters*."""
    params = {"select": columns, **build_filters(filters)}
    if order:
        params["order"] = order
    payload = await _call(transport, "GET", table, access_token=access_token, params=params)
    return _rows(payload, table)


async def select_one(
    transport: Transport,
    table: str,
    *,
    access_token: str,
    filters: Mapping[str, Any],
    columns: str = "*",
) -> dict[str, Any] | None:
    """Fetch a single row or ``None`` when nothing matches."""
    rows = await select(transport, table, access_token=access_token, filters=filters, columns=columns)
    return rows[0] if rows else None


async def insert(
    transport: Transport,
    table: str,
    row: Mapping[str, Any],
    *,
    access_token: str,
) -> dict[str, Any]:
    payload = await _call(
        transport,
        "POST",
        table,
        access_token=access_token,
        json_body=dict(row),
        headers=_RETURN_ROWS,
    )
    rows = _rows(payload, table)
    return rows[0] if rows else dict(row)


async def update(
    transport: Transport,
    table: str,
    values: Mapping[str, Any],
    *,
    access_token: str,
    filters: Mapping[str, Any],
) -> list[dict[str, Any]]:
    """Update rows matching *filters*; returns the updated rows."""
    if not filters:
        raise ValueError("update requires at least one filter")
    payload = await _call(
        transport,
        "PATCH",
        table,
        access_token=access_token,
        params=build_filters(filters),
        json_body=dict(values),
        headers=_RETURN_ROWS,
    )
    return _rows(payload, table)


async def upsert(
    transport: Transport,
    table: str,
    row: Mapping[str, Any],
    *,
    access_token: str,
    on_conflict: str,
) -> dict[str, Any]:
    payload = await _call(
        transport,
        "POST",
        table,
        access_token=access_token,
        params={"on_conflict": on_conflict},
        json_body=dict(row),
        headers={"prefer": "resolution=merge-duplicates,return=representation"},
    )
    rows = _rows(payload, table)
    return rows[0] if rows else dict(row)
