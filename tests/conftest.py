from __future__ import annotations

import asyncio
import itertools
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest
import pytest_asyncio

from avtokontrol.client import BackendClient
from avtokontrol.config import AppConfig
from avtokontrol.exceptions import BackendError, TransportError
from avtokontrol.storage import PreferenceStore


TABLE_COLUMNS: dict[str, frozenset[str]] = {
    "vehicles": frozenset(
        {"id", "user_id", "name", "model", "year", "color", "location", "status", "last_updated", "created_at"}
    ),
}


def _bad_jwt(endpoint: str) -> BackendError:
    return BackendError("JWT expired", code="PGRST301", endpoint=endpoint, status_code=401)


@dataclass
class FakeBackend:
    """In-memory stand-in for the hosted backend's auth and table endpoints."""

    require_confirmation: bool = False
    offline: bool = False
    fail_tables: set[str] = field(default_factory=set)
    fail_writes: set[str] = field(default_factory=set)
    expire_next_table_call: bool = False
    gate: asyncio.Event | None = None
    users: dict[str, dict[str, Any]] = field(default_factory=dict)
    tables: dict[str, list[dict[str, Any]]] = field(
        default_factory=lambda: {"profiles": [], "vehicles": [], "trips": [], "user_settings": []}
    )
    calls: list[tuple[str, str]] = field(default_factory=list)
    access_tokens: dict[str, str] = field(default_factory=dict)
    refresh_tokens: dict[str, str] = field(default_factory=dict)
    _ids: itertools.count = field(default_factory=lambda: itertools.count(1))

    # ------------------------------------------------------------------
    # Seeding helpers
    # ------------------------------------------------------------------

    def add_user(self, email: str, password: str, *, name: str = "", confirmed: bool = True) -> str:
        user_id = f"user-{next(self._ids)}"
        self.users[email] = {
            "id": user_id,
            "email": email,
            "password": password,
            "confirmed": confirmed,
            "user_metadata": {"name": name} if name else {},
        }
        return user_id

    def add_row(self, table: str, **row: Any) -> dict[str, Any]:
        row.setdefault("id", f"{table}-{next(self._ids)}")
        self.tables[table].append(row)
        return row

    def row(self, table: str, row_id: str) -> dict[str, Any]:
        return next(r for r in self.tables[table] if r["id"] == row_id)

    def count(self, method: str, endpoint: str) -> int:
        return sum(1 for call in self.calls if call == (method, endpoint))

    # ------------------------------------------------------------------
    # Transport protocol
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        access_token: str | None = None,
    ) -> Any:
        self.calls.append((method, endpoint))
        if self.offline:
            raise TransportError(f"Request to {endpoint} failed: offline", endpoint=endpoint)
        params = dict(params or {})
        if endpoint.startswith("/auth/v1/"):
            return self._auth(method, endpoint, params, json_body or {}, access_token)
        if endpoint.startswith("/rest/v1/"):
            return await self._table(method, endpoint, params, json_body, access_token)
        raise BackendError("Not found", code="404", endpoint=endpoint, status_code=404)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def _user_payload(self, user: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": user["id"],
            "email": user["email"],
            "email_confirmed_at": "2024-01-01T00:00:00Z" if user["confirmed"] else None,
            "user_metadata": user["user_metadata"],
        }

    def _issue(self, user: dict[str, Any]) -> dict[str, Any]:
        n = next(self._ids)
        access, refresh = f"access-{n}", f"refresh-{n}"
        self.access_tokens[access] = user["email"]
        self.refresh_tokens[refresh] = user["email"]
        return {
            "access_token": access,
            "refresh_token": refresh,
            "token_type": "bearer",
            "expires_in": 3600,
            "user": self._user_payload(user),
        }

    def _auth(
        self,
        method: str,
        endpoint: str,
        params: dict[str, str],
        body: dict[str, Any],
        access_token: str | None,
    ) -> Any:
        if endpoint == "/auth/v1/token" and params.get("grant_type") == "password":
            user = self.users.get(body.get("email", ""))
            if user is None or user["password"] != body.get("password"):
                raise BackendError(
                    "Invalid login credentials", code="invalid_credentials", endpoint=endpoint, status_code=400
                )
            if not user["confirmed"]:
                raise BackendError(
                    "Email not confirmed", code="email_not_confirmed", endpoint=endpoint, status_code=400
                )
            return self._issue(user)

        if endpoint == "/auth/v1/token" and params.get("grant_type") == "refresh_token":
            email = self.refresh_tokens.pop(body.get("refresh_token", ""), None)
            if email is None:
                raise BackendError(
                    "Invalid Refresh Token", code="refresh_token_not_found", endpoint=endpoint, status_code=400
                )
            return self._issue(self.users[email])

        if endpoint == "/auth/v1/signup":
            email = body["email"]
            if email in self.users:
                raise BackendError(
                    "User already registered", code="user_already_exists", endpoint=endpoint, status_code=422
                )
            self.add_user(email, body["password"], name=body.get("data", {}).get("name", ""))
            user = self.users[email]
            user["user_metadata"] = dict(body.get("data", {}))
            if self.require_confirmation:
                user["confirmed"] = False
                return self._user_payload(user)
            return self._issue(user)

        if endpoint == "/auth/v1/logout":
            self.access_tokens.pop(access_token or "", None)
            return None

        if endpoint == "/auth/v1/user":
            email = self.access_tokens.get(access_token or "")
            if email is None:
                raise BackendError("invalid JWT", code="bad_jwt", endpoint=endpoint, status_code=401)
            user = self.users[email]
            if method == "PUT":
                if "password" in body:
                    user["password"] = body["password"]
                user["user_metadata"].update(body.get("data", {}))
            return self._user_payload(user)

        raise BackendError("Not found", code="404", endpoint=endpoint, status_code=404)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    @staticmethod
    def _matches(row: dict[str, Any], filters: dict[str, str]) -> bool:
        return all(str(row.get(column)) == value.removeprefix("eq.") for column, value in filters.items())

    async def _table(
        self,
        method: str,
        endpoint: str,
        params: dict[str, str],
        body: Any,
        access_token: str | None,
    ) -> Any:
        table = endpoint.removeprefix("/rest/v1/")
        if self.expire_next_table_call:
            self.expire_next_table_call = False
            raise _bad_jwt(endpoint)
        if access_token not in self.access_tokens:
            raise _bad_jwt(endpoint)
        if table in self.fail_tables or (method != "GET" and table in self.fail_writes):
            raise BackendError("internal error", code="XX000", endpoint=endpoint, status_code=500)

        unknown = set(body or {}) - TABLE_COLUMNS.get(table, set(body or {}))
        if method != "GET" and unknown:
            raise BackendError(
                f"Could not find the '{sorted(unknown)[0]}' column of '{table}' in the schema cache",
                code="PGRST204",
                endpoint=endpoint,
                status_code=400,
            )

        rows = self.tables.setdefault(table, [])
        if method == "GET":
            if self.gate is not None:
                await self.gate.wait()
            filters = {k: v for k, v in params.items() if k not in ("select", "order")}
            return [dict(row) for row in rows if self._matches(row, filters)]

        if method == "PATCH":
            updated = []
            for row in rows:
                if self._matches(row, params):
                    row.update(body)
                    updated.append(dict(row))
            return updated

        if method == "POST" and "on_conflict" in params:
            key = params["on_conflict"]
            for row in rows:
                if row.get(key) == body.get(key):
                    row.update(body)
                    return [dict(row)]
            return [dict(self.add_row(table, **body))]

        if method == "POST":
            return [dict(self.add_row(table, **body))]

        raise BackendError("Method not allowed", code="405", endpoint=endpoint, status_code=405)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def config(tmp_path) -> AppConfig:
    return AppConfig(
        backend_url="https://demo.backend.test/",
        api_key="anon-key",
        storage_path=tmp_path / "storage.json",
    )


@pytest.fixture
def store(config: AppConfig) -> PreferenceStore:
    return PreferenceStore(config.storage_path)


@pytest_asyncio.fixture
async def client(config: AppConfig, store: PreferenceStore, fake_backend: FakeBackend) -> AsyncIterator[BackendClient]:
    async with BackendClient(config, storage=store, transport=fake_backend) as backend_client:
        yield backend_client
