from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from avtokontrol._constants import PREF_SESSION
from avtokontrol.client import BackendClient
from avtokontrol.config import AppConfig
from avtokontrol.exceptions import (
    AvtoKontrolError,
    DataFetchError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    SessionExpiredError,
    TransportError,
    UserAlreadyRegisteredError,
)
from avtokontrol.models.auth import AuthChangeEvent
from avtokontrol.session import Session
from avtokontrol.storage import PreferenceStore


@pytest.mark.asyncio
async def test_sign_in_stores_session_and_emits_event(
    client: BackendClient, fake_backend, store: PreferenceStore
) -> None:
    user_id = fake_backend.add_user("ivan@example.com", "Passw0rd!")
    events: list[tuple[AuthChangeEvent, str | None]] = []
    client.on_auth_state_change(lambda event, session: events.append((event, session.user_id if session else None)))

    session = await client.sign_in("ivan@example.com", "Passw0rd!")

    assert session.user_id == user_id
    assert client.session == session
    assert events == [(AuthChangeEvent.SIGNED_IN, user_id)]
    assert Session.from_storage(store.get(PREF_SESSION)) == session


@pytest.mark.asyncio
async def test_sign_in_error_kinds(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    fake_backend.add_user("new@example.com", "Passw0rd!", confirmed=False)

    with pytest.raises(InvalidCredentialsError):
        await client.sign_in("ivan@example.com", "wrong")
    with pytest.raises(EmailNotConfirmedError):
        await client.sign_in("new@example.com", "Passw0rd!")
    assert client.session is None


@pytest.mark.asyncio
async def test_sign_up_without_confirmation_signs_in(client: BackendClient, fake_backend) -> None:
    events: list[AuthChangeEvent] = []
    client.on_auth_state_change(lambda event, _session: events.append(event))

    response = await client.sign_up("ivan@example.com", "Passw0rd!", {"name": "Иван Петров"})

    assert response.session is not None
    assert response.user is not None
    assert response.user.user_metadata == {"name": "Иван Петров"}
    assert events == [AuthChangeEvent.SIGNED_IN]


@pytest.mark.asyncio
async def test_sign_up_with_confirmation_has_no_session(client: BackendClient, fake_backend) -> None:
    fake_backend.require_confirmation = True
    events: list[AuthChangeEvent] = []
    client.on_auth_state_change(lambda event, _session: events.append(event))

    response = await client.sign_up("ivan@example.com", "Passw0rd!", {"name": "Иван Петров"})

    assert response.session is None
    assert response.user is not None
    assert events == []
    assert client.session is None


@pytest.mark.asyncio
async def test_duplicate_sign_up(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    with pytest.raises(UserAlreadyRegisteredError):
        await client.sign_up("ivan@example.com", "Passw0rd!")


@pytest.mark.asyncio
async def test_sign_out_clears_even_when_remote_fails(
    client: BackendClient, fake_backend, store: PreferenceStore
) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    await client.sign_in("ivan@example.com", "Passw0rd!")
    events: list[AuthChangeEvent] = []
    client.on_auth_state_change(lambda event, _session: events.append(event))
    fake_backend.offline = True

    await client.sign_out()

    assert client.session is None
    assert store.get(PREF_SESSION) is None
    assert events == [AuthChangeEvent.SIGNED_OUT]


@pytest.mark.asyncio
async def test_listener_failure_does_not_break_sign_in(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")

    def _boom(_event, _session) -> None:
        raise RuntimeError("listener bug")

    client.on_auth_state_change(_boom)
    assert await client.sign_in("ivan@example.com", "Passw0rd!")


@pytest.mark.asyncio
async def test_unsubscribe_stops_events(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    events: list[AuthChangeEvent] = []
    subscription = client.on_auth_state_change(lambda event, _session: events.append(event))
    subscription.unsubscribe()
    await client.sign_in("ivan@example.com", "Passw0rd!")
    assert events == []


# ------------------------------------------------------------------
# Session restore
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_session_restores_persisted_session(
    config: AppConfig, store: PreferenceStore, fake_backend
) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    async with BackendClient(config, storage=store, transport=fake_backend) as first:
        signed_in = await first.sign_in("ivan@example.com", "Passw0rd!")

    async with BackendClient(config, storage=PreferenceStore(config.storage_path), transport=fake_backend) as second:
        restored = await second.get_session()

    assert restored == signed_in


@pytest.mark.asyncio
async def test_get_session_refreshes_near_expiry(client: BackendClient, fake_backend, store: PreferenceStore) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    payload = fake_backend._issue(fake_backend.users["ivan@example.com"])
    stale = Session.from_token_response(payload, now=datetime.now(UTC) - timedelta(seconds=3590))
    store.set(PREF_SESSION, stale.to_storage())
    events: list[AuthChangeEvent] = []
    client.on_auth_state_change(lambda event, _session: events.append(event))

    restored = await client.get_session()

    assert restored is not None
    assert restored.access_token != stale.access_token
    assert events == [AuthChangeEvent.TOKEN_REFRESHED]


@pytest.mark.asyncio
async def test_get_session_discards_unrefreshable_session(client: BackendClient, store: PreferenceStore) -> None:
    expired = Session(
        user_id="u1",
        access_token="gone",
        refresh_token="unknown",
        expires_at=datetime.now(UTC) - timedelta(minutes=5),
    )
    store.set(PREF_SESSION, expired.to_storage())

    assert await client.get_session() is None
    assert store.get(PREF_SESSION) is None


@pytest.mark.asyncio
async def test_get_session_discards_corrupt_blob(client: BackendClient, store: PreferenceStore) -> None:
    store.set(PREF_SESSION, "{broken")
    assert await client.get_session() is None
    assert PREF_SESSION not in store


# ------------------------------------------------------------------
# Tables
# ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_select_owned_scopes_by_user(client: BackendClient, fake_backend) -> None:
    user_id = fake_backend.add_user("ivan@example.com", "Passw0rd!")
    fake_backend.add_row("vehicles", user_id=user_id, name="Mine")
    fake_backend.add_row("vehicles", user_id="someone-else", name="Theirs")
    await client.sign_in("ivan@example.com", "Passw0rd!")

    rows = await client.select_owned("vehicles")

    assert [row["name"] for row in rows] == ["Mine"]


@pytest.mark.asyncio
async def test_insert_and_update_owned(client: BackendClient, fake_backend) -> None:
    user_id = fake_backend.add_user("ivan@example.com", "Passw0rd!")
    await client.sign_in("ivan@example.com", "Passw0rd!")

    created = await client.insert_owned("vehicles", {"name": "Car", "status": "Parked"})
    updated = await client.update_owned("vehicles", {"status": "Locked"}, filters={"id": created["id"]})

    assert created["user_id"] == user_id
    assert updated[0]["status"] == "Locked"
    assert fake_backend.row("vehicles", created["id"])["status"] == "Locked"


@pytest.mark.asyncio
async def test_upsert_owned_merges_on_conflict(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    await client.sign_in("ivan@example.com", "Passw0rd!")

    first = await client.upsert_owned("user_settings", {"theme": "dark"})
    second = await client.upsert_owned("user_settings", {"language": "ru"})

    assert first["id"] == second["id"]
    assert second["theme"] == "dark"
    assert len(fake_backend.tables["user_settings"]) == 1


@pytest.mark.asyncio
async def test_expired_token_is_refreshed_and_retried_once(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    before = await client.sign_in("ivan@example.com", "Passw0rd!")
    fake_backend.expire_next_table_call = True

    rows = await client.select_owned("vehicles")

    assert rows == []
    assert client.session is not None
    assert client.session.access_token != before.access_token
    assert fake_backend.count("GET", "/rest/v1/vehicles") == 2


@pytest.mark.asyncio
async def test_table_failure_is_data_fetch_error(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    await client.sign_in("ivan@example.com", "Passw0rd!")
    fake_backend.fail_tables.add("trips")

    with pytest.raises(DataFetchError) as excinfo:
        await client.select("trips")
    assert excinfo.value.table == "trips"
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_network_failure_is_transport_error(client: BackendClient, fake_backend) -> None:
    fake_backend.offline = True
    with pytest.raises(TransportError):
        await client.sign_in("ivan@example.com", "Passw0rd!")


@pytest.mark.asyncio
async def test_table_call_without_session(client: BackendClient) -> None:
    with pytest.raises(SessionExpiredError):
        await client.select_owned("vehicles")


@pytest.mark.asyncio
async def test_verify_password_keeps_session(client: BackendClient, fake_backend) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    session = await client.sign_in("ivan@example.com", "Passw0rd!")

    assert await client.verify_password("Passw0rd!") is True
    assert await client.verify_password("nope") is False
    assert client.session == session


@pytest.mark.asyncio
async def test_client_requires_context_manager(config: AppConfig) -> None:
    with pytest.raises(AvtoKontrolError, match="not initialized"):
        await BackendClient(config).sign_in("a@b.c", "x")


@pytest.mark.asyncio
async def test_rejected_refresh_token_signs_out(client: BackendClient, fake_backend, store: PreferenceStore) -> None:
    fake_backend.add_user("ivan@example.com", "Passw0rd!")
    session = await client.sign_in("ivan@example.com", "Passw0rd!")
    client._store_session(session.model_copy(update={"expires_at": datetime.now(UTC) - timedelta(minutes=1)}))
    fake_backend.refresh_tokens.clear()
    events: list[AuthChangeEvent] = []
    client.on_auth_state_change(lambda event, _session: events.append(event))

    with pytest.raises(SessionExpiredError):
        await client.select_owned("vehicles")

    assert client.session is None
    assert store.get(PREF_SESSION) is None
    assert events == [AuthChangeEvent.SIGNED_OUT]
    assert fake_backend.count("GET", "/rest/v1/vehicles") == 0
