"""Tests for the credential store and the favorites store built on it."""
from __future__ import annotations

import pytest

from marketplace.core.errors import ToggleConfirmationFailure
from marketplace.repositories.favorites import CredentialFavoritesStore
from marketplace.services.credentials import CredentialStore, user_data_key


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_session_round_trip_and_clear(tenant_session) -> None:
    store = CredentialStore(ttl_seconds=60)

    store.save_session(tenant_session)
    assert store.load_session() == tenant_session

    store.clear_session()
    assert store.load_session() is None
    assert store.get(user_data_key("t1")) is None


def test_entries_expire_after_ttl(tenant_session) -> None:
    clock = FakeClock()
    store = CredentialStore(ttl_seconds=60, clock=clock)
    store.save_session(tenant_session)

    clock.now += 61

    assert store.load_session() is None


def test_token_mismatch_is_rejected(tenant_session) -> None:
    store = CredentialStore(ttl_seconds=60)
    store.save_session(tenant_session)
    store.set("userToken", "other-token")

    assert store.load_session() is None


@pytest.mark.asyncio
async def test_credential_favorites_store_updates_user_data(tenant_session) -> None:
    credentials = CredentialStore(ttl_seconds=60)
    credentials.save_session(tenant_session.model_copy(update={"saved_property_ids": ("rental-1",)}))
    store = CredentialFavoritesStore(credentials)

    await store.set_saved("t1", "rental-5", True)
    await store.set_saved("t1", "rental-1", False)

    assert await store.list_saved("t1") == ["rental-5"]
    assert credentials.load_session().saved_property_ids == ("rental-5",)


@pytest.mark.asyncio
async def test_credential_favorites_store_requires_user_data() -> None:
    store = CredentialFavoritesStore(CredentialStore(ttl_seconds=60))

    with pytest.raises(ToggleConfirmationFailure):
        await store.set_saved("ghost", "rental-1", True)

    assert await store.list_saved("ghost") == []


def test_entries_persist_without_a_ttl(tenant_session) -> None:
    clock = FakeClock()
    store = CredentialStore(clock=clock)
    store.save_session(tenant_session)

    clock.now += 30 * 24 * 3600

    assert store.load_session() == tenant_session


def test_update_profile_keeps_identity(tenant_session) -> None:
    store = CredentialStore()
    store.save_session(tenant_session.model_copy(update={"saved_property_ids": ("rental-1",)}))

    updated = store.update_profile(tenant_session, name="Jane Doe", phone="+263 77 000 0000")

    assert updated.name == "Jane Doe"
    assert updated.phone == "+263 77 000 0000"
    assert updated.email is None
    assert updated.token == tenant_session.token
    assert updated.saved_property_ids == ("rental-1",)
    assert store.load_session() == updated
