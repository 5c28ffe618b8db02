"""Unit tests for device endpoint registration."""
from __future__ import annotations

import pytest

from taskflow_service.core.exceptions import NotFoundError, ValidationError
from taskflow_service.features.notifications.devices import DeviceRegistry
from taskflow_service.features.notifications.models import Platform


@pytest.fixture
def registry(store, clock) -> DeviceRegistry:
    return DeviceRegistry(store, clock=clock)


@pytest.mark.unit
class TestRegister:
    @pytest.mark.asyncio
    async def test_register_new_token(self, registry, store, now):
        endpoint = await registry.register("u1", "tok-1", "android")

        assert endpoint.platform == Platform.ANDROID
        assert store.snapshot()["users/u1/deviceTokens/tok-1"] == {
            "userId": "u1",
            "token": "tok-1",
            "platform": "android",
            "createdAt": now,
            "lastUsed": now,
            "isActive": True,
        }

    @pytest.mark.asyncio
    async def test_reregister_refreshes_last_used(self, registry, store, clock, now):
        await registry.register("u1", "tok-1", "web")
        later = clock.advance(days=1)

        await registry.register("u1", "tok-1", "web")

        doc = store.snapshot()["users/u1/deviceTokens/tok-1"]
        assert doc["createdAt"] == now
        assert doc["lastUsed"] == later

    @pytest.mark.asyncio
    async def test_token_moves_between_users(self, registry, store):
        await registry.register("u1", "shared", "ios")

        await registry.register("u2", "shared", "ios")

        snapshot = store.snapshot()
        assert snapshot["users/u1/deviceTokens/shared"]["isActive"] is False
        assert snapshot["users/u2/deviceTokens/shared"]["isActive"] is True
        assert await registry.active_tokens("u1") == []
        assert await registry.active_tokens("u2") == ["shared"]

    @pytest.mark.asyncio
    async def test_new_owner_can_register_again_after_move(self, registry, store):
        await registry.register("u1", "shared", "ios")
        await registry.register("u2", "shared", "ios")

        await registry.register("u2", "shared", "ios")

        snapshot = store.snapshot()
        assert snapshot["users/u1/deviceTokens/shared"]["isActive"] is False
        assert snapshot["users/u2/deviceTokens/shared"]["isActive"] is True
        assert await registry.active_tokens("u2") == ["shared"]

    @pytest.mark.asyncio
    async def test_previous_owner_can_reclaim_moved_token(self, registry, store):
        await registry.register("u1", "shared", "web")
        await registry.register("u2", "shared", "web")

        await registry.register("u1", "shared", "web")

        assert await registry.active_tokens("u1") == ["shared"]
        assert await registry.active_tokens("u2") == []

    @pytest.mark.asyncio
    async def test_deactivated_token_cannot_be_reused(self, registry, add_device):
        add_device("u1", "dead", active=False)

        with pytest.raises(ValidationError) as exc_info:
            await registry.register("u1", "dead", "web")

        assert exc_info.value.type == "device-token-deactivated"

    @pytest.mark.parametrize(
        ("user_id", "token", "platform"),
        [("", "tok", "web"), ("u1", "", "web"), ("u1", "a/b", "web"), ("u1", "tok", "desktop")],
    )
    @pytest.mark.asyncio
    async def test_invalid_input(self, registry, store, user_id, token, platform):
        with pytest.raises(ValidationError):
            await registry.register(user_id, token, platform)

        assert store.commits == []


@pytest.mark.unit
class TestUnregisterAndList:
    @pytest.mark.asyncio
    async def test_unregister_soft_deletes(self, registry, add_device, store, clock):
        add_device("u1", "tok-1")
        later = clock.advance(minutes=1)

        await registry.unregister("u1", "tok-1")

        doc = store.snapshot()["users/u1/deviceTokens/tok-1"]
        assert doc["isActive"] is False
        assert doc["lastUsed"] == later

    @pytest.mark.asyncio
    async def test_unregister_unknown_token(self, registry):
        with pytest.raises(NotFoundError) as exc_info:
            await registry.unregister("u1", "missing")

        assert exc_info.value.type == "device-token-not-found"

    @pytest.mark.asyncio
    async def test_list_filters_inactive(self, registry, add_device):
        add_device("u1", "on")
        add_device("u1", "off", active=False)
        add_device("u2", "other")

        active = await registry.list_endpoints("u1")
        everything = await registry.list_endpoints("u1", active_only=False)

        assert [e.token for e in active] == ["on"]
        assert sorted(e.token for e in everything) == ["off", "on"]

    @pytest.mark.asyncio
    async def test_active_tokens_empty_for_unknown_user(self, registry):
        assert await registry.active_tokens("nobody") == []
