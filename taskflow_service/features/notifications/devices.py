"""Device endpoint registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskflow_service.core.exceptions import NotFoundError, ValidationError
from taskflow_service.core.services.base import BaseService, Clock
from taskflow_service.features.notifications.models import (
    DEVICE_TOKENS_COLLECTION,
    DeviceEndpoint,
    Platform,
    device_tokens_path,
)
from taskflow_service.infra.store import WriteOp, collection, collection_group, where

if TYPE_CHECKING:
    from taskflow_service.infra.store import Store


class DeviceRegistry(BaseService):
    """Register, deactivate and look up push endpoints.

    The token is the document id and is unique across users. Deactivation
    is a soft delete. A token with no active copy left (unregistered or
    pruned) is never registered again.
    """

    def __init__(self, store: Store, clock: Clock | None = None) -> None:
        super().__init__(clock)
        self.store = store

    async def register(self, user_id: str, token: str, platform: str | Platform) -> DeviceEndpoint:
        """Register `token` for `user_id`.

        Re-registering a token that is active anywhere refreshes `lastUsed`
        and moves it to `user_id`; copies held by other users are deactivated.

        Raises:
            ValidationError: On missing fields, an unknown platform or a
                token that was deactivated.
        """
        if not user_id or not token:
            raise ValidationError("userId and token are required", extra={"field": "token"})
        if "/" in token:
            raise ValidationError("Device token must not contain '/'", extra={"field": "token"})
        try:
            platform = Platform(platform)
        except ValueError:
            raise ValidationError(
                f"Unknown platform: {platform}",
                extra={"field": "platform", "allowed": [p.value for p in Platform]},
            ) from None

        existing = await self.store.query(
            collection_group(DEVICE_TOKENS_COLLECTION, where("token", "==", token))
        )
        if existing and not any(doc.get("isActive", False) for doc in existing):
            raise ValidationError(
                "Device token was deactivated and cannot be reused",
                type="device-token-deactivated",
                extra={"user_id": user_id},
            )

        now = self.now()
        endpoint = DeviceEndpoint(
            user_id=user_id,
            token=token,
            platform=platform,
            created_at=now,
            last_used=now,
        )
        ops: list[WriteOp] = []
        for doc in existing:
            if doc.path == endpoint.path:
                endpoint.created_at = doc.get("createdAt") or now
            elif doc.get("isActive", False):
                ops.append(WriteOp.update(doc.path, {"isActive": False, "lastUsed": now}))
        ops.append(WriteOp.set(endpoint.path, endpoint.to_document()))
        await self.store.commit(ops)

        self.logger.info(
            "Registered device token",
            extra={
                "user_id": user_id,
                "platform": platform.value,
                "moved_from_users": len(ops) - 1,
                "operation": "devices.register",
            },
        )
        return endpoint

    async def unregister(self, user_id: str, token: str) -> None:
        """Deactivate the user's endpoint for `token`.

        Raises:
            NotFoundError: If the user has no endpoint with this token.
        """
        if not user_id or not token or "/" in token:
            raise ValidationError("userId and token are required", extra={"field": "token"})
        path = f"{device_tokens_path(user_id)}/{token}"
        if await self.store.get(path) is None:
            raise NotFoundError(
                "Device token not found",
                type="device-token-not-found",
                extra={"user_id": user_id},
            )
        await self.store.commit(
            [WriteOp.update(path, {"isActive": False, "lastUsed": self.now()})]
        )
        self.logger.info(
            "Unregistered device token",
            extra={"user_id": user_id, "operation": "devices.unregister"},
        )

    async def list_endpoints(self, user_id: str, *, active_only: bool = True) -> list[DeviceEndpoint]:
        filters = (where("isActive", "==", True),) if active_only else ()
        docs = await self.store.query(collection(device_tokens_path(user_id), *filters))
        return [DeviceEndpoint.from_document(doc) for doc in docs]

    async def active_tokens(self, user_id: str) -> list[str]:
        """Tokens of the user's active endpoints."""
        return [endpoint.token for endpoint in await self.list_endpoints(user_id)]
