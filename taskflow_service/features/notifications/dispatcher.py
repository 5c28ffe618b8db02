"""Multicast push delivery with per-token outcomes and token pruning."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from taskflow_service.core.exceptions import TransientDeliveryError, ValidationError
from taskflow_service.core.services.base import BaseService, Clock
from taskflow_service.features.notifications.metrics import (
    push_delivery_total,
    push_send_duration_seconds,
    push_tokens_pruned_total,
)
from taskflow_service.features.notifications.providers.base import (
    PRUNABLE_ERRORS,
    PushErrorCode,
    TokenResult,
)

if TYPE_CHECKING:
    from taskflow_service.features.notifications.models import NotificationPayload
    from taskflow_service.features.notifications.providers.base import PushProvider
    from taskflow_service.infra.store import Store

DEFAULT_MULTICAST_LIMIT = 500


@dataclass(slots=True)
class DeliveryReport:
    """Outcome of one dispatch across all chunks."""

    success_count: int = 0
    failure_count: int = 0
    pruned_tokens: list[str] = field(default_factory=list)
    results: list[TokenResult] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return self.success_count > 0

    def first_error(self) -> str | None:
        """Error message of the first failed token, if any."""
        for result in self.results:
            if not result.success:
                return result.error_message or str(result.error_code)
        return None


class DeliveryDispatcher(BaseService):
    """Send one payload to many device tokens.

    Tokens are split into chunks no larger than the provider's multicast
    ceiling and each chunk is one bounded provider call. A dispatch counts
    as delivered when at least one token accepted the payload.
    """

    def __init__(
        self,
        provider: PushProvider,
        store: Store,
        *,
        multicast_limit: int = DEFAULT_MULTICAST_LIMIT,
        send_timeout: float = 30.0,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock)
        if not 1 <= multicast_limit <= DEFAULT_MULTICAST_LIMIT:
            raise ValueError(
                f"multicast_limit must be between 1 and {DEFAULT_MULTICAST_LIMIT}, "
                f"got {multicast_limit}"
            )
        self.provider = provider
        self.store = store
        self.multicast_limit = multicast_limit
        self.send_timeout = send_timeout

    async def send(self, tokens: Sequence[str], payload: NotificationPayload) -> DeliveryReport:
        """Deliver `payload` to `tokens`.

        Args:
            tokens: Device tokens to address.
            payload: Notification payload.

        Returns:
            DeliveryReport with per-token counts and the pruned tokens.

        Raises:
            ValidationError: If no tokens are given.
            TransientDeliveryError: If no token received the payload.
        """
        if not tokens:
            raise ValidationError("No tokens provided", extra={"field": "tokens"})

        report = DeliveryReport()
        invalid: list[str] = []

        for start in range(0, len(tokens), self.multicast_limit):
            chunk = list(tokens[start : start + self.multicast_limit])
            results = await self._send_chunk(chunk, payload)
            report.results.extend(results)
            for result in results:
                if result.success:
                    report.success_count += 1
                else:
                    report.failure_count += 1
                    if result.error_code in PRUNABLE_ERRORS:
                        invalid.append(result.token)

        push_delivery_total.labels(status="success").inc(report.success_count)
        push_delivery_total.labels(status="failure").inc(report.failure_count)

        if invalid:
            report.pruned_tokens = await self.prune_invalid_tokens(invalid)

        self.logger.info(
            "Push dispatch finished",
            extra={
                "tokens": len(tokens),
                "success_count": report.success_count,
                "failure_count": report.failure_count,
                "pruned": len(report.pruned_tokens),
                "operation": "dispatcher.send",
            },
        )

        if not report.delivered:
            raise TransientDeliveryError(
                extra={
                    "failure_count": report.failure_count,
                    "reason": report.first_error(),
                }
            )
        return report

    async def _send_chunk(
        self, chunk: list[str], payload: NotificationPayload
    ) -> list[TokenResult]:
        start_time = time.perf_counter()
        try:
            async with asyncio.timeout(self.send_timeout):
                response = await self.provider.send_multicast(chunk, payload)
        except TimeoutError:
            self.logger.warning(
                "Multicast send timed out",
                extra={
                    "tokens": len(chunk),
                    "timeout_seconds": self.send_timeout,
                    "operation": "dispatcher.send_chunk",
                },
            )
            return self._failed(chunk, f"Send timed out after {self.send_timeout}s")
        except Exception as e:
            self.logger.exception(
                "Multicast send failed",
                extra={"tokens": len(chunk), "operation": "dispatcher.send_chunk"},
            )
            return self._failed(chunk, str(e))
        finally:
            push_send_duration_seconds.observe(time.perf_counter() - start_time)

        return response.responses

    @staticmethod
    def _failed(chunk: list[str], message: str) -> list[TokenResult]:
        return [
            TokenResult(
                token=token,
                success=False,
                error_code=PushErrorCode.UNAVAILABLE,
                error_message=message,
            )
            for token in chunk
        ]

    async def prune_invalid_tokens(self, tokens: Sequence[str]) -> list[str]:
        """Deactivate every endpoint holding one of `tokens`.

        Best-effort: a failure for one token is logged and the rest continue.

        Returns:
            Tokens for which at least one endpoint was deactivated.
        """
        pruned: list[str] = []
        for token in dict.fromkeys(tokens):
            try:
                count = await self.store.find_and_deactivate_token(token)
            except Exception:
                self.logger.warning(
                    "Failed to deactivate invalid token",
                    exc_info=True,
                    extra={"token_prefix": token[:8], "operation": "dispatcher.prune"},
                )
                continue
            if count:
                pruned.append(token)
                push_tokens_pruned_total.inc(count)
                self._lazy.debug(lambda t=token, c=count: f"prune: token={t[:8]}... endpoints={c}")
        return pruned
