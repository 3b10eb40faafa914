from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import anyio

from parent_helper.services.ai.errors import ProviderUnavailable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_RETRIES = 2
DEFAULT_BASE_DELAY_SECONDS = 0.5


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    *,
    retries: int = DEFAULT_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    label: str = "completion",
    sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
) -> T:
    """Run ``operation``, retrying only transient provider outages.

    Backoff is linear: the n-th retry waits ``base_delay * n`` seconds.
    Anything other than ``ProviderUnavailable`` propagates on first sight.
    """
    max_attempts = max(0, retries) + 1
    attempt = 1
    while True:
        try:
            return await operation()
        except ProviderUnavailable as exc:
            if attempt >= max_attempts:
                logger.warning(
                    "ai.retry.exhausted",
                    extra={
                        "ai_operation": label,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "error_kind": exc.kind,
                    },
                )
                raise
            delay = base_delay * attempt
            logger.warning(
                "ai.retry",
                extra={
                    "ai_operation": label,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_ms": round(delay * 1000),
                    "error_kind": exc.kind,
                },
            )
            await sleep(delay)
            attempt += 1
