from __future__ import annotations

import anyio
import pytest

from parent_helper.services.ai.errors import EmptyResponse, ProviderUnavailable
from parent_helper.services.ai.retry import call_with_retry


class _RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _flaky(failures: int, error: Exception | None = None):
    calls = {"count": 0}

    async def operation() -> str:
        calls["count"] += 1
        if calls["count"] <= failures:
            raise error or ProviderUnavailable(status_code=503)
        return "ok"

    return operation, calls


def test_two_transient_failures_are_masked() -> None:
    operation, calls = _flaky(2)
    sleep = _RecordingSleep()
    result = anyio.run(lambda: call_with_retry(operation, retries=2, base_delay=0.5, sleep=sleep))
    assert result == "ok"
    assert calls["count"] == 3
    assert sleep.delays == [0.5, 1.0]


def test_three_transient_failures_surface() -> None:
    operation, calls = _flaky(3)
    sleep = _RecordingSleep()
    with pytest.raises(ProviderUnavailable):
        anyio.run(lambda: call_with_retry(operation, retries=2, base_delay=0.5, sleep=sleep))
    assert calls["count"] == 3
    assert sleep.delays == [0.5, 1.0]


def test_non_transient_errors_are_not_retried() -> None:
    operation, calls = _flaky(5, EmptyResponse())
    sleep = _RecordingSleep()
    with pytest.raises(EmptyResponse):
        anyio.run(lambda: call_with_retry(operation, sleep=sleep))
    assert calls["count"] == 1
    assert sleep.delays == []


def test_zero_retries_means_single_attempt() -> None:
    operation, calls = _flaky(1)
    with pytest.raises(ProviderUnavailable):
        anyio.run(lambda: call_with_retry(operation, retries=0, sleep=_RecordingSleep()))
    assert calls["count"] == 1
