from __future__ import annotations

import json
from functools import partial

import anyio
import pytest

from fakes import FakeCompletionProvider, no_sleep
from parent_helper.services.ai.content import (
    SafetyFlag,
    Turn,
    final_answer,
)
from parent_helper.services.ai.errors import (
    EmptyResponse,
    InvalidAgeBand,
    MalformedAIResponse,
    MissingCredential,
    ProviderRequestFailed,
    ProviderUnavailable,
)
from parent_helper.services.ai.orchestrator import ContentOrchestrator
from parent_helper.services.ai.prompts import PLAN_LOOSE_FORMAT, PLAN_STRICT_FORMAT

CONTENT_JSON = json.dumps(
    {
        "analysis": {"topic": "space", "intent": "curiosity", "age_level": "6-8", "emotion": "excited"},
        "answer": "The moon reflects sunlight.",
        "parent_tips": ["Look at the moon together"],
        "story": "A tiny astronaut...",
        "activities": ["Moon diary", "Flashlight game", "Draw phases"],
    },
)
PLAN_JSON = json.dumps({"overview": "A calm evening", "script": "Lights out, love you."})


def _orchestrator(responses: list[str | Exception]) -> tuple[ContentOrchestrator, FakeCompletionProvider]:
    provider = FakeCompletionProvider(responses)
    return ContentOrchestrator(provider, retry_base_delay=0, sleep=no_sleep), provider


def _run(func, **kwargs):
    return anyio.run(partial(func, **kwargs))


def test_generate_content_returns_typed_content() -> None:
    orchestrator, provider = _orchestrator([CONTENT_JSON])
    content = _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    assert content.answer == "The moon reflects sunlight."
    assert content.analysis.topic == "space"
    assert provider.calls[0]["temperature"] == 0.7
    assert provider.calls[0]["max_output_tokens"] == 600


def test_invalid_age_band_fails_before_any_provider_call() -> None:
    orchestrator, provider = _orchestrator([CONTENT_JSON])
    with pytest.raises(InvalidAgeBand):
        _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="teen")
    assert provider.calls == []


def test_follow_up_prompt_carries_prior_turns() -> None:
    orchestrator, provider = _orchestrator([CONTENT_JSON])
    _run(
        orchestrator.generate_content,
        question="Does it shine in the day too?",
        age_band="6-8",
        prior_turns=[Turn(question="Why does the moon shine?", answer="It reflects sunlight.")],
    )
    assert "Turn 1 - Question: Why does the moon shine? | Answer: It reflects sunlight." in provider.calls[0]["prompt"]


def test_transient_failures_are_retried_transparently() -> None:
    orchestrator, provider = _orchestrator(
        [ProviderUnavailable(status_code=503), ProviderUnavailable(status_code=503), CONTENT_JSON],
    )
    content = _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    assert content.answer == "The moon reflects sunlight."
    assert len(provider.calls) == 3


def test_three_transient_failures_surface_provider_unavailable() -> None:
    orchestrator, provider = _orchestrator([ProviderUnavailable(status_code=503)] * 3)
    with pytest.raises(ProviderUnavailable):
        _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    assert len(provider.calls) == 3


@pytest.mark.parametrize("error", [MissingCredential(), ProviderRequestFailed("bad request", status_code=400)])
def test_non_transient_provider_errors_surface_immediately(error: Exception) -> None:
    orchestrator, provider = _orchestrator([error, CONTENT_JSON])
    with pytest.raises(type(error)):
        _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    assert len(provider.calls) == 1


def test_unsafe_verdict_with_rewrite_replaces_final_answer() -> None:
    orchestrator, provider = _orchestrator(
        [CONTENT_JSON, '{"flag": "unsafe", "notes": ["too vague"], "safe_answer": "The moon is lit by the sun."}'],
    )
    content = _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    verdict = _run(orchestrator.safety_check, question="Why does the moon shine?", age_band="6-8", content=content)
    assert verdict.flag == SafetyFlag.UNSAFE
    assert final_answer(content, verdict) == "The moon is lit by the sun."
    assert provider.calls[1]["temperature"] == 0.0


def test_safe_verdict_keeps_original_answer() -> None:
    orchestrator, _ = _orchestrator([CONTENT_JSON, '{"flag": "safe", "notes": []}'])
    content = _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    verdict = _run(orchestrator.safety_check, question="Why does the moon shine?", age_band="6-8", content=content)
    assert final_answer(content, verdict) == "The moon reflects sunlight."


def test_unsafe_verdict_without_rewrite_keeps_original_answer() -> None:
    orchestrator, _ = _orchestrator([CONTENT_JSON, '{"flag": "unsafe", "notes": ["check"]}'])
    content = _run(orchestrator.generate_content, question="Why does the moon shine?", age_band="6-8")
    verdict = _run(orchestrator.safety_check, question="Why does the moon shine?", age_band="6-8", content=content)
    assert final_answer(content, verdict) == "The moon reflects sunlight."


def test_plan_strict_success_makes_one_call() -> None:
    orchestrator, provider = _orchestrator([PLAN_JSON])
    plan = _run(orchestrator.generate_plan_content, plan_type="bedtime_script", age_band="3-5", goal="Calmer bedtimes")
    assert plan.overview == "A calm evening"
    assert len(provider.calls) == 1
    assert PLAN_STRICT_FORMAT in provider.calls[0]["prompt"]
    assert provider.calls[0]["temperature"] == 0.35
    assert provider.calls[0]["max_output_tokens"] == 900


def test_plan_parse_failure_falls_back_to_exactly_one_loose_attempt() -> None:
    orchestrator, provider = _orchestrator(["not json at all", PLAN_JSON])
    plan = _run(orchestrator.generate_plan_content, plan_type="bedtime_script", age_band="3-5", goal="Calmer bedtimes")
    assert plan.script == "Lights out, love you."
    assert len(provider.calls) == 2
    assert PLAN_LOOSE_FORMAT in provider.calls[1]["prompt"]
    assert provider.calls[1]["temperature"] == 0.55


def test_plan_second_failure_surfaces() -> None:
    orchestrator, provider = _orchestrator(["not json", "still not json"])
    with pytest.raises(MalformedAIResponse):
        _run(orchestrator.generate_plan_content, plan_type="daily_routine", age_band="9-12", goal="Smoother mornings")
    assert len(provider.calls) == 2


def test_plan_falls_back_after_exhausted_retries() -> None:
    orchestrator, provider = _orchestrator([ProviderUnavailable()] * 3 + [EmptyResponse(), PLAN_JSON])
    with pytest.raises(EmptyResponse):
        _run(orchestrator.generate_plan_content, plan_type="daily_routine", age_band="9-12", goal="Smoother mornings")
    assert len(provider.calls) == 4


def test_plan_does_not_fall_back_on_missing_credential() -> None:
    orchestrator, provider = _orchestrator([MissingCredential(), PLAN_JSON])
    with pytest.raises(MissingCredential):
        _run(orchestrator.generate_plan_content, plan_type="daily_routine", age_band="9-12", goal="Smoother mornings")
    assert len(provider.calls) == 1
