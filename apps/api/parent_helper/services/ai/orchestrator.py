from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import anyio

from parent_helper.services.ai.content import (
    AgeBand,
    GeneratedContent,
    GenerationRequest,
    PlanContent,
    PlanRequest,
    PlanType,
    SafetyVerdict,
    Tone,
    Turn,
)
from parent_helper.services.ai.errors import EmptyResponse, MalformedAIResponse, ProviderUnavailable
from parent_helper.services.ai.normalizer import parse_generated_content, parse_plan_content, parse_safety_verdict
from parent_helper.services.ai.prompts import build_content_prompt, build_plan_prompt, build_safety_prompt
from parent_helper.services.ai.retry import DEFAULT_BASE_DELAY_SECONDS, DEFAULT_RETRIES, call_with_retry
from parent_helper.services.llm_provider import CompletionProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationParams:
    max_output_tokens: int
    temperature: float


CONTENT_PARAMS = GenerationParams(max_output_tokens=600, temperature=0.7)
SAFETY_PARAMS = GenerationParams(max_output_tokens=600, temperature=0.0)
PLAN_STRICT_PARAMS = GenerationParams(max_output_tokens=900, temperature=0.35)
PLAN_LOOSE_PARAMS = GenerationParams(max_output_tokens=900, temperature=0.55)

PLAN_FALLBACK_ERRORS = (ProviderUnavailable, EmptyResponse, MalformedAIResponse)


class ContentOrchestrator:
    def __init__(
        self,
        provider: CompletionProvider,
        *,
        max_retries: int = DEFAULT_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = anyio.sleep,
    ) -> None:
        self.provider = provider
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    async def _complete(self, prompt: str, params: GenerationParams, *, label: str) -> str:
        async def attempt() -> str:
            return await self.provider.complete(
                prompt,
                max_output_tokens=params.max_output_tokens,
                temperature=params.temperature,
            )

        return await call_with_retry(
            attempt,
            retries=self.max_retries,
            base_delay=self.retry_base_delay,
            label=label,
            sleep=self._sleep,
        )

    async def generate_content(
        self,
        question: str,
        age_band: AgeBand | str | None,
        emotion: str | None = None,
        tone: Tone | str | None = None,
        language: str | None = None,
        prior_turns: list[Turn] | tuple[Turn, ...] | None = None,
    ) -> GeneratedContent:
        request = GenerationRequest.build(
            question=question,
            age_band=age_band,
            emotion=emotion,
            tone=tone,
            language=language,
            prior_turns=prior_turns,
        )
        label = "follow_up" if request.is_follow_up else "question"
        raw = await self._complete(build_content_prompt(request), CONTENT_PARAMS, label=label)
        return parse_generated_content(raw)

    async def safety_check(
        self,
        question: str,
        age_band: AgeBand | str | None,
        content: GeneratedContent,
        tone: Tone | str | None = None,
        language: str | None = None,
    ) -> SafetyVerdict:
        request = GenerationRequest.build(question=question, age_band=age_band, tone=tone, language=language)
        raw = await self._complete(build_safety_prompt(request, content), SAFETY_PARAMS, label="safety")
        verdict = parse_safety_verdict(raw)
        if verdict.is_unsafe:
            logger.info("ai.safety.flagged", extra={"ai_operation": "safety"})
        return verdict

    async def generate_plan_content(
        self,
        plan_type: PlanType | str,
        age_band: AgeBand | str | None,
        goal: str,
        emotion: str | None = None,
        tone: Tone | str | None = None,
        language: str | None = None,
    ) -> PlanContent:
        request = PlanRequest.build(
            plan_type=plan_type,
            age_band=age_band,
            goal=goal,
            emotion=emotion,
            tone=tone,
            language=language,
        )
        try:
            raw = await self._complete(build_plan_prompt(request, strict=True), PLAN_STRICT_PARAMS, label="plan_strict")
            return parse_plan_content(raw)
        except PLAN_FALLBACK_ERRORS as exc:
            logger.warning(
                "ai.plan.fallback",
                extra={"ai_operation": "plan", "prompt_variant": "loose", "error_kind": exc.kind},
            )

        raw = await self._complete(build_plan_prompt(request, strict=False), PLAN_LOOSE_PARAMS, label="plan_loose")
        return parse_plan_content(raw)
