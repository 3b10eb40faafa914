from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from parent_helper.services.ai.errors import InvalidAgeBand


class AgeBand(str, Enum):
    PRESCHOOL = "3-5"
    EARLY = "6-8"
    MIDDLE = "9-12"


class Tone(str, Enum):
    SUPPORTIVE = "supportive"
    CONCISE = "concise"


class PlanType(str, Enum):
    DAILY_ROUTINE = "daily_routine"
    BEDTIME_SCRIPT = "bedtime_script"
    SCREEN_TIME_PLAN = "screen_time_plan"
    TRICKY_MOMENT_SCRIPT = "tricky_moment_script"


class SafetyFlag(str, Enum):
    SAFE = "safe"
    UNSAFE = "unsafe"


DEFAULT_LANGUAGE = "en"


def resolve_age_band(value: AgeBand | str | None) -> AgeBand:
    if isinstance(value, AgeBand):
        return value
    try:
        return AgeBand(str(value).strip())
    except ValueError as exc:
        raise InvalidAgeBand(value) from exc


def resolve_tone(value: Tone | str | None) -> Tone:
    if isinstance(value, Tone):
        return value
    try:
        return Tone(str(value or "").strip().lower())
    except ValueError:
        return Tone.SUPPORTIVE


def resolve_language(value: str | None) -> str:
    language = (value or "").strip()
    return language or DEFAULT_LANGUAGE


@dataclass(frozen=True, slots=True)
class Turn:
    question: str
    answer: str

    @property
    def is_empty(self) -> bool:
        return not self.question.strip() or not self.answer.strip()


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    question: str
    age_band: AgeBand
    tone: Tone = Tone.SUPPORTIVE
    language: str = DEFAULT_LANGUAGE
    emotion: str | None = None
    prior_turns: tuple[Turn, ...] = ()

    @classmethod
    def build(
        cls,
        *,
        question: str,
        age_band: AgeBand | str | None,
        emotion: str | None = None,
        tone: Tone | str | None = None,
        language: str | None = None,
        prior_turns: list[Turn] | tuple[Turn, ...] | None = None,
    ) -> GenerationRequest:
        return cls(
            question=question.strip(),
            age_band=resolve_age_band(age_band),
            tone=resolve_tone(tone),
            language=resolve_language(language),
            emotion=(emotion or "").strip() or None,
            prior_turns=tuple(prior_turns or ()),
        )

    @property
    def is_follow_up(self) -> bool:
        return any(not turn.is_empty for turn in self.prior_turns)


@dataclass(frozen=True, slots=True)
class PlanRequest:
    plan_type: PlanType | str
    age_band: AgeBand
    goal: str
    tone: Tone = Tone.SUPPORTIVE
    language: str = DEFAULT_LANGUAGE
    emotion: str | None = None

    @classmethod
    def build(
        cls,
        *,
        plan_type: PlanType | str,
        age_band: AgeBand | str | None,
        goal: str,
        emotion: str | None = None,
        tone: Tone | str | None = None,
        language: str | None = None,
    ) -> PlanRequest:
        try:
            resolved_type: PlanType | str = PlanType(plan_type)
        except ValueError:
            resolved_type = str(plan_type)
        return cls(
            plan_type=resolved_type,
            age_band=resolve_age_band(age_band),
            goal=goal.strip(),
            tone=resolve_tone(tone),
            language=resolve_language(language),
            emotion=(emotion or "").strip() or None,
        )


@dataclass(frozen=True, slots=True)
class Analysis:
    topic: str = ""
    intent: str = ""
    age_level: str = ""
    emotion: str = ""

    def to_payload(self) -> dict[str, str]:
        return {
            "topic": self.topic,
            "intent": self.intent,
            "age_level": self.age_level,
            "emotion": self.emotion,
        }


@dataclass(frozen=True, slots=True)
class GeneratedContent:
    analysis: Analysis
    answer: str
    parent_tips: list[str] = field(default_factory=list)
    story: str = ""
    activities: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "analysis": self.analysis.to_payload(),
            "answer": self.answer,
            "parent_tips": list(self.parent_tips),
            "story": self.story,
            "activities": list(self.activities),
        }


@dataclass(frozen=True, slots=True)
class SafetyVerdict:
    flag: SafetyFlag
    notes: list[str] = field(default_factory=list)
    safe_answer: str | None = None

    @property
    def is_unsafe(self) -> bool:
        return self.flag == SafetyFlag.UNSAFE

    def to_payload(self) -> dict[str, Any]:
        return {
            "flag": self.flag.value,
            "notes": list(self.notes),
            "safe_answer": self.safe_answer,
        }


def final_answer(content: GeneratedContent, verdict: SafetyVerdict) -> str:
    if verdict.is_unsafe and verdict.safe_answer:
        return verdict.safe_answer
    return content.answer


@dataclass(frozen=True, slots=True)
class ScheduleBlock:
    block: str
    items: list[str] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {"block": self.block, "items": list(self.items)}


@dataclass(frozen=True, slots=True)
class PlanContent:
    overview: str = ""
    schedule: list[ScheduleBlock] = field(default_factory=list)
    script: str = ""
    tips: list[str] = field(default_factory=list)
    boundaries: list[str] = field(default_factory=list)
    activities: list[str] = field(default_factory=list)
    reminders: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not any(
            (
                self.overview,
                self.schedule,
                self.script,
                self.tips,
                self.boundaries,
                self.activities,
                self.reminders,
            ),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "overview": self.overview,
            "schedule": [block.to_payload() for block in self.schedule],
            "script": self.script,
            "tips": list(self.tips),
            "boundaries": list(self.boundaries),
            "activities": list(self.activities),
            "reminders": list(self.reminders),
        }
