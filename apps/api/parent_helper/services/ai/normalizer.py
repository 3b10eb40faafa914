"""Turn raw model text into typed content records.

Models drift from the requested format in a handful of predictable ways:
code fences around the JSON, a sentence before or after it, a scalar where a
list was asked for, or a synonym for a key. Every tolerance lives here, keyed
by explicit candidate-key tuples, so the coercion rules can be audited and
tested in one place.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from typing import Any

from parent_helper.services.ai.content import (
    Analysis,
    GeneratedContent,
    PlanContent,
    SafetyFlag,
    SafetyVerdict,
    ScheduleBlock,
)
from parent_helper.services.ai.errors import MalformedAIResponse

ANSWER_KEYS = ("answer",)
PARENT_TIPS_KEYS = ("parent_tips", "parentTips")
STORY_KEYS = ("story",)
ACTIVITIES_KEYS = ("activities",)
ANALYSIS_KEYS = ("analysis",)
ANALYSIS_TOPIC_KEYS = ("topic",)
ANALYSIS_INTENT_KEYS = ("intent",)
ANALYSIS_AGE_LEVEL_KEYS = ("age_level", "ageLevel")
ANALYSIS_EMOTION_KEYS = ("emotion",)

SAFETY_FLAG_KEYS = ("flag",)
SAFETY_NOTES_KEYS = ("notes",)
SAFE_ANSWER_KEYS = ("safe_answer", "safeAnswer")

PLAN_OVERVIEW_KEYS = ("overview",)
PLAN_SCHEDULE_KEYS = ("schedule",)
PLAN_SCRIPT_KEYS = ("script", "talk_track")
PLAN_TIPS_KEYS = ("tips",)
PLAN_BOUNDARIES_KEYS = ("boundaries", "rules")
PLAN_ACTIVITIES_KEYS = ("activities", "alternatives")
PLAN_REMINDERS_KEYS = ("reminders", "nudges")
SCHEDULE_BLOCK_KEYS = ("block", "time_of_day", "title")
SCHEDULE_ITEMS_KEYS = ("items", "steps", "activities")

_FENCE_PATTERN = re.compile(r"^\s*```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)\r?\n?```\s*$", re.DOTALL | re.IGNORECASE)


def _parse_direct(text: str) -> Any:
    return json.loads(text)


def _parse_fenced(text: str) -> Any:
    match = _FENCE_PATTERN.match(text)
    if match is None:
        raise ValueError("no code fence")
    return json.loads(match.group(1))


def _parse_braced(text: str) -> Any:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object delimiters")
    return json.loads(text[start : end + 1])


JSON_STRATEGIES: tuple[Callable[[str], Any], ...] = (_parse_direct, _parse_fenced, _parse_braced)


def extract_json_object(raw_text: str) -> dict[str, Any]:
    text = raw_text.strip()
    for strategy in JSON_STRATEGIES:
        try:
            parsed = strategy(text)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise MalformedAIResponse("AI response was not valid JSON", raw_text=raw_text)


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = data.get(key)
        if not _is_blank(value):
            return value
    return None


def _items(value: Any) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return [item for item in value if not _is_blank(item)]
    if _is_blank(value):
        return []
    return [value]


def as_list(value: Any) -> list[str]:
    texts = (as_text(item) for item in _items(value))
    return [text for text in texts if text]


def as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (list, tuple)):
        return "\n".join(text for text in (as_text(item) for item in value) if text)
    if isinstance(value, Mapping):
        # Objects in text slots are flattened to their values.
        return ", ".join(text for text in (as_text(item) for item in value.values()) if text)
    return str(value)


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def normalize_analysis(value: Any) -> Analysis:
    data = _as_mapping(value)
    return Analysis(
        topic=as_text(first_present(data, ANALYSIS_TOPIC_KEYS)),
        intent=as_text(first_present(data, ANALYSIS_INTENT_KEYS)),
        age_level=as_text(first_present(data, ANALYSIS_AGE_LEVEL_KEYS)),
        emotion=as_text(first_present(data, ANALYSIS_EMOTION_KEYS)),
    )


def parse_generated_content(raw_text: str) -> GeneratedContent:
    data = extract_json_object(raw_text)
    answer = as_text(first_present(data, ANSWER_KEYS))
    if not answer:
        raise MalformedAIResponse("AI response is missing 'answer'", raw_text=raw_text)
    return GeneratedContent(
        analysis=normalize_analysis(first_present(data, ANALYSIS_KEYS)),
        answer=answer,
        parent_tips=as_list(first_present(data, PARENT_TIPS_KEYS)),
        story=as_text(first_present(data, STORY_KEYS)),
        activities=as_list(first_present(data, ACTIVITIES_KEYS)),
    )


def parse_safety_verdict(raw_text: str) -> SafetyVerdict:
    data = extract_json_object(raw_text)
    raw_flag = first_present(data, SAFETY_FLAG_KEYS)
    if raw_flag is None:
        raise MalformedAIResponse("Safety response is missing 'flag'", raw_text=raw_text)
    try:
        flag = SafetyFlag(str(raw_flag).strip().lower())
    except ValueError as exc:
        raise MalformedAIResponse(f"Safety response has unknown flag {raw_flag!r}", raw_text=raw_text) from exc

    safe_answer: str | None = None
    if flag == SafetyFlag.UNSAFE:
        safe_answer = as_text(first_present(data, SAFE_ANSWER_KEYS)) or None
    return SafetyVerdict(
        flag=flag,
        notes=as_list(first_present(data, SAFETY_NOTES_KEYS)),
        safe_answer=safe_answer,
    )


def normalize_schedule(value: Any) -> list[ScheduleBlock]:
    blocks: list[ScheduleBlock] = []
    for entry in _items(value):
        if isinstance(entry, Mapping):
            name = as_text(first_present(entry, SCHEDULE_BLOCK_KEYS))
            items = as_list(first_present(entry, SCHEDULE_ITEMS_KEYS))
        else:
            name = as_text(entry)
            items = []
        if not name and not items:
            continue
        blocks.append(ScheduleBlock(block=name, items=items))
    return blocks


def parse_plan_content(raw_text: str) -> PlanContent:
    data = extract_json_object(raw_text)
    plan = PlanContent(
        overview=as_text(first_present(data, PLAN_OVERVIEW_KEYS)),
        schedule=normalize_schedule(first_present(data, PLAN_SCHEDULE_KEYS)),
        script=as_text(first_present(data, PLAN_SCRIPT_KEYS)),
        tips=as_list(first_present(data, PLAN_TIPS_KEYS)),
        boundaries=as_list(first_present(data, PLAN_BOUNDARIES_KEYS)),
        activities=as_list(first_present(data, PLAN_ACTIVITIES_KEYS)),
        reminders=as_list(first_present(data, PLAN_REMINDERS_KEYS)),
    )
    if plan.is_empty:
        raise MalformedAIResponse("Plan response had no usable content", raw_text=raw_text)
    return plan
