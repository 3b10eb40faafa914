from __future__ import annotations

import json

from parent_helper.services.ai.content import (
    DEFAULT_LANGUAGE,
    AgeBand,
    GeneratedContent,
    GenerationRequest,
    PlanRequest,
    PlanType,
    Tone,
    Turn,
)

SYSTEM_PREAMBLE = (
    "You are AI Parenting Helper. You craft concise, kind, age-appropriate replies for children. "
    "Keep language simple, reassuring, bias-free, and avoid fear-inducing content. "
    "Never provide medical diagnoses or harmful instructions."
)

AGE_STYLE_GUIDANCE: dict[AgeBand, str] = {
    AgeBand.PRESCHOOL: "Use very short, friendly sentences, with a touch of story tone.",
    AgeBand.EARLY: "Use simple examples and analogies; keep it concrete.",
    AgeBand.MIDDLE: "Give light reasoning and examples, but stay gentle and clear.",
}

TONE_GUIDANCE: dict[Tone, str] = {
    Tone.SUPPORTIVE: "Tone: warm and encouraging. Validate feelings before explaining, and offer gentle reassurance.",
    Tone.CONCISE: "Tone: calm and brief. Use short sentences, get to the point, and skip extra reassurance.",
}

CONTENT_SCHEMA_INSTRUCTIONS = (
    "Generate structured help for a parent's answer to a child as JSON with keys: "
    "analysis (topic, intent, age_level, emotion), answer, parent_tips (list), story, activities (list)."
)
CONTENT_CONSTRAINTS = "Constraints: keep answer <= 120 words; story <= 120 words; 3-4 activities."
CONTENT_KINDNESS = "Keep tone gentle, positive, and non-frightening."
FOLLOW_UP_INSTRUCTIONS = (
    "This is a follow-up in an ongoing conversation. Build on the earlier answers, "
    "stay consistent with them, and do not repeat them word for word."
)

SAFETY_REVIEWER = "You are a strict child-safety reviewer."
SAFETY_CRITERIA = (
    "Check content for scientific correctness, emotional safety, non-violence, age appropriateness, "
    "neutrality, and absence of harmful instructions. If unsafe, rewrite the answer to be safe."
)
SAFETY_SCHEMA_INSTRUCTIONS = (
    "Respond ONLY as JSON with keys: flag ('safe' or 'unsafe'), notes (list), safe_answer (present if rewritten)."
)

PLAN_LABELS: dict[PlanType, str] = {
    PlanType.DAILY_ROUTINE: "Daily Routine",
    PlanType.BEDTIME_SCRIPT: "Bedtime Script",
    PlanType.SCREEN_TIME_PLAN: "Screen Time Plan",
    PlanType.TRICKY_MOMENT_SCRIPT: "What to Say",
}

PLAN_FOCUS: dict[PlanType, str] = {
    PlanType.DAILY_ROUTINE: (
        "Create a realistic daily routine split into time-of-day blocks (morning, after school, evening) "
        "with short, concrete steps the child can follow."
    ),
    PlanType.BEDTIME_SCRIPT: (
        "Create a calm bedtime plan: a wind-down schedule and a soothing word-for-word script "
        "the parent can read or say at lights-out."
    ),
    PlanType.SCREEN_TIME_PLAN: (
        "Create a fair screen-time plan with clear limits, screen-free alternatives, "
        "and friendly reminders the parent can use at transition moments."
    ),
    PlanType.TRICKY_MOMENT_SCRIPT: (
        "Create a short script for a tricky moment: what the parent can say, "
        "boundaries to hold kindly, and follow-up ideas once everyone is calm."
    ),
}
GENERIC_PLAN_FOCUS = "Create a practical, kind parenting plan for the goal below."

PLAN_JSON_SHAPE = (
    'JSON shape: {"overview": string, "schedule": [{"block": string, "items": [string]}], '
    '"script": string, "tips": [string], "boundaries": [string], "activities": [string], "reminders": [string]}'
)

PLAN_STRICT_KEYS = (
    "Keys, all required (use an empty string or empty list when a key does not apply):",
    "- overview: 1-2 sentences summarising the plan for the parent.",
    "- schedule: ordered list of blocks; each block has 'block' (name or time of day) and 'items' (list of short steps).",
    "- script: word-for-word lines the parent can say to the child.",
    "- tips: list of practical tips for the parent.",
    "- boundaries: list of limits to hold, phrased kindly.",
    "- activities: list of calm or fun alternatives to offer the child.",
    "- reminders: list of short nudges to repeat during the day.",
)
PLAN_STRICT_FORMAT = (
    "Return exactly one JSON object and nothing else. "
    "Do not wrap the JSON in markdown code fences and do not add commentary."
)
PLAN_LOOSE_FORMAT = (
    "Return a JSON object using those keys. Keep lists short and practical; "
    "leave out anything that does not fit this plan type."
)


def plan_label(plan_type: PlanType | str) -> str:
    if isinstance(plan_type, PlanType):
        return PLAN_LABELS[plan_type]
    return "Plan"


def language_directive(language: str | None) -> str:
    value = (language or "").strip()
    if not value or value.lower() == DEFAULT_LANGUAGE:
        return "Respond in English."
    return f"Respond in {value}."


def render_prior_turns(turns: tuple[Turn, ...] | list[Turn]) -> list[str]:
    kept = [turn for turn in turns if not turn.is_empty]
    if not kept:
        return []
    lines = ["Conversation so far (oldest first):"]
    for index, turn in enumerate(kept, start=1):
        lines.append(f"Turn {index} - Question: {turn.question.strip()} | Answer: {turn.answer.strip()}")
    return lines


def _preamble(age_band: AgeBand, tone: Tone, language: str) -> list[str]:
    return [
        SYSTEM_PREAMBLE,
        f"Respect the requested age style: {AGE_STYLE_GUIDANCE[age_band]}",
        TONE_GUIDANCE[tone],
        language_directive(language),
    ]


def build_content_prompt(request: GenerationRequest) -> str:
    lines = _preamble(request.age_band, request.tone, request.language)
    lines.extend([CONTENT_SCHEMA_INSTRUCTIONS, CONTENT_CONSTRAINTS, CONTENT_KINDNESS])
    if request.is_follow_up:
        lines.append(FOLLOW_UP_INSTRUCTIONS)
        lines.extend(render_prior_turns(request.prior_turns))
        lines.append(f"Follow-up question: {request.question}")
    else:
        lines.append(f"Child question: {request.question}")
    lines.append(f"Child age group: {request.age_band.value}")
    if request.emotion:
        lines.append(f"Child emotion (optional): {request.emotion}")
    return "\n".join(lines)


def build_safety_prompt(request: GenerationRequest, content: GeneratedContent) -> str:
    lines = [
        SAFETY_REVIEWER,
        SAFETY_CRITERIA,
        SAFETY_SCHEMA_INSTRUCTIONS,
        f"If you rewrite, follow the age style: {AGE_STYLE_GUIDANCE[request.age_band]}",
        TONE_GUIDANCE[request.tone],
        f"Write safe_answer in the answer's language. {language_directive(request.language)}",
        f"Child question: {request.question}",
        f"Age group: {request.age_band.value}",
        f"Analysis: {json.dumps(content.analysis.to_payload(), ensure_ascii=False)}",
        f"Answer: {content.answer}",
        f"Story: {content.story}",
        f"Parent tips: {json.dumps(content.parent_tips, ensure_ascii=False)}",
        f"Activities: {json.dumps(content.activities, ensure_ascii=False)}",
    ]
    return "\n".join(lines)


def build_plan_prompt(request: PlanRequest, *, strict: bool) -> str:
    focus = PLAN_FOCUS.get(request.plan_type, GENERIC_PLAN_FOCUS) if isinstance(request.plan_type, PlanType) else GENERIC_PLAN_FOCUS
    lines = _preamble(request.age_band, request.tone, request.language)
    lines.append(f"Plan type: {plan_label(request.plan_type)}. {focus}")
    lines.append(PLAN_JSON_SHAPE)
    if strict:
        lines.extend(PLAN_STRICT_KEYS)
        lines.append(PLAN_STRICT_FORMAT)
    else:
        lines.append(PLAN_LOOSE_FORMAT)
    lines.append(f"Parent goal: {request.goal}")
    lines.append(f"Child age group: {request.age_band.value}")
    if request.emotion:
        lines.append(f"Child emotion (optional): {request.emotion}")
    return "\n".join(lines)
