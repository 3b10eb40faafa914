from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from parent_helper.api.deps import CurrentUser, DBSession, Orchestrator, run_async
from parent_helper.api.routes.children import get_owned_child
from parent_helper.models import QuestionSession
from parent_helper.schemas.common import OkResponse
from parent_helper.schemas.questions import (
    AnalysisOut,
    AnswerResponse,
    AskRequest,
    FeedbackRequest,
    FollowUpRequest,
    QuestionHistoryResponse,
    QuestionSessionOut,
    SafetyOut,
)
from parent_helper.services.ai.content import (
    AgeBand,
    GeneratedContent,
    SafetyVerdict,
    Tone,
    Turn,
    final_answer,
    resolve_language,
    resolve_tone,
)
from parent_helper.services.ai.orchestrator import ContentOrchestrator

logger = logging.getLogger("parent_helper.api.questions")

router = APIRouter(prefix="/api/question", tags=["questions"])

DEFAULT_HISTORY_LIMIT = 20
MAX_HISTORY_LIMIT = 100


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


def _answer_response(
    content: GeneratedContent,
    verdict: SafetyVerdict,
    *,
    tone: str,
    language: str,
    session_id: int | None = None,
) -> AnswerResponse:
    return AnswerResponse(
        id=session_id,
        analysis=AnalysisOut(**content.analysis.to_payload()),
        answer=final_answer(content, verdict),
        parent_tips=list(content.parent_tips),
        story=content.story,
        activities=list(content.activities),
        safety=SafetyOut(**verdict.to_payload()),
        tone=tone,
        language=language,
    )


def _session_out(item: QuestionSession) -> QuestionSessionOut:
    return QuestionSessionOut(
        id=item.id,
        child_id=item.child_id,
        question=item.question,
        age_group=item.age_group,
        child_emotion=item.child_emotion,
        tone=item.tone,
        language=item.language,
        analysis=item.analysis or {},
        answer=item.answer,
        final_answer=item.final_answer,
        parent_tips=list(item.parent_tips or []),
        story=item.story or "",
        activities=list(item.activities or []),
        safety_flag=item.safety_flag,
        safety_notes=list(item.safety_notes or []),
        safe_answer=item.safe_answer,
        feedback=list(item.feedback or []),
        follow_ups=list(item.follow_ups or []),
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


def _get_owned_session(db: Session, *, session_id: int, user_id: int) -> QuestionSession:
    item = db.scalar(
        select(QuestionSession).where(
            QuestionSession.id == session_id,
            QuestionSession.user_id == user_id,
        ),
    )
    if item is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return item


def prior_turns_for(item: QuestionSession) -> list[Turn]:
    turns = [Turn(question=item.question, answer=item.final_answer or item.answer)]
    for follow_up in item.follow_ups or []:
        turns.append(
            Turn(
                question=str(follow_up.get("question") or ""),
                answer=str(follow_up.get("final_answer") or follow_up.get("answer") or ""),
            ),
        )
    return [turn for turn in turns if not turn.is_empty]


def _generate_and_review(
    orchestrator: ContentOrchestrator,
    *,
    question: str,
    age_band: AgeBand,
    emotion: str | None,
    tone: Tone,
    language: str,
    prior_turns: list[Turn] | None = None,
) -> tuple[GeneratedContent, SafetyVerdict]:
    content = run_async(
        orchestrator.generate_content,
        question=question,
        age_band=age_band,
        emotion=emotion,
        tone=tone,
        language=language,
        prior_turns=prior_turns,
    )
    verdict = run_async(
        orchestrator.safety_check,
        question=question,
        age_band=age_band,
        content=content,
        tone=tone,
        language=language,
    )
    return content, verdict


@router.post("/ask", response_model=AnswerResponse)
def ask_question(
    payload: AskRequest,
    db: DBSession,
    user: CurrentUser,
    orchestrator: Orchestrator,
) -> AnswerResponse:
    age_band = payload.age_group
    child_id: int | None = None
    if payload.child_id is not None:
        child = get_owned_child(db, child_id=payload.child_id, user_id=user.id)
        age_band = child.age_group
        child_id = child.id

    tone = resolve_tone(payload.tone)
    language = resolve_language(payload.language)
    content, verdict = _generate_and_review(
        orchestrator,
        question=payload.question,
        age_band=age_band,
        emotion=payload.child_emotion,
        tone=tone,
        language=language,
    )

    response = _answer_response(content, verdict, tone=tone.value, language=language)
    item = QuestionSession(
        user_id=user.id,
        child_id=child_id,
        question=payload.question,
        age_group=age_band,
        child_emotion=payload.child_emotion,
        tone=tone,
        language=language,
        analysis=content.analysis.to_payload(),
        answer=content.answer,
        final_answer=final_answer(content, verdict),
        parent_tips=list(content.parent_tips),
        story=content.story,
        activities=list(content.activities),
        safety_flag=verdict.flag,
        safety_notes=list(verdict.notes),
        safe_answer=verdict.safe_answer,
        feedback=[],
        follow_ups=[],
    )
    db.add(item)
    db.commit()
    response.id = item.id
    logger.info(
        "question.answered",
        extra={"user_id": user.id, "child_id": child_id, "session_id": item.id},
    )
    return response


@router.get("/history", response_model=QuestionHistoryResponse)
def question_history(
    db: DBSession,
    user: CurrentUser,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_HISTORY_LIMIT)] = DEFAULT_HISTORY_LIMIT,
) -> QuestionHistoryResponse:
    items = db.scalars(
        select(QuestionSession)
        .where(QuestionSession.user_id == user.id)
        .order_by(QuestionSession.created_at.desc(), QuestionSession.id.desc())
        .offset((page - 1) * limit)
        .limit(limit),
    ).all()
    total = db.scalar(
        select(func.count()).select_from(QuestionSession).where(QuestionSession.user_id == user.id),
    )
    return QuestionHistoryResponse(
        items=[_session_out(item) for item in items],
        page=page,
        limit=limit,
        total=int(total or 0),
    )


@router.get("/{session_id}", response_model=QuestionSessionOut)
def get_question(session_id: int, db: DBSession, user: CurrentUser) -> QuestionSessionOut:
    return _session_out(_get_owned_session(db, session_id=session_id, user_id=user.id))


@router.post("/{session_id}/follow-up", response_model=AnswerResponse)
def ask_follow_up(
    session_id: int,
    payload: FollowUpRequest,
    db: DBSession,
    user: CurrentUser,
    orchestrator: Orchestrator,
) -> AnswerResponse:
    item = _get_owned_session(db, session_id=session_id, user_id=user.id)
    tone = resolve_tone(payload.tone or item.tone)
    language = resolve_language(payload.language or item.language)

    content, verdict = _generate_and_review(
        orchestrator,
        question=payload.question,
        age_band=item.age_group,
        emotion=payload.child_emotion,
        tone=tone,
        language=language,
        prior_turns=prior_turns_for(item),
    )
    response = _answer_response(content, verdict, tone=tone.value, language=language, session_id=item.id)

    # JSONB columns only track reassignment, not in-place mutation.
    item.follow_ups = [
        *(item.follow_ups or []),
        {
            "question": payload.question,
            "child_emotion": payload.child_emotion,
            "tone": tone.value,
            "language": language,
            "answer": content.answer,
            "final_answer": final_answer(content, verdict),
            "safety_flag": verdict.flag.value,
            "safety_notes": list(verdict.notes),
            "safe_answer": verdict.safe_answer,
            "created_at": _now_iso(),
        },
    ]
    db.commit()
    logger.info("question.follow_up", extra={"user_id": user.id, "session_id": item.id})
    return response


@router.post("/{session_id}/feedback", response_model=OkResponse)
def give_feedback(session_id: int, payload: FeedbackRequest, db: DBSession, user: CurrentUser) -> OkResponse:
    item = _get_owned_session(db, session_id=session_id, user_id=user.id)
    item.feedback = [
        *(item.feedback or []),
        {
            "helpful": payload.helpful,
            "rating": payload.rating,
            "comment": payload.comment,
            "created_at": _now_iso(),
        },
    ]
    db.commit()
    return OkResponse()
