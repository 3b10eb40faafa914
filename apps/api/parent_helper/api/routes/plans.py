from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from parent_helper.api.deps import CurrentUser, DBSession, Orchestrator, run_async
from parent_helper.models import PlanTemplate
from parent_helper.schemas.common import OkResponse
from parent_helper.schemas.plans import (
    PlanGenerateRequest,
    PlanGenerateResponse,
    PlanOut,
    PlanTemplateOut,
)
from parent_helper.services.ai.content import AgeBand, PlanType, resolve_language, resolve_tone
from parent_helper.services.ai.prompts import plan_label

logger = logging.getLogger("parent_helper.api.plans")

router = APIRouter(prefix="/api/plans", tags=["plans"])


def default_plan_title(plan_type: PlanType | str, age_band: AgeBand | str) -> str:
    band = age_band.value if isinstance(age_band, AgeBand) else age_band
    return f"{plan_label(plan_type)} ({band})"


def _template_out(template: PlanTemplate) -> PlanTemplateOut:
    return PlanTemplateOut(
        id=template.id,
        title=template.title,
        type=template.type,
        age_group=template.age_group,
        goal=template.goal,
        child_emotion=template.child_emotion,
        tone=template.tone,
        language=template.language,
        plan=template.plan or {},
        created_at=template.created_at,
    )


def _get_owned_template(db: Session, *, template_id: int, user_id: int) -> PlanTemplate:
    template = db.scalar(
        select(PlanTemplate).where(
            PlanTemplate.id == template_id,
            PlanTemplate.user_id == user_id,
        ),
    )
    if template is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not found")
    return template


@router.post("/generate", response_model=PlanGenerateResponse)
def generate_plan(
    payload: PlanGenerateRequest,
    db: DBSession,
    user: CurrentUser,
    orchestrator: Orchestrator,
) -> PlanGenerateResponse:
    tone = resolve_tone(payload.tone)
    language = resolve_language(payload.language)
    plan = run_async(
        orchestrator.generate_plan_content,
        plan_type=payload.type,
        age_band=payload.age_group,
        goal=payload.goal,
        emotion=payload.child_emotion,
        tone=tone,
        language=language,
    )
    plan_payload = plan.to_payload()
    plan_out = PlanOut(**plan_payload)

    template_id: int | None = None
    if payload.save_template:
        template = PlanTemplate(
            user_id=user.id,
            title=payload.title or default_plan_title(payload.type, payload.age_group),
            type=payload.type,
            age_group=payload.age_group,
            goal=payload.goal,
            child_emotion=payload.child_emotion,
            tone=tone,
            language=language,
            plan=plan_payload,
        )
        db.add(template)
        db.commit()
        template_id = template.id
        logger.info("plan.template.saved", extra={"user_id": user.id, "template_id": template_id})

    return PlanGenerateResponse(
        plan=plan_out,
        saved=template_id is not None,
        template_id=template_id,
    )


@router.get("/templates", response_model=list[PlanTemplateOut])
def list_templates(db: DBSession, user: CurrentUser) -> list[PlanTemplateOut]:
    templates = db.scalars(
        select(PlanTemplate)
        .where(PlanTemplate.user_id == user.id)
        .order_by(PlanTemplate.created_at.desc(), PlanTemplate.id.desc()),
    ).all()
    return [_template_out(template) for template in templates]


@router.get("/templates/{template_id}", response_model=PlanTemplateOut)
def get_template(template_id: int, db: DBSession, user: CurrentUser) -> PlanTemplateOut:
    return _template_out(_get_owned_template(db, template_id=template_id, user_id=user.id))


@router.delete("/templates/{template_id}", response_model=OkResponse)
def delete_template(template_id: int, db: DBSession, user: CurrentUser) -> OkResponse:
    template = _get_owned_template(db, template_id=template_id, user_id=user.id)
    db.delete(template)
    db.commit()
    return OkResponse()
