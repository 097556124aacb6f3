from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.db.session import get_db
from mindmuse.onboarding.leveler import (
    SkillScore,
    complete_onboarding,
    initialize_user_progress,
    list_onboarding_fields,
    save_survey,
)

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])


class SurveyScore(BaseModel):
    skill: str
    score: float


class SurveyBody(BaseModel):
    scores: list[SurveyScore] = []


class CompleteBody(BaseModel):
    field_id: str
    # Validated by complete_onboarding (integer 1..5)
    initial_level: Any = 1


@router.get("/fields")
def get_onboarding_fields(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"fields": list_onboarding_fields(db, user.id)}


@router.post("/start")
def start_onboarding(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    progress = initialize_user_progress(db, user.id)
    return {
        "global_level": progress.global_level,
        "global_xp": progress.global_xp,
        "league": progress.league,
    }


@router.post("/survey/{field_id}")
def submit_survey(
    field_id: str,
    body: SurveyBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    scores = [SkillScore(skill=s.skill, score=s.score) for s in body.scores]
    return {"field_id": field_id, "initial_level": save_survey(db, user.id, field_id, scores)}


@router.post("/complete")
def finish_onboarding(
    body: CompleteBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    initialize_user_progress(db, user.id)
    rows = complete_onboarding(db, user.id, body.field_id, body.initial_level)
    return {
        "success": True,
        "fields": [
            {
                "field_id": r.field_id,
                "field_level": r.field_level,
                "field_xp": r.field_xp,
                "unlocked": bool(r.unlocked),
            }
            for r in rows
        ],
    }
