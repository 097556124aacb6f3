"""
Onboarding: survey -> starting field level, and first-time progress rows.

Level thresholds on the mean of the (clamped) survey scores:
  <= 20 -> 1, <= 40 -> 2, <= 60 -> 3, <= 80 -> 4, else 5; no answers -> 1
"""
import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy.orm import Session

from mindmuse.core.errors import NotFoundError, ValidationError
from mindmuse.db.session import commit_or_raise
from mindmuse.learn.models import Field
from mindmuse.league.ranker import League
from mindmuse.learn.path import global_level_of
from mindmuse.progress.models import UserFieldProgress, UserGlobalProgress, UserSurveyResponse

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 5
_THRESHOLDS = ((20, 1), (40, 2), (60, 3), (80, 4))


@dataclass(frozen=True)
class SkillScore:
    skill: str
    score: float


def _clamp(score: float) -> float:
    return max(0.0, min(100.0, float(score)))


def score_to_level(scores: Iterable[SkillScore]) -> int:
    values = [_clamp(s.score) for s in scores]
    if not values:
        return MIN_LEVEL
    average = sum(values) / len(values)
    for ceiling, level in _THRESHOLDS:
        if average <= ceiling:
            return level
    return MAX_LEVEL


def initialize_user_progress(db: Session, user_id: str) -> UserGlobalProgress:
    """Create the global progress row on the first onboarding step (once)."""
    existing = db.query(UserGlobalProgress).filter(UserGlobalProgress.user_id == user_id).first()
    if existing:
        return existing

    progress = UserGlobalProgress(
        user_id=user_id,
        global_level=1,
        global_xp=0,
        league=League.BRONZE.value,
    )
    db.add(progress)
    commit_or_raise(db, "global progress")
    db.refresh(progress)
    logger.info("[ONBOARDING] initialized global progress user=%s", user_id)
    return progress


def _require_field(db: Session, field_id: str) -> Field:
    learning_field = db.get(Field, field_id)
    if learning_field is None:
        raise NotFoundError("Field not found", redirect="/onboarding/fields")
    return learning_field


def save_survey(db: Session, user_id: str, field_id: str, scores: list[SkillScore]) -> int:
    """
    Store the survey for (user, field) and return the starting level.
    Answers are written once; a repeat submission is answered from the
    stored answers.
    """
    _require_field(db, field_id)

    stored = (
        db.query(UserSurveyResponse)
        .filter(UserSurveyResponse.user_id == user_id, UserSurveyResponse.field_id == field_id)
        .all()
    )
    if stored:
        return score_to_level(SkillScore(r.skill, r.score) for r in stored)

    answers = {}
    for s in scores:
        skill = (s.skill or "").strip()
        if not skill:
            raise ValidationError("every score needs a skill", field="scores")
        if skill in answers:
            raise ValidationError(f"duplicate skill: {skill}", field="scores")
        answers[skill] = int(round(_clamp(s.score)))

    db.add_all(
        UserSurveyResponse(user_id=user_id, field_id=field_id, skill=skill, score=score)
        for skill, score in answers.items()
    )
    commit_or_raise(db, "survey answers")

    level = score_to_level(SkillScore(skill, score) for skill, score in answers.items())
    logger.info("[ONBOARDING] survey user=%s field=%s answers=%d level=%d",
                user_id, field_id, len(scores), level)
    return level


def complete_onboarding(db: Session, user_id: str, field_id: str, initial_level: int) -> list[UserFieldProgress]:
    """
    One field progress row per field. The chosen field starts at
    *initial_level* and unlocked; every other field at level 1, 0 XP, locked.
    Rows that already exist keep their XP. A locked row for the chosen field
    is unlocked and raised to *initial_level*; an unlocked one is left alone.
    """
    if isinstance(initial_level, bool) or not isinstance(initial_level, int) \
            or not MIN_LEVEL <= initial_level <= MAX_LEVEL:
        raise ValidationError(f"initial_level must be between {MIN_LEVEL} and {MAX_LEVEL}",
                              field="initial_level")
    _require_field(db, field_id)

    existing = {
        p.field_id: p
        for p in db.query(UserFieldProgress).filter(UserFieldProgress.user_id == user_id).all()
    }

    rows = []
    for (fid,) in db.query(Field.id).order_by(Field.unlock_global_level, Field.name).all():
        chosen = fid == field_id
        row = existing.get(fid)
        if row is None:
            row = UserFieldProgress(
                user_id=user_id,
                field_id=fid,
                field_level=initial_level if chosen else 1,
                field_xp=0,
                unlocked=chosen,
            )
            db.add(row)
        elif chosen and not row.unlocked:
            row.field_level = max(row.field_level, initial_level)
            row.unlocked = True
        rows.append(row)

    commit_or_raise(db, "field progress")
    logger.info("[ONBOARDING] completed user=%s field=%s level=%d fields=%d",
                user_id, field_id, initial_level, len(rows))
    return rows


def list_onboarding_fields(db: Session, user_id: str) -> list[dict]:
    user_level = global_level_of(db, user_id)
    fields = db.query(Field).order_by(Field.unlock_global_level, Field.name).all()
    return [
        {
            "id": f.id,
            "name": f.name,
            "description": f.description,
            "unlock_global_level": f.unlock_global_level,
            "is_locked": user_level < f.unlock_global_level,
        }
        for f in fields
    ]
