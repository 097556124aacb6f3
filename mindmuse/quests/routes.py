import logging
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.db.session import get_db
from mindmuse.quests.daily import generate_daily_quests, sweep_expired_quests
from mindmuse.quests.tracker import (
    QuestView,
    list_active_quests,
    list_progress,
    quest_stats,
    record_progress,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quests", tags=["quests"])


class ProgressUpdate(BaseModel):
    quest_id: Optional[str] = None
    # Left untyped so the tracker can reject floats, strings and booleans
    # instead of having them coerced.
    progress: Any = None


@router.get("")
def get_quests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Penalise missed quests, then return the active board."""
    penalties = sweep_expired_quests(db, user.id)
    if penalties:
        logger.info("[QUEST] sweep created %d penalty quests user=%s", len(penalties), user.id)
    return list_active_quests(db, user.id).to_dict()


@router.post("")
def create_daily_quests(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = generate_daily_quests(db, user.id)
    body = {"quests": [asdict(QuestView.from_legacy(q)) for q in result.quests]}
    if result.message:
        body["message"] = result.message
    return body


@router.get("/progress")
def get_progress(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {
        "progress": [
            {
                "id": p.id,
                "quest_id": p.quest_id,
                "progress": p.progress,
                "completed": bool(p.completed),
                "completed_at": p.completed_at,
                "xp_awarded": bool(p.xp_awarded),
            }
            for p in list_progress(db, user.id)
        ]
    }


@router.post("/progress")
def post_progress(
    body: ProgressUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = record_progress(db, user.id, body.quest_id, body.progress)
    return {"success": True, **asdict(result)}


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return quest_stats(db, user.id)
