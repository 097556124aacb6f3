"""
API routes for the user profile and progress summary.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.db.session import get_db
from mindmuse.learn.models import Field
from mindmuse.learn.path import level_progress
from mindmuse.progress.models import UserFieldProgress, UserGlobalProgress

router = APIRouter(prefix="/api", tags=["api"])


def build_field_radar(db: Session, user_id: str) -> list[dict]:
    """Every field, with level 0 for fields the user has not unlocked."""
    unlocked = {
        p.field_id: p
        for p in db.query(UserFieldProgress)
        .filter(UserFieldProgress.user_id == user_id, UserFieldProgress.unlocked.is_(True))
        .all()
    }
    radar = []
    for f in db.query(Field).order_by(Field.unlock_global_level, Field.name).all():
        p = unlocked.get(f.id)
        radar.append({
            "id": f.id,
            "name": f.name,
            "level": p.field_level if p else 0,
            "xp": p.field_xp if p else 0,
            "unlocked": p is not None,
        })
    return radar


@router.get("/me/progress")
def get_me_progress(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Return the user profile, global progress and per-field levels for the
    radar chart.
    """
    progress = (
        db.query(UserGlobalProgress)
        .filter(UserGlobalProgress.user_id == user.id)
        .first()
    )
    global_progress = None
    if progress is not None:
        level = level_progress(db, progress.global_level, progress.global_xp)
        global_progress = {
            "global_level": progress.global_level,
            "global_xp": progress.global_xp,
            "league": progress.league,
            "next_xp": level.next_xp,
            "max_level_reached": level.max_level_reached,
        }

    fields = build_field_radar(db, user.id)
    return {
        "user": {
            "id": user.id,
            "name": user.name,
            "full_name": user.full_name,
            "email": user.email,
        },
        "global_progress": global_progress,
        "field_progress": fields,
        "max_level": max([f["level"] for f in fields] + [1]),
    }
