from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.db.session import get_db
from mindmuse.league.ranker import (
    LEADERBOARD_LIMIT,
    League,
    get_leaderboard,
    get_rank,
    league_size,
    next_reset_at,
    zone_for,
)

router = APIRouter(prefix="/api/league", tags=["league"])


@router.get("/me")
def get_my_league(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    info = get_rank(db, user.id)
    league = League.parse(info.league)
    members = league_size(db, league.value)
    next_league = league.next()
    previous_league = league.previous()
    return {
        **asdict(info),
        "league_label": league.label,
        "members": members,
        "zone": zone_for(info.rank, min(members, LEADERBOARD_LIMIT)),
        "next_league": next_league.value if next_league else None,
        "previous_league": previous_league.value if previous_league else None,
        "resets_at": next_reset_at(),
    }


@router.get("/{league}/leaderboard")
def get_league_leaderboard(
    league: str,
    limit: int = Query(LEADERBOARD_LIMIT, ge=1, le=LEADERBOARD_LIMIT),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    parsed = League.parse(league)
    return {
        "league": parsed.value,
        "entries": [asdict(r) for r in get_leaderboard(db, parsed.value, limit)],
    }
