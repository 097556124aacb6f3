"""
League standings.

rank        = users in the same league with strictly more global XP, plus one
leaderboard = league members by XP desc (ties by user id), position = index + 1
zones       = top 20% promotion, bottom 20% demotion of the zoned board (league
              size capped at LEADERBOARD_LIMIT, whatever limit a caller asks
              for); presentational only, nothing here moves a user between leagues
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.clock import as_utc, utcnow
from mindmuse.core.errors import NotFoundError, ValidationError
from mindmuse.progress.models import UserGlobalProgress

LEADERBOARD_LIMIT = 100
PROMOTION_SHARE = 0.2
DEMOTION_SHARE = 0.8


class League(str, Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"
    PLATINUM = "platinum"
    DIAMOND = "diamond"

    @classmethod
    def parse(cls, value: str) -> "League":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            raise ValidationError(f"Unknown league: {value}", field="league") from None

    @property
    def rank_index(self) -> int:
        return list(League).index(self)

    def next(self) -> Optional["League"]:
        order = list(League)
        return order[self.rank_index + 1] if self.rank_index + 1 < len(order) else None

    def previous(self) -> Optional["League"]:
        return list(League)[self.rank_index - 1] if self.rank_index > 0 else None

    @property
    def label(self) -> str:
        return self.value.capitalize()


def zone_for(position: int, total: int) -> str:
    if position <= math.ceil(total * PROMOTION_SHARE):
        return "promotion"
    if position > math.floor(total * DEMOTION_SHARE):
        return "demotion"
    return "safe"


def league_size(db: Session, league: str) -> int:
    return (
        db.query(func.count(UserGlobalProgress.id))
        .filter(UserGlobalProgress.league == league)
        .scalar()
    ) or 0


def zone_total(db: Session, league: str) -> int:
    return min(league_size(db, league), LEADERBOARD_LIMIT)


def next_reset_at(now: Optional[datetime] = None) -> datetime:
    """Leagues roll over every Monday 00:00 UTC."""
    now = as_utc(now or utcnow())
    days = (7 - now.weekday()) % 7 or 7
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return (midnight + timedelta(days=days)).astimezone(timezone.utc)


@dataclass
class RankInfo:
    user_id: str
    rank: int
    league: str
    global_xp: int
    global_level: int
    full_name: str


@dataclass
class RankedUser:
    position: int
    user_id: str
    full_name: str
    global_level: int
    global_xp: int
    zone: str


def get_rank(db: Session, user_id: str) -> RankInfo:
    progress = (
        db.query(UserGlobalProgress)
        .filter(UserGlobalProgress.user_id == user_id)
        .first()
    )
    if progress is None:
        raise NotFoundError("No league standing yet", redirect="/dashboard")

    higher = (
        db.query(func.count(UserGlobalProgress.id))
        .filter(
            UserGlobalProgress.league == progress.league,
            UserGlobalProgress.global_xp > progress.global_xp,
        )
        .scalar()
    ) or 0

    user = db.get(User, user_id)
    return RankInfo(
        user_id=user_id,
        rank=higher + 1,
        league=progress.league,
        global_xp=progress.global_xp,
        global_level=progress.global_level,
        full_name=(user.full_name or user.email) if user else "Anonymous",
    )


def get_leaderboard(db: Session, league: str, limit: int = LEADERBOARD_LIMIT) -> list[RankedUser]:
    league = League.parse(league)
    if limit < 1:
        raise ValidationError("limit must be positive", field="limit")

    rows = (
        db.query(UserGlobalProgress, User.full_name)
        .outerjoin(User, User.id == UserGlobalProgress.user_id)
        .filter(UserGlobalProgress.league == league.value)
        .order_by(UserGlobalProgress.global_xp.desc(), UserGlobalProgress.user_id)
        .limit(limit)
        .all()
    )

    total = zone_total(db, league.value)
    return [
        RankedUser(
            position=index + 1,
            user_id=progress.user_id,
            full_name=full_name or "Anonymous",
            global_level=progress.global_level,
            global_xp=progress.global_xp,
            zone=zone_for(index + 1, total),
        )
        for index, (progress, full_name) in enumerate(rows)
    ]
