"""
AI daily quests and the missed-quest penalty sweep (legacy `quests` rows).

Daily cap: at most DAILY_QUEST_CAP non-penalty quests created per UTC day.
Sweep: an active non-penalty quest that is past its deadline, or was created
before yesterday's midnight, is moved to the penalty pile once; a penalty
quest replaces it and the user loses MISSED_QUEST_XP_PENALTY global XP.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import and_, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindmuse.ai import coach
from mindmuse.core.clock import as_utc, day_bounds, utcnow
from mindmuse.core.config import DAILY_QUEST_CAP, MISSED_QUEST_XP_PENALTY, PENALTY_QUEST_XP
from mindmuse.core.errors import UpstreamServiceError, ValidationError
from mindmuse.db.session import commit_or_raise
from mindmuse.quests.models import Quest
from mindmuse.quests.xp import add_global_xp

logger = logging.getLogger(__name__)

QUEST_TYPES = ("creative", "journal", "mindset", "reflection", "challenge")
DEFAULT_DEADLINE_HOURS = 24

QUEST_GENERATION_RULES = """You create engaging, bite-sized daily quests for a gamified creativity platform.

RULES:
- No reasoning, commentary, markdown or hashtags
- Each quest is short, specific and action-oriented ("Write", "Create", "Reflect")
- Casual, playful, slightly daring tone; at most one emoji per quest
- Themes: creativity, self-growth, reflection
- No numbered steps inside a quest

STRUCTURE (per quest):
{
  "title": "Face Your Fear",
  "description": "Write a short entry about something you've been avoiding and why.",
  "type": "reflection",
  "xp": 10,
  "deadlineHours": 24
}
type is one of creative | journal | mindset | reflection | challenge; xp is 5-20.

OUTPUT:
Always return a JSON array of 3 to 5 quests in the above format. Nothing else."""


def difficulty_for_xp(xp: int) -> str:
    if xp > 15:
        return "hard"
    if xp > 10:
        return "medium"
    return "easy"


def _int_in(value, low: int, high: int, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


@dataclass
class QuestDraft:
    title: str
    description: str
    type: str
    xp: int
    deadline_hours: int

    @classmethod
    def from_generated(cls, item: dict) -> Optional["QuestDraft"]:
        if not isinstance(item, dict):
            return None
        title = str(item.get("title") or "").strip()
        if not title:
            return None
        kind = str(item.get("type") or "").strip().lower()
        return cls(
            title=title[:255],
            description=str(item.get("description") or "").strip(),
            type=kind if kind in QUEST_TYPES else "challenge",
            xp=_int_in(item.get("xp"), 5, 20, 10),
            deadline_hours=_int_in(item.get("deadlineHours"), 1, 72, DEFAULT_DEADLINE_HOURS),
        )


@dataclass
class GenerationResult:
    quests: list[Quest] = field(default_factory=list)
    message: Optional[str] = None


def quests_created_today(db: Session, user_id: str, now: datetime) -> int:
    start, end = day_bounds(now)
    return db.query(func.count(Quest.id)).filter(
        Quest.user_id == user_id,
        Quest.type != "penalty",
        Quest.created_at >= start,
        Quest.created_at < end,
    ).scalar() or 0


def generate_daily_quests(db: Session, user_id: str, now: Optional[datetime] = None) -> GenerationResult:
    now = now or utcnow()
    created = quests_created_today(db, user_id, now)
    remaining = DAILY_QUEST_CAP - created
    if remaining <= 0:
        raise ValidationError(f"You have reached the daily quest limit ({DAILY_QUEST_CAP}).")

    try:
        raw = coach.complete([
            {"role": "system", "content": QUEST_GENERATION_RULES},
            {"role": "user", "content": "Generate 3 creative quests for today."},
        ], temperature=0.9)
        drafts = [d for d in map(QuestDraft.from_generated, coach.extract_json_array(raw)) if d]
    except UpstreamServiceError as exc:
        logger.warning("[QUEST] daily generation failed user=%s: %s", user_id, exc.message)
        return GenerationResult(message=coach.FALLBACK_MESSAGE)

    quests = [
        Quest(
            user_id=user_id,
            title=d.title,
            description=d.description,
            difficulty=difficulty_for_xp(d.xp),
            xp_reward=d.xp,
            type=d.type,
            status="active",
            progress=0,
            deadline=now + timedelta(hours=d.deadline_hours),
            created_at=now,
        )
        for d in drafts[:remaining]
    ]
    if not quests:
        return GenerationResult(message=coach.FALLBACK_MESSAGE)

    db.add_all(quests)
    commit_or_raise(db, "daily quests")
    for q in quests:
        db.refresh(q)
    logger.info("[QUEST] generated %d daily quests user=%s (today=%d)", len(quests), user_id, created + len(quests))
    return GenerationResult(quests=quests)


# ---------------------------------------------------------------------------
# PENALTY sweep
# ---------------------------------------------------------------------------

def _penalty_text(missed: Quest) -> tuple[str, str, int]:
    title = f"Penalty: {missed.title}"
    description = f"You missed this quest: {missed.description}. Complete this penalty to redeem yourself!"
    hours = DEFAULT_DEADLINE_HOURS
    try:
        raw = coach.complete([
            {"role": "system", "content": QUEST_GENERATION_RULES},
            {"role": "user", "content": (
                f"Generate 1 creative penalty quest for a user who missed this quest: "
                f"'{missed.title}' - {missed.description}. It should be challenging and "
                f"let the user redeem themselves."
            )},
        ])
        generated = coach.extract_json_array(raw)
    except UpstreamServiceError as exc:
        logger.info("[QUEST] penalty text fallback quest=%s: %s", missed.id, exc.message)
        return title, description, hours

    draft = QuestDraft.from_generated(generated[0]) if generated else None
    if draft is not None:
        title, description, hours = draft.title, draft.description or description, draft.deadline_hours
    return title, description, hours


def sweep_expired_quests(db: Session, user_id: str, now: Optional[datetime] = None) -> list[Quest]:
    """Returns the penalty quests created by this sweep."""
    now = as_utc(now or utcnow())
    yesterday_start, _ = day_bounds(now - timedelta(days=1))

    penalised = {
        r[0] for r in db.query(Quest.penalty_for_quest_id)
        .filter(Quest.user_id == user_id, Quest.penalty_for_quest_id.isnot(None))
        .all()
    }
    missed = (
        db.query(Quest)
        .filter(
            Quest.user_id == user_id,
            Quest.status == "active",
            Quest.type != "penalty",
            or_(
                and_(Quest.deadline.isnot(None), Quest.deadline < now),
                Quest.created_at < yesterday_start,
            ),
        )
        .order_by(Quest.created_at, Quest.id)
        .all()
    )

    created = []
    for quest in missed:
        if quest.id in penalised:
            continue
        title, description, hours = _penalty_text(quest)

        quest.type = "penalty"
        quest.status = "moved-to-penalty"
        penalty = Quest(
            user_id=user_id,
            title=title,
            description=description,
            difficulty="hard",
            xp_reward=PENALTY_QUEST_XP,
            type="penalty",
            status="active",
            progress=0,
            deadline=now + timedelta(hours=hours),
            penalty_for_quest_id=quest.id,
            created_at=now,
        )
        db.add(penalty)
        commit_or_raise(db, "penalty quest")
        created.append(penalty)
        logger.info("[QUEST] missed quest=%s moved to penalty, new penalty=%s user=%s",
                    quest.id, penalty.id, user_id)

        try:
            if not add_global_xp(db, user_id, -MISSED_QUEST_XP_PENALTY):
                logger.info("[XP] no global progress to deduct from user=%s", user_id)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("[XP] missed-quest deduction failed user=%s quest=%s: %r", user_id, quest.id, exc)

    return created
