"""
Quest catalog and completion tracking.

Core rules:
  - A quest id resolves to a global template first, then to a legacy quest
    owned by the user (QuestSource); anything else is not found
  - One progress row per (user, quest); completed <=> progress >= 100
  - The progress write commits on its own, first
  - The completion reward is claimed once per (user, quest) by flipping
    xp_awarded with a conditional UPDATE; the claim and the XP increments
    commit together, so a failed award leaves the reward claimable
"""
import logging
import math
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional, Union

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mindmuse.core.clock import day_bounds, utcnow
from mindmuse.core.config import DAILY_QUEST_CAP, GLOBAL_XP_SHARE
from mindmuse.core.errors import NotFoundError, PersistenceError, ValidationError
from mindmuse.db.session import commit_or_raise
from mindmuse.learn.models import Module, QuestTemplate, SubModule
from mindmuse.progress.models import UserQuestProgress
from mindmuse.quests.models import Quest
from mindmuse.quests.xp import add_field_xp, add_global_xp

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# QUEST SOURCES
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TemplateSource:
    template: QuestTemplate

    @property
    def quest_id(self) -> str:
        return self.template.id

    @property
    def xp_reward(self) -> int:
        return self.template.xp_reward or 0


@dataclass(frozen=True)
class LegacySource:
    quest: Quest

    @property
    def quest_id(self) -> str:
        return self.quest.id

    @property
    def xp_reward(self) -> int:
        return self.quest.xp_reward or 0


QuestSource = Union[TemplateSource, LegacySource]


def resolve_quest_source(db: Session, user_id: str, quest_id: str) -> QuestSource:
    template = db.get(QuestTemplate, quest_id)
    if template is not None:
        return TemplateSource(template)

    quest = db.query(Quest).filter(Quest.id == quest_id, Quest.user_id == user_id).first()
    if quest is not None:
        return LegacySource(quest)

    raise NotFoundError("Quest not found", redirect="/dashboard/quests")


# ---------------------------------------------------------------------------
# CATALOG
# ---------------------------------------------------------------------------

@dataclass
class QuestView:
    id: str
    title: str
    description: str
    difficulty: str
    xp_reward: int
    type: str
    quest_category: str  # core | side | daily | penalty
    status: str
    source: str  # template | legacy
    sub_module_id: Optional[str] = None
    is_mandatory: bool = False
    deadline: Optional[datetime] = None
    penalty_for_quest_id: Optional[str] = None

    @classmethod
    def from_template(cls, template: QuestTemplate, status: str = "active") -> "QuestView":
        # Templates carry no per-user status; the client joins against progress.
        return cls(
            id=template.id,
            title=template.title,
            description=template.description,
            difficulty=template.difficulty,
            xp_reward=template.xp_reward,
            type=template.type,
            quest_category=template.category,
            status=status,
            source="template",
            sub_module_id=template.sub_module_id,
            is_mandatory=bool(template.is_mandatory),
        )

    @classmethod
    def from_legacy(cls, quest: Quest) -> "QuestView":
        return cls(
            id=quest.id,
            title=quest.title,
            description=quest.description,
            difficulty=quest.difficulty,
            xp_reward=quest.xp_reward,
            type=quest.type,
            quest_category="penalty" if quest.type == "penalty" else "daily",
            status=quest.status,
            source="legacy",
            deadline=quest.deadline,
            penalty_for_quest_id=quest.penalty_for_quest_id,
        )


@dataclass
class ActiveQuests:
    daily_quests: list[QuestView]
    penalty_quests: list[QuestView]

    def to_dict(self) -> dict:
        # Same envelope as the quest board expects for every listing.
        return {
            "dailyQuests": [asdict(q) for q in self.daily_quests],
            "penaltyQuests": [asdict(q) for q in self.penalty_quests],
        }


def completed_quest_ids(db: Session, user_id: str) -> set[str]:
    rows = (
        db.query(UserQuestProgress.quest_id)
        .filter(UserQuestProgress.user_id == user_id, UserQuestProgress.completed.is_(True))
        .all()
    )
    return {r[0] for r in rows}


def list_active_quests(db: Session, user_id: str, sub_module_id: Optional[str] = None) -> ActiveQuests:
    if sub_module_id:
        if db.get(SubModule, sub_module_id) is None:
            raise NotFoundError("Sub-module not found")
        templates = (
            db.query(QuestTemplate)
            .filter(QuestTemplate.sub_module_id == sub_module_id)
            .order_by(QuestTemplate.title, QuestTemplate.id)
            .all()
        )
        return ActiveQuests([QuestView.from_template(t) for t in templates], [])

    done = completed_quest_ids(db, user_id)
    side = (
        db.query(QuestTemplate)
        .filter(QuestTemplate.sub_module_id.is_(None))
        .order_by(QuestTemplate.title, QuestTemplate.id)
        .all()
    )
    legacy = (
        db.query(Quest)
        .filter(Quest.user_id == user_id, Quest.status == "active")
        .order_by(Quest.created_at.desc(), Quest.id)
        .all()
    )

    daily = [QuestView.from_template(t) for t in side if t.id not in done]
    daily += [QuestView.from_legacy(q) for q in legacy if q.type != "penalty"]
    penalty = [QuestView.from_legacy(q) for q in legacy if q.type == "penalty"]
    return ActiveQuests(daily, penalty)


# ---------------------------------------------------------------------------
# REWARDS
# ---------------------------------------------------------------------------

@dataclass
class XpAward:
    global_xp: int
    field_xp: int = 0
    field_id: Optional[str] = None


def global_share(xp_reward: int) -> int:
    # Half-up rounding: 15 XP -> 11 global XP
    return int(math.floor(xp_reward * GLOBAL_XP_SHARE + 0.5))


def reward_for(db: Session, source: QuestSource) -> XpAward:
    """Core templates pay full XP to their field plus the global share; others only the global share."""
    award = XpAward(global_xp=global_share(source.xp_reward))

    if isinstance(source, TemplateSource) and source.template.sub_module_id:
        field_id = (
            db.query(Module.field_id)
            .join(SubModule, SubModule.module_id == Module.id)
            .filter(SubModule.id == source.template.sub_module_id)
            .scalar()
        )
        if field_id:
            award.field_id = field_id
            award.field_xp = source.xp_reward

    return award


def _claim_and_award(db: Session, user_id: str, progress_id: int, source: QuestSource) -> Optional[XpAward]:
    """
    Claim the reward for one progress row and apply it. Returns the award, or
    None when it was already claimed or the bookkeeping failed.
    """
    try:
        claimed = db.execute(
            update(UserQuestProgress)
            .where(UserQuestProgress.id == progress_id, UserQuestProgress.xp_awarded.is_(False))
            .values(xp_awarded=True)
            .execution_options(synchronize_session=False)
        ).rowcount
        if not claimed:
            db.rollback()
            return None

        award = reward_for(db, source)
        if award.field_id and award.field_xp:
            add_field_xp(db, user_id, award.field_id, award.field_xp)
        if award.global_xp:
            add_global_xp(db, user_id, award.global_xp)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("[XP] award failed user=%s quest=%s: %r (progress kept, reward still claimable)",
                     user_id, source.quest_id, exc)
        return None

    logger.info("[XP] user=%s quest=%s awarded global=%d field=%d",
                user_id, source.quest_id, award.global_xp, award.field_xp)
    return award


# ---------------------------------------------------------------------------
# PROGRESS writes
# ---------------------------------------------------------------------------

@dataclass
class ProgressResult:
    quest_id: str
    source: str
    progress: int
    completed: bool
    completed_at: Optional[datetime]
    newly_completed: bool
    xp_awarded: bool
    global_xp_awarded: int = 0
    field_xp_awarded: int = 0


def _validate_progress(progress) -> int:
    if isinstance(progress, bool) or not isinstance(progress, int) or not 0 <= progress <= 100:
        raise ValidationError("progress must be an integer between 0 and 100", field="progress")
    return progress


def _get_progress_row(db: Session, user_id: str, quest_id: str) -> Optional[UserQuestProgress]:
    return (
        db.query(UserQuestProgress)
        .filter(UserQuestProgress.user_id == user_id, UserQuestProgress.quest_id == quest_id)
        .first()
    )


def _upsert_progress(db: Session, user_id: str, quest_id: str, progress: int,
                     now: datetime) -> tuple[UserQuestProgress, bool]:
    row = _get_progress_row(db, user_id, quest_id)
    if row is None:
        row = UserQuestProgress(user_id=user_id, quest_id=quest_id, progress=0,
                                completed=False, xp_awarded=False)
        db.add(row)
        try:
            db.flush()
        except IntegrityError:
            # A concurrent request inserted the pair first; update theirs.
            db.rollback()
            row = _get_progress_row(db, user_id, quest_id)
            if row is None:
                raise PersistenceError("Failed to save quest progress")

    was_completed = bool(row.completed)
    completed = progress >= 100

    row.progress = progress
    row.completed = completed
    if completed and not was_completed:
        row.completed_at = now
    elif not completed:
        row.completed_at = None

    return row, completed and not was_completed


def record_progress(db: Session, user_id: str, quest_id: str, progress,
                    now: Optional[datetime] = None) -> ProgressResult:
    if not quest_id:
        raise ValidationError("quest_id is required", field="quest_id")
    progress = _validate_progress(progress)
    now = now or utcnow()

    source = resolve_quest_source(db, user_id, quest_id)

    try:
        row, newly_completed = _upsert_progress(db, user_id, quest_id, progress, now)
        if isinstance(source, LegacySource):
            source.quest.progress = progress
            if row.completed:
                source.quest.status = "completed"
            elif source.quest.status == "completed":
                source.quest.status = "active"
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("[QUEST] progress write failed user=%s quest=%s: %r", user_id, quest_id, exc)
        raise PersistenceError("Failed to save quest progress") from exc
    commit_or_raise(db, "quest progress")

    result = ProgressResult(
        quest_id=quest_id,
        source="template" if isinstance(source, TemplateSource) else "legacy",
        progress=row.progress,
        completed=bool(row.completed),
        completed_at=row.completed_at,
        newly_completed=newly_completed,
        xp_awarded=False,
    )
    if newly_completed:
        logger.info("[QUEST] user=%s completed quest=%s (%s)", user_id, quest_id, result.source)

    if result.completed:
        award = _claim_and_award(db, user_id, row.id, source)
        if award is not None:
            result.xp_awarded = True
            result.global_xp_awarded = award.global_xp
            result.field_xp_awarded = award.field_xp

    return result


def reconcile_unawarded_xp(db: Session, user_id: Optional[str] = None) -> int:
    """
    Award every completed quest whose reward was never claimed (e.g. the XP
    transaction failed after the progress write). Safe to run repeatedly.
    """
    query = db.query(UserQuestProgress).filter(
        UserQuestProgress.completed.is_(True),
        UserQuestProgress.xp_awarded.is_(False),
    )
    if user_id:
        query = query.filter(UserQuestProgress.user_id == user_id)
    pending = [(r.id, r.user_id, r.quest_id) for r in query.all()]

    awarded = 0
    for progress_id, owner_id, quest_id in pending:
        try:
            source = resolve_quest_source(db, owner_id, quest_id)
        except NotFoundError:
            logger.warning("[XP] reconcile skipped user=%s quest=%s: quest no longer exists", owner_id, quest_id)
            continue
        if _claim_and_award(db, owner_id, progress_id, source) is not None:
            awarded += 1

    logger.info("[XP] reconcile awarded=%d pending=%d", awarded, len(pending))
    return awarded


# ---------------------------------------------------------------------------
# READ helpers
# ---------------------------------------------------------------------------

def list_progress(db: Session, user_id: str) -> list[UserQuestProgress]:
    return (
        db.query(UserQuestProgress)
        .filter(UserQuestProgress.user_id == user_id)
        .order_by(UserQuestProgress.id)
        .all()
    )


def quest_stats(db: Session, user_id: str, now: Optional[datetime] = None) -> dict:
    start, end = day_bounds(now or utcnow())
    done = db.query(func.count(UserQuestProgress.id)).filter(
        UserQuestProgress.user_id == user_id,
        UserQuestProgress.completed.is_(True),
    )
    daily_completed = done.filter(
        UserQuestProgress.completed_at >= start,
        UserQuestProgress.completed_at < end,
    ).scalar() or 0

    return {
        "dailyCompleted": daily_completed,
        "dailyTotal": DAILY_QUEST_CAP,
        "totalCompleted": done.scalar() or 0,
    }
