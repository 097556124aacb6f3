"""
Learning path computation: turns catalog rows and a user's progress rows into
the unlock/completion view of a field.

Core rules:
  - Sub-module unlocked  <=> field level >= sub_module.unlock_field_level
    (level gate only; earlier sub-modules do not have to be completed)
  - Sub-module completed <=> completed mandatory core quests >= mandatory
    total, and the total is > 0 (never vacuously complete)
  - Quest stats count ALL core templates of a sub-module, not just mandatory
  - Modules ordered by unlock_field_level, sub-modules by order_index
Nothing is cached; every call re-reads what it needs.
"""
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Optional, Union

from sqlalchemy.orm import Session, selectinload

from mindmuse.core.errors import NotFoundError
from mindmuse.learn.models import Field, Module, QuestTemplate, SubModule
from mindmuse.progress.models import UserFieldProgress, UserGlobalProgress, UserQuestProgress
from mindmuse.quests.tracker import completed_quest_ids
from mindmuse.quests.xp import xp_required_for


# ---------------------------------------------------------------------------
# LEVEL progress
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NextLevel:
    level: int
    xp: int
    next_xp: int

    max_level_reached = False


@dataclass(frozen=True)
class MaxLevelReached:
    level: int
    xp: int

    next_xp = None
    max_level_reached = True


LevelProgress = Union[NextLevel, MaxLevelReached]


def level_progress(db: Session, level: int, xp: int) -> LevelProgress:
    next_xp = xp_required_for(db, level + 1)
    if next_xp is None:
        return MaxLevelReached(level=level, xp=xp)
    return NextLevel(level=level, xp=xp, next_xp=next_xp)


# ---------------------------------------------------------------------------
# PATH structures
# ---------------------------------------------------------------------------

@dataclass
class QuestStats:
    completed: int = 0
    total: int = 0


@dataclass
class SubModulePath:
    id: str
    title: str
    description: str
    order_index: int
    unlock_field_level: int
    is_unlocked: bool
    is_completed: bool
    mandatory_completed: int
    mandatory_total: int
    quest_stats: QuestStats


@dataclass
class ModulePath:
    id: str
    title: str
    description: str
    unlock_field_level: int
    is_unlocked: bool
    module_stats: QuestStats
    sub_modules: list[SubModulePath] = field(default_factory=list)


@dataclass
class FieldPath:
    field_id: str
    field_name: str
    current_level: int
    current_xp: int
    next_xp: Optional[int]
    max_level_reached: bool
    modules: list[ModulePath]

    def to_dict(self) -> dict:
        return asdict(self)

    def sub_module(self, sub_module_id: str) -> Optional[SubModulePath]:
        for module in self.modules:
            for sm in module.sub_modules:
                if sm.id == sub_module_id:
                    return sm
        return None


def _field_progress(db: Session, user_id: str, field_id: str) -> Optional[UserFieldProgress]:
    return (
        db.query(UserFieldProgress)
        .filter(UserFieldProgress.user_id == user_id, UserFieldProgress.field_id == field_id)
        .first()
    )


def is_sub_module_unlocked(field_level: int, sub_module: SubModule) -> bool:
    return field_level >= (sub_module.unlock_field_level or 0)


def is_sub_module_completed(mandatory_completed: int, mandatory_total: int) -> bool:
    return mandatory_total > 0 and mandatory_completed >= mandatory_total


def compute_field_path(db: Session, user_id: str, field_id: str) -> FieldPath:
    learning_field = db.get(Field, field_id)
    if learning_field is None:
        raise NotFoundError("Field not found")

    progress = _field_progress(db, user_id, field_id)
    if progress is None:
        # No onboarding row: the user never got this field.
        raise NotFoundError("No progress for this field")

    current_level = progress.field_level or 1
    current_xp = progress.field_xp or 0
    level = level_progress(db, current_level, current_xp)

    modules = (
        db.query(Module)
        .options(selectinload(Module.sub_modules))
        .filter(Module.field_id == field_id)
        .order_by(Module.unlock_field_level, Module.id)
        .all()
    )
    sub_module_ids = [sm.id for m in modules for sm in m.sub_modules]

    core_templates = []
    if sub_module_ids:
        core_templates = (
            db.query(QuestTemplate.id, QuestTemplate.sub_module_id, QuestTemplate.is_mandatory)
            .filter(QuestTemplate.sub_module_id.in_(sub_module_ids))
            .all()
        )

    done = completed_quest_ids(db, user_id)

    mandatory_total: Counter = Counter()
    mandatory_done: Counter = Counter()
    core_total: Counter = Counter()
    core_done: Counter = Counter()
    for template_id, sm_id, is_mandatory in core_templates:
        core_total[sm_id] += 1
        if template_id in done:
            core_done[sm_id] += 1
        if is_mandatory:
            mandatory_total[sm_id] += 1
            if template_id in done:
                mandatory_done[sm_id] += 1

    module_paths = []
    for module in modules:
        sub_paths = []
        for sm in sorted(module.sub_modules, key=lambda s: (s.order_index, s.id)):
            sub_paths.append(SubModulePath(
                id=sm.id,
                title=sm.title,
                description=sm.description,
                order_index=sm.order_index,
                unlock_field_level=sm.unlock_field_level,
                is_unlocked=is_sub_module_unlocked(current_level, sm),
                is_completed=is_sub_module_completed(mandatory_done[sm.id], mandatory_total[sm.id]),
                mandatory_completed=mandatory_done[sm.id],
                mandatory_total=mandatory_total[sm.id],
                quest_stats=QuestStats(completed=core_done[sm.id], total=core_total[sm.id]),
            ))

        module_paths.append(ModulePath(
            id=module.id,
            title=module.title,
            description=module.description,
            unlock_field_level=module.unlock_field_level,
            is_unlocked=current_level >= (module.unlock_field_level or 0),
            module_stats=QuestStats(
                completed=sum(s.quest_stats.completed for s in sub_paths),
                total=sum(s.quest_stats.total for s in sub_paths),
            ),
            sub_modules=sub_paths,
        ))

    return FieldPath(
        field_id=field_id,
        field_name=learning_field.name,
        current_level=current_level,
        current_xp=current_xp,
        next_xp=level.next_xp,
        max_level_reached=level.max_level_reached,
        modules=module_paths,
    )


# ---------------------------------------------------------------------------
# LISTINGS
# ---------------------------------------------------------------------------

def global_level_of(db: Session, user_id: str) -> int:
    level = (
        db.query(UserGlobalProgress.global_level)
        .filter(UserGlobalProgress.user_id == user_id)
        .scalar()
    )
    return level or 1


def list_learning_fields(db: Session, user_id: str) -> list[dict]:
    """Fields the user holds a progress row for, with that progress."""
    global_level = global_level_of(db, user_id)
    rows = (
        db.query(Field, UserFieldProgress)
        .join(UserFieldProgress, UserFieldProgress.field_id == Field.id)
        .filter(UserFieldProgress.user_id == user_id)
        .order_by(Field.unlock_global_level, Field.name)
        .all()
    )
    return [
        {
            "id": f.id,
            "name": f.name,
            "description": f.description,
            "unlock_global_level": f.unlock_global_level,
            "progress": {
                "unlocked": bool(p.unlocked),
                "field_level": p.field_level,
                "field_xp": p.field_xp,
            },
            "user_global_level": global_level,
        }
        for f, p in rows
    ]


def get_sub_module_detail(db: Session, user_id: str, sub_module_id: str) -> dict:
    sub_module = db.get(SubModule, sub_module_id)
    if sub_module is None:
        raise NotFoundError("Sub-module not found")
    module = sub_module.module

    progress = _field_progress(db, user_id, module.field_id)
    field_level = progress.field_level if progress else 1

    templates = (
        db.query(QuestTemplate)
        .filter(QuestTemplate.sub_module_id == sub_module_id)
        .order_by(QuestTemplate.title, QuestTemplate.id)
        .all()
    )
    progress_by_quest = {}
    if templates:
        for row in (
            db.query(UserQuestProgress)
            .filter(
                UserQuestProgress.user_id == user_id,
                UserQuestProgress.quest_id.in_([t.id for t in templates]),
            )
            .all()
        ):
            progress_by_quest[row.quest_id] = row

    quests = []
    for t in templates:
        row = progress_by_quest.get(t.id)
        quests.append({
            "id": t.id,
            "title": t.title,
            "description": t.description,
            "difficulty": t.difficulty,
            "xp_reward": t.xp_reward,
            "is_mandatory": bool(t.is_mandatory),
            "status": "completed" if row is not None and row.completed else "active",
            "progress": row.progress if row is not None else 0,
        })

    mandatory = [q for q in quests if q["is_mandatory"]]
    mandatory_done = sum(1 for q in mandatory if q["status"] == "completed")

    return {
        "id": sub_module.id,
        "title": sub_module.title,
        "description": sub_module.description,
        "order_index": sub_module.order_index,
        "unlock_field_level": sub_module.unlock_field_level,
        "module": {
            "id": module.id,
            "title": module.title,
            "field_id": module.field_id,
        },
        "field_level": field_level,
        "is_unlocked": is_sub_module_unlocked(field_level, sub_module),
        "is_completed": is_sub_module_completed(mandatory_done, len(mandatory)),
        "quests": quests,
    }
