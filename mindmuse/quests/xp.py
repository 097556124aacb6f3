"""
XP counters and level thresholds.

Core rules:
  - XP counters only ever change through a single UPDATE ... SET xp = xp + :n
    statement, never read-modify-write from Python
  - The level column is recomputed in SQL from user_levels right after the
    increment, and never goes down (onboarding may start a field above the
    level its XP implies)
  - Deductions floor at 0
"""
import logging

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from mindmuse.progress.models import UserFieldProgress, UserGlobalProgress, UserLevel

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# LEVEL lookup helpers
# ---------------------------------------------------------------------------

def level_for_xp(db: Session, xp: int) -> int:
    """Highest level whose threshold is <= xp (1 if none)."""
    level = db.query(func.max(UserLevel.level)).filter(UserLevel.xp_required <= xp).scalar()
    return level or 1


def xp_required_for(db: Session, level: int) -> int | None:
    """Threshold of *level*, or None when the table has no such level."""
    row = db.get(UserLevel, level)
    return row.xp_required if row else None


def _level_expr(xp_column, level_column):
    """SQL expression: max(current level, level implied by current xp)."""
    implied = (
        select(func.coalesce(func.max(UserLevel.level), 1))
        .where(UserLevel.xp_required <= xp_column)
        .scalar_subquery()
    )
    return case((implied > level_column, implied), else_=level_column)


def _add_expr(column, amount: int):
    if amount >= 0:
        return column + amount
    return case((column + amount > 0, column + amount), else_=0)


# ---------------------------------------------------------------------------
# ATOMIC increments (caller owns the transaction)
# ---------------------------------------------------------------------------

def add_global_xp(db: Session, user_id: str, amount: int) -> bool:
    """
    Add *amount* (may be negative) to the user's global XP and refresh the
    global level. Returns False when the user has no global progress row.
    """
    result = db.execute(
        update(UserGlobalProgress)
        .where(UserGlobalProgress.user_id == user_id)
        .values(global_xp=_add_expr(UserGlobalProgress.global_xp, amount))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("[XP] no global progress row for user=%s; %+d global XP dropped", user_id, amount)
        return False

    db.execute(
        update(UserGlobalProgress)
        .where(UserGlobalProgress.user_id == user_id)
        .values(global_level=_level_expr(UserGlobalProgress.global_xp, UserGlobalProgress.global_level))
        .execution_options(synchronize_session=False)
    )
    logger.info("[XP] user=%s global %+d", user_id, amount)
    return True


def add_field_xp(db: Session, user_id: str, field_id: str, amount: int) -> bool:
    """Field counterpart of add_global_xp."""
    where = (UserFieldProgress.user_id == user_id, UserFieldProgress.field_id == field_id)
    result = db.execute(
        update(UserFieldProgress)
        .where(*where)
        .values(field_xp=_add_expr(UserFieldProgress.field_xp, amount))
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        logger.warning("[XP] no field progress row for user=%s field=%s; %+d field XP dropped",
                       user_id, field_id, amount)
        return False

    db.execute(
        update(UserFieldProgress)
        .where(*where)
        .values(field_level=_level_expr(UserFieldProgress.field_xp, UserFieldProgress.field_level))
        .execution_options(synchronize_session=False)
    )
    logger.info("[XP] user=%s field=%s %+d", user_id, field_id, amount)
    return True
