"""
Per-user progression state: field/global XP and levels, quest completion
records, the level threshold table and onboarding survey answers.
"""
from sqlalchemy import (
    Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint,
)
from sqlalchemy.sql import func

from mindmuse.db.base import Base


class UserLevel(Base):
    """Static lookup: cumulative XP at which `level` is reached."""
    __tablename__ = "user_levels"

    level = Column(Integer, primary_key=True, autoincrement=False)
    xp_required = Column(Integer, nullable=False)


class UserFieldProgress(Base):
    __tablename__ = "user_field_progress"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(36), nullable=False, index=True)
    field_id = Column(String(36), ForeignKey("fields.id"), nullable=False)

    field_level = Column(Integer, nullable=False, default=1)
    field_xp = Column(Integer, nullable=False, default=0)
    unlocked = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "field_id", name="uq_user_field"),
    )


class UserGlobalProgress(Base):
    __tablename__ = "user_global_progress"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(36), nullable=False, unique=True, index=True)

    global_level = Column(Integer, nullable=False, default=1)
    global_xp = Column(Integer, nullable=False, default=0, index=True)
    league = Column(String(16), nullable=False, default="bronze", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class UserQuestProgress(Base):
    """
    One row per (user, quest). quest_id points at either a quest template or
    a legacy quest row; ids are UUIDs so the two never collide.
    """
    __tablename__ = "user_quest_progress"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(36), nullable=False, index=True)
    quest_id = Column(String(36), nullable=False, index=True)

    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Set once when the completion reward is claimed; never cleared.
    xp_awarded = Column(Boolean, nullable=False, default=False)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "quest_id", name="uq_user_quest"),
    )


class UserSurveyResponse(Base):
    __tablename__ = "user_survey_responses"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(String(36), nullable=False, index=True)
    field_id = Column(String(36), ForeignKey("fields.id"), nullable=False)
    skill = Column(String(255), nullable=False)
    score = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "field_id", "skill", name="uq_user_survey_skill"),
    )
