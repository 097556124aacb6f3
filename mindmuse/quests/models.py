import uuid

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from mindmuse.db.base import Base


class Quest(Base):
    """
    Legacy per-user quest row (AI daily quests and their penalty follow-ups).

    Coexists with the template model; completion of either kind is recorded
    in user_quest_progress.
    """
    __tablename__ = "quests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    difficulty = Column(String(16), nullable=False, default="medium")
    xp_reward = Column(Integer, nullable=False, default=10)

    # creative | journal | mindset | reflection | challenge | penalty
    type = Column(String(32), nullable=False, default="challenge")
    # active | completed | moved-to-penalty
    status = Column(String(32), nullable=False, default="active", index=True)
    progress = Column(Integer, nullable=False, default=0)

    deadline = Column(DateTime(timezone=True), nullable=True)
    penalty_for_quest_id = Column(String(36), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
