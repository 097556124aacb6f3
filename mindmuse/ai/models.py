from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from mindmuse.db.base import Base


class WritingFeedback(Base):
    __tablename__ = "writing_feedback"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    content = Column(Text, nullable=False)
    feedback = Column(Text, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
