from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from mindmuse.db.base import Base


class Todo(Base):
    __tablename__ = "todos"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    date = Column(String(10), nullable=False)  # YYYY-MM-DD as picked in the calendar
    text = Column(Text, nullable=False)
    color = Column(String(32), nullable=False)
    completed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
