
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
import uuid

from mindmuse.db.base import Base


class User(Base):
    """
    Mirror of the auth provider's user record.

    The id is the `sub` claim of the provider's session token; this service
    never creates credentials itself.
    """
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, unique=True, index=True, nullable=True)  # public handle
    full_name = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
