"""
Learning path catalog: fields -> modules -> sub-modules, plus the global
quest templates attached to them. Seeded by operators, read-only to users.
"""
import uuid

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from mindmuse.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Field(Base):
    __tablename__ = "fields"

    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    # Global level required before the field can be picked
    unlock_global_level = Column(Integer, nullable=False, default=1)

    modules = relationship("Module", back_populates="field")


class Module(Base):
    __tablename__ = "modules"

    id = Column(String(36), primary_key=True, default=_uuid)
    field_id = Column(String(36), ForeignKey("fields.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    unlock_field_level = Column(Integer, nullable=False, default=1)

    field = relationship("Field", back_populates="modules")
    sub_modules = relationship("SubModule", back_populates="module")


class SubModule(Base):
    __tablename__ = "sub_modules"

    id = Column(String(36), primary_key=True, default=_uuid)
    module_id = Column(String(36), ForeignKey("modules.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")

    order_index = Column(Integer, nullable=False, default=0)
    unlock_field_level = Column(Integer, nullable=False, default=1)

    module = relationship("Module", back_populates="sub_modules")


class QuestTemplate(Base):
    """
    Reusable quest definition shared by every user.

    sub_module_id set   -> "core" quest of that sub-module
    sub_module_id NULL  -> standalone "side" quest
    """
    __tablename__ = "module_quest_templates"

    id = Column(String(36), primary_key=True, default=_uuid)
    sub_module_id = Column(String(36), ForeignKey("sub_modules.id"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    difficulty = Column(String(16), nullable=False, default="medium")
    type = Column(String(32), nullable=False, default="challenge")
    xp_reward = Column(Integer, nullable=False, default=10)
    is_mandatory = Column(Boolean, nullable=False, default=False)

    sub_module = relationship("SubModule")

    @property
    def category(self) -> str:
        return "core" if self.sub_module_id else "side"
