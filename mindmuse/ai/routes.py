"""
Coach endpoints. A generation failure never becomes an error response: the
client gets the fixed apologetic message in the usual field instead.
"""
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindmuse.ai import coach
from mindmuse.ai.models import WritingFeedback
from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.core.errors import UpstreamServiceError, ValidationError
from mindmuse.db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])


class DispatchBody(BaseModel):
    type: str
    content: Optional[str] = None
    context: list[dict] = []


class ContentBody(BaseModel):
    content: Optional[str] = None


class ChatBody(BaseModel):
    message: Optional[str] = None
    context: list[dict] = []


class IdeaBody(BaseModel):
    idea: Optional[str] = None


def _generate(what: str, fn: Callable[[], str]) -> str:
    try:
        return fn()
    except UpstreamServiceError as exc:
        logger.warning("[AI] %s fell back: %s", what, exc.message)
        return coach.FALLBACK_MESSAGE


def _require_text(value: Optional[str], field: str) -> str:
    if not value or not value.strip():
        raise ValidationError("Invalid content provided", field=field)
    return value


def _store_feedback(db: Session, user_id: str, content: str, feedback: str) -> None:
    """Best effort: a failed insert still returns the feedback."""
    try:
        db.add(WritingFeedback(user_id=user_id, content=content, feedback=feedback))
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("[AI] storing feedback failed user=%s: %r", user_id, exc)


def _feedback(db: Session, user_id: str, content: str) -> dict:
    try:
        feedback = coach.writing_feedback(content)
    except UpstreamServiceError as exc:
        logger.warning("[AI] feedback fell back: %s", exc.message)
        return {"feedback": coach.FALLBACK_MESSAGE}
    _store_feedback(db, user_id, content, feedback)
    return {"feedback": feedback}


@router.post("")
def dispatch(
    body: DispatchBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    kind = body.type
    if kind == "daily-prompt":
        return {"prompt": _generate(kind, coach.daily_prompt)}
    if kind == "feedback":
        return _feedback(db, user.id, _require_text(body.content, "content"))
    if kind == "chat":
        content = _require_text(body.content, "content")
        return {"response": _generate(kind, lambda: coach.chat(content, body.context))}
    if kind == "mirror":
        content = _require_text(body.content, "content")
        return {"reflection": _generate(kind, lambda: coach.mirror_reflection(content))}
    if kind == "idea-expand":
        content = _require_text(body.content, "content")
        return {"expansion": _generate(kind, lambda: coach.enhance_idea(content))}
    raise ValidationError("Invalid type", field="type")


@router.post("/chat")
def chat(
    body: ChatBody,
    user: User = Depends(get_current_user),
):
    message = _require_text(body.message, "message")
    return {"response": _generate("chat", lambda: coach.chat(message, body.context))}


@router.post("/feedback")
def feedback(
    body: ContentBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _feedback(db, user.id, _require_text(body.content, "content"))


@router.post("/idea")
def idea(
    body: IdeaBody,
    user: User = Depends(get_current_user),
):
    text = _require_text(body.idea, "idea")
    return {"suggestions": _generate("idea", lambda: coach.enhance_idea(text))}


@router.post("/mirror")
def mirror(
    body: ContentBody,
    user: User = Depends(get_current_user),
):
    content = _require_text(body.content, "content")
    return {"reflection": _generate("mirror", lambda: coach.summarize(content, "mirror"))}


@router.post("/expand")
def expand(
    body: ContentBody,
    user: User = Depends(get_current_user),
):
    content = _require_text(body.content, "content")
    return {"expansion": _generate("expand", lambda: coach.summarize(content, "expand"))}


@router.post("/summarize")
def summarize(
    body: ContentBody,
    user: User = Depends(get_current_user),
):
    content = _require_text(body.content, "content")
    return {"summary": _generate("summarize", lambda: coach.summarize(content, "summarize"))}
