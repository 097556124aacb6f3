"""
Calendar scratch list. Every query is scoped to the signed-in user.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.core.errors import NotFoundError, ValidationError
from mindmuse.db.session import commit_or_raise, get_db
from mindmuse.todos.models import Todo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/todos", tags=["todos"])


class TodoCreate(BaseModel):
    date: Optional[str] = None
    text: Optional[str] = None
    color: Optional[str] = None


class TodoUpdate(BaseModel):
    id: Optional[int] = None
    text: Optional[str] = None
    completed: Optional[bool] = None


def _todo_dict(todo: Todo) -> dict:
    return {
        "id": todo.id,
        "user_id": todo.user_id,
        "date": todo.date,
        "text": todo.text,
        "color": todo.color,
        "completed": bool(todo.completed),
        "created_at": todo.created_at.isoformat() if todo.created_at else None,
    }


def _owned_todo(db: Session, user_id: str, todo_id: int) -> Todo:
    todo = db.query(Todo).filter(Todo.id == todo_id, Todo.user_id == user_id).first()
    if todo is None:
        raise NotFoundError("Todo not found", redirect="/dashboard")
    return todo


@router.get("")
def list_todos(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    todos = (
        db.query(Todo)
        .filter(Todo.user_id == user.id)
        .order_by(Todo.created_at.asc(), Todo.id.asc())
        .all()
    )
    return {"todos": [_todo_dict(t) for t in todos]}


@router.post("", status_code=201)
def create_todo(
    body: TodoCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not body.date or not body.text or not body.color:
        raise ValidationError("Missing required fields: date, text, color")

    todo = Todo(user_id=user.id, date=body.date, text=body.text, color=body.color, completed=False)
    db.add(todo)
    commit_or_raise(db, "todo")
    db.refresh(todo)
    return {"todo": _todo_dict(todo)}


@router.patch("")
def update_todo(
    body: TodoUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if body.id is None:
        raise ValidationError("Missing required field: id", field="id")

    todo = _owned_todo(db, user.id, body.id)
    if body.text is not None:
        todo.text = body.text
    if body.completed is not None:
        todo.completed = body.completed
    commit_or_raise(db, "todo")
    db.refresh(todo)
    return {"todo": _todo_dict(todo)}


@router.delete("")
def delete_todo(
    id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if id is None:
        raise ValidationError("Missing required parameter: id", field="id")

    todo = _owned_todo(db, user.id, id)
    db.delete(todo)
    commit_or_raise(db, "todo")
    return {"success": True}
