from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mindmuse.auth.models import User
from mindmuse.core.deps import get_current_user
from mindmuse.core.errors import ValidationError
from mindmuse.db.session import get_db
from mindmuse.learn.path import compute_field_path, get_sub_module_detail, list_learning_fields
from mindmuse.quests.tracker import list_active_quests

router = APIRouter(prefix="/api/learn", tags=["learn"])


@router.get("/quests")
def get_sub_module_quests(
    sub_module_id: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Core templates of one sub-module, in the quest board envelope."""
    if not sub_module_id:
        raise ValidationError("sub_module_id is required", field="sub_module_id")
    return list_active_quests(db, user.id, sub_module_id=sub_module_id).to_dict()


@router.get("/fields")
def get_fields(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return {"fields": list_learning_fields(db, user.id)}


@router.get("/fields/{field_id}/path")
def get_field_path(
    field_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return compute_field_path(db, user.id, field_id).to_dict()


@router.get("/sub-modules/{sub_module_id}")
def get_sub_module(
    sub_module_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return get_sub_module_detail(db, user.id, sub_module_id)
