from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..crud import todos as crud
from ..database import get_db
from ..dependencies import get_views
from ..schemas import TodoOut
from ..views import TODO_VIEW, ViewInvalidator
from .responses import deleted, unwrap, with_view_version

router = APIRouter(prefix="/todo", tags=["todos"])


@router.get("/", response_model=list[TodoOut])
def list_all(
    response: Response,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    result = crud.list_todos(db, current_user, {"search": search, "sort_by": sort_by, "sort_order": sort_order})
    todos = unwrap(result)
    with_view_version(response, views, TODO_VIEW)
    return todos


@router.get("/{todo_id}", response_model=TodoOut)
def get_one(todo_id: str, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return unwrap(crud.get_todo(db, current_user, todo_id))


@router.post("/", response_model=TodoOut, status_code=201)
def create(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.create_todo(db, current_user, data, views))


@router.patch("/{todo_id}", response_model=TodoOut)
def update(
    todo_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.update_todo(db, current_user, todo_id, data, views))


@router.post("/{todo_id}/toggle", response_model=TodoOut)
def toggle(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.toggle_todo(db, current_user, todo_id, views))


@router.delete("/{todo_id}")
def remove(
    todo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_todo(db, current_user, todo_id, views))
