from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Todo, User, utcnow
from ..results import ActionResult, not_authenticated, not_found, ok, validate
from ..schemas import ListOptions, TodoCreate, TodoUpdate
from ..views import TODO_VIEW, ViewInvalidator
from .common import db_failure, get_owned, list_options, list_owned


def list_todos(db: Session, user: Optional[User], options: Optional[dict] = None) -> ActionResult[List[Todo]]:
    if user is None:
        return not_authenticated()
    # Earliest first unless the caller asks otherwise
    opts, error = validate(ListOptions, list_options(options, sort_order="asc"))
    if error:
        return error
    try:
        return ok(list_owned(db, Todo, user.id, opts, Todo.title))
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch todos")


def get_todo(db: Session, user: Optional[User], todo_id: str) -> ActionResult[Todo]:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Todo, todo_id, user.id)
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch todo")
    return ok(obj) if obj else not_found("Todo")


def create_todo(db: Session, user: Optional[User], data: dict, views: ViewInvalidator) -> ActionResult[Todo]:
    if user is None:
        return not_authenticated()
    parsed, error = validate(TodoCreate, data)
    if error:
        return error
    try:
        obj = Todo(
            title=parsed.title,
            priority=parsed.priority,
            completed=False,
            user_id=user.id,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        return db_failure(db, "Failed to create todo")
    views.invalidate(TODO_VIEW)
    return ok(obj)


def update_todo(db: Session, user: Optional[User], todo_id: str, data: dict, views: ViewInvalidator) -> ActionResult[Todo]:
    if user is None:
        return not_authenticated()
    parsed, error = validate(TodoUpdate, data)
    if error:
        return error
    try:
        obj = get_owned(db, Todo, todo_id, user.id)
        if not obj:
            return not_found("Todo")
        for field, value in parsed.model_dump(exclude_none=True).items():
            setattr(obj, field, value)
        obj.updated_at = utcnow()
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        return db_failure(db, "Failed to update todo")
    views.invalidate(TODO_VIEW)
    return ok(obj)


def toggle_todo(db: Session, user: Optional[User], todo_id: str, views: ViewInvalidator) -> ActionResult[Todo]:
    """Flip `completed` against the persisted value, not a client-supplied target."""
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Todo, todo_id, user.id)
        if not obj:
            return not_found("Todo")
        obj.completed = not obj.completed
        obj.updated_at = utcnow()
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        return db_failure(db, "Failed to toggle todo")
    views.invalidate(TODO_VIEW)
    return ok(obj)


def delete_todo(db: Session, user: Optional[User], todo_id: str, views: ViewInvalidator) -> ActionResult[None]:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Todo, todo_id, user.id)
        if not obj:
            return not_found("Todo")
        db.delete(obj)
        db.commit()
    except SQLAlchemyError:
        return db_failure(db, "Failed to delete todo")
    views.invalidate(TODO_VIEW)
    return ok()
