from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Note, User, utcnow
from ..results import ActionResult, not_authenticated, not_found, ok, validate
from ..schemas import ListOptions, NoteCreate, NoteUpdate
from ..views import NOTES_VIEW, ViewInvalidator
from .common import db_failure, get_owned, list_options, list_owned


def list_notes(db: Session, user: Optional[User], options: Optional[dict] = None) -> ActionResult[List[Note]]:
    if user is None:
        return not_authenticated()
    opts, error = validate(ListOptions, list_options(options))
    if error:
        return error
    try:
        return ok(list_owned(db, Note, user.id, opts, Note.title))
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch notes")


def get_note(db: Session, user: Optional[User], note_id: str) -> ActionResult[Note]:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Note, note_id, user.id)
    except SQLAlchemyError:
        return db_failure(db, "Failed to fetch note")
    return ok(obj) if obj else not_found("Note")


def create_note(db: Session, user: Optional[User], data: dict, views: ViewInvalidator) -> ActionResult[Note]:
    if user is None:
        return not_authenticated()
    parsed, error = validate(NoteCreate, data)
    if error:
        return error
    try:
        obj = Note(user_id=user.id, title=parsed.title, content=parsed.content)
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        return db_failure(db, "Failed to create note")
    views.invalidate(NOTES_VIEW)
    return ok(obj)


def update_note(db: Session, user: Optional[User], note_id: str, data: dict, views: ViewInvalidator) -> ActionResult[Note]:
    if user is None:
        return not_authenticated()
    parsed, error = validate(NoteUpdate, data)
    if error:
        return error
    try:
        obj = get_owned(db, Note, note_id, user.id)
        if not obj:
            return not_found("Note")
        for field, value in parsed.model_dump(exclude_none=True).items():
            setattr(obj, field, value)
        obj.updated_at = utcnow()
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        return db_failure(db, "Failed to update note")
    views.invalidate(NOTES_VIEW)
    return ok(obj)


def delete_note(db: Session, user: Optional[User], note_id: str, views: ViewInvalidator) -> ActionResult[None]:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, Note, note_id, user.id)
        if not obj:
            return not_found("Note")
        db.delete(obj)
        db.commit()
    except SQLAlchemyError:
        return db_failure(db, "Failed to delete note")
    views.invalidate(NOTES_VIEW)
    return ok()
