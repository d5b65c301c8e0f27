from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..crud import notes as crud
from ..database import get_db
from ..dependencies import get_views
from ..schemas import NoteOut
from ..views import NOTES_VIEW, ViewInvalidator
from .responses import deleted, unwrap, with_view_version

router = APIRouter(prefix="/notes", tags=["notes"])


@router.get("/", response_model=list[NoteOut])
def list_all(
    response: Response,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    notes = unwrap(crud.list_notes(db, current_user, {"search": search, "sort_by": sort_by, "sort_order": sort_order}))
    with_view_version(response, views, NOTES_VIEW)
    return notes


@router.get("/{note_id}", response_model=NoteOut)
def get_one(note_id: str, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return unwrap(crud.get_note(db, current_user, note_id))


@router.post("/", response_model=NoteOut, status_code=201)
def create(
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.create_note(db, current_user, data, views))


@router.patch("/{note_id}", response_model=NoteOut)
def update(
    note_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.update_note(db, current_user, note_id, data, views))


@router.delete("/{note_id}")
def remove(
    note_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_note(db, current_user, note_id, views))
