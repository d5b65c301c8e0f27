from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Response, UploadFile
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..crud import photos as crud
from ..database import get_db
from ..dependencies import get_storage, get_views
from ..schemas import PhotoOut
from ..storage.base import StorageBackend
from ..views import DRIVE_VIEW, ViewInvalidator
from .responses import deleted, unwrap, with_view_version
from .uploads import read_upload

router = APIRouter(prefix="/drive", tags=["drive"])


@router.get("/", response_model=list[PhotoOut])
def list_all(
    response: Response,
    search: Optional[str] = None,
    sort_by: Optional[str] = None,
    sort_order: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    photos = unwrap(crud.list_photos(db, current_user, {"search": search, "sort_by": sort_by, "sort_order": sort_order}))
    with_view_version(response, views, DRIVE_VIEW)
    return photos


@router.post("/", response_model=PhotoOut, status_code=201, summary="Upload photo")
def upload(
    file: Optional[UploadFile] = File(None),
    name: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.upload_photo(db, current_user, read_upload(file), name, storage, views))


@router.get("/{photo_id}", response_model=PhotoOut)
def get_one(photo_id: str, db: Session = Depends(get_db), current_user=Depends(get_current_user)):
    return unwrap(crud.get_photo(db, current_user, photo_id))


@router.patch("/{photo_id}", response_model=PhotoOut)
def rename(
    photo_id: str,
    data: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    views: ViewInvalidator = Depends(get_views),
):
    return unwrap(crud.rename_photo(db, current_user, photo_id, data, views))


@router.delete("/{photo_id}")
def remove(
    photo_id: str,
    db: Session = Depends(get_db),
    current_user=Depends(get_current_user),
    storage: StorageBackend = Depends(get_storage),
    views: ViewInvalidator = Depends(get_views),
):
    return deleted(crud.delete_photo(db, current_user, photo_id, storage, views))
