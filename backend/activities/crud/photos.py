"""
Ownership-scoped operations shared by image rows (drive photos, food photos).
"""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Photo, User, utcnow
from ..results import ActionResult, not_authenticated, not_found, ok, validate
from ..schemas import ListOptions, PhotoName
from ..storage.base import StorageBackend, StorageError
from ..uploads import UploadedFile, upload_image
from ..views import DRIVE_VIEW, ViewInvalidator
from .common import db_failure, get_owned, list_options, list_owned

logger = logging.getLogger(__name__)

BLOB_CLEANUP_WARNING = "Deleted, but the stored file could not be removed"


def remove_blobs(storage: StorageBackend, keys: List[str]) -> List[str]:
    """Best-effort blob removal. Failures are logged and returned as warnings."""
    if not keys:
        return []
    try:
        storage.remove(keys)
    except StorageError:
        logger.warning(f"Storage delete failed for {keys}", exc_info=True)
        return [BLOB_CLEANUP_WARNING]
    return []


def list_images(db: Session, user: Optional[User], model, options: Optional[dict], label: str) -> ActionResult:
    if user is None:
        return not_authenticated()
    opts, error = validate(ListOptions, list_options(options))
    if error:
        return error
    try:
        return ok(list_owned(db, model, user.id, opts, model.name))
    except SQLAlchemyError:
        return db_failure(db, f"Failed to fetch {label}s")


def get_image(db: Session, user: Optional[User], model, image_id: str, label: str) -> ActionResult:
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, model, image_id, user.id)
    except SQLAlchemyError:
        return db_failure(db, f"Failed to fetch {label}")
    return ok(obj) if obj else not_found("Photo")


def rename_image(db: Session, user: Optional[User], model, image_id: str, data: dict, views: ViewInvalidator, view_paths: List[str], label: str) -> ActionResult:
    if user is None:
        return not_authenticated()
    parsed, error = validate(PhotoName, data)
    if error:
        return error
    try:
        obj = get_owned(db, model, image_id, user.id)
        if not obj:
            return not_found("Photo")
        obj.name = parsed.name
        obj.updated_at = utcnow()
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        return db_failure(db, f"Failed to update {label}")
    for path in view_paths:
        views.invalidate(path)
    return ok(obj)


def delete_image(db: Session, user: Optional[User], model, image_id: str, storage: StorageBackend, views: ViewInvalidator, view_paths: List[str], label: str) -> ActionResult:
    """
    Remove the blob (best effort), then the row. Dependent reviews go with the
    row through the foreign key cascade.
    """
    if user is None:
        return not_authenticated()
    try:
        obj = get_owned(db, model, image_id, user.id)
    except SQLAlchemyError:
        return db_failure(db, f"Failed to delete {label}")
    if not obj:
        return not_found("Photo")

    warnings = remove_blobs(storage, [obj.storage_path])

    try:
        db.delete(obj)
        db.commit()
    except SQLAlchemyError:
        return db_failure(db, f"Failed to delete {label}")
    for path in view_paths:
        views.invalidate(path)
    return ok(warnings=warnings)


# ---------- drive ----------

def list_photos(db: Session, user: Optional[User], options: Optional[dict] = None) -> ActionResult[List[Photo]]:
    return list_images(db, user, Photo, options, "photo")


def get_photo(db: Session, user: Optional[User], photo_id: str) -> ActionResult[Photo]:
    return get_image(db, user, Photo, photo_id, "photo")


def upload_photo(db: Session, user: Optional[User], file: Optional[UploadedFile], name: Optional[str], storage: StorageBackend, views: ViewInvalidator) -> ActionResult[Photo]:
    return upload_image(db, user, Photo, file, name, storage, views, [DRIVE_VIEW], label="photo")


def rename_photo(db: Session, user: Optional[User], photo_id: str, data: dict, views: ViewInvalidator) -> ActionResult[Photo]:
    return rename_image(db, user, Photo, photo_id, data, views, [DRIVE_VIEW], "photo")


def delete_photo(db: Session, user: Optional[User], photo_id: str, storage: StorageBackend, views: ViewInvalidator) -> ActionResult[None]:
    return delete_image(db, user, Photo, photo_id, storage, views, [DRIVE_VIEW], "photo")
