"""
Image upload pipeline shared by the drive and food features.

received -> validated -> bucket-ready -> stored-blob -> persisted-row -> view-invalidated

Nothing is written before validation passes, and no row is inserted unless the
blob upload succeeded. A database failure after the upload leaves the blob
behind for the orphan sweeper.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .config import ALLOWED_IMAGE_TYPES, MAX_UPLOAD_BYTES
from .crud.common import db_failure
from .models import User
from .results import ActionResult, ErrorKind, FieldError, fail, not_authenticated, ok, upstream, validate
from .schemas import PhotoName
from .storage.base import BucketPolicy, StorageBackend, StorageError, build_storage_key
from .views import ViewInvalidator

logger = logging.getLogger(__name__)

IMAGE_BUCKET_POLICY = BucketPolicy(
    public=True,
    max_object_bytes=MAX_UPLOAD_BYTES,
    allowed_mime_types=ALLOWED_IMAGE_TYPES,
)


@dataclass
class UploadedFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


def _invalid(field: str, message: str) -> ActionResult:
    return fail(ErrorKind.VALIDATION, message, [FieldError(field, message)])


def validate_image(file: Optional[UploadedFile], name: Optional[str]) -> Tuple[Optional[str], Optional[ActionResult]]:
    """Resolved display name, or a validation failure. Does no I/O."""
    if file is None or not file.filename:
        return None, _invalid("file", "No file provided")
    if not (file.content_type or "").startswith("image/"):
        return None, _invalid("file", "Only image files are allowed")
    if file.size > MAX_UPLOAD_BYTES:
        return None, _invalid("file", "File size must be less than 5MB")
    parsed, error = validate(PhotoName, {"name": (name or "").strip() or file.filename})
    if error:
        return None, error
    return parsed.name, None


def upload_image(
    db: Session,
    user: Optional[User],
    model,
    file: Optional[UploadedFile],
    name: Optional[str],
    storage: StorageBackend,
    views: ViewInvalidator,
    view_paths: List[str],
    prefix: Optional[str] = None,
    label: str = "photo",
) -> ActionResult:
    if user is None:
        return not_authenticated()

    display_name, error = validate_image(file, name)
    if error:
        return error

    try:
        storage.ensure_bucket(IMAGE_BUCKET_POLICY)
    except StorageError:
        logger.exception("Failed to prepare storage bucket")
        return upstream("Failed to prepare storage")

    key = build_storage_key(user.id, file.filename, prefix)
    try:
        storage.upload(key, file.data, file.content_type)
    except StorageError:
        logger.exception(f"Upload of {key} failed")
        return upstream("Failed to upload file")

    try:
        obj = model(
            user_id=user.id,
            name=display_name,
            url=storage.get_public_url(key),
            storage_path=key,
            size=file.size,
            mime_type=file.content_type,
        )
        db.add(obj)
        db.commit()
        db.refresh(obj)
    except SQLAlchemyError:
        logger.error(f"Blob {key} stored without a {label} row")
        return db_failure(db, f"Failed to create {label}")

    for path in view_paths:
        views.invalidate(path)
    return ok(obj)
