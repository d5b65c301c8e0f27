from typing import Optional

from fastapi import UploadFile

from ..config import MAX_UPLOAD_BYTES
from ..uploads import UploadedFile


def read_upload(file: Optional[UploadFile]) -> Optional[UploadedFile]:
    """Buffer an incoming multipart file, reading at most one byte past the size limit."""
    if file is None or not file.filename:
        return None
    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    return UploadedFile(
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        data=data,
    )
