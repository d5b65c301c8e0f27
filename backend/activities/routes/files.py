import mimetypes

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import RedirectResponse

from ..dependencies import get_storage
from ..storage.base import StorageBackend, StorageError
from ..storage.local import LocalStorage

router = APIRouter(prefix="/files", tags=["files"])


@router.get("/{key:path}", summary="Serve a stored image or redirect to its public URL")
def download_file(key: str, storage: StorageBackend = Depends(get_storage)):
    if not isinstance(storage, LocalStorage):
        return RedirectResponse(url=storage.get_public_url(key), status_code=307)

    try:
        f = storage.open(key)
        data = f.read()
        f.close()
    except (FileNotFoundError, IsADirectoryError, StorageError):
        raise HTTPException(status_code=404, detail="File not found")
    content_type = mimetypes.guess_type(key)[0] or "application/octet-stream"
    headers = {"Cache-Control": "public, max-age=3600"}
    if not content_type.startswith("image/"):
        headers["Content-Disposition"] = f'attachment; filename="{key.rsplit("/", 1)[-1]}"'
    return Response(content=data, media_type=content_type, headers=headers)
