from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse

from app.api.deps import get_upload_service
from app.integrations.storage.base import StorageBackendError
from app.integrations.storage.local import LocalStorageBackend
from app.services.upload_service import UploadService

router = APIRouter(tags=["storage"])


@router.get("/public/{object_key:path}")
async def local_public(object_key: str, service: UploadService = Depends(get_upload_service)):
    storage = service.storage
    if not isinstance(storage, LocalStorageBackend):
        raise HTTPException(status_code=404, detail="Not found")
    try:
        target = storage.resolve(object_key)
    except StorageBackendError as exc:
        raise HTTPException(status_code=400, detail="Invalid path") from exc
    if not target.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(target)
