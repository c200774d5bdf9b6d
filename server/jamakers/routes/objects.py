"""
Object uploads (under the API prefix) and downloads (at the site root).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, JSONResponse

from jamakers.acl import ObjectPermission
from jamakers.auth import Principal, get_principal, require_authenticated
from jamakers.dependencies import get_storage
from jamakers.schemas import UploadRequest
from jamakers.storage import ObjectStorageService

router = APIRouter()
download_router = APIRouter()


@router.post("/objects/upload")
def request_upload_url(
    payload: Optional[UploadRequest] = None,
    principal: Principal = Depends(require_authenticated),
    storage: ObjectStorageService = Depends(get_storage),
):
    payload = payload or UploadRequest()
    target = storage.get_object_entity_upload_url(
        principal.user_id,
        is_public=payload.is_public,
        allowed_users=payload.allowed_users,
    )
    return {"uploadUrl": target.upload_url, "publicUrl": target.public_url}


@router.put("/objects/upload/{object_id}", status_code=201)
async def upload_object(
    object_id: str,
    request: Request,
    principal: Principal = Depends(require_authenticated),
    storage: ObjectStorageService = Depends(get_storage),
):
    path = await storage.write_upload(object_id, principal.user_id, request.stream())
    return JSONResponse({"path": path}, status_code=201)


@download_router.get("/public-objects/{file_path:path}")
def download_public_object(
    file_path: str, storage: ObjectStorageService = Depends(get_storage)
):
    found = storage.search_public_object(file_path)
    if found is None:
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(found, headers=storage.download_headers(found))


@download_router.get("/objects/{object_path:path}")
def download_object(
    object_path: str,
    principal: Optional[Principal] = Depends(get_principal),
    storage: ObjectStorageService = Depends(get_storage),
):
    object_file = storage.get_object_entity_file(f"/objects/{object_path}")
    user_id = principal.user_id if principal else None
    if not storage.can_access_object_entity(user_id, object_file, ObjectPermission.READ):
        if principal is None:
            raise HTTPException(status_code=401, detail="Unauthorized")
        raise HTTPException(status_code=403, detail="Access denied")
    return FileResponse(object_file, headers=storage.download_headers(object_file))
