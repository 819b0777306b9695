"""
Storage Routes

GET /storage/{bucket}/{path} - Public read of a stored blob (resumes, videos, voice)
"""

from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import Response

from udyoga_setu.services.storage_service import StorageService, get_storage

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.get("/{bucket}/{path:path}")
async def read_blob(bucket: str, path: str, storage: StorageService = Depends(get_storage)):
    blob = storage.bucket(bucket).download(path)
    if blob is None:
        raise HTTPException(status_code=404, detail="File not found")
    return Response(content=blob.data, media_type=blob.content_type)
