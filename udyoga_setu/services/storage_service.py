"""
Storage Service - blob operations on the object storage buckets.

Buckets:
1. resumes - mobile QR uploads and generated voice resumes
2. videos  - job posting videos
3. voice   - raw voice recordings

Each blob is addressed by a path inside its bucket ("uploads/abc_2025-...pdf")
and is publicly readable at <public_base_url>/api/storage/<bucket>/<path>.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from fastapi import HTTPException
from gridfs.errors import NoFile

from udyoga_setu.core.config import get_settings
from udyoga_setu.db.mongodb import get_gridfs_bucket, BUCKETS

logger = logging.getLogger(__name__)

settings = get_settings()


@dataclass
class StoredObject:
    path: str
    data: bytes
    content_type: str
    metadata: dict = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.data)


def public_url(bucket: str, path: str) -> str:
    """Public download URL for a blob."""
    return f"{settings.public_base_url.rstrip('/')}/api/storage/{bucket}/{path}"


class StorageBucket:
    """
    One GridFS bucket.
    Paths are stored as GridFS filenames; the newest revision wins on read.
    """

    def __init__(self, name: str):
        self.name = name
        self.bucket = get_gridfs_bucket(name)

    def upload(self, path: str, data: bytes, content_type: str, metadata: dict = None) -> str:
        """
        Store a blob.

        Returns:
            The public URL of the stored blob
        """
        meta = dict(metadata or {})
        meta["content_type"] = content_type
        self.bucket.upload_from_stream(path, io.BytesIO(data), metadata=meta)
        logger.info("Stored %s/%s (%d bytes)", self.name, path, len(data))
        return public_url(self.name, path)

    def download(self, path: str) -> Optional[StoredObject]:
        """Fetch a blob by path. Returns None when it does not exist."""
        try:
            grid_out = self.bucket.open_download_stream_by_name(path)
        except NoFile:
            return None
        meta = dict(grid_out.metadata or {})
        return StoredObject(
            path=path,
            data=grid_out.read(),
            content_type=meta.pop("content_type", "application/octet-stream"),
            metadata=meta
        )

    def remove(self, paths: Iterable[str]) -> int:
        """Delete every revision of the given paths. Returns number of blobs removed."""
        removed = 0
        for path in paths:
            for grid_out in self.bucket.find({"filename": path}):
                self.bucket.delete(grid_out._id)
                removed += 1
        return removed


class StorageService:
    """Registry of the storage buckets."""

    def __init__(self):
        self._buckets: Dict[str, StorageBucket] = {}

    def bucket(self, name: str) -> StorageBucket:
        if name not in BUCKETS:
            raise HTTPException(status_code=404, detail=f"Unknown storage bucket '{name}'")
        if name not in self._buckets:
            self._buckets[name] = StorageBucket(BUCKETS[name])
        return self._buckets[name]

    def bucket_names(self) -> list:
        return list(BUCKETS)


# Singleton instance
_storage: StorageService = None


def get_storage() -> StorageService:
    """FastAPI dependency - get or create the storage registry."""
    global _storage
    if _storage is None:
        _storage = StorageService()
    return _storage
