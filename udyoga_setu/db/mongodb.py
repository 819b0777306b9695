"""
MongoDB Connection Utility

MongoDB backs the object storage buckets through GridFS:
- resumes: mobile QR uploads and generated voice resumes
- videos: job posting videos
- voice: raw voice recordings from voice applications

GridFS fits because these are:
- Blobs of a few MB with metadata (content type, upload id)
- Served back through public URLs
- Purged after a short retention window
"""
import logging

import gridfs
from pymongo import MongoClient
from pymongo.database import Database

from udyoga_setu.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Process-wide client; pymongo pools connections itself."""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri, serverSelectionTimeoutMS=settings.mongodb_timeout_ms)
    return _client


def get_mongo_db() -> Database:
    global _db
    if _db is None:
        _db = get_mongo_client()[settings.mongodb_db]
    return _db


def get_gridfs_bucket(name: str) -> gridfs.GridFSBucket:
    """Get a GridFS bucket by name (see BUCKETS)."""
    return gridfs.GridFSBucket(get_mongo_db(), bucket_name=name)


def mongo_ready() -> bool:
    """Ping the storage server; False (with the error logged) when it is down."""
    try:
        get_mongo_client().admin.command("ping")
    except Exception as e:
        logger.error("MongoDB unreachable: %s", e)
        return False
    return True


BUCKETS = {
    "resumes": "resumes",
    "videos": "videos",
    "voice": "voice"
}


def init_mongo_indexes():
    """Index each bucket's files collection by path and by upload date."""
    db = get_mongo_db()

    for bucket in BUCKETS.values():
        files = db[f"{bucket}.files"]
        files.create_index("filename")
        files.create_index("uploadDate")

    logger.info("GridFS indexes ready for buckets: %s", ", ".join(BUCKETS))
