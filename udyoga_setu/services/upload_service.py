"""
QR Upload Handoff.

Flow:
1. Kiosk/desktop creates a session -> gets an upload id and a QR code that
   points the phone at /mobile-upload/<upload_id>
2. Phone posts the resume to the session (stored in the `resumes` bucket)
3. Kiosk polls the session every 2 seconds until the file shows up or the
   session expires after 5 minutes, then downloads the blob

Uploaded resumes are transient: blobs and rows older than the cache TTL
(30 minutes) are purged at startup and by a periodic background task.
"""

import asyncio
import io
import logging
import secrets
import string
import uuid
from datetime import timedelta
from typing import Optional

import segno
from fastapi import HTTPException, UploadFile
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from udyoga_setu.core.config import get_settings
from udyoga_setu.db.postgres import get_db_session, execute_raw_sql, fetch_one
from udyoga_setu.services.storage_service import StorageService, StoredObject
from udyoga_setu.utils.file_upload import read_resume_file, get_file_extension
from udyoga_setu.utils.timeutils import utcnow, now_iso, iso_ago, parse_timestamp

logger = logging.getLogger(__name__)

settings = get_settings()

UPLOAD_ID_ALPHABET = string.ascii_lowercase + string.digits
UPLOAD_ID_LENGTH = 12
RESUME_BUCKET = "resumes"


def generate_upload_id() -> str:
    return "".join(secrets.choice(UPLOAD_ID_ALPHABET) for _ in range(UPLOAD_ID_LENGTH))


def mobile_upload_url(upload_id: str, job_id: Optional[str] = None) -> str:
    url = f"{settings.public_base_url.rstrip('/')}/mobile-upload/{upload_id}"
    if job_id:
        url += f"?job={job_id}"
    return url


def _file_info(row: dict) -> dict:
    return {
        "file_name": row["file_name"],
        "file_size": row["file_size"],
        "file_type": row["file_type"],
        "public_url": row["public_url"],
        "uploaded_at": row["uploaded_at"],
    }


class UploadService:

    def _get_session(self, upload_id: str) -> dict:
        session = fetch_one("SELECT * FROM upload_sessions WHERE upload_id = :uid", {"uid": upload_id})
        if not session:
            raise HTTPException(status_code=404, detail="Upload session not found")
        return session

    def _get_file(self, upload_id: str) -> Optional[dict]:
        return fetch_one("SELECT * FROM uploaded_files WHERE upload_id = :uid", {"uid": upload_id})

    def _set_status(self, upload_id: str, status: str):
        with get_db_session() as db:
            db.execute(
                text("UPDATE upload_sessions SET status = :status WHERE upload_id = :uid"),
                {"status": status, "uid": upload_id}
            )

    def create_session(self, storage: StorageService, job_id: Optional[str] = None,
                       kiosk_id: Optional[str] = None) -> dict:
        """Start a handoff. Expired uploads are purged before the new id is issued."""
        self.cleanup_expired_uploads(storage)

        upload_id = generate_upload_id()
        created = utcnow()
        expires = created + timedelta(seconds=settings.qr_upload_ttl_seconds)
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO upload_sessions (upload_id, job_id, kiosk_id, status, created_at, expires_at)
                    VALUES (:uid, :job_id, :kiosk_id, 'waiting', :created, :expires)
                """),
                {
                    "uid": upload_id, "job_id": job_id, "kiosk_id": kiosk_id,
                    "created": created.isoformat(timespec="microseconds"),
                    "expires": expires.isoformat(timespec="microseconds"),
                }
            )

        logger.info("Upload session %s created (job=%s, kiosk=%s)", upload_id, job_id, kiosk_id)
        return {
            "upload_id": upload_id,
            "mobile_upload_url": mobile_upload_url(upload_id, job_id),
            "qr_code_url": f"{settings.public_base_url.rstrip('/')}/api/uploads/{upload_id}/qr.png",
            "status": "waiting",
            "expires_at": expires,
            "poll_interval_seconds": settings.qr_poll_interval_seconds,
        }

    def render_qr_png(self, upload_id: str, scale: int = 6) -> bytes:
        """PNG QR code of the mobile upload URL."""
        session = self._get_session(upload_id)
        qr = segno.make(mobile_upload_url(upload_id, session.get("job_id")), error="m")
        buf = io.BytesIO()
        qr.save(buf, kind="png", scale=scale, border=2)
        return buf.getvalue()

    def get_open_session(self, upload_id: str) -> dict:
        """Session that can still accept a file: 404 unknown, 410 expired, 409 already used."""
        session = self._get_session(upload_id)
        if self._get_file(upload_id):
            raise HTTPException(status_code=409, detail="A file was already uploaded for this session")
        if session["status"] == "expired" or parse_timestamp(session["expires_at"]) <= utcnow():
            raise HTTPException(status_code=410, detail="Upload session expired. Please scan a new QR code.")
        return session

    async def receive_upload(self, upload_id: str, file: UploadFile, storage: StorageService) -> dict:
        """Mobile side of the handoff: validate, store the blob, record the row."""
        self.get_open_session(upload_id)
        content, filename, content_type = await read_resume_file(file)

        stamp = utcnow().strftime("%Y%m%dT%H%M%S%fZ")
        path = f"uploads/{upload_id}_{stamp}{get_file_extension(filename)}"
        url = storage.bucket(RESUME_BUCKET).upload(
            path, content, content_type, metadata={"upload_id": upload_id, "original_name": filename}
        )

        row = {
            "id": str(uuid.uuid4()),
            "upload_id": upload_id,
            "file_name": filename,
            "file_path": path,
            "file_size": len(content),
            "file_type": content_type,
            "public_url": url,
            "uploaded_at": now_iso(),
        }
        try:
            with get_db_session() as db:
                db.execute(
                    text("""
                        INSERT INTO uploaded_files (id, upload_id, file_name, file_path, file_size, file_type,
                            file_category, public_url, is_processed, uploaded_by_method, uploaded_at)
                        VALUES (:id, :upload_id, :file_name, :file_path, :file_size, :file_type,
                            'resume', :public_url, :is_processed, 'mobile', :uploaded_at)
                    """),
                    {**row, "is_processed": False}
                )
                db.execute(
                    text("UPDATE upload_sessions SET status = 'uploaded' WHERE upload_id = :uid"),
                    {"uid": upload_id}
                )
        except IntegrityError:
            # another file won the race for this session
            storage.bucket(RESUME_BUCKET).remove([path])
            raise HTTPException(status_code=409, detail="A file was already uploaded for this session")
        except SQLAlchemyError:
            storage.bucket(RESUME_BUCKET).remove([path])
            raise

        logger.info("Received %s (%d bytes) for upload %s", filename, len(content), upload_id)
        return _file_info(row)

    def check_upload(self, upload_id: str) -> dict:
        """One poll of the session: waiting, uploaded or expired."""
        session = self._get_session(upload_id)
        file_row = self._get_file(upload_id)
        if file_row:
            return {"upload_id": upload_id, "status": "uploaded", "seconds_remaining": 0,
                    "file": _file_info(file_row)}

        remaining = int((parse_timestamp(session["expires_at"]) - utcnow()).total_seconds())
        # uploaded sessions without a file row have been purged
        if session["status"] != "waiting" or remaining <= 0:
            if session["status"] != "expired":
                self._set_status(upload_id, "expired")
            return {"upload_id": upload_id, "status": "expired", "seconds_remaining": 0, "file": None}

        return {"upload_id": upload_id, "status": "waiting", "seconds_remaining": remaining, "file": None}

    async def wait_for_upload(self, upload_id: str, timeout: float = None,
                              poll_interval: float = None) -> dict:
        """
        Long-poll: repeat check_upload until the file arrives, the session
        expires or `timeout` seconds pass. Returns the last poll result.
        """
        timeout = settings.qr_upload_ttl_seconds if timeout is None else timeout
        poll_interval = poll_interval or settings.qr_poll_interval_seconds
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while True:
            result = self.check_upload(upload_id)
            if result["status"] != "waiting":
                return result
            left = min(deadline - loop.time(), result["seconds_remaining"])
            if left <= 0:
                return result
            await asyncio.sleep(min(poll_interval, left))

    def download_upload(self, upload_id: str, storage: StorageService) -> StoredObject:
        """Blob of the uploaded resume; the stored object's metadata carries the original name."""
        self._get_session(upload_id)
        file_row = self._get_file(upload_id)
        if not file_row:
            raise HTTPException(status_code=404, detail="No file uploaded for this session yet")
        blob = storage.bucket(RESUME_BUCKET).download(file_row["file_path"])
        if blob is None:
            raise HTTPException(status_code=404, detail="Uploaded file is no longer available")
        blob.metadata.setdefault("original_name", file_row["file_name"])
        return blob

    def mark_used(self, db, upload_id: str, application_id: str):
        """Attach an upload to an application within the caller's transaction. 409 if already attached."""
        result = db.execute(
            text("""
                UPDATE uploaded_files SET is_processed = :done, application_id = :aid
                WHERE upload_id = :uid AND is_processed = :free
            """),
            {"done": True, "free": False, "aid": application_id, "uid": upload_id}
        )
        if not result.rowcount:
            raise HTTPException(status_code=409, detail="Uploaded resume is already attached to an application")

    def cleanup_expired_uploads(self, storage: StorageService, max_age_minutes: int = None) -> int:
        """
        Purge uploaded resumes older than the cache TTL and expire stale sessions.

        Returns:
            Number of uploaded files removed
        """
        max_age = max_age_minutes if max_age_minutes is not None else settings.upload_cache_ttl_minutes
        cutoff = iso_ago(minutes=max_age)
        stale = execute_raw_sql(
            "SELECT upload_id, file_path FROM uploaded_files WHERE uploaded_at < :cutoff",
            {"cutoff": cutoff}
        )
        if stale:
            storage.bucket(RESUME_BUCKET).remove(r["file_path"] for r in stale)

        with get_db_session() as db:
            db.execute(text("DELETE FROM uploaded_files WHERE uploaded_at < :cutoff"), {"cutoff": cutoff})
            db.execute(
                text("UPDATE upload_sessions SET status = 'expired' WHERE status = 'waiting' AND expires_at < :now"),
                {"now": now_iso()}
            )
            db.execute(text("DELETE FROM upload_sessions WHERE created_at < :cutoff"), {"cutoff": cutoff})

        if stale:
            logger.info("Cleaned up %d expired uploads", len(stale))
        return len(stale)


_uploads: UploadService = None


def get_upload_service() -> UploadService:
    global _uploads
    if _uploads is None:
        _uploads = UploadService()
    return _uploads


async def run_cleanup_loop(storage: StorageService, interval_minutes: int = None):
    """Background task: purge expired uploads now and then every interval."""
    interval = (interval_minutes or settings.upload_cleanup_interval_minutes) * 60
    service = get_upload_service()
    while True:
        try:
            service.cleanup_expired_uploads(storage)
        except Exception as e:
            logger.error("Upload cleanup failed: %s", e)
        await asyncio.sleep(interval)
