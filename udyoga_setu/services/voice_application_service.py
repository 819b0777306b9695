"""
Voice Applications.

A job seeker records a spoken introduction at a kiosk or on the web. The
speech-to-text transcript is turned into a resume, rendered as HTML and
stored in the `resumes` bucket; the raw recording (when sent) goes to the
`voice` bucket. The application row lands in job_applications.
"""

import logging
import re
import uuid
from typing import Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from udyoga_setu.db.postgres import get_db_session, fetch_one
from udyoga_setu.services.application_service import normalize_application
from udyoga_setu.services.realtime import get_change_feed
from udyoga_setu.services.resume_parser import parse_transcript_to_resume, detect_language, format_resume_as_html
from udyoga_setu.services.storage_service import StorageService
from udyoga_setu.utils.file_upload import get_file_extension
from udyoga_setu.utils.timeutils import now_iso, utcnow

logger = logging.getLogger(__name__)


def calculate_applicant_score(name: str, email: Optional[str], phone: str,
                              method: str, has_resume: bool) -> int:
    """Completeness score in [40, 100]."""
    score = 60
    if name and name.strip():
        score += 10
    if email and "@" in email:
        score += 10
    if phone and phone.strip():
        score += 10
    if method == "voice":
        score += 10
    if has_resume:
        score += 15
    return min(100, max(40, score))


def _slug(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip()) or "Applicant"


class VoiceApplicationService:

    def submit_voice_application(self, storage: StorageService, job_id: str, applicant_name: str,
                                 applicant_phone: str, transcript: str,
                                 applicant_email: Optional[str] = None, language: Optional[str] = None,
                                 audio: Optional[Tuple[bytes, str, str]] = None) -> dict:
        """
        Args:
            audio: optional (content, filename, content_type) of the recording

        Returns:
            dict with id, job_id, status, resume_url, voice_recording_url and the parsed resume
        """
        job = fetch_one("SELECT id, status, company_id FROM jobs WHERE id = :id", {"id": job_id})
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        if job["status"] != "active":
            raise HTTPException(status_code=400, detail="Job is not accepting applications")
        if not transcript or not transcript.strip():
            raise HTTPException(status_code=400, detail="Transcript is empty")

        language = language or detect_language(transcript)
        resume = parse_transcript_to_resume(transcript, language)
        html = format_resume_as_html(resume, applicant_name)

        application_id = str(uuid.uuid4())
        stamp = utcnow().strftime("%Y%m%dT%H%M%S")
        resume_path = f"voice/{application_id}/{_slug(applicant_name)}_Generated_Resume.html"
        resume_url = storage.bucket("resumes").upload(
            resume_path, html.encode("utf-8"), "text/html; charset=utf-8",
            metadata={"application_id": application_id, "language": language}
        )

        recording_url = recording_path = None
        if audio:
            content, filename, content_type = audio
            recording_path = f"{application_id}/recording_{stamp}{get_file_extension(filename)}"
            recording_url = storage.bucket("voice").upload(
                recording_path, content, content_type, metadata={"application_id": application_id}
            )

        now = now_iso()
        row = {
            "id": application_id,
            "job_id": job_id,
            "applicant_name": applicant_name,
            "applicant_email": applicant_email,
            "applicant_phone": applicant_phone,
            "application_method": "voice",
            "resume_url": resume_url,
            "resume_file_id": resume_path,
            "voice_recording_url": recording_url,
            "voice_language": language,
            "voice_transcript": transcript,
            "applicant_score": calculate_applicant_score(
                applicant_name, applicant_email, applicant_phone, "voice", True
            ),
            "status": "submitted",
            "applied_at": now,
            "created_at": now,
            "updated_at": now,
        }
        try:
            with get_db_session() as db:
                db.execute(
                    text("""
                        INSERT INTO job_applications (id, job_id, applicant_name, applicant_email, applicant_phone,
                            application_method, resume_url, resume_file_id, voice_recording_url, voice_language,
                            voice_transcript, applicant_score, status, applied_at, created_at, updated_at)
                        VALUES (:id, :job_id, :applicant_name, :applicant_email, :applicant_phone,
                            :application_method, :resume_url, :resume_file_id, :voice_recording_url, :voice_language,
                            :voice_transcript, :applicant_score, :status, :applied_at, :created_at, :updated_at)
                    """),
                    row
                )
                db.execute(
                    text("UPDATE jobs SET total_applications = total_applications + 1 WHERE id = :id"),
                    {"id": job_id}
                )
        except SQLAlchemyError:
            storage.bucket("resumes").remove([resume_path])
            if recording_path:
                storage.bucket("voice").remove([recording_path])
            raise

        logger.info("Voice application %s for job %s (%s)", application_id, job_id, language)
        get_change_feed().publish(
            "job_applications", "INSERT",
            new=normalize_application(row, "job_applications"), company_id=job["company_id"]
        )
        return {
            "id": application_id,
            "job_id": job_id,
            "status": "submitted",
            "resume_url": resume_url,
            "voice_recording_url": recording_url,
            "resume": resume,
        }


_voice: VoiceApplicationService = None


def get_voice_application_service() -> VoiceApplicationService:
    global _voice
    if _voice is None:
        _voice = VoiceApplicationService()
    return _voice
