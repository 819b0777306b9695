"""
Application Routes

POST /applications - Submit a kiosk/online application (public)
POST /applications/voice - Submit a voice application (public, multipart)
POST /applications/parse-transcript - Preview the resume built from a transcript
GET /applications/{id} - Application details (owning employer)
PUT /applications/{id}/status - Update status (owning employer)
POST /applications/{id}/interview - Schedule interview (owning employer)
GET /applications/{id}/notifications - Applicant messages recorded so far (owning employer)
DELETE /applications/{id} - Delete application (owning employer)
"""

from fastapi import APIRouter, HTTPException, Depends, UploadFile, File, Form
from typing import List, Optional

from udyoga_setu.core.auth import get_current_employer
from udyoga_setu.services.application_service import get_application_service
from udyoga_setu.services.notification_service import get_notification_service
from udyoga_setu.services.voice_application_service import get_voice_application_service
from udyoga_setu.services.resume_parser import parse_transcript_to_resume, detect_language
from udyoga_setu.services.storage_service import StorageService, get_storage
from udyoga_setu.utils.file_upload import read_audio_file
from udyoga_setu.schemas.schemas import (
    ApplicationCreate, ApplicationStatusUpdate, InterviewSchedule, ApplicationResponse,
    SubmittedApplicationResponse, TranscriptParseRequest, VoiceApplicationResponse,
    VoiceLanguage, VoiceResume, NotificationResponse, MessageResponse
)

router = APIRouter(prefix="/applications", tags=["Applications"])


def _owned_application(application_id: str, company: dict) -> dict:
    service = get_application_service()
    app = service.get_application(application_id)
    if not service.company_owns(company["company_id"], app):
        raise HTTPException(status_code=404, detail="Application not found")
    return app


@router.post("", response_model=SubmittedApplicationResponse, status_code=201)
async def submit_application(data: ApplicationCreate):
    """
    Submit an application from a kiosk or the website.

    Pass `upload_id` to attach the resume uploaded through the QR handoff.
    """
    row = get_application_service().submit_application(data.model_dump(mode="json"))
    return SubmittedApplicationResponse(
        id=row["id"], job_id=row["job_id"], status=row["status"],
        application_method=row["application_method"], resume_url=row["resume_url"],
        message="Application submitted successfully"
    )


@router.post("/voice", response_model=VoiceApplicationResponse, status_code=201)
async def submit_voice_application(
    job_id: str = Form(...),
    applicant_name: str = Form(..., min_length=2, max_length=100),
    applicant_phone: str = Form(..., min_length=6, max_length=20),
    transcript: str = Form(...),
    applicant_email: Optional[str] = Form(None),
    language: Optional[VoiceLanguage] = Form(None),
    audio: Optional[UploadFile] = File(None),
    storage: StorageService = Depends(get_storage)
):
    """
    Apply by voice. The transcript becomes an HTML resume; the recording is
    kept alongside it when sent. Language is detected when omitted.
    """
    recording = await read_audio_file(audio) if audio and audio.filename else None
    return get_voice_application_service().submit_voice_application(
        storage,
        job_id=job_id,
        applicant_name=applicant_name,
        applicant_phone=applicant_phone,
        applicant_email=applicant_email,
        transcript=transcript,
        language=language.value if language else None,
        audio=recording,
    )


@router.post("/parse-transcript", response_model=VoiceResume)
async def parse_transcript(request: TranscriptParseRequest):
    language = request.language.value if request.language else detect_language(request.transcript)
    return parse_transcript_to_resume(request.transcript, language)


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(application_id: str, company: dict = Depends(get_current_employer)):
    return _owned_application(application_id, company)


@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    company: dict = Depends(get_current_employer)
):
    """Set any status; there is no required order between statuses."""
    _owned_application(application_id, company)
    return get_application_service().update_application_status(
        application_id, data.status.value, notes=data.notes, reviewer=company["user_id"]
    )


@router.post("/{application_id}/interview", response_model=ApplicationResponse)
async def schedule_interview(
    application_id: str,
    data: InterviewSchedule,
    company: dict = Depends(get_current_employer)
):
    _owned_application(application_id, company)
    return get_application_service().schedule_interview(application_id, data.interview_at, data.notes)


@router.get("/{application_id}/notifications", response_model=List[NotificationResponse])
async def get_notifications(application_id: str, company: dict = Depends(get_current_employer)):
    """Messages recorded for the applicant, oldest first."""
    _owned_application(application_id, company)
    return get_notification_service().list_for_application(application_id)


@router.delete("/{application_id}", response_model=MessageResponse)
async def delete_application(application_id: str, company: dict = Depends(get_current_employer)):
    _owned_application(application_id, company)
    get_application_service().delete_application(application_id)
    return MessageResponse(message="Application deleted successfully")
