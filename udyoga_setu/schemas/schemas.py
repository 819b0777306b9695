"""
Request and response models for every route.

Status enums here are the single list of allowed values; the database stores
their string values.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    employer = "employer"
    admin = "admin"


class JobType(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    contract = "contract"
    internship = "internship"
    temporary = "temporary"


class ExperienceLevel(str, Enum):
    entry = "entry"
    junior = "junior"
    mid = "mid"
    senior = "senior"
    executive = "executive"


class JobStatus(str, Enum):
    active = "active"
    draft = "draft"
    paused = "paused"
    closed = "closed"
    pending = "pending"
    under_review = "under_review"
    rejected = "rejected"
    flagged = "flagged"


class JobPriority(str, Enum):
    low = "low"
    normal = "normal"
    high = "high"
    urgent = "urgent"


class ApplicationStatus(str, Enum):
    submitted = "submitted"
    under_review = "under_review"
    reviewed = "reviewed"
    shortlisted = "shortlisted"
    interview_scheduled = "interview_scheduled"
    approved = "approved"
    hired = "hired"
    rejected = "rejected"


class ApplicationMethod(str, Enum):
    kiosk_qr = "kiosk_qr"
    kiosk_voice = "kiosk_voice"
    online = "online"


class VoiceLanguage(str, Enum):
    english = "en-US"
    hindi = "hi-IN"
    kannada = "kn-IN"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: Optional[str] = None

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: UserRole

class UserResponse(BaseModel):
    user_id: str
    email: str
    role: UserRole
    full_name: Optional[str] = None
    is_active: bool
    company_id: Optional[str] = None
    created_at: datetime


# ============================================================
# COMPANY SCHEMAS
# ============================================================

class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    location: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None

class CompanyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    location: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None

class CompanyResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    name: str
    location: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    location: str
    job_type: JobType = JobType.full_time
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_currency: str = "INR"
    description: str
    requirements: List[str] = []
    benefits: List[str] = []
    experience_level: ExperienceLevel = ExperienceLevel.entry
    skills: List[str] = []
    application_deadline: Optional[datetime] = None
    contact_email: EmailStr
    kiosk_enabled: bool = False
    video_url: Optional[str] = None

class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    location: Optional[str] = None
    job_type: Optional[JobType] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_currency: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[List[str]] = None
    benefits: Optional[List[str]] = None
    experience_level: Optional[ExperienceLevel] = None
    skills: Optional[List[str]] = None
    application_deadline: Optional[datetime] = None
    contact_email: Optional[EmailStr] = None
    status: Optional[JobStatus] = None
    kiosk_enabled: Optional[bool] = None
    video_url: Optional[str] = None

class JobResponse(BaseModel):
    id: str
    company_id: str
    company_name: Optional[str] = None
    title: str
    location: str
    job_type: str
    job_type_display: str
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_currency: str
    salary_display: str
    description: str
    requirements: List[str] = []
    benefits: List[str] = []
    experience_level: str
    experience_display: str
    skills: List[str] = []
    application_deadline: Optional[datetime] = None
    contact_email: str
    status: str
    total_applications: int = 0
    kiosk_enabled: bool = False
    qr_code_url: Optional[str] = None
    video_url: Optional[str] = None
    moderation_notes: Optional[str] = None
    moderated_by: Optional[str] = None
    moderated_at: Optional[datetime] = None
    flagged_reason: Optional[str] = None
    priority: str = "normal"
    posted_ago: str
    created_at: datetime
    updated_at: datetime

class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total: int
    page: int
    page_size: int


# ============================================================
# MODERATION SCHEMAS
# ============================================================

class ModerationDecision(BaseModel):
    notes: Optional[str] = None

class FlagRequest(BaseModel):
    reason: str = Field(..., min_length=3)

class EditRequest(BaseModel):
    notes: str = Field(..., min_length=3)

class PriorityUpdate(BaseModel):
    priority: JobPriority

class BulkModerationRequest(BaseModel):
    job_ids: List[str] = Field(..., min_length=1)
    notes: Optional[str] = None

class BulkModerationResponse(BaseModel):
    updated: int

class ModerationStatsResponse(BaseModel):
    total: int
    pending: int
    under_review: int
    flagged: int
    approved_today: int
    rejected_today: int
    avg_review_time: float


# ============================================================
# APPLICATION SCHEMAS
# ============================================================

class ApplicationCreate(BaseModel):
    job_id: str
    applicant_name: str = Field(..., min_length=2, max_length=100)
    applicant_phone: str = Field(..., min_length=6, max_length=20)
    applicant_email: Optional[EmailStr] = None
    application_method: ApplicationMethod = ApplicationMethod.online
    upload_id: Optional[str] = None
    resume_url: Optional[str] = None
    voice_transcript: Optional[str] = None
    cover_letter: Optional[str] = None
    kiosk_id: Optional[str] = None
    submission_location: Optional[str] = None

class ApplicationStatusUpdate(BaseModel):
    status: ApplicationStatus
    notes: Optional[str] = None

class InterviewSchedule(BaseModel):
    interview_at: datetime
    notes: Optional[str] = None

class ApplicationResponse(BaseModel):
    id: str
    job_id: str
    job_title: Optional[str] = None
    applicant_name: str
    applicant_email: Optional[str] = None
    applicant_phone: str
    application_method: str
    status: str
    resume_url: Optional[str] = None
    voice_recording_url: Optional[str] = None
    voice_transcript: Optional[str] = None
    voice_language: Optional[str] = None
    cover_letter: Optional[str] = None
    kiosk_id: Optional[str] = None
    applicant_score: Optional[float] = None
    reviewer_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    interview_scheduled_at: Optional[datetime] = None
    interviewer_notes: Optional[str] = None
    source_table: str
    applied_at: datetime
    updated_at: Optional[datetime] = None

class ApplicationStatsResponse(BaseModel):
    total_applications: int = 0
    new_applications: int = 0
    reviewed_applications: int = 0
    interview_applications: int = 0
    hired_applications: int = 0
    rejected_applications: int = 0
    applications_this_week: int = 0
    applications_this_month: int = 0

class SubmittedApplicationResponse(BaseModel):
    id: str
    job_id: str
    status: str
    application_method: str
    resume_url: Optional[str] = None
    message: str

class NotificationResponse(BaseModel):
    id: str
    application_id: str
    recipient_phone: str
    notification_type: str
    message: str
    status: str
    provider: Optional[str] = None
    created_at: datetime


# ============================================================
# VOICE RESUME SCHEMAS
# ============================================================

class ResumeEntry(BaseModel):
    id: int
    description: str

class PersonalInfo(BaseModel):
    name: str
    summary: str

class VoiceResume(BaseModel):
    personal_info: PersonalInfo
    experience: List[ResumeEntry] = []
    skills: List[str] = []
    education: List[ResumeEntry] = []
    language: str
    generated_at: datetime

class TranscriptParseRequest(BaseModel):
    transcript: str
    language: Optional[VoiceLanguage] = None

class VoiceApplicationResponse(BaseModel):
    id: str
    job_id: str
    status: str
    resume_url: str
    voice_recording_url: Optional[str] = None
    resume: VoiceResume


# ============================================================
# QR UPLOAD SCHEMAS
# ============================================================

class UploadSessionCreate(BaseModel):
    job_id: Optional[str] = None
    kiosk_id: Optional[str] = None

class UploadSessionResponse(BaseModel):
    upload_id: str
    mobile_upload_url: str
    qr_code_url: str
    status: str
    expires_at: datetime
    poll_interval_seconds: float

class UploadedFileInfo(BaseModel):
    file_name: str
    file_size: int
    file_type: str
    public_url: str
    uploaded_at: datetime

class UploadStatusResponse(BaseModel):
    upload_id: str
    status: str
    seconds_remaining: int = 0
    file: Optional[UploadedFileInfo] = None


# ============================================================
# KIOSK SCHEMAS
# ============================================================

class KioskCreate(BaseModel):
    kiosk_code: str = Field(..., min_length=3, max_length=50)
    location_name: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = "India"

class KioskPing(BaseModel):
    software_version: Optional[str] = None

class KioskResponse(BaseModel):
    id: str
    kiosk_code: str
    location_name: str
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    is_active: bool
    last_ping: Optional[datetime] = None
    software_version: Optional[str] = None
    created_at: datetime


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True
