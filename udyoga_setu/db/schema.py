"""
Relational schema for Udyoga Setu.

The DDL sticks to types that PostgreSQL and SQLite both accept so the same
statements serve production and local/test databases:
- ids are UUID strings generated by the application
- timestamps are UTC ISO-8601 values
- list-valued job fields (requirements, benefits, skills) are JSON text

Two application tables exist side by side:
- applications      - kiosk QR / kiosk voice / online submissions
- job_applications  - voice and mobile submissions
"""

import logging
from typing import List

from sqlalchemy import text

from udyoga_setu.db.postgres import get_db_session

logger = logging.getLogger(__name__)


TABLES = {
    "users": """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            role TEXT NOT NULL DEFAULT 'employer',
            full_name TEXT,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "companies": """
        CREATE TABLE IF NOT EXISTS companies (
            id TEXT PRIMARY KEY,
            user_id TEXT REFERENCES users(id) ON DELETE SET NULL,
            name TEXT NOT NULL,
            location TEXT,
            industry TEXT,
            website TEXT,
            description TEXT,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE
        )
    """,
    "jobs": """
        CREATE TABLE IF NOT EXISTS jobs (
            id TEXT PRIMARY KEY,
            company_id TEXT NOT NULL REFERENCES companies(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            location TEXT NOT NULL,
            job_type TEXT NOT NULL DEFAULT 'full-time',
            salary_min DOUBLE PRECISION,
            salary_max DOUBLE PRECISION,
            salary_currency TEXT NOT NULL DEFAULT 'INR',
            description TEXT NOT NULL,
            requirements TEXT NOT NULL DEFAULT '[]',
            benefits TEXT NOT NULL DEFAULT '[]',
            experience_level TEXT NOT NULL DEFAULT 'entry',
            skills TEXT NOT NULL DEFAULT '[]',
            application_deadline TIMESTAMP WITH TIME ZONE,
            contact_email TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'active',
            total_applications INTEGER NOT NULL DEFAULT 0,
            kiosk_enabled BOOLEAN NOT NULL DEFAULT FALSE,
            qr_code_url TEXT,
            video_url TEXT,
            moderation_notes TEXT,
            moderated_by TEXT,
            moderated_at TIMESTAMP WITH TIME ZONE,
            flagged_reason TEXT,
            priority TEXT NOT NULL DEFAULT 'normal',
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "kiosks": """
        CREATE TABLE IF NOT EXISTS kiosks (
            id TEXT PRIMARY KEY,
            kiosk_code TEXT NOT NULL UNIQUE,
            location_name TEXT NOT NULL,
            address TEXT,
            city TEXT,
            country TEXT,
            is_active BOOLEAN NOT NULL DEFAULT TRUE,
            last_ping TIMESTAMP WITH TIME ZONE,
            software_version TEXT,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "applications": """
        CREATE TABLE IF NOT EXISTS applications (
            id TEXT PRIMARY KEY,
            job_id TEXT NOT NULL REFERENCES jobs(id) ON DELETE CASCADE,
            applicant_name TEXT NOT NULL,
            applicant_email TEXT,
            applicant_phone TEXT NOT NULL,
            application_method TEXT NOT NULL,
            resume_url TEXT,
            voice_recording_url TEXT,
            voice_transcript TEXT,
            cover_letter TEXT,
            kiosk_id TEXT,
            submission_location TEXT,
            status TEXT NOT NULL DEFAULT 'submitted',
            ai_score DOUBLE PRECISION,
            reviewer_notes TEXT,
            reviewed_by TEXT,
            reviewed_at TIMESTAMP WITH TIME ZONE,
            interview_scheduled_at TIMESTAMP WITH TIME ZONE,
            interviewer_notes TEXT,
            notification_sent BOOLEAN NOT NULL DEFAULT FALSE,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "job_applications": """
        CREATE TABLE IF NOT EXISTS job_applications (
            id TEXT PRIMARY KEY,
            job_id TEXT NOT NULL,
            applicant_name TEXT NOT NULL,
            applicant_email TEXT,
            applicant_phone TEXT NOT NULL,
            application_method TEXT NOT NULL,
            resume_url TEXT,
            resume_file_id TEXT,
            voice_recording_url TEXT,
            voice_language TEXT,
            voice_transcript TEXT,
            applicant_score DOUBLE PRECISION,
            status TEXT NOT NULL DEFAULT 'submitted',
            reviewed_at TIMESTAMP WITH TIME ZONE,
            interview_scheduled_at TIMESTAMP WITH TIME ZONE,
            interviewer_notes TEXT,
            applied_at TIMESTAMP WITH TIME ZONE NOT NULL,
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "upload_sessions": """
        CREATE TABLE IF NOT EXISTS upload_sessions (
            upload_id TEXT PRIMARY KEY,
            job_id TEXT,
            kiosk_id TEXT,
            status TEXT NOT NULL DEFAULT 'waiting',
            created_at TIMESTAMP WITH TIME ZONE NOT NULL,
            expires_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "uploaded_files": """
        CREATE TABLE IF NOT EXISTS uploaded_files (
            id TEXT PRIMARY KEY,
            upload_id TEXT NOT NULL UNIQUE,
            application_id TEXT,
            file_name TEXT NOT NULL,
            file_path TEXT NOT NULL,
            file_size INTEGER NOT NULL,
            file_type TEXT NOT NULL,
            file_category TEXT NOT NULL DEFAULT 'resume',
            public_url TEXT NOT NULL,
            is_processed BOOLEAN NOT NULL DEFAULT FALSE,
            uploaded_by_method TEXT NOT NULL DEFAULT 'mobile',
            uploaded_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
    "notifications": """
        CREATE TABLE IF NOT EXISTS notifications (
            id TEXT PRIMARY KEY,
            application_id TEXT NOT NULL,
            recipient_phone TEXT NOT NULL,
            notification_type TEXT NOT NULL,
            message TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'pending',
            provider TEXT NOT NULL DEFAULT 'sms',
            created_at TIMESTAMP WITH TIME ZONE NOT NULL
        )
    """,
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_jobs_company_id ON jobs(company_id)",
    "CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status)",
    "CREATE INDEX IF NOT EXISTS idx_applications_job_id ON applications(job_id)",
    "CREATE INDEX IF NOT EXISTS idx_job_applications_job_id ON job_applications(job_id)",
    "CREATE INDEX IF NOT EXISTS idx_job_applications_applied_at ON job_applications(applied_at)",
    "CREATE INDEX IF NOT EXISTS idx_job_applications_method ON job_applications(application_method)",
    "CREATE INDEX IF NOT EXISTS idx_uploaded_files_uploaded_at ON uploaded_files(uploaded_at)",
    "CREATE INDEX IF NOT EXISTS idx_notifications_application_id ON notifications(application_id)",
]


def create_tables() -> List[str]:
    """Create every table and index that does not exist yet. Returns table names."""
    with get_db_session() as db:
        for name, ddl in TABLES.items():
            db.execute(text(ddl))
        for ddl in INDEXES:
            db.execute(text(ddl))
    logger.info("Schema ready: %s", ", ".join(TABLES))
    return list(TABLES)


def drop_tables():
    """Drop all tables (children first). Used by tests and `setup --reset`."""
    with get_db_session() as db:
        for name in reversed(list(TABLES)):
            db.execute(text(f"DROP TABLE IF EXISTS {name}"))
