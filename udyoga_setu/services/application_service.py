"""
Application Service - applicant pipeline for employer dashboards.

Applications live in two tables with overlapping shapes:
- job_applications: voice and mobile submissions (applied_at, applicant_score)
- applications:     kiosk QR / kiosk voice / online submissions (created_at, ai_score)

Reads merge both tables into one dashboard shape. Writes by id try
job_applications first and fall back to applications. Status is a plain
string; any status may follow any other.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from udyoga_setu.db.postgres import get_db_session, execute_raw_sql, fetch_one, in_clause
from udyoga_setu.services.notification_service import get_notification_service
from udyoga_setu.services.realtime import get_change_feed
from udyoga_setu.services.upload_service import get_upload_service
from udyoga_setu.utils.timeutils import now_iso, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

APPLICATION_TABLES = ("job_applications", "applications")

APPLICATION_STATUSES = (
    "submitted", "under_review", "reviewed", "shortlisted",
    "interview_scheduled", "approved", "hired", "rejected",
)

# Dashboard vocabulary for values only the applications table uses
STATUS_ALIASES = {
    "under_review": "reviewed",
    "shortlisted": "interview_scheduled",
}
METHOD_ALIASES = {
    "kiosk_qr": "qr",
    "kiosk_voice": "voice",
}

NOTIFY_STATUSES = {"approved", "hired", "rejected"}


def normalize_application(row: dict, table: str, job_title: Optional[str] = None) -> dict:
    """Map a row from either table onto the merged dashboard shape."""
    app = dict(row)
    app["applied_at"] = row.get("applied_at") or row.get("created_at")
    if table == "applications":
        app["applicant_score"] = row.get("ai_score")
    app["status"] = STATUS_ALIASES.get(row.get("status"), row.get("status"))
    app["application_method"] = METHOD_ALIASES.get(row.get("application_method"), row.get("application_method"))
    app["source_table"] = table
    if job_title is not None:
        app["job_title"] = job_title
    return app


def _newest_first(apps: List[dict]) -> List[dict]:
    return sorted(apps, key=lambda a: parse_timestamp(a["applied_at"]), reverse=True)


class ApplicationService:

    # --------------------------------------------------------
    # lookups
    # --------------------------------------------------------

    def _company_jobs(self, company_id: str) -> Dict[str, str]:
        """job id -> title for every job the company owns."""
        rows = execute_raw_sql(
            "SELECT id, title FROM jobs WHERE company_id = :cid",
            {"cid": company_id}
        )
        return {r["id"]: r["title"] for r in rows}

    def _job_company(self, job_id: str) -> Optional[str]:
        row = fetch_one("SELECT company_id FROM jobs WHERE id = :id", {"id": job_id})
        return row["company_id"] if row else None

    def _find(self, application_id: str) -> Tuple[Optional[str], Optional[dict]]:
        for table in APPLICATION_TABLES:
            row = fetch_one(f"SELECT * FROM {table} WHERE id = :id", {"id": application_id})
            if row:
                return table, row
        return None, None

    def _merged_rows(self, job_ids: List[str]) -> List[Tuple[str, dict]]:
        """
        Rows from both tables for the given jobs.
        A table that cannot be read is logged and skipped; 503 if none can.
        """
        if not job_ids:
            return []
        fragment, params = in_clause("job", job_ids)
        rows, failures = [], []
        for table in APPLICATION_TABLES:
            try:
                found = execute_raw_sql(f"SELECT * FROM {table} WHERE job_id IN {fragment}", params)
            except SQLAlchemyError as e:
                logger.warning("Skipping %s: %s", table, e)
                failures.append(table)
                continue
            rows.extend((table, r) for r in found)
        if len(failures) == len(APPLICATION_TABLES):
            raise HTTPException(status_code=503, detail="Failed to fetch applications from both tables")
        return rows

    def get_application(self, application_id: str) -> dict:
        table, row = self._find(application_id)
        if not row:
            raise HTTPException(status_code=404, detail=f"No application found with ID: {application_id}")
        job = fetch_one("SELECT title FROM jobs WHERE id = :id", {"id": row["job_id"]})
        return normalize_application(row, table, job["title"] if job else None)

    def company_owns(self, company_id: str, application: dict) -> bool:
        return self._job_company(application["job_id"]) == company_id

    # --------------------------------------------------------
    # dashboard reads
    # --------------------------------------------------------

    def get_company_applications(self, company_id: str) -> List[dict]:
        """All applications to the company's jobs, newest first."""
        jobs = self._company_jobs(company_id)
        if not jobs:
            logger.info("Company %s has no jobs, no applications to list", company_id)
            return []
        apps = [
            normalize_application(row, table, jobs.get(row["job_id"]))
            for table, row in self._merged_rows(list(jobs))
        ]
        logger.info("Found %d applications for company %s", len(apps), company_id)
        return _newest_first(apps)

    def get_job_applications(self, job_id: str) -> List[dict]:
        job = fetch_one("SELECT title FROM jobs WHERE id = :id", {"id": job_id})
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        apps = [normalize_application(row, table, job["title"]) for table, row in self._merged_rows([job_id])]
        return _newest_first(apps)

    def get_recent_applications(self, company_id: str, limit: int = 10) -> List[dict]:
        return self.get_company_applications(company_id)[:limit]

    def get_job_application_counts(self, company_id: str) -> Dict[str, int]:
        """Application count per job id; jobs without applications are omitted."""
        jobs = self._company_jobs(company_id)
        counts: Dict[str, int] = {}
        for _, row in self._merged_rows(list(jobs)):
            counts[row["job_id"]] = counts.get(row["job_id"], 0) + 1
        return counts

    def get_company_application_stats(self, company_id: str, now: datetime = None) -> dict:
        stats = {
            "total_applications": 0,
            "new_applications": 0,
            "reviewed_applications": 0,
            "interview_applications": 0,
            "hired_applications": 0,
            "rejected_applications": 0,
            "applications_this_week": 0,
            "applications_this_month": 0,
        }
        now = now or utcnow()
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        buckets = {
            "submitted": "new_applications",
            "reviewed": "reviewed_applications",
            "interview_scheduled": "interview_applications",
            "hired": "hired_applications",
            "rejected": "rejected_applications",
        }
        for app in self.get_company_applications(company_id):
            stats["total_applications"] += 1
            key = buckets.get(app["status"])
            if key:
                stats[key] += 1
            applied = parse_timestamp(app["applied_at"])
            if applied >= week_ago:
                stats["applications_this_week"] += 1
            if applied >= month_ago:
                stats["applications_this_month"] += 1
        return stats

    # --------------------------------------------------------
    # writes
    # --------------------------------------------------------

    def _publish(self, event_type: str, table: str, new: dict = None, old: dict = None):
        row = new or old
        company_id = self._job_company(row["job_id"])
        get_change_feed().publish(table, event_type, new=new, old=old, company_id=company_id)
        return company_id

    def update_application_status(self, application_id: str, status: str,
                                  notes: Optional[str] = None, reviewer: Optional[str] = None) -> dict:
        if status not in APPLICATION_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status '{status}'")

        now = now_iso()
        params = {"id": application_id, "status": status, "now": now}
        reviewed = ", reviewed_at = :now" if status == "reviewed" else ""
        updated_table = None

        with get_db_session() as db:
            result = db.execute(
                text(f"UPDATE job_applications SET status = :status, updated_at = :now{reviewed} WHERE id = :id"),
                params
            )
            if result.rowcount:
                updated_table = "job_applications"
            else:
                extra = reviewed
                if notes:
                    extra += ", reviewer_notes = :notes"
                    params["notes"] = notes
                if reviewer:
                    extra += ", reviewed_by = :reviewer"
                    params["reviewer"] = reviewer
                result = db.execute(
                    text(f"UPDATE applications SET status = :status, updated_at = :now{extra} WHERE id = :id"),
                    params
                )
                if result.rowcount:
                    updated_table = "applications"

        if not updated_table:
            raise HTTPException(status_code=404, detail=f"No application found with ID: {application_id}")

        logger.info("Application %s -> %s (%s)", application_id, status, updated_table)
        app = self.get_application(application_id)
        company_id = self._publish("UPDATE", updated_table, new=app)
        if status in NOTIFY_STATUSES:
            get_notification_service().record_for_status(app, status, company_id=company_id)
        return app

    def schedule_interview(self, application_id: str, interview_at, notes: Optional[str] = None) -> dict:
        """Set status interview_scheduled with the interview time and notes."""
        params = {
            "id": application_id,
            "status": "interview_scheduled",
            "at": interview_at.isoformat() if isinstance(interview_at, datetime) else interview_at,
            "notes": notes,
            "now": now_iso(),
        }
        updated_table = None
        with get_db_session() as db:
            for table in APPLICATION_TABLES:
                result = db.execute(
                    text(f"""
                        UPDATE {table}
                        SET status = :status, interview_scheduled_at = :at,
                            interviewer_notes = :notes, updated_at = :now
                        WHERE id = :id
                    """),
                    params
                )
                if result.rowcount:
                    updated_table = table
                    break

        if not updated_table:
            raise HTTPException(status_code=404, detail=f"No application found with ID: {application_id}")

        app = self.get_application(application_id)
        company_id = self._publish("UPDATE", updated_table, new=app)
        get_notification_service().record_for_status(
            app, "interview_scheduled", company_id=company_id, when=str(interview_at)
        )
        return app

    def delete_application(self, application_id: str) -> str:
        """Delete from whichever table holds the id. Returns that table name."""
        table, row = self._find(application_id)
        if not row:
            raise HTTPException(status_code=404, detail=f"No application found with ID: {application_id}")

        with get_db_session() as db:
            db.execute(text(f"DELETE FROM {table} WHERE id = :id"), {"id": application_id})
            db.execute(text("DELETE FROM notifications WHERE application_id = :id"), {"id": application_id})
            db.execute(
                text("""
                    UPDATE jobs SET total_applications = total_applications - 1
                    WHERE id = :job_id AND total_applications > 0
                """),
                {"job_id": row["job_id"]}
            )

        logger.info("Deleted application %s from %s", application_id, table)
        self._publish("DELETE", table, old=normalize_application(row, table))
        return table

    def submit_application(self, data: dict) -> dict:
        """
        Insert a kiosk/online application.

        `data` carries the ApplicationCreate fields. When an upload_id is given
        the resume comes from that QR upload, which is then marked as used.
        """
        job = fetch_one("SELECT id, status FROM jobs WHERE id = :id", {"id": data["job_id"]})
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        if job["status"] != "active":
            raise HTTPException(status_code=400, detail="Job is not accepting applications")

        resume_url = data.get("resume_url")
        upload_id = data.get("upload_id")
        if upload_id:
            upload = fetch_one(
                "SELECT public_url, is_processed FROM uploaded_files WHERE upload_id = :uid",
                {"uid": upload_id}
            )
            if not upload:
                raise HTTPException(status_code=404, detail="Uploaded resume not found")
            if upload["is_processed"]:
                raise HTTPException(status_code=409, detail="Uploaded resume is already attached to an application")
            resume_url = upload["public_url"]

        now = now_iso()
        row = {
            "id": str(uuid.uuid4()),
            "job_id": data["job_id"],
            "applicant_name": data["applicant_name"],
            "applicant_email": data.get("applicant_email"),
            "applicant_phone": data["applicant_phone"],
            "application_method": data.get("application_method") or "online",
            "resume_url": resume_url,
            "voice_transcript": data.get("voice_transcript"),
            "cover_letter": data.get("cover_letter"),
            "kiosk_id": data.get("kiosk_id"),
            "submission_location": data.get("submission_location"),
            "status": "submitted",
            "created_at": now,
            "updated_at": now,
        }
        with get_db_session() as db:
            db.execute(
                text("""
                    INSERT INTO applications (id, job_id, applicant_name, applicant_email, applicant_phone,
                        application_method, resume_url, voice_transcript, cover_letter, kiosk_id,
                        submission_location, status, created_at, updated_at)
                    VALUES (:id, :job_id, :applicant_name, :applicant_email, :applicant_phone,
                        :application_method, :resume_url, :voice_transcript, :cover_letter, :kiosk_id,
                        :submission_location, :status, :created_at, :updated_at)
                """),
                row
            )
            db.execute(
                text("UPDATE jobs SET total_applications = total_applications + 1 WHERE id = :id"),
                {"id": data["job_id"]}
            )
            if upload_id:
                get_upload_service().mark_used(db, upload_id, row["id"])

        logger.info("Application %s submitted for job %s via %s", row["id"], row["job_id"], row["application_method"])
        self._publish("INSERT", "applications", new=normalize_application(row, "applications"))
        return row


_applications: ApplicationService = None


def get_application_service() -> ApplicationService:
    global _applications
    if _applications is None:
        _applications = ApplicationService()
    return _applications
