"""
Job Service - job postings and the admin moderation queue.

List-valued columns (requirements, benefits, skills) are stored as JSON text
and decoded on the way out. Every job returned carries the display strings
used by job cards (salary range, job type, experience, time since posted).
"""

import json
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import text

from udyoga_setu.db.postgres import get_db_session, execute_raw_sql, fetch_one, in_clause
from udyoga_setu.services.realtime import get_change_feed
from udyoga_setu.utils.formatting import format_salary_range, format_job_type, format_experience, time_ago
from udyoga_setu.utils.timeutils import now_iso, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

LIST_FIELDS = ("requirements", "benefits", "skills")
BOOL_FIELDS = ("kiosk_enabled",)

MODERATION_QUEUE = ("pending", "under_review", "flagged")

# statuses an employer may set on their own job; going live again needs an admin approval
EMPLOYER_STATUSES = ("draft", "paused", "closed")

JOB_SELECT = """
    SELECT j.*, c.name AS company_name
    FROM jobs j
    LEFT JOIN companies c ON j.company_id = c.id
"""


def _decode_list(value) -> list:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return json.loads(value)


def serialize_job(row: dict) -> dict:
    """Decode stored columns and attach display fields."""
    job = dict(row)
    for name in LIST_FIELDS:
        job[name] = _decode_list(job.get(name))
    for name in BOOL_FIELDS:
        job[name] = bool(job.get(name))
    for name in ("salary_min", "salary_max"):
        if job.get(name) is not None:
            job[name] = float(job[name])
    job["salary_display"] = format_salary_range(job.get("salary_min"), job.get("salary_max"))
    job["job_type_display"] = format_job_type(job["job_type"])
    job["experience_display"] = format_experience(job["experience_level"])
    job["posted_ago"] = time_ago(job["created_at"])
    return job


def _to_columns(data: dict) -> dict:
    """Encode request values for storage."""
    cols = {}
    for key, value in data.items():
        if key in LIST_FIELDS and value is not None:
            value = json.dumps(list(value))
        elif hasattr(value, "value"):
            value = value.value
        elif isinstance(value, datetime):
            value = value.isoformat()
        cols[key] = value
    return cols


class JobService:

    # --------------------------------------------------------
    # reads
    # --------------------------------------------------------

    def get_job(self, job_id: str) -> dict:
        row = fetch_one(JOB_SELECT + " WHERE j.id = :id", {"id": job_id})
        if not row:
            raise HTTPException(status_code=404, detail="Job not found")
        return serialize_job(row)

    def list_active_jobs(self, search: Optional[str] = None, location: Optional[str] = None,
                         job_type: Optional[str] = None, page: int = 1,
                         page_size: int = 10) -> Tuple[List[dict], int]:
        """Public listing of active jobs, newest first. Returns (jobs, total)."""
        where = " WHERE j.status = 'active'"
        params = {}
        if search:
            where += " AND LOWER(j.title) LIKE LOWER(:search)"
            params["search"] = f"%{search}%"
        if location:
            where += " AND LOWER(j.location) LIKE LOWER(:location)"
            params["location"] = f"%{location}%"
        if job_type:
            where += " AND j.job_type = :job_type"
            params["job_type"] = job_type

        total = fetch_one("SELECT COUNT(*) AS n FROM jobs j" + where, params)["n"]

        params.update({"limit": page_size, "offset": (page - 1) * page_size})
        rows = execute_raw_sql(
            JOB_SELECT + where + " ORDER BY j.created_at DESC LIMIT :limit OFFSET :offset",
            params
        )
        return [serialize_job(r) for r in rows], total

    def list_company_jobs(self, company_id: str) -> List[dict]:
        rows = execute_raw_sql(
            JOB_SELECT + " WHERE j.company_id = :cid ORDER BY j.created_at DESC",
            {"cid": company_id}
        )
        return [serialize_job(r) for r in rows]

    def get_jobs_by_status(self, statuses: List[str]) -> List[dict]:
        """Jobs in any of the given statuses, oldest first (moderation order)."""
        if not statuses:
            return []
        fragment, params = in_clause("status", statuses)
        rows = execute_raw_sql(
            JOB_SELECT + f" WHERE j.status IN {fragment} ORDER BY j.created_at ASC",
            params
        )
        return [serialize_job(r) for r in rows]

    def get_pending_jobs(self) -> List[dict]:
        return self.get_jobs_by_status(list(MODERATION_QUEUE))

    # --------------------------------------------------------
    # employer writes
    # --------------------------------------------------------

    def create_job(self, company_id: str, data: dict) -> dict:
        now = now_iso()
        cols = _to_columns(data)
        cols.update({
            "id": str(uuid.uuid4()),
            "company_id": company_id,
            "status": "active",
            "created_at": now,
            "updated_at": now,
        })
        names = ", ".join(cols)
        binds = ", ".join(f":{k}" for k in cols)
        with get_db_session() as db:
            db.execute(text(f"INSERT INTO jobs ({names}) VALUES ({binds})"), cols)

        logger.info("Job %s created by company %s", cols["id"], company_id)
        job = self.get_job(cols["id"])
        get_change_feed().publish("jobs", "INSERT", new=job, company_id=company_id)
        return job

    def _owned(self, job_id: str, company_id: str) -> dict:
        row = fetch_one(
            "SELECT id, company_id, status, salary_min, salary_max FROM jobs WHERE id = :id", {"id": job_id}
        )
        if not row or row["company_id"] != company_id:
            raise HTTPException(status_code=404, detail="Job not found or access denied")
        return row

    def _update(self, job_id: str, updates: dict) -> dict:
        cols = _to_columns(updates)
        cols["updated_at"] = now_iso()
        assignments = ", ".join(f"{k} = :{k}" for k in cols)
        with get_db_session() as db:
            result = db.execute(text(f"UPDATE jobs SET {assignments} WHERE id = :job_id"), {**cols, "job_id": job_id})
        if not result.rowcount:
            raise HTTPException(status_code=404, detail="Job not found")
        job = self.get_job(job_id)
        get_change_feed().publish("jobs", "UPDATE", new=job, company_id=job["company_id"])
        return job

    def update_job(self, job_id: str, company_id: str, updates: dict) -> dict:
        """Employer edit of their own job. Fields left out or sent as null are unchanged."""
        current = self._owned(job_id, company_id)
        updates = {k: v for k, v in updates.items() if v is not None}
        if not updates:
            raise HTTPException(status_code=400, detail="No fields to update")

        status = updates.get("status")
        if status and status != current["status"] and status not in EMPLOYER_STATUSES:
            raise HTTPException(
                status_code=403,
                detail=f"Employers can only set status to {', '.join(EMPLOYER_STATUSES)}"
            )

        salary_min = updates.get("salary_min", current["salary_min"])
        salary_max = updates.get("salary_max", current["salary_max"])
        if salary_min and salary_max and salary_min > salary_max:
            raise HTTPException(status_code=400, detail="salary_min cannot exceed salary_max")
        return self._update(job_id, updates)

    def delete_job(self, job_id: str, company_id: str):
        """Delete a job together with its applications."""
        self._owned(job_id, company_id)
        with get_db_session() as db:
            db.execute(text("DELETE FROM applications WHERE job_id = :id"), {"id": job_id})
            db.execute(text("DELETE FROM job_applications WHERE job_id = :id"), {"id": job_id})
            db.execute(text("DELETE FROM jobs WHERE id = :id"), {"id": job_id})
        logger.info("Job %s deleted", job_id)
        get_change_feed().publish("jobs", "DELETE", old={"id": job_id}, company_id=company_id)

    # --------------------------------------------------------
    # moderation (admin)
    # --------------------------------------------------------

    def _moderate(self, job_id: str, status: str, moderator: Optional[str] = None,
                  notes: Optional[str] = None, **extra) -> dict:
        updates = {"status": status, "moderated_at": now_iso(), **extra}
        if moderator:
            updates["moderated_by"] = moderator
        if notes:
            updates["moderation_notes"] = notes
        job = self._update(job_id, updates)
        logger.info("Job %s moderated -> %s", job_id, status)
        return job

    def approve_job(self, job_id: str, moderator: Optional[str] = None, notes: Optional[str] = None) -> dict:
        return self._moderate(job_id, "active", moderator, notes)

    def reject_job(self, job_id: str, moderator: Optional[str] = None, notes: Optional[str] = None) -> dict:
        return self._moderate(job_id, "rejected", moderator, notes)

    def flag_job(self, job_id: str, reason: str, moderator: Optional[str] = None) -> dict:
        return self._moderate(job_id, "flagged", moderator, flagged_reason=reason, priority="high")

    def request_job_edits(self, job_id: str, notes: str, moderator: Optional[str] = None) -> dict:
        return self._moderate(job_id, "under_review", moderator, notes)

    def update_job_priority(self, job_id: str, priority: str) -> dict:
        return self._update(job_id, {"priority": priority})

    def _bulk(self, job_ids: List[str], status: str, moderator: Optional[str], notes: Optional[str]) -> int:
        if not job_ids:
            return 0
        now = now_iso()
        params = {"status": status, "now": now}
        sets = "status = :status, moderated_at = :now, updated_at = :now"
        if moderator:
            sets += ", moderated_by = :moderator"
            params["moderator"] = moderator
        if notes:
            sets += ", moderation_notes = :notes"
            params["notes"] = notes
        fragment, id_params = in_clause("job", job_ids)
        with get_db_session() as db:
            result = db.execute(text(f"UPDATE jobs SET {sets} WHERE id IN {fragment}"), {**params, **id_params})
        logger.info("Bulk %s: %d of %d jobs", status, result.rowcount, len(job_ids))
        return result.rowcount

    def bulk_approve_jobs(self, job_ids: List[str], moderator: Optional[str] = None,
                          notes: Optional[str] = None) -> int:
        return self._bulk(job_ids, "active", moderator, notes)

    def bulk_reject_jobs(self, job_ids: List[str], moderator: Optional[str] = None,
                         notes: Optional[str] = None) -> int:
        return self._bulk(job_ids, "rejected", moderator, notes)

    def get_moderation_stats(self, now: datetime = None) -> dict:
        now = now or utcnow()
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        jobs = execute_raw_sql("SELECT status, created_at, moderated_at FROM jobs")

        def decided_today(status):
            return sum(
                1 for j in jobs
                if j["status"] == status and j["moderated_at"] and parse_timestamp(j["moderated_at"]) >= today
            )

        reviewed = [j for j in jobs if j["moderated_at"] and j["status"] in ("active", "rejected")]
        avg_hours = 0.0
        if reviewed:
            total = sum(
                (parse_timestamp(j["moderated_at"]) - parse_timestamp(j["created_at"])).total_seconds()
                for j in reviewed
            )
            avg_hours = round(total / len(reviewed) / 3600, 1)

        return {
            "total": len(jobs),
            "pending": sum(1 for j in jobs if j["status"] == "pending"),
            "under_review": sum(1 for j in jobs if j["status"] == "under_review"),
            "flagged": sum(1 for j in jobs if j["status"] == "flagged"),
            "approved_today": decided_today("active"),
            "rejected_today": decided_today("rejected"),
            "avg_review_time": avg_hours,
        }


_jobs: JobService = None


def get_job_service() -> JobService:
    global _jobs
    if _jobs is None:
        _jobs = JobService()
    return _jobs
