"""
Moderation Routes (admin only)

GET /moderation/queue - Jobs awaiting moderation, oldest first
GET /moderation/jobs?status=... - Jobs by moderation status
GET /moderation/stats - Queue and review-time stats
POST /moderation/jobs/{job_id}/approve
POST /moderation/jobs/{job_id}/reject
POST /moderation/jobs/{job_id}/flag
POST /moderation/jobs/{job_id}/request-edits
PUT /moderation/jobs/{job_id}/priority
POST /moderation/bulk/approve
POST /moderation/bulk/reject
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from udyoga_setu.core.auth import get_current_admin
from udyoga_setu.services.job_service import get_job_service
from udyoga_setu.schemas.schemas import (
    JobResponse, JobStatus, ModerationDecision, FlagRequest, EditRequest, PriorityUpdate,
    BulkModerationRequest, BulkModerationResponse, ModerationStatsResponse
)

router = APIRouter(prefix="/moderation", tags=["Moderation"], dependencies=[Depends(get_current_admin)])


@router.get("/queue", response_model=List[JobResponse])
async def moderation_queue():
    """Jobs that are pending, under review or flagged."""
    return get_job_service().get_pending_jobs()


@router.get("/jobs", response_model=List[JobResponse])
async def jobs_by_status(status: List[JobStatus] = Query(...)):
    return get_job_service().get_jobs_by_status([s.value for s in status])


@router.get("/stats", response_model=ModerationStatsResponse)
async def moderation_stats():
    return get_job_service().get_moderation_stats()


@router.post("/jobs/{job_id}/approve", response_model=JobResponse)
async def approve_job(job_id: str, data: Optional[ModerationDecision] = None,
                      admin: dict = Depends(get_current_admin)):
    return get_job_service().approve_job(job_id, admin["user_id"], data.notes if data else None)


@router.post("/jobs/{job_id}/reject", response_model=JobResponse)
async def reject_job(job_id: str, data: Optional[ModerationDecision] = None,
                     admin: dict = Depends(get_current_admin)):
    return get_job_service().reject_job(job_id, admin["user_id"], data.notes if data else None)


@router.post("/jobs/{job_id}/flag", response_model=JobResponse)
async def flag_job(job_id: str, data: FlagRequest, admin: dict = Depends(get_current_admin)):
    """Flag for review; flagged jobs get high priority."""
    return get_job_service().flag_job(job_id, data.reason, admin["user_id"])


@router.post("/jobs/{job_id}/request-edits", response_model=JobResponse)
async def request_edits(job_id: str, data: EditRequest, admin: dict = Depends(get_current_admin)):
    return get_job_service().request_job_edits(job_id, data.notes, admin["user_id"])


@router.put("/jobs/{job_id}/priority", response_model=JobResponse)
async def update_priority(job_id: str, data: PriorityUpdate):
    return get_job_service().update_job_priority(job_id, data.priority.value)


@router.post("/bulk/approve", response_model=BulkModerationResponse)
async def bulk_approve(data: BulkModerationRequest, admin: dict = Depends(get_current_admin)):
    return {"updated": get_job_service().bulk_approve_jobs(data.job_ids, admin["user_id"], data.notes)}


@router.post("/bulk/reject", response_model=BulkModerationResponse)
async def bulk_reject(data: BulkModerationRequest, admin: dict = Depends(get_current_admin)):
    return {"updated": get_job_service().bulk_reject_jobs(data.job_ids, admin["user_id"], data.notes)}
