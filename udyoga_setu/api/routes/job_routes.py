"""
Job Routes

POST /jobs - Create job posting (employer only)
GET /jobs - List active jobs with filters
GET /jobs/{job_id} - Get job details
PUT /jobs/{job_id} - Update job (owner only)
DELETE /jobs/{job_id} - Delete job (owner only)
GET /jobs/{job_id}/applications - Applications for one job (owner only)
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional

from udyoga_setu.core.auth import get_current_employer
from udyoga_setu.services.job_service import get_job_service
from udyoga_setu.services.application_service import get_application_service
from udyoga_setu.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, ApplicationResponse, MessageResponse
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(job: JobCreate, company: dict = Depends(get_current_employer)):
    """Create a new job posting. It is listed immediately."""
    if job.salary_min and job.salary_max and job.salary_min > job.salary_max:
        raise HTTPException(status_code=400, detail="salary_min cannot exceed salary_max")
    return get_job_service().create_job(company["company_id"], job.model_dump())


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    search: Optional[str] = Query(None, description="Search in title"),
    location: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None)
):
    """List active job postings with filters and pagination."""
    jobs, total = get_job_service().list_active_jobs(
        search=search, location=location, job_type=job_type, page=page, page_size=page_size
    )
    return JobListResponse(jobs=jobs, total=total, page=page, page_size=page_size)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: str):
    """Get details of a specific job."""
    return get_job_service().get_job(job_id)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(job_id: str, data: JobUpdate, company: dict = Depends(get_current_employer)):
    """Update a job posting. Only the fields sent are changed."""
    updates = data.model_dump(exclude_none=True)
    return get_job_service().update_job(job_id, company["company_id"], updates)


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: str, company: dict = Depends(get_current_employer)):
    get_job_service().delete_job(job_id, company["company_id"])
    return MessageResponse(message="Job deleted successfully")


@router.get("/{job_id}/applications", response_model=List[ApplicationResponse])
async def get_job_applications(job_id: str, company: dict = Depends(get_current_employer)):
    job = get_job_service().get_job(job_id)
    if job["company_id"] != company["company_id"]:
        raise HTTPException(status_code=404, detail="Job not found or access denied")
    return get_application_service().get_job_applications(job_id)
