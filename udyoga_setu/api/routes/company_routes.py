"""
Company Routes

POST /companies/profile - Create company profile
GET /companies/profile - Get own profile
PUT /companies/profile - Update profile
GET /companies/jobs - Get company's jobs
GET /companies/applications - Applications received (both tables merged)
GET /companies/applications/recent - Latest applications for the activity feed
GET /companies/applications/counts - Application count per job
GET /companies/stats - Applicant pipeline stats
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Dict, List

from udyoga_setu.core.auth import get_current_user, get_current_employer
from udyoga_setu.services.company_service import get_company_service
from udyoga_setu.services.job_service import get_job_service
from udyoga_setu.services.application_service import get_application_service
from udyoga_setu.schemas.schemas import (
    CompanyCreate, CompanyUpdate, CompanyResponse, JobResponse,
    ApplicationResponse, ApplicationStatsResponse
)

router = APIRouter(prefix="/companies", tags=["Companies"])


@router.post("/profile", response_model=CompanyResponse, status_code=201)
async def create_profile(data: CompanyCreate, user: dict = Depends(get_current_user)):
    """Create company profile. User must be registered as employer."""
    if user["role"] != "employer":
        raise HTTPException(status_code=403, detail="Only employer accounts can create company profiles")
    return get_company_service().create_company(user["user_id"], data.model_dump())


@router.get("/profile", response_model=CompanyResponse)
async def get_profile(company: dict = Depends(get_current_employer)):
    """Get current company's profile."""
    return get_company_service().get_company(company["company_id"])


@router.put("/profile", response_model=CompanyResponse)
async def update_profile(data: CompanyUpdate, company: dict = Depends(get_current_employer)):
    """Update company profile."""
    updates = data.model_dump(exclude_unset=True, exclude_none=True)
    return get_company_service().update_company(company["company_id"], updates)


@router.get("/jobs", response_model=List[JobResponse])
async def get_company_jobs(company: dict = Depends(get_current_employer)):
    """Get all jobs posted by this company."""
    return get_job_service().list_company_jobs(company["company_id"])


@router.get("/applications", response_model=List[ApplicationResponse])
async def get_applications(company: dict = Depends(get_current_employer)):
    """All applications for this company's jobs, newest first."""
    return get_application_service().get_company_applications(company["company_id"])


@router.get("/applications/recent", response_model=List[ApplicationResponse])
async def get_recent_applications(
    limit: int = Query(10, ge=1, le=100),
    company: dict = Depends(get_current_employer)
):
    return get_application_service().get_recent_applications(company["company_id"], limit)


@router.get("/applications/counts", response_model=Dict[str, int])
async def get_application_counts(company: dict = Depends(get_current_employer)):
    return get_application_service().get_job_application_counts(company["company_id"])


@router.get("/stats", response_model=ApplicationStatsResponse)
async def get_stats(company: dict = Depends(get_current_employer)):
    """Pipeline counts: new, reviewed, interview, hired, rejected, this week/month."""
    return get_application_service().get_company_application_stats(company["company_id"])
