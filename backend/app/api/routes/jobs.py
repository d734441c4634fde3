"""
Job marketplace endpoints.

The public available-jobs listing is cached in Redis; every mutation
below commits and then drops that cache.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.common import ApiResponse
from app.schemas.custom_trip import CustomTripResponse
from app.schemas.job import (
    JobCreate,
    JobUpdate,
    JobResponse,
    JobDetailResponse,
    JobSummary,
    JobApplicationCreate,
    JobApplicationResponse,
    ApplicantAction,
    ApplicantResponse,
    MyApplicationResponse,
)
from app.services import job_service
from app.services.cache_service import (
    get_cached_available_jobs,
    set_cached_available_jobs,
    invalidate_job_cache,
)
from app.core.config import get_settings
from app.core.security import get_active_user_id
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()
router = APIRouter(prefix="/jobs", tags=["Jobs"])


async def _commit_and_invalidate(db: AsyncSession) -> None:
    """Commit first so a concurrent listing read cannot re-cache the old rows."""
    await db.commit()
    await invalidate_job_cache()


@router.post("", response_model=ApiResponse[JobResponse], status_code=status.HTTP_201_CREATED)
async def create_job(
    job_data: JobCreate,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Post a job. Its token_cost is debited from the poster's balance."""
    job = await job_service.create_job(db, user_id, job_data)
    await _commit_and_invalidate(db)
    return ApiResponse(message="Job post created successfully", data=JobResponse.model_validate(job))


@router.get("", response_model=ApiResponse[list[JobSummary]])
async def list_my_jobs(
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    rows = await job_service.get_client_jobs(db, user_id)
    return ApiResponse(message="Jobs retrieved successfully", data=[JobSummary(**row) for row in rows])


@router.get("/available", response_model=ApiResponse[list[JobSummary]])
async def list_available_jobs(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Open jobs, newest first. Served from cache when possible."""
    limit = limit or settings.AVAILABLE_JOBS_LIMIT

    cached = await get_cached_available_jobs(limit)
    if cached is not None:
        logger.info("available_jobs_cache_hit", limit=limit)
        return ApiResponse(message="Available jobs retrieved successfully", data=cached)

    jobs = [JobSummary(**row) for row in await job_service.list_available_jobs(db, limit)]
    await set_cached_available_jobs(limit, [job.model_dump(mode="json") for job in jobs])
    return ApiResponse(message="Available jobs retrieved successfully", data=jobs)


@router.get("/my-applications", response_model=ApiResponse[list[MyApplicationResponse]])
async def list_my_applications(
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    rows = await job_service.get_user_applications(db, user_id)
    return ApiResponse(
        message="Applications retrieved successfully",
        data=[MyApplicationResponse(**row) for row in rows],
    )


@router.get("/{job_id}", response_model=ApiResponse[JobDetailResponse])
async def get_job(
    job_id: int,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    detail = await job_service.get_job(db, job_id)
    custom_trip = detail["custom_trip"]
    data = JobDetailResponse(
        **JobResponse.model_validate(detail["job"]).model_dump(),
        client_name=detail["client_name"],
        custom_trip=CustomTripResponse.model_validate(custom_trip) if custom_trip else None,
    )
    return ApiResponse(message="Job retrieved successfully", data=data)


@router.put("/{job_id}", response_model=ApiResponse[JobResponse])
async def update_job(
    job_id: int,
    patch: JobUpdate,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    job = await job_service.update_job(db, job_id, user_id, patch)
    await _commit_and_invalidate(db)
    return ApiResponse(message="Job post updated successfully", data=JobResponse.model_validate(job))


@router.delete("/{job_id}", response_model=ApiResponse[JobResponse])
async def delete_job(
    job_id: int,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Soft-delete a job that has no applications and refund its token cost."""
    job = await job_service.delete_job(db, job_id, user_id)
    await _commit_and_invalidate(db)
    return ApiResponse(message="Job post deleted and tokens refunded", data=JobResponse.model_validate(job))


@router.post(
    "/{job_id}/apply",
    response_model=ApiResponse[JobApplicationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def apply_for_job(
    job_id: int,
    application_data: JobApplicationCreate,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    application = await job_service.apply_for_job(db, job_id, user_id, application_data)
    await _commit_and_invalidate(db)
    return ApiResponse(
        message="Application submitted successfully",
        data=JobApplicationResponse.model_validate(application),
    )


@router.get("/{job_id}/applicants", response_model=ApiResponse[list[ApplicantResponse]])
async def list_applicants(
    job_id: int,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    rows = await job_service.get_job_applicants(db, job_id, user_id)
    return ApiResponse(message="Applicants retrieved successfully", data=[ApplicantResponse(**row) for row in rows])


@router.post(
    "/{job_id}/applicants/{applicant_id}/accept",
    response_model=ApiResponse[JobApplicationResponse],
)
async def accept_applicant(
    job_id: int,
    applicant_id: int,
    action: Optional[ApplicantAction] = None,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Accept an applicant. The job becomes filled and every other application is rejected."""
    application = await job_service.accept_applicant(
        db, job_id, applicant_id, user_id, feedback=action.feedback if action else None
    )
    await _commit_and_invalidate(db)
    return ApiResponse(
        message="Applicant accepted successfully",
        data=JobApplicationResponse.model_validate(application),
    )


@router.post(
    "/{job_id}/applicants/{applicant_id}/reject",
    response_model=ApiResponse[JobApplicationResponse],
)
async def reject_applicant(
    job_id: int,
    applicant_id: int,
    action: Optional[ApplicantAction] = None,
    user_id: int = Depends(get_active_user_id),
    db: AsyncSession = Depends(get_db),
):
    application = await job_service.reject_applicant(
        db, job_id, applicant_id, user_id, feedback=action.feedback if action else None
    )
    await _commit_and_invalidate(db)
    return ApiResponse(
        message="Applicant rejected",
        data=JobApplicationResponse.model_validate(application),
    )
