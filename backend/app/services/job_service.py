"""
Job marketplace: clients post paid jobs, other users apply, owners pick one.

STATE MACHINE
=============

  Job:          open --accept--> filled
                open --owner---> closed
  Application:  pending --> accepted | rejected   (both terminal)

Token coupling:
  - Posting debits `token_cost` from the owner through the ledger
  - Deleting a job that never received an application refunds it

Every multi-statement operation below (job insert + token spend,
accept target + fill job + reject siblings) runs inside the request's
single transaction, so a failure in any step rolls back the earlier ones.
"""

from typing import Optional

from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.base import utcnow
from app.models.job import Job, JobApplication
from app.models.custom_trip import CustomTripRequest
from app.models.user import User
from app.schemas.job import JobCreate, JobUpdate, JobApplicationCreate
from app.services import token_service, notification_service
from app.core.exceptions import (
    ApplicationNotFound,
    CustomTripNotFound,
    DuplicateApplication,
    HasApplications,
    InsufficientTokens,
    InvalidStatusTransition,
    JobNotFound,
    JobNotOpen,
    NotAuthorized,
)
from app.core.logging import get_logger
from app.core.metrics import record_job_transition

logger = get_logger(__name__)

POSITION_FILLED_FEEDBACK = "Position has been filled"


async def _get_live_job(db: AsyncSession, job_id: int) -> Job:
    result = await db.execute(select(Job).where(Job.id == job_id, Job.deleted_at.is_(None)))
    job = result.scalar_one_or_none()
    if not job:
        raise JobNotFound(f"Job {job_id} not found")
    return job


async def _get_owned_job(db: AsyncSession, job_id: int, owner_id: int) -> Job:
    job = await _get_live_job(db, job_id)
    if job.client_id != owner_id:
        logger.warning("job_ownership_denied", job_id=job_id, user_id=owner_id)
        raise NotAuthorized("Only the job owner can perform this action")
    return job


async def create_job(db: AsyncSession, client_id: int, job_data: JobCreate) -> Job:
    """
    Post a job and pay its token cost.

    Order: balance check -> insert (to obtain the job id used as the spend
    reference) -> conditional debit. A debit lost to a concurrent spend
    raises InsufficientBalance and the request rollback removes the job.
    """
    tokens = await token_service.get_balance(db, client_id)
    if tokens.balance < job_data.token_cost:
        logger.warning(
            "job_post_rejected",
            client_id=client_id,
            token_cost=job_data.token_cost,
            balance=tokens.balance,
        )
        raise InsufficientTokens(
            f"Insufficient tokens to create job post. Required: {job_data.token_cost}, "
            f"Available: {tokens.balance}"
        )

    if job_data.custom_trip_id is not None:
        result = await db.execute(
            select(CustomTripRequest.id).where(
                CustomTripRequest.id == job_data.custom_trip_id,
                CustomTripRequest.client_id == client_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise CustomTripNotFound()

    job = Job(client_id=client_id, status="open", **job_data.model_dump())
    db.add(job)
    await db.flush()
    await db.refresh(job)

    await token_service.spend_tokens(
        db,
        client_id,
        job.token_cost,
        reference_id=str(job.id),
        reference_type="job_post",
        description=f"Created job post: {job.title}",
    )

    record_job_transition("posted")
    logger.info("job_created", job_id=job.id, client_id=client_id, token_cost=job.token_cost)
    return job


async def get_client_jobs(db: AsyncSession, client_id: int) -> list[dict]:
    """Jobs owned by a client with their application counts."""
    result = await db.execute(
        select(Job, func.count(JobApplication.id).label("applications_count"))
        .outerjoin(JobApplication, JobApplication.job_id == Job.id)
        .where(Job.client_id == client_id, Job.deleted_at.is_(None))
        .group_by(Job.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    return [_job_summary(job, count) for job, count in result.all()]


async def get_job(db: AsyncSession, job_id: int) -> dict:
    """Job detail with the owner's name and the linked custom trip request, if any."""
    result = await db.execute(
        select(Job, User.name)
        .outerjoin(User, User.id == Job.client_id)
        .where(Job.id == job_id, Job.deleted_at.is_(None))
    )
    row = result.one_or_none()
    if row is None:
        raise JobNotFound(f"Job {job_id} not found")
    job, client_name = row

    custom_trip = None
    if job.custom_trip_id is not None:
        custom_trip = await db.get(CustomTripRequest, job.custom_trip_id)

    return {"job": job, "client_name": client_name, "custom_trip": custom_trip}


async def update_job(db: AsyncSession, job_id: int, owner_id: int, patch: JobUpdate) -> Job:
    """Edit an open job. Changing token_cost does not move any tokens."""
    job = await _get_owned_job(db, job_id, owner_id)
    if job.status != "open":
        raise JobNotOpen()

    changes = patch.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(job, field, value)
    await db.flush()
    await db.refresh(job)

    if changes.get("status") == "closed":
        record_job_transition("closed")
    logger.info("job_updated", job_id=job.id, fields=sorted(changes))
    return job


async def delete_job(db: AsyncSession, job_id: int, owner_id: int) -> Job:
    """Soft-delete a job without applications and refund its token cost."""
    job = await _get_owned_job(db, job_id, owner_id)

    application_count = (
        await db.execute(select(func.count(JobApplication.id)).where(JobApplication.job_id == job_id))
    ).scalar()
    if application_count:
        raise HasApplications()

    job.deleted_at = utcnow()
    await db.flush()
    await db.refresh(job)

    await token_service.refund_tokens(
        db,
        owner_id,
        job.token_cost,
        reference_id=str(job.id),
        reference_type="job_post_refund",
        description=f"Refund for deleted job post: {job.title}",
    )

    record_job_transition("deleted")
    logger.info("job_deleted", job_id=job.id, refunded=job.token_cost)
    return job


async def list_available_jobs(db: AsyncSession, limit: int = 20) -> list[dict]:
    """Open, non-deleted jobs, newest first, with applicant counts."""
    result = await db.execute(
        select(Job, User.name, func.count(JobApplication.id).label("applications_count"))
        .outerjoin(User, User.id == Job.client_id)
        .outerjoin(JobApplication, JobApplication.job_id == Job.id)
        .where(Job.status == "open", Job.deleted_at.is_(None))
        .group_by(Job.id, User.id, User.name)
        .order_by(Job.created_at.desc(), Job.id.desc())
        .limit(limit)
    )
    return [_job_summary(job, count, client_name=name) for job, name, count in result.all()]


def _job_summary(job: Job, applications_count: int, client_name: Optional[str] = None) -> dict:
    return {
        "id": job.id,
        "client_id": job.client_id,
        "title": job.title,
        "description": job.description,
        "token_cost": job.token_cost,
        "category": job.category,
        "location": job.location,
        "status": job.status,
        "application_deadline": job.application_deadline,
        "created_at": job.created_at,
        "client_name": client_name,
        "applications_count": int(applications_count or 0),
    }


async def apply_for_job(
    db: AsyncSession,
    job_id: int,
    applicant_id: int,
    application_data: JobApplicationCreate,
) -> JobApplication:
    result = await db.execute(
        select(Job).where(Job.id == job_id, Job.status == "open", Job.deleted_at.is_(None))
    )
    job = result.scalar_one_or_none()
    if not job:
        raise JobNotFound()

    existing = await db.execute(
        select(JobApplication.id).where(
            JobApplication.job_id == job_id,
            JobApplication.applicant_id == applicant_id,
        )
    )
    if existing.scalar_one_or_none() is not None:
        raise DuplicateApplication()

    links = application_data.portfolio_links
    application = JobApplication(
        job_id=job_id,
        applicant_id=applicant_id,
        status="pending",
        cover_letter=application_data.cover_letter,
        portfolio_links=[str(link) for link in links] if links else None,
    )
    db.add(application)
    try:
        await db.flush()
    except IntegrityError:
        # Lost the race against a concurrent application by the same user
        raise DuplicateApplication()
    await db.refresh(application)

    await notification_service.notify_job_update(
        db,
        job.client_id,
        "New job application",
        f"You received a new application for '{job.title}'",
        {"job_id": job.id, "application_id": application.id},
    )

    record_job_transition("applied")
    logger.info("job_application_created", job_id=job_id, applicant_id=applicant_id)
    return application


async def get_job_applicants(db: AsyncSession, job_id: int, owner_id: int) -> list[dict]:
    await _get_owned_job(db, job_id, owner_id)
    result = await db.execute(
        select(JobApplication, User.name, User.email)
        .outerjoin(User, User.id == JobApplication.applicant_id)
        .where(JobApplication.job_id == job_id)
        .order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
    )
    return [
        {**_application_fields(application), "applicant_name": name, "applicant_email": email}
        for application, name, email in result.all()
    ]


async def _get_application(db: AsyncSession, job_id: int, applicant_id: int) -> JobApplication:
    result = await db.execute(
        select(JobApplication).where(
            JobApplication.job_id == job_id,
            JobApplication.applicant_id == applicant_id,
        )
    )
    application = result.scalar_one_or_none()
    if not application:
        raise ApplicationNotFound()
    return application


def _ensure_decidable(job: Job, application: JobApplication) -> None:
    """Only pending applications on an open job can be accepted or rejected."""
    if job.status != "open":
        raise JobNotOpen(f"Job is {job.status}; applications can no longer be decided")
    if application.status != "pending":
        raise InvalidStatusTransition(f"Application already {application.status}")


async def accept_applicant(
    db: AsyncSession,
    job_id: int,
    applicant_id: int,
    owner_id: int,
    feedback: Optional[str] = None,
) -> JobApplication:
    """Accept one applicant, fill the job and reject every sibling application."""
    job = await _get_owned_job(db, job_id, owner_id)
    application = await _get_application(db, job_id, applicant_id)
    _ensure_decidable(job, application)
    now = utcnow()

    application.status = "accepted"
    application.status_updated_at = now
    application.feedback = feedback

    job.status = "filled"
    await db.flush()

    siblings = await db.execute(
        select(JobApplication).where(
            JobApplication.job_id == job_id,
            JobApplication.applicant_id != applicant_id,
            JobApplication.status == "pending",
        )
    )
    rejected_ids = []
    for sibling in siblings.scalars().all():
        sibling.status = "rejected"
        sibling.status_updated_at = now
        sibling.feedback = POSITION_FILLED_FEEDBACK
        rejected_ids.append(sibling.applicant_id)
    await db.flush()
    await db.refresh(application)

    await notification_service.notify_job_update(
        db,
        applicant_id,
        "Application accepted",
        f"Your application for '{job.title}' was accepted",
        {"job_id": job.id},
    )
    if rejected_ids:
        await notification_service.broadcast(
            db,
            rejected_ids,
            "Application closed",
            f"The position '{job.title}' has been filled",
            "job_update",
            {"job_id": job.id},
        )

    record_job_transition("accepted")
    logger.info(
        "job_applicant_accepted",
        job_id=job_id,
        applicant_id=applicant_id,
        siblings_rejected=len(rejected_ids),
    )
    return application


async def reject_applicant(
    db: AsyncSession,
    job_id: int,
    applicant_id: int,
    owner_id: int,
    feedback: Optional[str] = None,
) -> JobApplication:
    """Reject a single application. The job stays as it is."""
    job = await _get_owned_job(db, job_id, owner_id)
    application = await _get_application(db, job_id, applicant_id)
    _ensure_decidable(job, application)

    application.status = "rejected"
    application.status_updated_at = utcnow()
    application.feedback = feedback
    await db.flush()
    await db.refresh(application)

    await notification_service.notify_job_update(
        db,
        applicant_id,
        "Application rejected",
        f"Your application for '{job.title}' was not selected",
        {"job_id": job.id},
    )

    record_job_transition("rejected")
    logger.info("job_applicant_rejected", job_id=job_id, applicant_id=applicant_id)
    return application


async def get_user_applications(db: AsyncSession, applicant_id: int) -> list[dict]:
    result = await db.execute(
        select(JobApplication, Job.title, Job.status, Job.token_cost, User.name)
        .join(Job, Job.id == JobApplication.job_id)
        .outerjoin(User, User.id == Job.client_id)
        .where(JobApplication.applicant_id == applicant_id)
        .order_by(JobApplication.applied_at.desc(), JobApplication.id.desc())
    )
    return [
        {
            **_application_fields(application),
            "job_title": title,
            "job_status": status,
            "job_token_cost": token_cost,
            "client_name": client_name,
        }
        for application, title, status, token_cost, client_name in result.all()
    ]


def _application_fields(application: JobApplication) -> dict:
    return {
        "id": application.id,
        "job_id": application.job_id,
        "applicant_id": application.applicant_id,
        "status": application.status,
        "cover_letter": application.cover_letter,
        "portfolio_links": application.portfolio_links,
        "feedback": application.feedback,
        "applied_at": application.applied_at,
        "status_updated_at": application.status_updated_at,
    }
