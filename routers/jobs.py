# routers/jobs.py

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.config import settings
from core.identity import Principal
from dependencies.auth import get_current_user
from dependencies.services import get_job_manager
from models.job import (
    CustomerFeedback,
    FieldWork,
    JobCreate,
    JobPricing,
    JobSchedule,
    JobSearch,
    JobStatusUpdate,
    JobUpdate,
    TechnicianAssignment,
)
from services.job_manager import JobManager


router = APIRouter(
    prefix="/jobs",
    tags=["Jobs"],
)


# ============================================================
# LIST / SEARCH / STATS
# ============================================================
@router.get("", summary="List Jobs")
def list_jobs(
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=100),
    cursor: Optional[int] = Query(None, ge=0),
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    page = manager.list_jobs(page_size, cursor)
    return {"success": True, **page.model_dump()}


@router.post("/search", summary="Search Jobs")
def search_jobs(
    filters: JobSearch,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    return {"success": True, "data": manager.search_jobs(filters.model_dump(exclude_unset=True))}


@router.get("/range", summary="Jobs within a date range")
def jobs_by_date_range(
    start: datetime,
    end: datetime,
    field: str = Query("scheduled_date"),
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    return {"success": True, "data": manager.get_jobs_by_date_range(start, end, field)}


@router.get("/stats", summary="Job statistics")
def job_stats(
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    return {"success": True, "data": manager.get_job_stats()}


@router.get("/workload/{technician_id}", summary="Technician workload")
def technician_workload(
    technician_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    return {"success": True, "data": manager.get_technician_workload(technician_id)}


# ============================================================
# GET JOB
# ============================================================
@router.get("/{job_id}", summary="Get Job")
def get_job(
    job_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    return {"success": True, "data": manager.jobs.require(job_id)}


@router.get("/{job_id}/activity", summary="Activity history for a job")
def job_activity(
    job_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    return {"success": True, "data": manager.get_job_activity(job_id)}


# ============================================================
# CREATE / UPDATE
# ============================================================
@router.post(
    "",
    summary="Create Job",
    description="""
    Assigns the next `JOB-YYYYMM-NNNN` number and refreshes the client's
    totals. Sales reps may only create jobs assigned to themselves.
    """,
)
def create_job(
    payload: JobCreate,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    job_id = manager.create_job(payload, current_user)
    return {"success": True, "data": {"id": job_id}}


@router.patch("/{job_id}", summary="Update Job")
def update_job(
    job_id: str,
    payload: JobUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    changes = manager.update_job(job_id, payload.model_dump(exclude_unset=True), current_user)
    return {"success": True, "data": {"id": job_id, "changes": changes}}


@router.post("/{job_id}/status", summary="Change job status")
def update_job_status(
    job_id: str,
    payload: JobStatusUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    manager.update_job_status(job_id, payload.status, current_user, payload.notes)
    return {"success": True}


# ============================================================
# FIELD OPERATIONS
# ============================================================
@router.post("/{job_id}/technician", summary="Assign technician")
def assign_technician(
    job_id: str,
    payload: TechnicianAssignment,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    manager.assign_technician(job_id, payload.technician_id, current_user)
    return {"success": True}


@router.post("/{job_id}/schedule", summary="Schedule job")
def schedule_job(
    job_id: str,
    payload: JobSchedule,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    manager.schedule_job(job_id, payload.scheduled_date, current_user, payload.estimated_duration)
    return {"success": True}


@router.post("/{job_id}/field-work", summary="Add field notes and photos")
def add_field_work(
    job_id: str,
    payload: FieldWork,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    manager.add_field_work(
        job_id,
        current_user,
        field_notes=payload.field_notes,
        photos=payload.photos,
        completion_photos=payload.completion_photos,
    )
    return {"success": True}


@router.post("/{job_id}/pricing", summary="Update job pricing")
def update_pricing(
    job_id: str,
    payload: JobPricing,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    manager.update_job_pricing(job_id, payload.model_dump(exclude_unset=True), current_user)
    return {"success": True}


@router.post("/{job_id}/feedback", summary="Record customer feedback")
def record_feedback(
    job_id: str,
    payload: CustomerFeedback,
    current_user: Principal = Depends(get_current_user),
    manager: JobManager = Depends(get_job_manager),
):
    manager.record_customer_feedback(
        job_id,
        payload.rating,
        current_user,
        feedback=payload.feedback,
        customer_signature=payload.customer_signature,
    )
    return {"success": True}
