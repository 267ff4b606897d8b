# services/job_manager.py

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from core import guard
from core.audit import AuditLogger
from core.diff import compute_changes, has_changes
from core.errors import InvalidArgument, ValidationError, raise_if_invalid
from core.identity import Principal
from core.logging_config import logger
from core.numbering import LatestRecordSequence, SequenceStrategy, job_number_prefix
from core.store import Collections, DocumentStore, QueryFilter
from models.enums import ActivityType, JobStatus, Priority, TargetType
from services.base import EntityRepository, utc_now
from services.client_manager import ClientManager
from services.validation import as_datetime, is_negative, to_document, too_short

IMMUTABLE_FIELDS = ("job_number", "client_id")
MONEY_FIELDS = {
    "estimated_cost": "Estimated cost",
    "actual_cost": "Actual cost",
    "quoted_price": "Quoted price",
    "final_price": "Final price",
}
DATE_RANGE_FIELDS = ("scheduled_date", "actual_start_date", "actual_end_date")


def _positive(value: Any) -> bool:
    return isinstance(value, (int, float)) and value > 0


class JobManager:
    """
    Installation jobs. Completing a job (or repricing a completed one)
    recomputes the owning client's totals from its full job list.
    """

    def __init__(
        self,
        store: DocumentStore,
        audit: Optional[AuditLogger] = None,
        clients: Optional[ClientManager] = None,
        sequence: Optional[SequenceStrategy] = None,
    ):
        self.jobs = EntityRepository(store, Collections.jobs.value, "Job")
        self.audit = audit or AuditLogger(store)
        self.client_manager = clients or ClientManager(store, self.audit)
        self.sequence = sequence or LatestRecordSequence(store, Collections.jobs.value, "job_number")

    # ==========================================================
    # Validation
    # ==========================================================
    @staticmethod
    def validate_job_data(data: Dict[str, Any], now: Optional[datetime] = None) -> List[str]:
        errors = []
        now = now or utc_now()

        if data.get("title") is not None and too_short(data["title"], 5):
            errors.append("Job title must be at least 5 characters")
        if data.get("description") is not None and too_short(data["description"], 10):
            errors.append("Job description must be at least 10 characters")
        if data.get("system_size") is not None and not _positive(data["system_size"]):
            errors.append("System size must be greater than 0")
        if data.get("panel_count") is not None and not _positive(data["panel_count"]):
            errors.append("Panel count must be greater than 0")

        for field, label in MONEY_FIELDS.items():
            if is_negative(data.get(field)):
                errors.append(f"{label} cannot be negative")

        scheduled = as_datetime(data.get("scheduled_date"))
        if scheduled and scheduled < now:
            errors.append("Scheduled date cannot be in the past")

        start = as_datetime(data.get("actual_start_date"))
        end = as_datetime(data.get("actual_end_date"))
        if start and end and start > end:
            errors.append("Start date cannot be after end date")

        rating = data.get("customer_rating")
        if rating is not None and not (1 <= rating <= 5):
            errors.append("Customer rating must be between 1 and 5")

        if data.get("status") and not JobStatus.has_value(data["status"]):
            errors.append("Invalid job status")
        if data.get("priority") and not Priority.has_value(data["priority"]):
            errors.append("Invalid job priority")

        return errors

    # ==========================================================
    # Client totals
    # ==========================================================
    def recompute_client_totals(self, client_id: str) -> Dict[str, Any]:
        """
        total_jobs = every job of the client; total_revenue = final_price
        summed over completed jobs. Always recomputed from scratch.
        """
        jobs = self.jobs.where("client_id", client_id)
        revenue = sum(
            j.get("final_price") or 0
            for j in jobs
            if j.get("status") == JobStatus.completed.value
        )
        self.client_manager.update_client_stats(client_id, len(jobs), revenue)
        return {"total_jobs": len(jobs), "total_revenue": revenue}

    # ==========================================================
    # Create / update
    # ==========================================================
    def create_job(self, payload: Union[BaseModel, Dict[str, Any]], actor: Principal) -> str:
        data = to_document(payload)
        data.pop("job_number", None)

        client = self.client_manager.clients.require(data.get("client_id"))
        guard.require_job_access(actor, data)
        raise_if_invalid(self.validate_job_data(data))

        job_number = self.sequence.next_value(job_number_prefix())
        record = {
            **data,
            "job_number": job_number,
            "status": data.get("status") or JobStatus.pending.value,
            "priority": data.get("priority") or Priority.medium.value,
        }

        job_id = self.jobs.create(record, actor.id)
        self.recompute_client_totals(client["id"])
        logger.info(f"Job created: {job_number} ({job_id}) by {actor.id}")

        client_name = f"{client.get('first_name', '')} {client.get('last_name', '')}".strip()
        self.audit.log(
            ActivityType.job_created,
            actor.id,
            f"Created new job: {job_number} for {client_name}",
            {"job_number": job_number, "client_id": client["id"], "job_status": record["status"]},
            target_id=job_id,
            target_type=TargetType.job,
        )
        return job_id

    def update_job(self, job_id: str, updates: Union[BaseModel, Dict[str, Any]], actor: Principal) -> Dict[str, Any]:
        data = to_document(updates, partial=True)
        existing = self.jobs.require(job_id)

        for field in IMMUTABLE_FIELDS:
            if field in data:
                raise InvalidArgument(f"{field} cannot be changed")

        guard.require_job_access(actor, existing)
        raise_if_invalid(self.validate_job_data(data))

        completing = (
            data.get("status") == JobStatus.completed.value
            and existing.get("status") != JobStatus.completed.value
        )
        if completing and not existing.get("actual_end_date") and "actual_end_date" not in data:
            data["actual_end_date"] = utc_now()

        changes = compute_changes(existing, data)
        self.jobs.update(job_id, data, actor.id)

        repriced = "final_price" in changes and existing.get("status") == JobStatus.completed.value
        if completing or repriced:
            self.recompute_client_totals(existing["client_id"])

        if has_changes(changes) and actor.id:
            self.audit.log(
                ActivityType.job_updated,
                actor.id,
                f"Updated job: {existing.get('job_number')}",
                {"changes": changes},
                target_id=job_id,
                target_type=TargetType.job,
            )
            if completing:
                self._log_completion(job_id, {**existing, **data}, actor)
        return changes

    def update_job_status(
        self,
        job_id: str,
        status: Union[str, JobStatus],
        actor: Principal,
        notes: Optional[str] = None,
    ) -> None:
        job = self.jobs.require(job_id)
        guard.require_job_access(actor, job)

        status = str(status)
        if not JobStatus.has_value(status):
            raise ValidationError(["Invalid job status"])

        old_status = job.get("status")
        updates: Dict[str, Any] = {"status": status}
        now = utc_now()

        if status == JobStatus.in_progress.value and not job.get("actual_start_date"):
            updates["actual_start_date"] = now
        elif status == JobStatus.completed.value and not job.get("actual_end_date"):
            updates["actual_end_date"] = now

        self.jobs.update(job_id, updates, actor.id)

        if status == JobStatus.completed.value:
            self.recompute_client_totals(job["client_id"])

        description = f"Updated job status: {job.get('job_number')} from {old_status} to {status}"
        if notes:
            description += f" - {notes}"

        self.audit.log(
            ActivityType.job_updated,
            actor.id,
            description,
            {"old_status": old_status, "new_status": status, "notes": notes},
            target_id=job_id,
            target_type=TargetType.job,
        )
        if status == JobStatus.completed.value:
            self._log_completion(job_id, {**job, **updates}, actor)

    def _log_completion(self, job_id: str, job: Dict[str, Any], actor: Principal):
        completed_at = as_datetime(job.get("actual_end_date")) or utc_now()
        self.audit.log(
            ActivityType.job_completed,
            actor.id,
            f"Completed job: {job.get('job_number')}",
            {"completion_date": completed_at.isoformat(), "final_price": job.get("final_price")},
            target_id=job_id,
            target_type=TargetType.job,
        )

    # ----------------------------------------------------------
    # Field operations
    # ----------------------------------------------------------
    def assign_technician(self, job_id: str, technician_id: str, actor: Principal) -> None:
        job = self.jobs.require(job_id)
        guard.require_job_access(actor, job)

        old_technician = job.get("assigned_technician")
        self.jobs.update(job_id, {"assigned_technician": technician_id}, actor.id)

        self.audit.log(
            ActivityType.job_updated,
            actor.id,
            f"Assigned technician to job: {job.get('job_number')}",
            {"old_technician": old_technician, "new_technician": technician_id},
            target_id=job_id,
            target_type=TargetType.job,
        )

    def schedule_job(
        self,
        job_id: str,
        scheduled_date: datetime,
        actor: Principal,
        estimated_duration: Optional[float] = None,
    ) -> None:
        job = self.jobs.require(job_id)
        guard.require_job_access(actor, job)

        updates: Dict[str, Any] = {
            "scheduled_date": scheduled_date,
            "status": JobStatus.scheduled.value,
        }
        if estimated_duration:
            updates["estimated_duration"] = estimated_duration
        raise_if_invalid(self.validate_job_data(to_document(updates)))

        self.jobs.update(job_id, updates, actor.id)

        self.audit.log(
            ActivityType.job_updated,
            actor.id,
            f"Scheduled job: {job.get('job_number')} for {scheduled_date.date().isoformat()}",
            {"scheduled_date": scheduled_date.isoformat(), "estimated_duration": estimated_duration},
            target_id=job_id,
            target_type=TargetType.job,
        )

    def add_field_work(
        self,
        job_id: str,
        actor: Principal,
        field_notes: Optional[str] = None,
        photos: Optional[List[str]] = None,
        completion_photos: Optional[List[str]] = None,
    ) -> None:
        job = self.jobs.require(job_id)
        guard.require_job_access(actor, job)

        updates: Dict[str, Any] = {}
        if field_notes:
            updates["field_notes"] = field_notes
        if photos:
            updates["photos"] = [*(job.get("photos") or []), *photos]
        if completion_photos:
            updates["completion_photos"] = [*(job.get("completion_photos") or []), *completion_photos]

        if not updates:
            return

        self.jobs.update(job_id, updates, actor.id)
        self.audit.log(
            ActivityType.job_updated,
            actor.id,
            f"Added field work to job: {job.get('job_number')}",
            {
                "field_notes_added": bool(field_notes),
                "photos_added": len(photos or []),
                "completion_photos_added": len(completion_photos or []),
            },
            target_id=job_id,
            target_type=TargetType.job,
        )

    def update_job_pricing(self, job_id: str, pricing: Union[BaseModel, Dict[str, Any]], actor: Principal) -> None:
        data = {k: v for k, v in to_document(pricing, partial=True).items() if k in MONEY_FIELDS}

        job = self.jobs.require(job_id)
        guard.require_job_access(actor, job)
        raise_if_invalid(self.validate_job_data(data))

        self.jobs.update(job_id, data, actor.id)

        if "final_price" in data and job.get("status") == JobStatus.completed.value:
            self.recompute_client_totals(job["client_id"])

        self.audit.log(
            ActivityType.job_updated,
            actor.id,
            f"Updated pricing for job: {job.get('job_number')}",
            {"pricing_updates": data},
            target_id=job_id,
            target_type=TargetType.job,
        )

    def record_customer_feedback(
        self,
        job_id: str,
        rating: int,
        actor: Principal,
        feedback: Optional[str] = None,
        customer_signature: Optional[str] = None,
    ) -> None:
        job = self.jobs.require(job_id)
        guard.require_job_access(actor, job)
        raise_if_invalid(self.validate_job_data({"customer_rating": rating}))

        updates: Dict[str, Any] = {"customer_rating": rating}
        if feedback:
            updates["customer_feedback"] = feedback
        if customer_signature:
            updates["customer_signature"] = customer_signature

        self.jobs.update(job_id, updates, actor.id)

        self.audit.log(
            ActivityType.job_updated,
            actor.id,
            f"Recorded customer feedback for job: {job.get('job_number')} ({rating}/5 stars)",
            {
                "customer_rating": rating,
                "feedback_provided": bool(feedback),
                "signature_provided": bool(customer_signature),
            },
            target_id=job_id,
            target_type=TargetType.job,
        )

    # ==========================================================
    # Queries
    # ==========================================================
    def get_jobs_by_date_range(self, start: datetime, end: datetime, field: str = "scheduled_date") -> List[Dict[str, Any]]:
        if field not in DATE_RANGE_FIELDS:
            raise InvalidArgument(f"Cannot filter jobs by {field}")
        return self.jobs.query([
            QueryFilter.where(field, ">=", start),
            QueryFilter.where(field, "<=", end),
            QueryFilter.order_by(field),
        ])

    def get_technician_workload(self, technician_id: str) -> Dict[str, Any]:
        jobs = self.jobs.where("assigned_technician", technician_id)
        now = utc_now()
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)

        active = [j for j in jobs if j.get("status") in (JobStatus.in_progress.value, JobStatus.scheduled.value)]
        upcoming = [
            j for j in jobs
            if j.get("status") == JobStatus.scheduled.value
            and (as_datetime(j.get("scheduled_date")) or now) >= now
        ]
        completed_this_month = []
        for job in jobs:
            finished = as_datetime(job.get("actual_end_date"))
            if job.get("status") == JobStatus.completed.value and finished and finished >= month_start:
                completed_this_month.append(job)

        total_hours = 0.0
        for job in jobs:
            start = as_datetime(job.get("actual_start_date"))
            end = as_datetime(job.get("actual_end_date"))
            if start and end:
                total_hours += (end - start).total_seconds() / 3600
            else:
                total_hours += job.get("estimated_duration") or 0

        return {
            "active_jobs": active,
            "scheduled_jobs": upcoming,
            "completed_this_month": completed_this_month,
            "total_hours": total_hours,
        }

    def get_job_stats(self) -> Dict[str, Any]:
        jobs = self.jobs.all()
        by_status: Dict[str, int] = {}
        by_priority: Dict[str, int] = {}
        revenue = 0
        completed = 0
        ratings = []

        for job in jobs:
            by_status[job.get("status")] = by_status.get(job.get("status"), 0) + 1
            by_priority[job.get("priority")] = by_priority.get(job.get("priority"), 0) + 1
            revenue += job.get("final_price") or 0
            if job.get("status") == JobStatus.completed.value:
                completed += 1
            if job.get("customer_rating"):
                ratings.append(job["customer_rating"])

        return {
            "total": len(jobs),
            "by_status": by_status,
            "by_priority": by_priority,
            "total_revenue": revenue,
            "average_job_value": revenue / len(jobs) if jobs else 0,
            "completion_rate": completed / len(jobs) * 100 if jobs else 0,
            "average_rating": sum(ratings) / len(ratings) if ratings else 0,
        }

    def search_jobs(self, filters: Union[BaseModel, Dict[str, Any], None] = None) -> List[Dict[str, Any]]:
        f = to_document(filters, partial=True)
        jobs = self.jobs.all()

        term = (f.get("search_term") or "").lower()
        if term:
            jobs = [
                j for j in jobs
                if term in (j.get("job_number") or "").lower()
                or term in (j.get("title") or "").lower()
                or term in (j.get("description") or "").lower()
            ]
        for field in ("status", "priority", "client_id", "assigned_technician", "assigned_sales_rep"):
            if f.get(field):
                jobs = [j for j in jobs if j.get(field) == f[field]]

        start = as_datetime(f.get("start_date"))
        end = as_datetime(f.get("end_date"))
        if start and end:
            jobs = [
                j for j in jobs
                if as_datetime(j.get("scheduled_date"))
                and start <= as_datetime(j.get("scheduled_date")) <= end
            ]

        def prices(job):
            return [p for p in (job.get("final_price"), job.get("quoted_price")) if p]

        if f.get("min_value") is not None:
            jobs = [j for j in jobs if any(p >= f["min_value"] for p in prices(j))]
        if f.get("max_value") is not None:
            jobs = [j for j in jobs if any(p <= f["max_value"] for p in prices(j))]

        return jobs

    def get_job_activity(self, job_id: str) -> List[Dict[str, Any]]:
        return self.audit.for_target(job_id, TargetType.job)

    def list_jobs(self, page_size: int, cursor: Optional[int] = None):
        return self.jobs.query_paginated(
            [QueryFilter.order_by("created_at", descending=True)],
            page_size,
            cursor,
        )
