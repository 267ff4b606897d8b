# tests/test_job_manager.py

"""
Tests for the job workflow and client total recomputation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from core.errors import InvalidArgument, NotFound, PermissionDenied, ValidationError
from core.numbering import job_number_prefix
from models.enums import JobStatus, Role
from models.job import JobCreate
from services.client_manager import ClientManager
from services.job_manager import JobManager

from conftest import activity_of_type, make_principal


@pytest.fixture
def clients(store, audit):
    return ClientManager(store, audit)


@pytest.fixture
def jobs(store, audit, clients):
    return JobManager(store, audit, clients)


@pytest.fixture
def client_id(store):
    return store.create("clients", {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "total_jobs": 0,
        "total_revenue": 0,
    })


def job_payload(client_id, **overrides):
    data = {
        "title": "Rooftop install",
        "description": "Ten panel rooftop installation",
        "client_id": client_id,
    }
    data.update(overrides)
    return JobCreate(**data)


# ============================================================
# Create
# ============================================================
def test_create_job_numbers_and_totals(jobs, store, owner, client_id):
    first = jobs.create_job(job_payload(client_id), owner)
    second = jobs.create_job(job_payload(client_id), owner)

    prefix = job_number_prefix()
    assert store.get_by_id("jobs", first)["job_number"] == f"{prefix}0001"
    assert store.get_by_id("jobs", second)["job_number"] == f"{prefix}0002"
    assert store.get_by_id("jobs", first)["status"] == "pending"

    client = store.get_by_id("clients", client_id)
    assert client["total_jobs"] == 2
    assert client["total_revenue"] == 0

    assert len(activity_of_type(store, "job_created")) == 2


def test_create_job_for_missing_client(jobs, owner):
    with pytest.raises(NotFound):
        jobs.create_job(job_payload("missing"), owner)


def test_create_job_validation(jobs, store, owner, client_id):
    past = datetime.now(timezone.utc) - timedelta(days=2)
    with pytest.raises(ValidationError) as exc:
        jobs.create_job(job_payload(client_id, title="Fix", scheduled_date=past, final_price=-1), owner)

    assert "Job title must be at least 5 characters" in exc.value.messages
    assert "Scheduled date cannot be in the past" in exc.value.messages
    assert "Final price cannot be negative" in exc.value.messages
    assert store.all("jobs") == []


def test_sales_rep_can_only_create_own_jobs(jobs, client_id):
    rep = make_principal(Role.sales_rep, "rep-1")
    jobs.create_job(job_payload(client_id, assigned_sales_rep="rep-1"), rep)
    with pytest.raises(PermissionDenied):
        jobs.create_job(job_payload(client_id, assigned_sales_rep="rep-2"), rep)


# ============================================================
# Completion and client totals
# ============================================================
def test_completion_recomputes_client_totals(jobs, store, owner, client_id):
    a = jobs.create_job(job_payload(client_id, final_price=3000), owner)
    b = jobs.create_job(job_payload(client_id, final_price=4000), owner)
    jobs.create_job(job_payload(client_id, final_price=5000), owner)

    jobs.update_job_status(a, JobStatus.completed, owner)
    jobs.update_job(b, {"status": "completed"}, owner)

    client = store.get_by_id("clients", client_id)
    assert client["total_revenue"] == 7000
    assert client["total_jobs"] == 3

    assert store.get_by_id("jobs", a)["actual_end_date"]
    assert store.get_by_id("jobs", b)["actual_end_date"]
    assert len(activity_of_type(store, "job_completed")) == 2


def test_repricing_completed_job_updates_revenue(jobs, store, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id, final_price=3000), owner)
    jobs.update_job_status(job_id, "completed", owner)

    jobs.update_job_pricing(job_id, {"final_price": 3500}, owner)
    assert store.get_by_id("clients", client_id)["total_revenue"] == 3500

    jobs.update_job(job_id, {"final_price": 3600}, owner)
    assert store.get_by_id("clients", client_id)["total_revenue"] == 3600


def test_status_transitions_stamp_dates(jobs, store, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id), owner)

    jobs.update_job_status(job_id, "in_progress", owner, notes="Crew on site")
    job = store.get_by_id("jobs", job_id)
    assert job["actual_start_date"]
    assert "actual_end_date" not in job

    entries = activity_of_type(store, "job_updated")
    assert entries[-1]["metadata"]["old_status"] == "pending"
    assert entries[-1]["description"].endswith("Crew on site")


def test_invalid_status(jobs, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id), owner)
    with pytest.raises(ValidationError):
        jobs.update_job_status(job_id, "done", owner)


def test_update_job_immutable_fields(jobs, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id), owner)
    with pytest.raises(InvalidArgument):
        jobs.update_job(job_id, {"job_number": "JOB-1"}, owner)
    with pytest.raises(InvalidArgument):
        jobs.update_job(job_id, {"client_id": "other"}, owner)


def test_update_missing_job_is_not_found_before_field_checks(jobs, owner):
    with pytest.raises(NotFound):
        jobs.update_job("missing", {"job_number": "JOB-1"}, owner)


def test_update_job_noop_not_logged(jobs, store, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id), owner)
    jobs.update_job(job_id, {"title": "Rooftop install"}, owner)
    assert activity_of_type(store, "job_updated") == []


# ============================================================
# Field operations
# ============================================================
def test_technician_field_work(jobs, store, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id), owner)
    tech = make_principal(Role.technician, "tech-1")

    with pytest.raises(PermissionDenied):
        jobs.assign_technician(job_id, "tech-1", make_principal(Role.guest))

    jobs.assign_technician(job_id, "tech-1", owner)
    jobs.add_field_work(job_id, tech, field_notes="Roof in good shape", photos=["a.jpg"])
    jobs.add_field_work(job_id, tech, photos=["b.jpg"])

    job = store.get_by_id("jobs", job_id)
    assert job["photos"] == ["a.jpg", "b.jpg"]
    assert job["field_notes"] == "Roof in good shape"

    with pytest.raises(PermissionDenied):
        jobs.add_field_work(job_id, make_principal(Role.technician, "tech-2"), field_notes="x")


def test_schedule_and_feedback(jobs, store, owner, client_id):
    job_id = jobs.create_job(job_payload(client_id), owner)
    when = datetime.now(timezone.utc) + timedelta(days=7)

    jobs.schedule_job(job_id, when, owner, estimated_duration=6)
    job = store.get_by_id("jobs", job_id)
    assert job["status"] == "scheduled"
    assert job["estimated_duration"] == 6

    with pytest.raises(ValidationError):
        jobs.record_customer_feedback(job_id, 6, owner)
    jobs.record_customer_feedback(job_id, 5, owner, feedback="Great crew")
    assert store.get_by_id("jobs", job_id)["customer_rating"] == 5


# ============================================================
# Queries
# ============================================================
def test_workload_and_stats(jobs, owner, client_id):
    soon = datetime.now(timezone.utc) + timedelta(days=3)
    a = jobs.create_job(job_payload(client_id, assigned_technician="tech-1", final_price=1000), owner)
    b = jobs.create_job(job_payload(client_id, assigned_technician="tech-1"), owner)
    jobs.schedule_job(b, soon, owner, estimated_duration=4)
    jobs.update_job_status(a, "completed", owner)

    workload = jobs.get_technician_workload("tech-1")
    assert [j["id"] for j in workload["scheduled_jobs"]] == [b]
    assert [j["id"] for j in workload["completed_this_month"]] == [a]

    stats = jobs.get_job_stats()
    assert stats["total"] == 2
    assert stats["completion_rate"] == 50
    assert stats["total_revenue"] == 1000


def test_search_and_date_range(jobs, owner, client_id):
    soon = datetime.now(timezone.utc) + timedelta(days=3)
    a = jobs.create_job(job_payload(client_id, title="Battery retrofit", scheduled_date=soon), owner)
    jobs.create_job(job_payload(client_id), owner)

    assert [j["id"] for j in jobs.search_jobs({"search_term": "battery"})] == [a]

    window = jobs.get_jobs_by_date_range(soon - timedelta(days=1), soon + timedelta(days=1))
    assert [j["id"] for j in window] == [a]

    with pytest.raises(InvalidArgument):
        jobs.get_jobs_by_date_range(soon, soon, field="created_by")
