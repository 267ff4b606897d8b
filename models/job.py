# models/job.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.common import SiteAddress
from models.enums import JobStatus, Priority


class JobCreate(BaseModel):
    title: str
    description: str
    client_id: str

    status: JobStatus = JobStatus.pending
    priority: Priority = Priority.medium
    assigned_technician: Optional[str] = None
    assigned_sales_rep: Optional[str] = None

    scheduled_date: Optional[datetime] = None
    estimated_duration: Optional[float] = None

    site_address: SiteAddress = Field(default_factory=SiteAddress)

    system_size: Optional[float] = None
    panel_count: Optional[int] = None
    inverter_type: Optional[str] = None
    roof_type: Optional[str] = None
    roof_condition: Optional[str] = None
    shading_issues: Optional[bool] = None
    electrical_upgrade_required: Optional[bool] = None

    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    quoted_price: Optional[float] = None
    final_price: Optional[float] = None

    inspection_required: Optional[bool] = None


class JobUpdate(BaseModel):
    """PATCH body. `job_number` and `client_id` are fixed at creation."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[JobStatus] = None
    priority: Optional[Priority] = None
    assigned_technician: Optional[str] = None
    assigned_sales_rep: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    estimated_duration: Optional[float] = None
    actual_start_date: Optional[datetime] = None
    actual_end_date: Optional[datetime] = None
    site_address: Optional[SiteAddress] = None
    system_size: Optional[float] = None
    panel_count: Optional[int] = None
    inverter_type: Optional[str] = None
    roof_type: Optional[str] = None
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    quoted_price: Optional[float] = None
    final_price: Optional[float] = None
    field_notes: Optional[str] = None
    inspection_date: Optional[datetime] = None
    inspection_passed: Optional[bool] = None
    inspection_notes: Optional[str] = None


class JobStatusUpdate(BaseModel):
    status: JobStatus
    notes: Optional[str] = None


class TechnicianAssignment(BaseModel):
    technician_id: str


class JobSchedule(BaseModel):
    scheduled_date: datetime
    estimated_duration: Optional[float] = None


class FieldWork(BaseModel):
    field_notes: Optional[str] = None
    photos: List[str] = Field(default_factory=list)
    completion_photos: List[str] = Field(default_factory=list)


class JobPricing(BaseModel):
    estimated_cost: Optional[float] = None
    actual_cost: Optional[float] = None
    quoted_price: Optional[float] = None
    final_price: Optional[float] = None


class CustomerFeedback(BaseModel):
    rating: int
    feedback: Optional[str] = None
    customer_signature: Optional[str] = None


class JobSearch(BaseModel):
    search_term: Optional[str] = None
    status: Optional[JobStatus] = None
    priority: Optional[Priority] = None
    client_id: Optional[str] = None
    assigned_technician: Optional[str] = None
    assigned_sales_rep: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
