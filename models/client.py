# models/client.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.common import Address
from models.enums import ClientSource, ClientStatus, CreditRating, LeadStatus, Priority


# -------------------------------------------------
# Shared contact fields (clients and leads)
# -------------------------------------------------
class ContactBase(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    alternate_phone: Optional[str] = None
    address: Address = Field(default_factory=Address)

    company: Optional[str] = None
    tax_number: Optional[str] = None

    source: ClientSource = ClientSource.other
    assigned_sales_rep: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    notes: str = ""

    credit_rating: Optional[CreditRating] = None
    payment_terms: Optional[str] = None

    last_contact_date: Optional[datetime] = None
    next_follow_up_date: Optional[datetime] = None


# -------------------------------------------------
# Clients
# -------------------------------------------------
class ClientCreate(ContactBase):
    status: ClientStatus = ClientStatus.lead


class ClientUpdate(BaseModel):
    """PATCH body. Totals are maintained by the job workflow, never set here."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    alternate_phone: Optional[str] = None
    address: Optional[Address] = None
    company: Optional[str] = None
    tax_number: Optional[str] = None
    status: Optional[ClientStatus] = None
    source: Optional[ClientSource] = None
    assigned_sales_rep: Optional[str] = None
    tags: Optional[List[str]] = None
    notes: Optional[str] = None
    credit_rating: Optional[CreditRating] = None
    payment_terms: Optional[str] = None
    next_follow_up_date: Optional[datetime] = None


class ClientSearch(BaseModel):
    search_term: Optional[str] = None
    status: Optional[ClientStatus] = None
    source: Optional[ClientSource] = None
    assigned_sales_rep: Optional[str] = None
    tags: Optional[List[str]] = None
    min_revenue: Optional[float] = None
    max_revenue: Optional[float] = None


class TagsPayload(BaseModel):
    tags: List[str]


class ContactPayload(BaseModel):
    next_follow_up_date: Optional[datetime] = None


# -------------------------------------------------
# Leads
# -------------------------------------------------
class LeadCreate(ContactBase):
    status: LeadStatus = LeadStatus.new
    priority: Priority = Priority.medium
    estimated_value: Optional[float] = None
    expected_close_date: Optional[datetime] = None


class LeadStatusUpdate(BaseModel):
    status: LeadStatus
    notes: Optional[str] = None
