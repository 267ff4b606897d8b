# models/proposal.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.enums import ProposalStatus


class SystemDesign(BaseModel):
    total_capacity: float = 0
    panel_count: int = 0
    panel_type: str = ""
    inverter_type: str = ""
    battery_included: bool = False
    battery_capacity: Optional[float] = None
    estimated_annual_production: float = 0
    roof_area: float = 0


class ProposalPricing(BaseModel):
    system_cost: float = 0
    installation_cost: float = 0
    permits_cost: float = 0
    total_cost: float = 0
    tax_amount: float = 0
    final_amount: float = 0
    currency: str = "CAD"
    payment_terms: str = ""


class LineItem(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    unit_price: float
    total_price: float
    description: Optional[str] = None


class ProposalCreate(BaseModel):
    title: str
    client_id: str
    job_id: Optional[str] = None
    valid_until: datetime
    system_design: SystemDesign = Field(default_factory=SystemDesign)
    pricing: ProposalPricing = Field(default_factory=ProposalPricing)
    line_items: List[LineItem] = Field(default_factory=list)
    customer_notes: Optional[str] = None
    internal_notes: Optional[str] = None


class ProposalStatusUpdate(BaseModel):
    status: ProposalStatus
    reason: Optional[str] = None
