from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]

    @classmethod
    def has_value(cls, value) -> bool:
        return value in cls._value2member_map_


# -----------------------------------------------------
# USER ROLE
# -----------------------------------------------------
class Role(BaseStrEnum):
    """Account roles, listed from most to least privileged."""

    owner = "owner"
    admin = "admin"
    sales_rep = "sales_rep"
    technician = "technician"
    guest = "guest"


# -----------------------------------------------------
# ACTIVITY LOG TYPE
# -----------------------------------------------------
class ActivityType(BaseStrEnum):
    """Closed set of audit event kinds."""

    user_created = "user_created"
    user_updated = "user_updated"
    role_changed = "role_changed"
    user_deactivated = "user_deactivated"
    client_created = "client_created"
    client_updated = "client_updated"
    job_created = "job_created"
    job_updated = "job_updated"
    job_completed = "job_completed"
    proposal_generated = "proposal_generated"
    proposal_sent = "proposal_sent"
    proposal_accepted = "proposal_accepted"
    proposal_rejected = "proposal_rejected"
    login = "login"
    logout = "logout"
    password_changed = "password_changed"
    file_uploaded = "file_uploaded"
    file_deleted = "file_deleted"
    system_backup = "system_backup"
    data_export = "data_export"
    settings_changed = "settings_changed"
    stock_updated = "stock_updated"
    other = "other"


class TargetType(BaseStrEnum):
    user = "user"
    client = "client"
    lead = "lead"
    job = "job"
    proposal = "proposal"
    product = "product"


# -----------------------------------------------------
# CLIENTS & LEADS
# -----------------------------------------------------
class ClientStatus(BaseStrEnum):
    lead = "lead"
    prospect = "prospect"
    customer = "customer"
    inactive = "inactive"


class ClientSource(BaseStrEnum):
    website = "website"
    referral = "referral"
    social_media = "social_media"
    advertisement = "advertisement"
    cold_call = "cold_call"
    other = "other"


class CreditRating(BaseStrEnum):
    excellent = "excellent"
    good = "good"
    fair = "fair"
    poor = "poor"


class LeadStatus(BaseStrEnum):
    """Sales pipeline state for a lead."""

    new = "new"
    contacted = "contacted"
    qualified = "qualified"
    proposal_sent = "proposal_sent"
    negotiating = "negotiating"
    won = "won"
    lost = "lost"


class Priority(BaseStrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


# -----------------------------------------------------
# JOBS
# -----------------------------------------------------
class JobStatus(BaseStrEnum):
    """Workflow state for an installation job."""

    pending = "pending"
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"
    on_hold = "on_hold"


# -----------------------------------------------------
# PRODUCTS
# -----------------------------------------------------
class ProductCategory(BaseStrEnum):
    panel = "panel"
    inverter = "inverter"
    battery = "battery"
    mounting = "mounting"
    electrical = "electrical"
    monitoring = "monitoring"
    other = "other"


class StockOperation(BaseStrEnum):
    add = "add"
    subtract = "subtract"
    set = "set"


# -----------------------------------------------------
# PROPOSALS
# -----------------------------------------------------
class ProposalStatus(BaseStrEnum):
    draft = "draft"
    sent = "sent"
    viewed = "viewed"
    accepted = "accepted"
    rejected = "rejected"
    expired = "expired"


class Theme(BaseStrEnum):
    light = "light"
    dark = "dark"
