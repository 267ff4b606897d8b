# -------------------------
# Enums
# -------------------------
from .enums import (
    ActivityType,
    ClientSource,
    ClientStatus,
    JobStatus,
    LeadStatus,
    Priority,
    ProductCategory,
    ProposalStatus,
    Role,
    StockOperation,
    TargetType,
)

# -------------------------
# User Models
# -------------------------
from .user import (
    UserCreate,
    UserUpdate,
    UserProfile,
    UserPreferences,
)

# -------------------------
# Client & Lead Models
# -------------------------
from .client import (
    ClientCreate,
    ClientUpdate,
    LeadCreate,
)

# -------------------------
# Job Models
# -------------------------
from .job import JobCreate, JobUpdate

# -------------------------
# Product Models
# -------------------------
from .product import ProductCreate, ProductUpdate

# -------------------------
# Proposal Models
# -------------------------
from .proposal import ProposalCreate

# -------------------------
# Activity Log
# -------------------------
from .activity_log import ActivityLogEntry

__all__ = [
    # enums
    "ActivityType",
    "ClientSource",
    "ClientStatus",
    "JobStatus",
    "LeadStatus",
    "Priority",
    "ProductCategory",
    "ProposalStatus",
    "Role",
    "StockOperation",
    "TargetType",

    # users
    "UserCreate",
    "UserUpdate",
    "UserProfile",
    "UserPreferences",

    # clients & leads
    "ClientCreate",
    "ClientUpdate",
    "LeadCreate",

    # jobs
    "JobCreate",
    "JobUpdate",

    # products
    "ProductCreate",
    "ProductUpdate",

    # proposals
    "ProposalCreate",

    # activity
    "ActivityLogEntry",
]
