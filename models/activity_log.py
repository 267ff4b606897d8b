from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from models.enums import ActivityType, TargetType


class ActivityLogEntry(BaseModel):
    """One immutable audit record. Never updated after it is written."""

    type: ActivityType
    actor_id: str
    target_id: Optional[str] = None
    target_type: Optional[TargetType] = None
    description: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
    ip: Optional[str] = None
    user_agent: Optional[str] = None
