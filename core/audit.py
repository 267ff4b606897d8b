# core/audit.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from core.config import settings
from core.errors import InvalidArgument, InvalidLogType
from core.logging_config import logger
from core.store import Collections, DocumentStore, QueryFilter
from models.activity_log import ActivityLogEntry
from models.enums import ActivityType, TargetType


# Actor id used for entries no user triggered directly (e.g. stock alerts)
SYSTEM_ACTOR = "system"


class AuditLogger:
    """
    Append-only writer for the activity log.

    The only store call used for writing is `create`; entries are never
    updated or deleted from here.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def log(
        self,
        type: Union[str, ActivityType],
        actor_id: str,
        description: str,
        metadata: Optional[Dict[str, Any]] = None,
        *,
        target_id: Optional[str] = None,
        target_type: Optional[Union[str, TargetType]] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        if not ActivityType.has_value(str(type)):
            raise InvalidLogType(f"Unknown activity type: {type!r}")
        if not actor_id:
            raise InvalidArgument("actor_id is required")
        if not description:
            raise InvalidArgument("description is required")
        if target_type is not None and not TargetType.has_value(str(target_type)):
            raise InvalidArgument(f"Unknown target type: {target_type!r}")

        entry = ActivityLogEntry(
            type=ActivityType(str(type)),
            actor_id=actor_id,
            target_id=target_id,
            target_type=TargetType(str(target_type)) if target_type is not None else None,
            description=description,
            metadata=metadata or {},
            timestamp=datetime.now(timezone.utc),
            ip=ip,
            user_agent=user_agent,
        )

        log_id = self.store.create(Collections.activity_logs.value, entry.model_dump(mode="json"))
        logger.debug(f"Activity logged: {entry.type} by {actor_id} ({log_id})")
        return log_id

    # ----------------------------------------------------------
    # Reads
    # ----------------------------------------------------------
    def for_actor(self, actor_id: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        return self.store.query(Collections.activity_logs.value, [
            QueryFilter.where("actor_id", "=", actor_id),
            QueryFilter.order_by("timestamp", descending=True),
            QueryFilter.limit(limit or settings.ACTIVITY_LOG_DEFAULT_LIMIT),
        ])

    def for_target(
        self,
        target_id: str,
        target_type: Union[str, TargetType],
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        return self.store.query(Collections.activity_logs.value, [
            QueryFilter.where("target_id", "=", target_id),
            QueryFilter.where("target_type", "=", str(target_type)),
            QueryFilter.order_by("timestamp", descending=True),
            QueryFilter.limit(limit or settings.ACTIVITY_LOG_DEFAULT_LIMIT),
        ])

    def recent(self, limit: Optional[int] = None, type: Optional[str] = None) -> List[Dict[str, Any]]:
        filters = []
        if type:
            if not ActivityType.has_value(type):
                raise InvalidLogType(f"Unknown activity type: {type!r}")
            filters.append(QueryFilter.where("type", "=", type))
        filters += [
            QueryFilter.order_by("timestamp", descending=True),
            QueryFilter.limit(limit or settings.ACTIVITY_LOG_DEFAULT_LIMIT),
        ]
        return self.store.query(Collections.activity_logs.value, filters)
