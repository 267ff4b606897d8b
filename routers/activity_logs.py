# routers/activity_logs.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core import guard
from core.audit import AuditLogger
from core.identity import Principal
from core.permissions import Capability
from dependencies.auth import get_current_user, requires_permission
from dependencies.services import get_audit_logger
from models.enums import TargetType


router = APIRouter(
    prefix="/activity-logs",
    tags=["Activity Logs"],
)


# ============================================================
# READ-ONLY: entries are written by the services, never here
# ============================================================
@router.get(
    "",
    summary="Recent activity",
    description="Newest first. Optionally filtered by activity `type`.",
    dependencies=[Depends(requires_permission(Capability.view_reports))],
)
def recent_activity(
    type: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1, le=500),
    audit: AuditLogger = Depends(get_audit_logger),
):
    return {"success": True, "data": audit.recent(limit, type)}


@router.get("/me", summary="My activity")
def my_activity(
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: Principal = Depends(get_current_user),
    audit: AuditLogger = Depends(get_audit_logger),
):
    return {"success": True, "data": audit.for_actor(current_user.id, limit)}


@router.get("/actor/{actor_id}", summary="Activity performed by a user")
def actor_activity(
    actor_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: Principal = Depends(get_current_user),
    audit: AuditLogger = Depends(get_audit_logger),
):
    if actor_id != current_user.id:
        guard.require_capability(current_user, Capability.manage_users)
    return {"success": True, "data": audit.for_actor(actor_id, limit)}


@router.get("/target/{target_type}/{target_id}", summary="Activity on an entity")
def target_activity(
    target_type: TargetType,
    target_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    current_user: Principal = Depends(get_current_user),
    audit: AuditLogger = Depends(get_audit_logger),
):
    return {"success": True, "data": audit.for_target(target_id, target_type, limit)}
