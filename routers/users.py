# routers/users.py

from fastapi import APIRouter, Depends, Query, Request

from core.identity import Principal
from core.permissions import Capability
from dependencies.auth import get_caller_id, get_current_user, requires_permission
from dependencies.services import get_user_manager, get_user_role_service
from models.enums import Role
from models.user import UserCreate, UserUpdate
from services.user_manager import UserManager
from services.user_roles import UserRoleService


router = APIRouter(
    prefix="/users",
    tags=["Users"],
)


# ============================================================
# LIST / SEARCH / STATS (manage_users)
# ============================================================
@router.get(
    "",
    summary="List users by role",
    dependencies=[Depends(requires_permission(Capability.manage_users))],
)
def list_users(
    role: Role,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    manager: UserManager = Depends(get_user_manager),
):
    return {"success": True, "data": manager.get_users_by_role(role, page, page_size)}


@router.get(
    "/search",
    summary="Search active users by name or email",
    dependencies=[Depends(requires_permission(Capability.manage_users))],
)
def search_users(
    q: str = Query(..., min_length=1),
    manager: UserManager = Depends(get_user_manager),
):
    return {"success": True, "data": manager.search_users(q)}


@router.get(
    "/stats",
    summary="User counts by role and status",
    dependencies=[Depends(requires_permission(Capability.manage_users))],
)
def user_stats(manager: UserManager = Depends(get_user_manager)):
    return {"success": True, "data": manager.get_user_stats()}


# ============================================================
# CREATE / UPDATE
# ============================================================
@router.post("", summary="Create a user document")
def create_user(
    payload: UserCreate,
    current_user: Principal = Depends(get_current_user),
    manager: UserManager = Depends(get_user_manager),
):
    user_id = manager.create_user(payload, current_user)
    return {"success": True, "data": {"id": user_id}}


@router.patch("/{user_id}", summary="Update profile or preferences")
def update_user(
    user_id: str,
    payload: UserUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: UserManager = Depends(get_user_manager),
):
    changes = manager.update_user(user_id, payload, current_user)
    return {"success": True, "data": {"id": user_id, "changes": changes}}


@router.post(
    "/{user_id}/role",
    summary="Assign a role to a user",
    description="Same rules and effects as `/functions/set-user-role`: identity claim first, then the user document, then one `role_changed` entry.",
)
def change_user_role(
    user_id: str,
    role: Role,
    request: Request,
    caller_id: str = Depends(get_caller_id),
    service: UserRoleService = Depends(get_user_role_service),
):
    ip = request.client.host if request.client else None
    return service.set_user_role(caller_id, user_id, role.value, ip=ip)


# ============================================================
# LOGIN STAMP
# ============================================================
@router.post("/me/login", summary="Record a login for the current user")
def record_login(
    current_user: Principal = Depends(get_current_user),
    manager: UserManager = Depends(get_user_manager),
):
    manager.record_login(current_user.id)
    return {"success": True}
