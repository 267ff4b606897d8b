# routers/user_roles.py

from fastapi import APIRouter, Depends, Request

from dependencies.auth import get_caller_id
from dependencies.services import get_user_role_service
from models.user import (
    DeactivateUserRequest,
    GetUserRoleRequest,
    InitializeUserRoleRequest,
    ReactivateUserRequest,
    SetUserRoleRequest,
)
from services.user_roles import UserRoleService


router = APIRouter(
    prefix="/functions",
    tags=["User Roles"],
)


def _client_ip(request: Request):
    return request.client.host if request.client else None


# ============================================================
# SET USER ROLE
# ============================================================
@router.post(
    "/set-user-role",
    summary="Assign a role to a user",
    description="""
    Owners may assign any role. Admins may assign any role except `owner`,
    and never a role above their own.

    Writes the identity claim, mirrors it on the user document and records
    one `role_changed` activity entry.
    """,
)
def set_user_role(
    payload: SetUserRoleRequest,
    request: Request,
    caller_id: str = Depends(get_caller_id),
    service: UserRoleService = Depends(get_user_role_service),
):
    return service.set_user_role(caller_id, payload.target_user_id, payload.role, ip=_client_ip(request))


# ============================================================
# INITIALIZE USER ROLE
# ============================================================
@router.post(
    "/initialize-user-role",
    summary="Create the user document and initial role claim",
)
def initialize_user_role(
    payload: InitializeUserRoleRequest,
    request: Request,
    caller_id: str = Depends(get_caller_id),
    service: UserRoleService = Depends(get_user_role_service),
):
    return service.initialize_user_role(
        caller_id,
        payload.user_id,
        payload.email,
        payload.initial_role,
        ip=_client_ip(request),
    )


# ============================================================
# GET USER ROLE
# ============================================================
@router.post(
    "/get-user-role",
    summary="Role, permissions and profile of a user",
    description="""
    Any user may read their own role. Reading another user's role
    requires owner or admin.
    """,
)
def get_user_role(
    payload: GetUserRoleRequest,
    caller_id: str = Depends(get_caller_id),
    service: UserRoleService = Depends(get_user_role_service),
):
    return service.get_user_role(caller_id, payload.user_id)


# ============================================================
# DEACTIVATE / REACTIVATE USER
# ============================================================
@router.post(
    "/deactivate-user",
    summary="Disable a user account",
    description="Owner or admin only. Callers can never deactivate themselves.",
)
def deactivate_user(
    payload: DeactivateUserRequest,
    request: Request,
    caller_id: str = Depends(get_caller_id),
    service: UserRoleService = Depends(get_user_role_service),
):
    return service.deactivate_user(caller_id, payload.target_user_id, payload.reason, ip=_client_ip(request))


@router.post(
    "/reactivate-user",
    summary="Re-enable a deactivated user account",
)
def reactivate_user(
    payload: ReactivateUserRequest,
    request: Request,
    caller_id: str = Depends(get_caller_id),
    service: UserRoleService = Depends(get_user_role_service),
):
    return service.reactivate_user(caller_id, payload.target_user_id, ip=_client_ip(request))
