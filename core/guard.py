# core/guard.py

from typing import Optional, Union

from core.errors import PermissionDenied, Unauthenticated
from core.identity import IdentityProvider, Principal
from core.logging_config import logger
from core.permissions import Capability, has_permission
from core.roles import ROLE_HIERARCHY, USER_ADMIN_ROLES, coerce_role
from models.enums import Role


RoleLike = Optional[Union[str, Role]]


def _role(value: RoleLike) -> Optional[Role]:
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    return Role(value) if Role.has_value(value) else None


# ============================================================
# Pure rules (no collaborators)
# ============================================================
def can_assign_role(caller_role: RoleLike, target_role: RoleLike) -> bool:
    """
    Owner and admin may assign roles, but never above their own rank,
    and an admin may never create another owner.
    """
    caller = _role(caller_role)
    target = _role(target_role)
    if caller is None or target is None:
        return False
    if caller not in USER_ADMIN_ROLES:
        return False
    if caller == Role.admin and target == Role.owner:
        return False
    return ROLE_HIERARCHY[target] <= ROLE_HIERARCHY[caller]


def can_administer_users(role: RoleLike) -> bool:
    return _role(role) in USER_ADMIN_ROLES


def can_manage_client(role: RoleLike, assigned_sales_rep: Optional[str], user_id: Optional[str]) -> bool:
    r = _role(role)
    if r in USER_ADMIN_ROLES:
        return True
    if r == Role.sales_rep:
        return not assigned_sales_rep or assigned_sales_rep == user_id
    return False


def can_manage_job(
    role: RoleLike,
    assigned_technician: Optional[str],
    assigned_sales_rep: Optional[str],
    user_id: Optional[str],
) -> bool:
    r = _role(role)
    if r in USER_ADMIN_ROLES:
        return True
    if r == Role.sales_rep:
        return not assigned_sales_rep or assigned_sales_rep == user_id
    if r == Role.technician:
        return not assigned_technician or assigned_technician == user_id
    return False


def can_manage_products(role: RoleLike) -> bool:
    return _role(role) in USER_ADMIN_ROLES


def can_view_products(role: RoleLike) -> bool:
    return _role(role) is not None


def can_manage_proposals(role: RoleLike) -> bool:
    return has_permission(_role(role), Capability.manage_proposals)


def can_manage_settings(role: RoleLike) -> bool:
    return has_permission(_role(role), Capability.manage_settings)


# ============================================================
# Enforcing checks (raise on denial)
# ============================================================
def _deny(principal: Principal, message: str):
    logger.warning(f"Permission denied for {principal.id} ({principal.role}): {message}")
    raise PermissionDenied(message)


def require_capability(principal: Principal, capability: Union[str, Capability]):
    if not has_permission(principal.role, capability):
        _deny(principal, f"Missing capability: {capability}")


def require_user_admin(principal: Principal):
    if not can_administer_users(principal.role):
        _deny(principal, "Only owners and admins can manage users")


def require_role_assignment(principal: Principal, target_role: RoleLike):
    if not can_administer_users(principal.role):
        _deny(principal, "Only owners and admins can assign roles")
    if _role(principal.role) == Role.admin and _role(target_role) == Role.owner:
        _deny(principal, "Admins cannot assign the owner role")
    if not can_assign_role(principal.role, target_role):
        _deny(principal, "Cannot assign a role above your own")


def require_deactivation(principal: Principal, target_id: str):
    require_user_admin(principal)
    if principal.id == target_id:
        _deny(principal, "You cannot deactivate your own account")


def require_client_access(principal: Principal, client: dict):
    if not can_manage_client(principal.role, client.get("assigned_sales_rep"), principal.id):
        _deny(principal, "Insufficient permissions to manage this client")


def require_job_access(principal: Principal, job: dict):
    if not can_manage_job(
        principal.role,
        job.get("assigned_technician"),
        job.get("assigned_sales_rep"),
        principal.id,
    ):
        _deny(principal, "Insufficient permissions to manage this job")


def require_product_management(principal: Principal):
    if not can_manage_products(principal.role):
        _deny(principal, "Only owners and admins can manage products")


def require_product_view(principal: Principal):
    if not can_view_products(principal.role):
        _deny(principal, "Insufficient permissions to view products")


# ============================================================
# Guard bound to an identity provider
# ============================================================
class AuthorizationGuard:
    def __init__(self, identity: IdentityProvider):
        self.identity = identity

    def resolve_caller(self, caller_id: Optional[str]) -> Principal:
        if not caller_id:
            raise Unauthenticated("Authentication required")

        principal = self.identity.resolve_caller(caller_id)
        if principal is None:
            raise Unauthenticated("Unknown caller")

        if not principal.is_active:
            logger.warning(f"Deactivated account attempted access: {caller_id}")
            raise PermissionDenied("Account is deactivated")

        # Unrecognized claims were already coerced to guest by the provider
        principal.role = coerce_role(principal.role)
        return principal
