# services/user_roles.py

from functools import wraps
from typing import Any, Dict, Optional

from core import guard as rules
from core.audit import AuditLogger
from core.errors import HelioError, Internal, InvalidArgument, InvalidRole, NotFound
from core.guard import AuthorizationGuard
from core.identity import IdentityProvider, Principal
from core.logging_config import logger
from core.permissions import server_permission_flags
from core.roles import NO_ROLE, parse_role
from core.store import Collections, DocumentStore
from models.enums import ActivityType, Role, TargetType
from services.base import EntityRepository, utc_now
from services.user_manager import default_preferences


def callable_boundary(failure_message: str):
    """
    Typed errors pass through unchanged; anything else is logged and
    surfaced as a generic internal error.
    """

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except HelioError:
                raise
            except Exception as e:
                logger.error(f"{failure_message}: {e}", exc_info=True)
                raise Internal(failure_message) from e

        return wrapper

    return decorator


def _parse_requested_role(value: Any) -> Role:
    try:
        return parse_role(value)
    except InvalidRole:
        raise InvalidArgument("Invalid role specified") from None


class UserRoleService:
    """
    Privileged account operations: role claims and account status.

    Each operation resolves the caller, checks the authorization rules,
    writes the identity provider first and the user document second, then
    appends one audit entry.
    """

    def __init__(self, store: DocumentStore, identity: IdentityProvider, audit: Optional[AuditLogger] = None):
        self.identity = identity
        self.guard = AuthorizationGuard(identity)
        self.users = EntityRepository(store, Collections.users.value, "User")
        self.audit = audit or AuditLogger(store)

    def _require_target(self, user_id: str) -> Principal:
        target = self.identity.resolve_caller(user_id)
        if target is None:
            raise NotFound("Target user not found")
        return target

    # ----------------------------------------------------------
    # setUserRole
    # ----------------------------------------------------------
    @callable_boundary("Failed to set user role")
    def set_user_role(
        self,
        caller_id: Optional[str],
        target_user_id: Optional[str],
        role: Optional[str],
        ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        caller = self.guard.resolve_caller(caller_id)
        if not target_user_id or not role:
            raise InvalidArgument("target_user_id and role are required")

        new_role = _parse_requested_role(role)
        rules.require_role_assignment(caller, new_role)

        self._require_target(target_user_id)
        old_role = self.identity.get_role_claim(target_user_id) or NO_ROLE

        self.identity.set_role(target_user_id, new_role)
        self.users.update(target_user_id, {"role": new_role.value}, caller.id)
        logger.info(f"Role {new_role} assigned to {target_user_id} by {caller.id} (was {old_role})")

        self.audit.log(
            ActivityType.role_changed,
            caller.id,
            f"Changed role of {target_user_id} from {old_role} to {new_role}",
            {"old_role": old_role, "new_role": new_role.value},
            target_id=target_user_id,
            target_type=TargetType.user,
            ip=ip,
        )
        return {"success": True, "message": f"Role {new_role} assigned to user {target_user_id}"}

    # ----------------------------------------------------------
    # initializeUserRole
    # ----------------------------------------------------------
    @callable_boundary("Failed to initialize user")
    def initialize_user_role(
        self,
        caller_id: Optional[str],
        user_id: Optional[str],
        email: Optional[str],
        initial_role: Optional[str] = Role.guest.value,
        ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        caller = self.guard.resolve_caller(caller_id)
        if not user_id or not email:
            raise InvalidArgument("user_id and email are required")

        rules.require_user_admin(caller)
        role = _parse_requested_role(initial_role or Role.guest.value)
        rules.require_role_assignment(caller, role)

        self.identity.set_role(user_id, role)
        self.users.create({
            "email": email,
            "role": role.value,
            "is_active": True,
            "profile": {"first_name": "", "last_name": "", "phone": "", "avatar": ""},
            "preferences": default_preferences(),
        }, caller.id, doc_id=user_id)
        logger.info(f"User {user_id} initialized with role {role} by {caller.id}")

        self.audit.log(
            ActivityType.user_created,
            caller.id,
            f"Initialized user {email} with role {role}",
            {"role": role.value},
            target_id=user_id,
            target_type=TargetType.user,
            ip=ip,
        )
        return {"success": True, "message": f"User {user_id} initialized with role {role}"}

    # ----------------------------------------------------------
    # getUserRole
    # ----------------------------------------------------------
    @callable_boundary("Failed to get user role")
    def get_user_role(self, caller_id: Optional[str], user_id: Optional[str] = None) -> Dict[str, Any]:
        caller = self.guard.resolve_caller(caller_id)
        target_id = user_id or caller.id

        if target_id != caller.id:
            rules.require_user_admin(caller)

        target = caller if target_id == caller.id else self._require_target(target_id)
        doc = self.users.get_by_id(target_id) or {}

        return {
            "user_id": target_id,
            "email": target.email,
            "role": target.role.value,
            "permissions": server_permission_flags(target.role),
            "profile": doc.get("profile") or {},
            "is_active": bool(doc.get("is_active", False)),
            "created_at": doc.get("created_at"),
            "updated_at": doc.get("updated_at"),
        }

    # ----------------------------------------------------------
    # deactivateUser / reactivateUser
    # ----------------------------------------------------------
    @callable_boundary("Failed to deactivate user")
    def deactivate_user(
        self,
        caller_id: Optional[str],
        target_user_id: Optional[str],
        reason: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        caller = self.guard.resolve_caller(caller_id)
        if not target_user_id:
            raise InvalidArgument("target_user_id is required")

        rules.require_deactivation(caller, target_user_id)
        self._require_target(target_user_id)

        self.identity.set_disabled(target_user_id, True)
        self.users.update(target_user_id, {
            "is_active": False,
            "deactivated_at": utc_now(),
            "deactivated_by": caller.id,
        }, caller.id)
        logger.info(f"User {target_user_id} deactivated by {caller.id}")

        description = f"Deactivated user {target_user_id}"
        if reason:
            description += f" - Reason: {reason}"

        self.audit.log(
            ActivityType.user_deactivated,
            caller.id,
            description,
            {"reason": reason},
            target_id=target_user_id,
            target_type=TargetType.user,
            ip=ip,
        )
        return {"success": True, "message": f"User {target_user_id} has been deactivated"}

    @callable_boundary("Failed to reactivate user")
    def reactivate_user(
        self,
        caller_id: Optional[str],
        target_user_id: Optional[str],
        ip: Optional[str] = None,
    ) -> Dict[str, Any]:
        caller = self.guard.resolve_caller(caller_id)
        if not target_user_id:
            raise InvalidArgument("target_user_id is required")

        rules.require_user_admin(caller)
        self._require_target(target_user_id)

        self.identity.set_disabled(target_user_id, False)
        self.users.update(target_user_id, {
            "is_active": True,
            "deactivated_at": None,
            "deactivated_by": None,
        }, caller.id)

        self.audit.log(
            ActivityType.user_updated,
            caller.id,
            f"Reactivated user {target_user_id}",
            {"action": "reactivated"},
            target_id=target_user_id,
            target_type=TargetType.user,
            ip=ip,
        )
        return {"success": True, "message": f"User {target_user_id} has been reactivated"}
