# services/user_manager.py

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from core import guard
from core.audit import AuditLogger
from core.diff import compute_changes, has_changes
from core.errors import AlreadyExists, InvalidArgument, raise_if_invalid
from core.identity import Principal
from core.logging_config import logger
from core.permissions import Capability
from core.roles import parse_role
from core.store import Collections, DocumentStore
from models.enums import ActivityType, Role, TargetType
from models.user import UserPreferences
from services.base import EntityRepository, utc_now
from services.validation import is_valid_email, is_valid_phone, to_document, too_short


def _full_name(user: Dict[str, Any]) -> str:
    profile = user.get("profile") or {}
    name = f"{profile.get('first_name', '')} {profile.get('last_name', '')}".strip()
    return name or user.get("email") or user.get("id", "")


def default_preferences() -> Dict[str, Any]:
    return UserPreferences().model_dump(mode="json")


class UserManager:
    """Business rules for user documents (the `users` collection)."""

    def __init__(self, store: DocumentStore, audit: Optional[AuditLogger] = None):
        self.users = EntityRepository(store, Collections.users.value, "User")
        self.audit = audit or AuditLogger(store)

    # ==========================================================
    # Validation
    # ==========================================================
    @staticmethod
    def validate_user_data(data: Dict[str, Any]) -> List[str]:
        errors = []
        profile = data.get("profile") or {}

        if data.get("email") and not is_valid_email(data["email"]):
            errors.append("Invalid email format")
        if profile.get("phone") and not is_valid_phone(profile["phone"]):
            errors.append("Invalid phone number format")
        if profile.get("first_name") and too_short(profile["first_name"], 2):
            errors.append("First name must be at least 2 characters")
        if profile.get("last_name") and too_short(profile["last_name"], 2):
            errors.append("Last name must be at least 2 characters")
        if data.get("role") is not None and not Role.has_value(data["role"]):
            errors.append("Invalid user role")

        return errors

    # ==========================================================
    # Create / update
    # ==========================================================
    def create_user(self, payload: Union[BaseModel, Dict[str, Any]], actor: Principal) -> str:
        data = to_document(payload)
        role = data.get("role") or Role.guest.value

        guard.require_user_admin(actor)
        raise_if_invalid(self.validate_user_data(data))
        guard.require_role_assignment(actor, role)

        if self.users.find_one_by("email", data["email"]):
            raise AlreadyExists("User with this email already exists")

        preferences = default_preferences()
        supplied = data.get("preferences") or {}
        preferences.update({k: v for k, v in supplied.items() if k != "notifications"})
        preferences["notifications"].update(supplied.get("notifications") or {})

        doc_id = data.pop("id", None)
        record = {
            **data,
            "role": role,
            "is_active": True,
            "preferences": preferences,
        }

        user_id = self.users.create(record, actor.id, doc_id=doc_id)
        logger.info(f"User created: {user_id} ({role}) by {actor.id}")

        self.audit.log(
            ActivityType.user_created,
            actor.id,
            f"Created new user: {_full_name(record)} ({record['email']})",
            {"user_role": role},
            target_id=user_id,
            target_type=TargetType.user,
        )
        return user_id

    def update_user(self, user_id: str, updates: Union[BaseModel, Dict[str, Any]], actor: Principal) -> Dict[str, Any]:
        data = to_document(updates, partial=True)
        existing = self.users.require(user_id)

        if "role" in data:
            raise InvalidArgument("Role changes must go through set_user_role")
        if "email" in data:
            raise InvalidArgument("Email cannot be changed here")

        if actor.id != user_id:
            guard.require_capability(actor, Capability.manage_users)

        raise_if_invalid(self.validate_user_data(data))

        changes = compute_changes(existing, data)
        self.users.update(user_id, data, actor.id)

        if has_changes(changes) and actor.id:
            self.audit.log(
                ActivityType.user_updated,
                actor.id,
                f"Updated user: {_full_name(existing)}",
                {"changes": changes},
                target_id=user_id,
                target_type=TargetType.user,
            )
        return changes

    # ==========================================================
    # Login
    # ==========================================================
    def record_login(self, user_id: str) -> None:
        self.users.require(user_id)
        now = utc_now()
        self.users.update(user_id, {"last_login_at": now})
        self.audit.log(
            ActivityType.login,
            user_id,
            "User logged in",
            {"timestamp": now.isoformat()},
            target_id=user_id,
            target_type=TargetType.user,
        )

    # ==========================================================
    # Queries
    # ==========================================================
    def get_users_by_role(self, role: Union[str, Role], page: int = 1, page_size: int = 20) -> Dict[str, Any]:
        role = parse_role(role)
        users = self.users.where("role", role.value)

        page = max(page, 1)
        start = (page - 1) * page_size
        end = start + page_size
        return {
            "users": users[start:end],
            "total_count": len(users),
            "has_more": end < len(users),
        }

    def search_users(self, term: str) -> List[Dict[str, Any]]:
        term = (term or "").lower()
        results = []
        for user in self.users.where("is_active", True):
            profile = user.get("profile") or {}
            haystack = [
                profile.get("first_name") or "",
                profile.get("last_name") or "",
                user.get("email") or "",
            ]
            if any(term in value.lower() for value in haystack):
                results.append(user)
        return results

    def get_user_stats(self) -> Dict[str, Any]:
        users = self.users.all()
        by_role = {role: 0 for role in Role.list()}
        for user in users:
            role = user.get("role")
            if role in by_role:
                by_role[role] += 1

        active = sum(1 for u in users if u.get("is_active"))
        return {
            "total": len(users),
            "active": active,
            "inactive": len(users) - active,
            "by_role": by_role,
        }
