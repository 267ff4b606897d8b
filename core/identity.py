# core/identity.py

from typing import Optional, Protocol

from pydantic import BaseModel

from core.config import settings
from core.errors import handle_supabase_error
from core.roles import coerce_role
from models.enums import Role


# ============================================================
# Principal: the authenticated caller
# ============================================================
class Principal(BaseModel):
    id: str
    email: Optional[str] = None
    role: Role = Role.guest
    is_active: bool = True
    # False when the identity carries no role claim at all
    has_role_claim: bool = True


# ============================================================
# Identity provider contract
# ============================================================
class IdentityProvider(Protocol):
    def resolve_caller(self, user_id: str) -> Optional[Principal]: ...

    def get_role_claim(self, user_id: str) -> Optional[str]: ...

    def get_email(self, user_id: str) -> Optional[str]: ...

    def set_role(self, user_id: str, role: Role) -> None: ...

    def set_disabled(self, user_id: str, disabled: bool) -> None: ...


# ============================================================
# Supabase Auth implementation
# ============================================================
class SupabaseIdentityProvider:
    """
    Role claims live in `app_metadata.role`, which only the service role
    can write. Disabling an account bans it and flags `app_metadata.disabled`.
    """

    def __init__(self, client):
        self.client = client

    def _get_user(self, user_id: str):
        try:
            resp = self.client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            message = str(e).lower()
            if "not found" in message or "user_not_found" in message:
                return None
            raise handle_supabase_error(e, "Failed to fetch identity") from e
        return getattr(resp, "user", None)

    def _update(self, user_id: str, attributes: dict):
        try:
            self.client.auth.admin.update_user_by_id(user_id, attributes)
        except Exception as e:
            raise handle_supabase_error(e, "Failed to update identity") from e

    def resolve_caller(self, user_id: str) -> Optional[Principal]:
        user = self._get_user(user_id)
        if user is None:
            return None

        app_meta = getattr(user, "app_metadata", None) or {}
        claim = app_meta.get("role")

        return Principal(
            id=user.id,
            email=getattr(user, "email", None),
            role=coerce_role(claim),
            is_active=not app_meta.get("disabled", False),
            has_role_claim=claim is not None,
        )

    def get_role_claim(self, user_id: str) -> Optional[str]:
        user = self._get_user(user_id)
        if user is None:
            return None
        return (getattr(user, "app_metadata", None) or {}).get("role")

    def get_email(self, user_id: str) -> Optional[str]:
        user = self._get_user(user_id)
        return getattr(user, "email", None) if user else None

    def set_role(self, user_id: str, role: Role) -> None:
        user = self._get_user(user_id)
        app_meta = dict(getattr(user, "app_metadata", None) or {}) if user else {}
        app_meta["role"] = str(role)
        self._update(user_id, {"app_metadata": app_meta})

    def set_disabled(self, user_id: str, disabled: bool) -> None:
        user = self._get_user(user_id)
        app_meta = dict(getattr(user, "app_metadata", None) or {}) if user else {}
        app_meta["disabled"] = disabled
        self._update(user_id, {
            "app_metadata": app_meta,
            "ban_duration": settings.DISABLED_BAN_DURATION if disabled else "none",
        })
