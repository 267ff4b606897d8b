from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from core.guard import AuthorizationGuard
from core.identity import IdentityProvider, Principal
from core.permissions import Capability, has_permission
from dependencies.services import get_identity_provider, get_supabase


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# TOKEN → CALLER ID (Supabase validates the JWT)
# ============================================================
def get_caller_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    client: Client = Depends(get_supabase),
) -> str:

    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise unauthorized

    try:
        auth_resp = client.auth.get_user(credentials.credentials)
    except Exception:
        raise unauthorized

    if not auth_resp or not auth_resp.user:
        raise unauthorized

    return auth_resp.user.id


# ============================================================
# CURRENT USER (role + active flag from the identity provider)
# ============================================================
def get_current_user(
    caller_id: str = Depends(get_caller_id),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> Principal:
    return AuthorizationGuard(identity).resolve_caller(caller_id)


# ============================================================
# CAPABILITY CHECK
# ============================================================
def requires_permission(capability: Capability):
    def checker(current_user: Principal = Depends(get_current_user)):
        if not has_permission(current_user.role, capability):
            raise HTTPException(
                status_code=403,
                detail=f"Missing permission: {capability}",
            )
        return current_user
    return checker
