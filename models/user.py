# models/user.py

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from models.common import Address
from models.enums import Role, Theme


# ===============================================================
# PROFILE & PREFERENCES
# ===============================================================
class UserProfile(BaseModel):
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    avatar: Optional[str] = None
    address: Optional[Address] = None


class NotificationPreferences(BaseModel):
    email: bool = True
    sms: bool = False
    push: bool = True


class UserPreferences(BaseModel):
    notifications: NotificationPreferences = Field(default_factory=NotificationPreferences)
    theme: Theme = Theme.light
    language: str = "en"


# ===============================================================
# USER DOCUMENT MODELS
# ===============================================================
class UserCreate(BaseModel):
    """
    Used when an owner/admin creates a user document.
    `id` is the identity-provider uid when the account already exists.
    """
    id: Optional[str] = None
    email: str
    role: Role = Role.guest
    profile: UserProfile = Field(default_factory=UserProfile)
    preferences: Optional[UserPreferences] = None


class UserUpdate(BaseModel):
    """
    Partial update. Role changes go through set_user_role, never through here.
    """
    profile: Optional[UserProfile] = None
    preferences: Optional[UserPreferences] = None


# ===============================================================
# CALLABLE PAYLOADS
# ===============================================================
class SetUserRoleRequest(BaseModel):
    target_user_id: str
    role: str


class InitializeUserRoleRequest(BaseModel):
    user_id: str
    email: EmailStr
    initial_role: str = Role.guest.value


class GetUserRoleRequest(BaseModel):
    user_id: Optional[str] = None


class DeactivateUserRequest(BaseModel):
    target_user_id: str
    reason: Optional[str] = None


class ReactivateUserRequest(BaseModel):
    target_user_id: str
