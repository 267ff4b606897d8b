# core/roles.py

from typing import Optional, Union

from core.errors import InvalidRole
from models.enums import Role


# ============================================
# ROLE HIERARCHY (higher rank = more privilege)
# ============================================
ROLE_HIERARCHY = {
    Role.owner: 5,
    Role.admin: 4,
    Role.sales_rep: 3,
    Role.technician: 2,
    Role.guest: 1,
}

# Roles allowed to administer other accounts
USER_ADMIN_ROLES = (Role.owner, Role.admin)

# Value stored in audit entries when a target had no role claim
NO_ROLE = "none"


def parse_role(value: Union[str, Role, None]) -> Role:
    """Strict conversion. Unknown or missing values are a caller bug."""
    if isinstance(value, Role):
        return value
    if isinstance(value, str) and Role.has_value(value):
        return Role(value)
    raise InvalidRole(f"Invalid role: {value!r}")


def coerce_role(value: Union[str, Role, None]) -> Role:
    """
    Lenient conversion used when reading stored claims.
    Anything unrecognized falls back to guest, never to an elevated role.
    """
    try:
        return parse_role(value)
    except InvalidRole:
        return Role.guest


def rank(role: Union[str, Role]) -> int:
    return ROLE_HIERARCHY[parse_role(role)]


def is_at_least(role: Union[str, Role], threshold: Union[str, Role]) -> bool:
    return rank(role) >= rank(threshold)


def has_role(user_role: Optional[Union[str, Role]], required_role: Union[str, Role]) -> bool:
    """
    Presentation-layer check: does the user's role meet the required level?
    A missing or unknown user role never passes.
    """
    if user_role is None:
        return False
    try:
        return is_at_least(user_role, required_role)
    except InvalidRole:
        return False


def is_user_admin(role: Optional[Role]) -> bool:
    return role in USER_ADMIN_ROLES
