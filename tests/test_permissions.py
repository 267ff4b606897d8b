# tests/test_permissions.py

"""
Tests for the role hierarchy, capability table and authorization rules.
"""

import pytest

from core import guard
from core.errors import InvalidRole, PermissionDenied
from core.permissions import (
    CLIENT_PERMISSION_FLAGS,
    SERVER_PERMISSION_FLAGS,
    Capability,
    client_permission_flags,
    has_permission,
    permissions_for,
    resolve_capability,
    server_permission_flags,
)
from core.roles import ROLE_HIERARCHY, coerce_role, has_role, parse_role, rank
from models.enums import Role

from conftest import make_principal


# ============================================================
# Role hierarchy
# ============================================================
def test_role_ranks():
    """Ranks run owner 5 down to guest 1."""
    assert [rank(r) for r in Role] == [5, 4, 3, 2, 1]
    assert len(ROLE_HIERARCHY) == 5


def test_parse_role_rejects_unknown():
    with pytest.raises(InvalidRole):
        parse_role("superuser")
    with pytest.raises(InvalidRole):
        parse_role(None)


def test_coerce_role_falls_back_to_guest():
    assert coerce_role("superuser") == Role.guest
    assert coerce_role(None) == Role.guest
    assert coerce_role("admin") == Role.admin


def test_has_role_threshold():
    assert has_role("owner", "admin")
    assert has_role("sales_rep", "technician")
    assert not has_role("technician", "sales_rep")
    assert not has_role(None, "guest")
    assert not has_role("bogus", "guest")


# ============================================================
# Capability table
# ============================================================
def test_owner_has_every_capability():
    assert permissions_for(Role.owner) == frozenset(Capability)


def test_guest_has_no_capability():
    for capability in Capability:
        assert not has_permission(Role.guest, capability)
    assert not any(server_permission_flags(Role.guest).values())
    assert not any(client_permission_flags(Role.guest).values())


def test_admin_lacks_settings_capabilities():
    assert not has_permission(Role.admin, Capability.manage_company_settings)
    assert not has_permission(Role.admin, Capability.manage_settings)
    assert has_permission(Role.admin, Capability.manage_users)


def test_sales_rep_and_technician_split():
    assert has_permission(Role.sales_rep, Capability.manage_clients)
    assert not has_permission(Role.sales_rep, Capability.manage_jobs)
    assert has_permission(Role.technician, Capability.manage_jobs)
    assert not has_permission(Role.technician, Capability.manage_clients)


def test_unknown_role_gets_guest_set():
    assert permissions_for("superuser") == frozenset()
    assert permissions_for(None) == frozenset()


def test_flag_vocabularies():
    assert len(SERVER_PERMISSION_FLAGS) == 7
    assert len(CLIENT_PERMISSION_FLAGS) == 8

    flags = server_permission_flags(Role.sales_rep)
    assert flags["canAccessClientData"] is True
    assert flags["canManageUsers"] is False


def test_capability_aliases_resolve():
    assert resolve_capability("canManageUsers") == Capability.manage_users
    assert resolve_capability("manage-products") == Capability.manage_products
    assert resolve_capability("nope") is None
    assert not has_permission(Role.owner, "nope")


# ============================================================
# Role assignment matrix
# ============================================================
ASSIGNABLE = {
    Role.owner: set(Role),
    Role.admin: {Role.admin, Role.sales_rep, Role.technician, Role.guest},
    Role.sales_rep: set(),
    Role.technician: set(),
    Role.guest: set(),
}


@pytest.mark.parametrize("caller", list(Role))
def test_can_assign_role_matrix(caller):
    for target in Role:
        assert guard.can_assign_role(caller, target) == (target in ASSIGNABLE[caller])


def test_can_assign_role_unknown_values():
    assert not guard.can_assign_role("owner", "superuser")
    assert not guard.can_assign_role(None, "guest")


def test_admin_assigning_owner_denied():
    with pytest.raises(PermissionDenied, match="owner"):
        guard.require_role_assignment(make_principal(Role.admin), Role.owner)


def test_self_deactivation_denied():
    owner = make_principal(Role.owner)
    with pytest.raises(PermissionDenied):
        guard.require_deactivation(owner, owner.id)
    guard.require_deactivation(owner, "someone-else")


# ============================================================
# Ownership rules
# ============================================================
def test_sales_rep_client_ownership():
    rep = make_principal(Role.sales_rep, "rep-1")
    guard.require_client_access(rep, {"assigned_sales_rep": "rep-1"})
    guard.require_client_access(rep, {"assigned_sales_rep": None})
    with pytest.raises(PermissionDenied):
        guard.require_client_access(rep, {"assigned_sales_rep": "rep-2"})


def test_technician_job_ownership():
    tech = make_principal(Role.technician, "tech-1")
    guard.require_job_access(tech, {"assigned_technician": "tech-1"})
    with pytest.raises(PermissionDenied):
        guard.require_job_access(tech, {"assigned_technician": "tech-2"})
    with pytest.raises(PermissionDenied):
        guard.require_client_access(tech, {})


def test_products_owner_admin_only():
    assert guard.can_manage_products(Role.admin)
    assert not guard.can_manage_products(Role.sales_rep)
    assert guard.can_view_products(Role.guest)
