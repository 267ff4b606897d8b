# core/permissions.py

from typing import Dict, FrozenSet, Optional, Union

from models.enums import BaseStrEnum, Role


class Capability(BaseStrEnum):
    manage_users = "manage_users"
    access_client_data = "access_client_data"
    access_job_data = "access_job_data"
    manage_products = "manage_products"
    manage_company_settings = "manage_company_settings"
    view_reports = "view_reports"
    export_data = "export_data"
    manage_clients = "manage_clients"
    manage_jobs = "manage_jobs"
    manage_proposals = "manage_proposals"
    manage_settings = "manage_settings"
    access_all_data = "access_all_data"


# ============================================
# CENTRALIZED ROLE → CAPABILITIES MAP
# ============================================
# Capability sets are enumerated per role, not derived from rank:
# admin ranks directly below owner but lacks the settings capabilities.
ROLE_PERMISSIONS: Dict[Role, FrozenSet[Capability]] = {

    # =====================================================
    # OWNER: Full access to everything
    # =====================================================
    Role.owner: frozenset(Capability),

    # =====================================================
    # ADMIN: Everything except company settings
    # =====================================================
    Role.admin: frozenset({
        Capability.manage_users,
        Capability.access_client_data,
        Capability.access_job_data,
        Capability.manage_products,
        Capability.view_reports,
        Capability.export_data,
        Capability.manage_clients,
        Capability.manage_jobs,
        Capability.manage_proposals,
        Capability.access_all_data,
    }),

    # =====================================================
    # SALES REP: Clients, proposals, reports (not jobs)
    # =====================================================
    Role.sales_rep: frozenset({
        Capability.access_client_data,
        Capability.access_job_data,
        Capability.view_reports,
        Capability.manage_clients,
        Capability.manage_proposals,
    }),

    # =====================================================
    # TECHNICIAN: Field work on jobs
    # =====================================================
    Role.technician: frozenset({
        Capability.access_job_data,
        Capability.manage_jobs,
    }),

    # =====================================================
    # FALLBACK
    # =====================================================
    Role.guest: frozenset(),
}


# ============================================
# WIRE VOCABULARIES
# ============================================
# Flags returned by the getUserRole callable
SERVER_PERMISSION_FLAGS = {
    "canManageUsers": Capability.manage_users,
    "canAccessClientData": Capability.access_client_data,
    "canAccessJobData": Capability.access_job_data,
    "canManageProducts": Capability.manage_products,
    "canManageCompanySettings": Capability.manage_company_settings,
    "canViewReports": Capability.view_reports,
    "canExportData": Capability.export_data,
}

# Flags used by the web client for route gating
CLIENT_PERMISSION_FLAGS = {
    "canManageUsers": Capability.manage_users,
    "canManageClients": Capability.manage_clients,
    "canManageJobs": Capability.manage_jobs,
    "canManageProposals": Capability.manage_proposals,
    "canManageProducts": Capability.manage_products,
    "canViewReports": Capability.view_reports,
    "canManageSettings": Capability.manage_settings,
    "canAccessAllData": Capability.access_all_data,
}

_ALIASES: Dict[str, Capability] = {
    **SERVER_PERMISSION_FLAGS,
    **CLIENT_PERMISSION_FLAGS,
    **{cap.value.replace("_", "-"): cap for cap in Capability},
}


def permissions_for(role: Optional[Union[str, Role]]) -> FrozenSet[Capability]:
    """Unknown or unset roles get the guest set."""
    if isinstance(role, str) and Role.has_value(role):
        role = Role(role)
    return ROLE_PERMISSIONS.get(role, ROLE_PERMISSIONS[Role.guest])


def resolve_capability(name: Union[str, Capability]) -> Optional[Capability]:
    if isinstance(name, Capability):
        return name
    if Capability.has_value(name):
        return Capability(name)
    return _ALIASES.get(name)


def has_permission(role: Optional[Union[str, Role]], capability: Union[str, Capability]) -> bool:
    cap = resolve_capability(capability)
    if cap is None:
        return False
    return cap in permissions_for(role)


def server_permission_flags(role: Optional[Union[str, Role]]) -> Dict[str, bool]:
    granted = permissions_for(role)
    return {flag: cap in granted for flag, cap in SERVER_PERMISSION_FLAGS.items()}


def client_permission_flags(role: Optional[Union[str, Role]]) -> Dict[str, bool]:
    granted = permissions_for(role)
    return {flag: cap in granted for flag, cap in CLIENT_PERMISSION_FLAGS.items()}
