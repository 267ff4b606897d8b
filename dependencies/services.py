from fastapi import Depends, HTTPException
from supabase import Client

from core.audit import AuditLogger
from core.identity import IdentityProvider, SupabaseIdentityProvider
from core.store import DocumentStore, SupabaseDocumentStore
from core.supabase_client import get_supabase_client
from services.client_manager import ClientManager, LeadManager
from services.job_manager import JobManager
from services.product_manager import ProductManager
from services.proposal_manager import ProposalManager
from services.user_manager import UserManager
from services.user_roles import UserRoleService


# ============================================================
# COLLABORATORS
# ============================================================
def get_supabase() -> Client:
    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")
    return client


def get_store(client: Client = Depends(get_supabase)) -> DocumentStore:
    return SupabaseDocumentStore(client)


def get_identity_provider(client: Client = Depends(get_supabase)) -> IdentityProvider:
    return SupabaseIdentityProvider(client)


def get_audit_logger(store: DocumentStore = Depends(get_store)) -> AuditLogger:
    return AuditLogger(store)


# ============================================================
# MANAGERS (built per request)
# ============================================================
def get_user_manager(
    store: DocumentStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserManager:
    return UserManager(store, audit)


def get_client_manager(
    store: DocumentStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ClientManager:
    return ClientManager(store, audit)


def get_lead_manager(
    store: DocumentStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit_logger),
    clients: ClientManager = Depends(get_client_manager),
) -> LeadManager:
    return LeadManager(store, audit, clients)


def get_job_manager(
    store: DocumentStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit_logger),
    clients: ClientManager = Depends(get_client_manager),
) -> JobManager:
    return JobManager(store, audit, clients)


def get_product_manager(
    store: DocumentStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ProductManager:
    return ProductManager(store, audit)


def get_proposal_manager(
    store: DocumentStore = Depends(get_store),
    audit: AuditLogger = Depends(get_audit_logger),
) -> ProposalManager:
    return ProposalManager(store, audit)


def get_user_role_service(
    store: DocumentStore = Depends(get_store),
    identity: IdentityProvider = Depends(get_identity_provider),
    audit: AuditLogger = Depends(get_audit_logger),
) -> UserRoleService:
    return UserRoleService(store, identity, audit)
