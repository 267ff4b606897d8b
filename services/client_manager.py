# services/client_manager.py

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from core import guard
from core.audit import AuditLogger
from core.diff import compute_changes, has_changes
from core.errors import AlreadyExists, InvalidArgument, raise_if_invalid
from core.identity import Principal
from core.logging_config import logger
from core.permissions import Capability
from core.store import Collections, DocumentStore, QueryFilter
from models.enums import ActivityType, ClientSource, ClientStatus, LeadStatus, Priority, TargetType
from services.base import EntityRepository, utc_now
from services.validation import (
    POSTAL_CODE_PATTERN,
    as_datetime,
    is_valid_email,
    is_valid_phone,
    to_document,
    too_short,
)

# Maintained by the job workflow only
DERIVED_FIELDS = ("total_jobs", "total_revenue")


def contact_name(doc: Dict[str, Any]) -> str:
    return f"{doc.get('first_name', '')} {doc.get('last_name', '')}".strip()


def validate_contact_data(data: Dict[str, Any]) -> List[str]:
    """Rules shared by clients and leads. Only fields present are checked."""
    errors = []

    if data.get("email") and not is_valid_email(data["email"]):
        errors.append("Invalid email format")
    if data.get("phone") and not is_valid_phone(data["phone"]):
        errors.append("Invalid phone number format")
    if data.get("first_name") and too_short(data["first_name"], 2):
        errors.append("First name must be at least 2 characters")
    if data.get("last_name") and too_short(data["last_name"], 2):
        errors.append("Last name must be at least 2 characters")

    address = data.get("address")
    if address:
        if too_short(address.get("street"), 5):
            errors.append("Street address must be at least 5 characters")
        if too_short(address.get("city"), 2):
            errors.append("City must be at least 2 characters")
        postal_code = address.get("postal_code")
        if not postal_code or not POSTAL_CODE_PATTERN.match(postal_code):
            errors.append("Invalid postal code format")

    if data.get("source") and not ClientSource.has_value(data["source"]):
        errors.append("Invalid client source")

    return errors


# ============================================================
# Clients
# ============================================================
class ClientManager:
    def __init__(self, store: DocumentStore, audit: Optional[AuditLogger] = None):
        self.clients = EntityRepository(store, Collections.clients.value, "Client")
        self.audit = audit or AuditLogger(store)

    @staticmethod
    def validate_client_data(data: Dict[str, Any]) -> List[str]:
        errors = validate_contact_data(data)
        if data.get("status") and not ClientStatus.has_value(data["status"]):
            errors.append("Invalid client status")
        return errors

    # ----------------------------------------------------------
    # Mutations
    # ----------------------------------------------------------
    def create_client(self, payload: Union[BaseModel, Dict[str, Any]], actor: Principal) -> str:
        data = to_document(payload)

        guard.require_capability(actor, Capability.manage_clients)
        raise_if_invalid(self.validate_client_data(data))

        if self.clients.find_one_by("email", data.get("email")):
            raise AlreadyExists("Client with this email already exists")

        record = {
            **data,
            "total_jobs": 0,
            "total_revenue": 0,
            "tags": data.get("tags") or [],
            "notes": data.get("notes") or "",
        }

        client_id = self.clients.create(record, actor.id)
        logger.info(f"Client created: {client_id} by {actor.id}")

        self.audit.log(
            ActivityType.client_created,
            actor.id,
            f"Created new client: {contact_name(record)} ({record.get('email')})",
            {"client_status": record.get("status"), "client_source": record.get("source")},
            target_id=client_id,
            target_type=TargetType.client,
        )
        return client_id

    def update_client(self, client_id: str, updates: Union[BaseModel, Dict[str, Any]], actor: Principal) -> Dict[str, Any]:
        data = to_document(updates, partial=True)
        existing = self.clients.require(client_id)

        for field in DERIVED_FIELDS:
            if field in data:
                raise InvalidArgument(f"{field} is maintained automatically")

        guard.require_client_access(actor, existing)
        raise_if_invalid(self.validate_client_data(data))

        new_email = data.get("email")
        if new_email and new_email != existing.get("email"):
            if self.clients.find_one_by("email", new_email):
                raise AlreadyExists("Another client with this email already exists")

        changes = compute_changes(existing, data)
        self.clients.update(client_id, data, actor.id)

        if has_changes(changes) and actor.id:
            self.audit.log(
                ActivityType.client_updated,
                actor.id,
                f"Updated client: {contact_name(existing)}",
                {"changes": changes},
                target_id=client_id,
                target_type=TargetType.client,
            )
        return changes

    def add_client_tags(self, client_id: str, tags: List[str], actor: Principal) -> List[str]:
        existing = self.clients.require(client_id)
        merged = list(dict.fromkeys([*(existing.get("tags") or []), *tags]))
        self.update_client(client_id, {"tags": merged}, actor)
        return merged

    def remove_client_tags(self, client_id: str, tags: List[str], actor: Principal) -> List[str]:
        existing = self.clients.require(client_id)
        remaining = [t for t in (existing.get("tags") or []) if t not in tags]
        self.update_client(client_id, {"tags": remaining}, actor)
        return remaining

    def update_last_contact(
        self,
        client_id: str,
        actor: Principal,
        next_follow_up_date: Optional[datetime] = None,
    ) -> None:
        existing = self.clients.require(client_id)
        guard.require_client_access(actor, existing)

        updates: Dict[str, Any] = {"last_contact_date": utc_now()}
        if next_follow_up_date:
            updates["next_follow_up_date"] = next_follow_up_date
        self.clients.update(client_id, updates, actor.id)

    def update_client_stats(self, client_id: str, total_jobs: int, total_revenue: float) -> None:
        """System path: totals derived from the client's jobs. Not audited."""
        self.clients.update(client_id, {
            "total_jobs": total_jobs,
            "total_revenue": total_revenue,
        })

    # ----------------------------------------------------------
    # Queries
    # ----------------------------------------------------------
    def get_clients_requiring_follow_up(self) -> List[Dict[str, Any]]:
        today = utc_now().replace(hour=0, minute=0, second=0, microsecond=0)
        results = []
        for client in self.clients.all():
            follow_up = as_datetime(client.get("next_follow_up_date"))
            if follow_up and follow_up <= today and client.get("status") != ClientStatus.inactive.value:
                results.append(client)
        return results

    def get_client_stats(self) -> Dict[str, Any]:
        clients = self.clients.all()
        by_status: Dict[str, int] = {}
        by_source: Dict[str, int] = {}
        total_revenue = 0

        for client in clients:
            status = client.get("status")
            source = client.get("source")
            by_status[status] = by_status.get(status, 0) + 1
            by_source[source] = by_source.get(source, 0) + 1
            total_revenue += client.get("total_revenue") or 0

        top_clients = sorted(clients, key=lambda c: c.get("total_revenue") or 0, reverse=True)[:10]

        return {
            "total": len(clients),
            "by_status": by_status,
            "by_source": by_source,
            "total_revenue": total_revenue,
            "average_revenue": total_revenue / len(clients) if clients else 0,
            "top_clients": top_clients,
        }

    def search_clients(self, filters: Union[BaseModel, Dict[str, Any], None] = None) -> List[Dict[str, Any]]:
        f = to_document(filters, partial=True)
        clients = self.clients.all()

        term = (f.get("search_term") or "").lower()
        if term:
            clients = [
                c for c in clients
                if term in (c.get("first_name") or "").lower()
                or term in (c.get("last_name") or "").lower()
                or term in (c.get("email") or "").lower()
                or term in (c.get("company") or "").lower()
            ]
        for field in ("status", "source", "assigned_sales_rep"):
            if f.get(field):
                clients = [c for c in clients if c.get(field) == f[field]]
        if f.get("tags"):
            clients = [c for c in clients if set(f["tags"]) & set(c.get("tags") or [])]
        if f.get("min_revenue") is not None:
            clients = [c for c in clients if (c.get("total_revenue") or 0) >= f["min_revenue"]]
        if f.get("max_revenue") is not None:
            clients = [c for c in clients if (c.get("total_revenue") or 0) <= f["max_revenue"]]

        return clients

    def get_client_activity(self, client_id: str) -> List[Dict[str, Any]]:
        return self.audit.for_target(client_id, TargetType.client)

    def list_clients(self, page_size: int, cursor: Optional[int] = None):
        return self.clients.query_paginated(
            [QueryFilter.order_by("created_at", descending=True)],
            page_size,
            cursor,
        )


# ============================================================
# Leads
# ============================================================
class LeadManager:
    def __init__(
        self,
        store: DocumentStore,
        audit: Optional[AuditLogger] = None,
        clients: Optional[ClientManager] = None,
    ):
        self.leads = EntityRepository(store, Collections.leads.value, "Lead")
        self.audit = audit or AuditLogger(store)
        self.client_manager = clients or ClientManager(store, self.audit)

    @staticmethod
    def validate_lead_data(data: Dict[str, Any]) -> List[str]:
        errors = validate_contact_data(data)
        if data.get("status") and not LeadStatus.has_value(data["status"]):
            errors.append("Invalid lead status")
        if data.get("priority") and not Priority.has_value(data["priority"]):
            errors.append("Invalid lead priority")
        return errors

    def create_lead(self, payload: Union[BaseModel, Dict[str, Any]], actor: Principal) -> str:
        data = to_document(payload)

        guard.require_capability(actor, Capability.manage_clients)
        raise_if_invalid(self.validate_lead_data(data))

        if self.leads.find_one_by("email", data.get("email")):
            raise AlreadyExists("Lead with this email already exists")

        record = {
            **data,
            "total_jobs": 0,
            "total_revenue": 0,
            "tags": data.get("tags") or [],
            "notes": data.get("notes") or "",
            "status": data.get("status") or LeadStatus.new.value,
            "priority": data.get("priority") or Priority.medium.value,
        }

        lead_id = self.leads.create(record, actor.id)
        logger.info(f"Lead created: {lead_id} by {actor.id}")

        self.audit.log(
            ActivityType.client_created,
            actor.id,
            f"Created new lead: {contact_name(record)} ({record.get('email')})",
            {"lead_status": record["status"], "lead_priority": record["priority"]},
            target_id=lead_id,
            target_type=TargetType.lead,
        )
        return lead_id

    def update_lead_status(
        self,
        lead_id: str,
        status: Union[str, LeadStatus],
        actor: Principal,
        notes: Optional[str] = None,
    ) -> None:
        lead = self.leads.require(lead_id)
        guard.require_client_access(actor, lead)

        status = str(status)
        raise_if_invalid(self.validate_lead_data({"status": status}))

        old_status = lead.get("status")
        updates: Dict[str, Any] = {"status": status}
        if status == LeadStatus.lost.value and notes:
            updates["lost_reason"] = notes

        self.leads.update(lead_id, updates, actor.id)

        self.audit.log(
            ActivityType.client_updated,
            actor.id,
            f"Updated lead status: {contact_name(lead)} from {old_status} to {status}",
            {"old_status": old_status, "new_status": status, "notes": notes},
            target_id=lead_id,
            target_type=TargetType.lead,
        )

    def convert_lead_to_client(self, lead_id: str, actor: Principal) -> str:
        lead = self.leads.require(lead_id)
        guard.require_client_access(actor, lead)

        if lead.get("status") == LeadStatus.won.value:
            raise InvalidArgument("Lead has already been converted")

        carried = (
            "first_name", "last_name", "email", "phone", "alternate_phone", "address",
            "company", "tax_number", "source", "assigned_sales_rep", "tags", "notes",
            "credit_rating", "payment_terms", "next_follow_up_date",
        )
        client_data = {k: lead.get(k) for k in carried if lead.get(k) is not None}
        client_data["status"] = ClientStatus.customer.value
        client_data["last_contact_date"] = utc_now()

        client_id = self.client_manager.create_client(client_data, actor)

        now = utc_now()
        self.leads.update(lead_id, {
            "status": LeadStatus.won.value,
            "conversion_date": now,
        }, actor.id)

        self.audit.log(
            ActivityType.client_created,
            actor.id,
            f"Converted lead to client: {contact_name(lead)}",
            {"original_lead_id": lead_id, "conversion_date": now.isoformat()},
            target_id=client_id,
            target_type=TargetType.client,
        )
        return client_id

    def get_leads_by_status(self, status: Union[str, LeadStatus]) -> List[Dict[str, Any]]:
        return self.leads.where("status", str(status))

    def get_leads_by_priority(self, priority: Union[str, Priority]) -> List[Dict[str, Any]]:
        return self.leads.where("priority", str(priority))

    def get_lead_stats(self) -> Dict[str, Any]:
        leads = self.leads.all()
        by_status: Dict[str, int] = {}
        by_priority: Dict[str, int] = {}
        total_value = 0
        converted = 0

        for lead in leads:
            by_status[lead.get("status")] = by_status.get(lead.get("status"), 0) + 1
            by_priority[lead.get("priority")] = by_priority.get(lead.get("priority"), 0) + 1
            total_value += lead.get("estimated_value") or 0
            if lead.get("status") == LeadStatus.won.value:
                converted += 1

        return {
            "total": len(leads),
            "by_status": by_status,
            "by_priority": by_priority,
            "conversion_rate": converted / len(leads) * 100 if leads else 0,
            "average_value": total_value / len(leads) if leads else 0,
        }

    def list_leads(self, page_size: int, cursor: Optional[int] = None):
        return self.leads.query_paginated(
            [QueryFilter.order_by("created_at", descending=True)],
            page_size,
            cursor,
        )
