# services/proposal_manager.py

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from core import guard
from core.audit import AuditLogger
from core.errors import ValidationError, raise_if_invalid
from core.identity import Principal
from core.logging_config import logger
from core.numbering import LatestRecordSequence, SequenceStrategy, proposal_number_prefix
from core.permissions import Capability
from core.store import Collections, DocumentStore, QueryFilter
from models.enums import ActivityType, ProposalStatus, TargetType
from services.base import EntityRepository, utc_now
from services.validation import as_datetime, to_document, too_short

STATUS_ACTIVITY = {
    ProposalStatus.sent.value: ActivityType.proposal_sent,
    ProposalStatus.accepted.value: ActivityType.proposal_accepted,
    ProposalStatus.rejected.value: ActivityType.proposal_rejected,
}


class ProposalManager:
    def __init__(
        self,
        store: DocumentStore,
        audit: Optional[AuditLogger] = None,
        sequence: Optional[SequenceStrategy] = None,
    ):
        self.proposals = EntityRepository(store, Collections.proposals.value, "Proposal")
        self.clients = EntityRepository(store, Collections.clients.value, "Client")
        self.audit = audit or AuditLogger(store)
        self.sequence = sequence or LatestRecordSequence(store, Collections.proposals.value, "proposal_number")

    @staticmethod
    def validate_proposal_data(data: Dict[str, Any]) -> List[str]:
        errors = []
        if "title" in data and too_short(data.get("title"), 5):
            errors.append("Proposal title must be at least 5 characters")
        if "valid_until" in data and as_datetime(data.get("valid_until")) is None:
            errors.append("Invalid validity date")
        for item in data.get("line_items") or []:
            if (item.get("quantity") or 0) <= 0:
                errors.append(f"Line item quantity must be greater than 0: {item.get('product_name')}")
        return errors

    def create_proposal(self, payload: Union[BaseModel, Dict[str, Any]], actor: Principal) -> str:
        data = to_document(payload)
        data.pop("proposal_number", None)

        guard.require_capability(actor, Capability.manage_proposals)
        client = self.clients.require(data.get("client_id"))
        raise_if_invalid(self.validate_proposal_data(data))

        number = self.sequence.next_value(proposal_number_prefix())
        record = {
            **data,
            "proposal_number": number,
            "status": ProposalStatus.draft.value,
            "version": 1,
            "ai_generated": data.get("ai_generated", False),
        }

        proposal_id = self.proposals.create(record, actor.id)
        logger.info(f"Proposal created: {number} ({proposal_id}) by {actor.id}")

        self.audit.log(
            ActivityType.proposal_generated,
            actor.id,
            f"Generated proposal {number} for {client.get('first_name', '')} {client.get('last_name', '')}".rstrip(),
            {"proposal_number": number, "client_id": client["id"]},
            target_id=proposal_id,
            target_type=TargetType.proposal,
        )
        return proposal_id

    def update_proposal_status(
        self,
        proposal_id: str,
        status: Union[str, ProposalStatus],
        actor: Principal,
        reason: Optional[str] = None,
    ) -> None:
        proposal = self.proposals.require(proposal_id)
        guard.require_capability(actor, Capability.manage_proposals)

        status = str(status)
        if not ProposalStatus.has_value(status):
            raise ValidationError(["Invalid proposal status"])

        now = utc_now()
        updates: Dict[str, Any] = {"status": status}
        if status == ProposalStatus.sent.value:
            updates["sent_date"] = now
        elif status == ProposalStatus.viewed.value:
            updates["viewed_date"] = now
        elif status in (ProposalStatus.accepted.value, ProposalStatus.rejected.value):
            updates["response_date"] = now
            if status == ProposalStatus.rejected.value and reason:
                updates["rejection_reason"] = reason

        self.proposals.update(proposal_id, updates, actor.id)

        old_status = proposal.get("status")
        self.audit.log(
            STATUS_ACTIVITY.get(status, ActivityType.other),
            actor.id,
            f"Proposal {proposal.get('proposal_number')} moved from {old_status} to {status}",
            {"old_status": old_status, "new_status": status, "reason": reason},
            target_id=proposal_id,
            target_type=TargetType.proposal,
        )

    def get_proposals_for_client(self, client_id: str) -> List[Dict[str, Any]]:
        return self.proposals.query([
            QueryFilter.where("client_id", "=", client_id),
            QueryFilter.order_by("created_at", descending=True),
        ])

    def get_expired_proposals(self) -> List[Dict[str, Any]]:
        return self.proposals.query([QueryFilter.where("valid_until", "<", utc_now())])
