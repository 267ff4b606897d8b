# routers/proposals.py

from fastapi import APIRouter, Depends

from core.identity import Principal
from dependencies.auth import get_current_user
from dependencies.services import get_proposal_manager
from models.proposal import ProposalCreate, ProposalStatusUpdate
from services.proposal_manager import ProposalManager


router = APIRouter(
    prefix="/proposals",
    tags=["Proposals"],
)


@router.get("/expired", summary="Proposals past their validity date")
def expired_proposals(
    current_user: Principal = Depends(get_current_user),
    manager: ProposalManager = Depends(get_proposal_manager),
):
    return {"success": True, "data": manager.get_expired_proposals()}


@router.get("/client/{client_id}", summary="Proposals for a client")
def proposals_for_client(
    client_id: str,
    current_user: Principal = Depends(get_current_user),
    manager: ProposalManager = Depends(get_proposal_manager),
):
    return {"success": True, "data": manager.get_proposals_for_client(client_id)}


@router.post(
    "",
    summary="Create Proposal",
    description="Starts as a `draft`, version 1, numbered `PROP-YYYY-NNNN`.",
)
def create_proposal(
    payload: ProposalCreate,
    current_user: Principal = Depends(get_current_user),
    manager: ProposalManager = Depends(get_proposal_manager),
):
    proposal_id = manager.create_proposal(payload, current_user)
    return {"success": True, "data": {"id": proposal_id}}


@router.post("/{proposal_id}/status", summary="Change proposal status")
def update_proposal_status(
    proposal_id: str,
    payload: ProposalStatusUpdate,
    current_user: Principal = Depends(get_current_user),
    manager: ProposalManager = Depends(get_proposal_manager),
):
    manager.update_proposal_status(proposal_id, payload.status, current_user, payload.reason)
    return {"success": True}
