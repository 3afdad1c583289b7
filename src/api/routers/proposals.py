from fastapi import APIRouter, Depends, Response, status

from src.api.dependencies import ProposalIdPath, require_admin
from src.core.proposals.models import (
    ProposalCreateRequest,
    ProposalPaymentScheduleResponse,
    ProposalResponse,
    ProposalSignRequest,
    ProposalUpdateRequest,
)
from src.core.proposals.policy import AdminCapability
from src.core.proposals.service import to_proposal_response

router = APIRouter(prefix="/api/proposals", tags=["Proposals"])


@router.get(
    "",
    response_model=list[ProposalResponse],
    status_code=status.HTTP_200_OK,
    summary="List Proposals",
    description="Lists every proposal with its items, newest first.",
)
def list_proposals(
    admin: AdminCapability = Depends(require_admin),
) -> list[ProposalResponse]:
    return [to_proposal_response(proposal) for proposal in admin.list_proposals()]


@router.post(
    "",
    response_model=ProposalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Proposal",
)
def create_proposal(
    payload: ProposalCreateRequest,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalResponse:
    return to_proposal_response(admin.create_proposal(payload))


@router.get(
    "/{proposal_id}",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Proposal",
)
def get_proposal(
    proposal_id: ProposalIdPath,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalResponse:
    return to_proposal_response(admin.get_proposal(proposal_id))


@router.put(
    "/{proposal_id}",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Update Proposal",
    description=(
        "Partial update of any field. When `items` is supplied it replaces the item list: "
        "items are matched by id, unmatched stored items are deleted, and order follows the "
        "submitted position. Not subject to the client-signature lock."
    ),
)
def update_proposal(
    proposal_id: ProposalIdPath,
    payload: ProposalUpdateRequest,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalResponse:
    return to_proposal_response(admin.update_proposal(proposal_id, payload))


@router.delete(
    "/{proposal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Proposal",
    description="Deletes the proposal and all of its items.",
)
def delete_proposal(
    proposal_id: ProposalIdPath,
    admin: AdminCapability = Depends(require_admin),
) -> Response:
    admin.delete_proposal(proposal_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{proposal_id}/sign",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign Proposal as Provider",
    description="Records the provider (`noviq`) signature. Re-signing replaces the signature.",
)
def sign_proposal(
    proposal_id: ProposalIdPath,
    payload: ProposalSignRequest,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalResponse:
    return to_proposal_response(admin.sign_proposal(proposal_id, payload))


@router.post(
    "/{proposal_id}/reset",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset Proposal to Draft",
    description="Clears both signatures and their dates and returns the proposal to `draft`.",
)
def reset_proposal(
    proposal_id: ProposalIdPath,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalResponse:
    return to_proposal_response(admin.reset_proposal(proposal_id))


@router.post(
    "/{proposal_id}/send",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark Proposal Sent",
)
def mark_proposal_sent(
    proposal_id: ProposalIdPath,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalResponse:
    return to_proposal_response(admin.mark_sent(proposal_id))


@router.get(
    "/{proposal_id}/schedule",
    response_model=ProposalPaymentScheduleResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Payment Schedule",
)
def get_payment_schedule(
    proposal_id: ProposalIdPath,
    admin: AdminCapability = Depends(require_admin),
) -> ProposalPaymentScheduleResponse:
    return admin.get_payment_schedule(proposal_id)
