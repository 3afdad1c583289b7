from fastapi import APIRouter, Depends, status

from src.api.dependencies import public_signer
from src.core.proposals.models import (
    ProposalPaymentScheduleResponse,
    ProposalResponse,
    ProposalSignRequest,
    PublicProposalUpdateRequest,
)
from src.core.proposals.policy import PublicSignerCapability
from src.core.proposals.service import to_proposal_response

router = APIRouter(prefix="/api/public/proposals", tags=["Public Proposals"])


@router.get(
    "/{proposal_id}",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Shared Proposal",
    description="Unauthenticated read of the proposal referenced by a shareable link.",
)
def get_public_proposal(
    signer: PublicSignerCapability = Depends(public_signer),
) -> ProposalResponse:
    return to_proposal_response(signer.get_proposal())


@router.put(
    "/{proposal_id}",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Adjust Payment Terms",
    description=(
        "Only `payment_option`, `payment_terms` and `domain_package_fee` are applied; any other "
        "field is ignored. Rejected with 423 once the client has signed."
    ),
)
def update_public_proposal(
    payload: PublicProposalUpdateRequest,
    signer: PublicSignerCapability = Depends(public_signer),
) -> ProposalResponse:
    return to_proposal_response(signer.update_payment(payload))


@router.post(
    "/{proposal_id}/sign",
    response_model=ProposalResponse,
    status_code=status.HTTP_200_OK,
    summary="Sign Proposal as Client",
    description="Records the client (`licensee`) signature, which locks the shared link.",
)
def sign_public_proposal(
    payload: ProposalSignRequest,
    signer: PublicSignerCapability = Depends(public_signer),
) -> ProposalResponse:
    return to_proposal_response(signer.sign(payload))


@router.get(
    "/{proposal_id}/schedule",
    response_model=ProposalPaymentScheduleResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Shared Payment Schedule",
)
def get_public_payment_schedule(
    signer: PublicSignerCapability = Depends(public_signer),
) -> ProposalPaymentScheduleResponse:
    return signer.get_payment_schedule()
