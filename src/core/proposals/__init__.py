from src.core.proposals.errors import (
    InvalidSignatureRoleError,
    ProposalAccessDeniedError,
    ProposalAlreadySignedError,
    ProposalError,
    ProposalLockedError,
    ProposalNotFoundError,
    ProposalTransitionError,
    ProposalValidationError,
)
from src.core.proposals.models import (
    PaymentSchedule,
    PaymentTerms,
    ProposalCreateRequest,
    ProposalItemInput,
    ProposalItemRecord,
    ProposalPaymentScheduleResponse,
    ProposalRecord,
    ProposalResponse,
    ProposalSignRequest,
    ProposalUpdateRequest,
    PublicProposalUpdateRequest,
)
from src.core.proposals.payments import compute_grand_total, compute_payment_schedule
from src.core.proposals.policy import (
    Actor,
    AdminCapability,
    PublicSignerCapability,
    capability_for,
)
from src.core.proposals.repository import ProposalRepository
from src.core.proposals.service import ProposalService, to_proposal_response

__all__ = [
    "Actor",
    "AdminCapability",
    "InvalidSignatureRoleError",
    "PaymentSchedule",
    "PaymentTerms",
    "ProposalAccessDeniedError",
    "ProposalAlreadySignedError",
    "ProposalCreateRequest",
    "ProposalError",
    "ProposalItemInput",
    "ProposalItemRecord",
    "ProposalLockedError",
    "ProposalNotFoundError",
    "ProposalPaymentScheduleResponse",
    "ProposalRecord",
    "ProposalRepository",
    "ProposalResponse",
    "ProposalService",
    "ProposalSignRequest",
    "ProposalTransitionError",
    "ProposalUpdateRequest",
    "ProposalValidationError",
    "PublicProposalUpdateRequest",
    "PublicSignerCapability",
    "capability_for",
    "compute_grand_total",
    "compute_payment_schedule",
    "to_proposal_response",
]
