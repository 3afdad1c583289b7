"""
Access policy for proposals.

Each actor kind maps to exactly one capability object, and a capability only
exposes the operations that actor may invoke. ``capability_for`` is the single
place where that mapping is decided.
"""

import logging
from dataclasses import dataclass
from typing import Any, Literal, Optional, Union

from src.core.proposals.errors import ProposalAccessDeniedError, ProposalLockedError
from src.core.proposals.lifecycle import SIGNATURE_ROLES, is_locked
from src.core.proposals.models import (
    ProposalCreateRequest,
    ProposalPaymentScheduleResponse,
    ProposalRecord,
    ProposalSignRequest,
    ProposalUpdateRequest,
    PublicProposalUpdateRequest,
)
from src.core.proposals.service import ProposalService

logger = logging.getLogger(__name__)

ActorKind = Literal["admin", "public_signer"]

PUBLIC_UPDATABLE_FIELDS = frozenset({"payment_option", "payment_terms", "domain_package_fee"})
ADMIN_SIGNATURE_ROLES = frozenset({"noviq"})
PUBLIC_SIGNATURE_ROLES = frozenset({"licensee"})


@dataclass(frozen=True)
class Actor:
    kind: ActorKind
    user_id: Optional[int] = None
    proposal_id: Optional[int] = None

    @classmethod
    def admin(cls, user_id: int) -> "Actor":
        return cls(kind="admin", user_id=user_id)

    @classmethod
    def public_signer(cls, proposal_id: int) -> "Actor":
        return cls(kind="public_signer", proposal_id=proposal_id)


def ensure_public_mutable(proposal: ProposalRecord) -> None:
    if is_locked(proposal):
        raise ProposalLockedError("PROPOSAL_LOCKED")


def filter_public_changes(payload: PublicProposalUpdateRequest) -> dict[str, Any]:
    changes = {
        name: getattr(payload, name)
        for name in payload.model_fields_set & PUBLIC_UPDATABLE_FIELDS
    }
    # payment_option is required on the record, so an explicit null means "unchanged".
    if "payment_option" in changes and changes["payment_option"] is None:
        del changes["payment_option"]
    return changes


def _ensure_role_permitted(role: str, permitted: frozenset[str]) -> None:
    # Unknown roles fall through so the lifecycle reports INVALID_SIGNATURE_ROLE.
    if role in SIGNATURE_ROLES and role not in permitted:
        raise ProposalAccessDeniedError(f"SIGNATURE_ROLE_NOT_PERMITTED:{role}")


class AdminCapability:
    def __init__(self, *, service: ProposalService, actor: Actor) -> None:
        self._service = service
        self.actor = actor

    def list_proposals(self) -> list[ProposalRecord]:
        return self._service.list_proposals()

    def get_proposal(self, proposal_id: int) -> ProposalRecord:
        return self._service.get_proposal(proposal_id=proposal_id)

    def create_proposal(self, payload: ProposalCreateRequest) -> ProposalRecord:
        return self._service.create_proposal(payload=payload)

    def update_proposal(self, proposal_id: int, payload: ProposalUpdateRequest) -> ProposalRecord:
        return self._service.update_proposal(proposal_id=proposal_id, payload=payload)

    def delete_proposal(self, proposal_id: int) -> None:
        self._service.delete_proposal(proposal_id=proposal_id)

    def sign_proposal(self, proposal_id: int, payload: ProposalSignRequest) -> ProposalRecord:
        _ensure_role_permitted(payload.role, ADMIN_SIGNATURE_ROLES)
        return self._service.sign_proposal(
            proposal_id=proposal_id, role=payload.role, signature=payload.signature
        )

    def reset_proposal(self, proposal_id: int) -> ProposalRecord:
        return self._service.reset_proposal(proposal_id=proposal_id)

    def mark_sent(self, proposal_id: int) -> ProposalRecord:
        return self._service.mark_sent(proposal_id=proposal_id)

    def get_payment_schedule(self, proposal_id: int) -> ProposalPaymentScheduleResponse:
        return self._service.get_payment_schedule(proposal_id=proposal_id)


class PublicSignerCapability:
    """Operations available to whoever holds the shareable link to one proposal."""

    def __init__(self, *, service: ProposalService, proposal_id: int) -> None:
        self._service = service
        self.proposal_id = proposal_id

    def find_proposal(self) -> Optional[ProposalRecord]:
        return self._service.find_proposal(proposal_id=self.proposal_id)

    def get_proposal(self) -> ProposalRecord:
        return self._service.get_proposal(proposal_id=self.proposal_id)

    def update_payment(self, payload: PublicProposalUpdateRequest) -> ProposalRecord:
        dropped = sorted(payload.model_extra or {})
        if dropped:
            logger.warning(
                "proposal.public_update.dropped_fields",
                extra={"extra_fields": {"proposal_id": self.proposal_id, "fields": dropped}},
            )
        return self._service.apply_field_changes(
            proposal_id=self.proposal_id,
            changes=filter_public_changes(payload),
            guard=ensure_public_mutable,
        )

    def sign(self, payload: ProposalSignRequest) -> ProposalRecord:
        _ensure_role_permitted(payload.role, PUBLIC_SIGNATURE_ROLES)
        return self._service.sign_proposal(
            proposal_id=self.proposal_id,
            role=payload.role,
            signature=payload.signature,
            guard=ensure_public_mutable,
        )

    def get_payment_schedule(self) -> ProposalPaymentScheduleResponse:
        return self._service.get_payment_schedule(proposal_id=self.proposal_id)


Capability = Union[AdminCapability, PublicSignerCapability]


def capability_for(actor: Actor, service: ProposalService) -> Capability:
    if actor.kind == "admin":
        return AdminCapability(service=service, actor=actor)
    if actor.kind == "public_signer":
        if actor.proposal_id is None:
            raise ValueError("public signer actor requires a proposal_id")
        return PublicSignerCapability(service=service, proposal_id=actor.proposal_id)
    raise ValueError(f"unknown actor kind: {actor.kind}")
