from datetime import datetime
from typing import Any, Mapping

from src.core.proposals.errors import (
    InvalidSignatureRoleError,
    ProposalAlreadySignedError,
    ProposalTransitionError,
    ProposalValidationError,
)
from src.core.proposals.models import ProposalFields, ProposalStatus

SIGNATURE_ROLES = ("noviq", "licensee")

TRANSITION_MAP: dict[tuple[ProposalStatus, str], ProposalStatus] = {
    ("draft", "MARK_SENT"): "sent",
    ("sent", "MARK_SENT"): "sent",
}

_SIGNATURE_FIELDS = {
    "noviq": ("noviq_signature", "noviq_sign_date"),
    "licensee": ("licensee_signature", "licensee_sign_date"),
}


def is_fully_signed(proposal: ProposalFields) -> bool:
    return bool(proposal.noviq_signature) and bool(proposal.licensee_signature)


def is_locked(proposal: ProposalFields) -> bool:
    return bool(proposal.licensee_signature)


def record_signature(
    proposal: ProposalFields, *, role: str, signature: str, signed_at: datetime
) -> ProposalFields:
    if role not in SIGNATURE_ROLES:
        raise InvalidSignatureRoleError(f"INVALID_SIGNATURE_ROLE:{role}")
    if not signature:
        raise ProposalValidationError("SIGNATURE_REQUIRED", field="signature")
    if role == "licensee" and is_locked(proposal):
        raise ProposalAlreadySignedError("PROPOSAL_ALREADY_SIGNED")

    signature_field, date_field = _SIGNATURE_FIELDS[role]
    update: dict[str, Any] = {signature_field: signature}
    if _starts_signature(proposal, signature_field, date_field):
        update[date_field] = signed_at
    signed = proposal.model_copy(update=update)
    return _promote_when_fully_signed(signed)


def reset_to_draft(proposal: ProposalFields) -> ProposalFields:
    return proposal.model_copy(
        update={
            "status": "draft",
            "noviq_signature": None,
            "noviq_sign_date": None,
            "licensee_signature": None,
            "licensee_sign_date": None,
        }
    )


def mark_sent(proposal: ProposalFields) -> ProposalFields:
    to_status = TRANSITION_MAP.get((proposal.status, "MARK_SENT"))
    if to_status is None:
        raise ProposalTransitionError("INVALID_TRANSITION")
    return proposal.model_copy(update={"status": to_status})


def apply_admin_changes(
    proposal: ProposalFields, changes: Mapping[str, Any], *, now: datetime
) -> ProposalFields:
    """Apply an unrestricted field update the way the admin editor saves it.

    Signature edits set or clear the matching sign date. A ``signed`` proposal
    cannot lose a signature here; only ``reset_to_draft`` reopens it.
    """
    update = dict(changes)
    for signature_field, date_field in _SIGNATURE_FIELDS.values():
        if signature_field not in update:
            continue
        new_signature = update[signature_field] or None
        update[signature_field] = new_signature
        if new_signature is None:
            update[date_field] = None
        elif _starts_signature(proposal, signature_field, date_field):
            update[date_field] = now

    updated = proposal.model_copy(update=update)
    if updated.status == "signed" and not is_fully_signed(updated):
        raise ProposalValidationError(
            "STATUS_SIGNED_REQUIRES_BOTH_SIGNATURES", field=_signed_status_field(update)
        )
    return _promote_when_fully_signed(updated)


def _starts_signature(proposal: ProposalFields, signature_field: str, date_field: str) -> bool:
    # The sign date marks the first signature; re-signing keeps it.
    return not getattr(proposal, signature_field) or getattr(proposal, date_field) is None


def _signed_status_field(update: Mapping[str, Any]) -> str:
    if "status" in update:
        return "status"
    for signature_field, _date_field in _SIGNATURE_FIELDS.values():
        if signature_field in update and not update[signature_field]:
            return signature_field
    return "status"


def _promote_when_fully_signed(proposal: ProposalFields) -> ProposalFields:
    if is_fully_signed(proposal) and proposal.status != "signed":
        return proposal.model_copy(update={"status": "signed"})
    return proposal
