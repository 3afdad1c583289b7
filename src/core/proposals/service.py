import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Sequence

from src.core.proposals.errors import ProposalNotFoundError
from src.core.proposals.items import build_item_inserts
from src.core.proposals.lifecycle import (
    apply_admin_changes,
    is_locked,
    mark_sent,
    record_signature,
    reset_to_draft,
)
from src.core.proposals.models import (
    ProposalCreateRequest,
    ProposalFields,
    ProposalItemInput,
    ProposalPaymentScheduleResponse,
    ProposalRecord,
    ProposalResponse,
    ProposalUpdateRequest,
)
from src.core.proposals.payments import round_schedule, schedule_for_proposal
from src.core.proposals.repository import ProposalRepository

logger = logging.getLogger(__name__)

ProposalGuard = Callable[[ProposalRecord], None]
ProposalTransform = Callable[[ProposalRecord, datetime], ProposalFields]

_TIMESTAMP_FIELDS = {"created_at", "updated_at"}

DEMO_PROPOSAL = ProposalCreateRequest(
    client_name="JHL",
    title="Service Agreement & Project Deliverables (Noviq - JHL)",
    total_development_fee="900",
    domain_package_fee="0",
    payment_option="milestone",
    items=[
        {"title": "Product Modules", "description": "Core functionality implementation."},
        {"title": "Intelligence", "description": "AI integration and data analysis."},
        {"title": "Admin Panel", "description": "Dashboard for management."},
        {"title": "Donation Gateway", "description": "Payment processing integration."},
    ],
)


class ProposalService:
    """Applies proposal mutations against the repository.

    The service is actor-agnostic: callers restrict what reaches it through the
    capabilities in ``src.core.proposals.policy`` and may pass a ``guard`` that
    is evaluated against the freshly loaded proposal before any change is made.
    """

    def __init__(
        self,
        *,
        repository: ProposalRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or _utc_now

    def list_proposals(self) -> list[ProposalRecord]:
        return self._repository.list_proposals()

    def find_proposal(self, *, proposal_id: int) -> Optional[ProposalRecord]:
        return self._repository.get_proposal(proposal_id=proposal_id)

    def get_proposal(self, *, proposal_id: int) -> ProposalRecord:
        proposal = self.find_proposal(proposal_id=proposal_id)
        if proposal is None:
            raise ProposalNotFoundError("PROPOSAL_NOT_FOUND")
        return proposal

    def create_proposal(self, *, payload: ProposalCreateRequest) -> ProposalRecord:
        now = self._clock()
        fields = ProposalFields(
            client_name=payload.client_name,
            title=payload.title,
            total_development_fee=payload.total_development_fee,
            domain_package_fee=payload.domain_package_fee,
            payment_option=payload.payment_option,
            payment_terms=payload.payment_terms,
            created_at=now,
            updated_at=now,
        )
        proposal = self._repository.create_proposal(
            fields=fields, items=build_item_inserts(payload.items)
        )
        logger.info(
            "proposal.created",
            extra={"extra_fields": {"proposal_id": proposal.id, "item_count": len(proposal.items)}},
        )
        return proposal

    def update_proposal(
        self,
        *,
        proposal_id: int,
        payload: ProposalUpdateRequest,
        guard: Optional[ProposalGuard] = None,
    ) -> ProposalRecord:
        changes = {
            name: getattr(payload, name) for name in payload.model_fields_set if name != "items"
        }
        items = payload.items if "items" in payload.model_fields_set else None
        return self.apply_field_changes(
            proposal_id=proposal_id, changes=changes, items=items, guard=guard
        )

    def apply_field_changes(
        self,
        *,
        proposal_id: int,
        changes: Mapping[str, Any],
        items: Optional[Sequence[ProposalItemInput]] = None,
        guard: Optional[ProposalGuard] = None,
    ) -> ProposalRecord:
        return self._mutate(
            proposal_id=proposal_id,
            transform=lambda proposal, now: apply_admin_changes(proposal, changes, now=now),
            items=items,
            guard=guard,
            event="proposal.updated",
        )

    def delete_proposal(self, *, proposal_id: int) -> None:
        if not self._repository.delete_proposal(proposal_id=proposal_id):
            raise ProposalNotFoundError("PROPOSAL_NOT_FOUND")
        logger.info("proposal.deleted", extra={"extra_fields": {"proposal_id": proposal_id}})

    def sign_proposal(
        self,
        *,
        proposal_id: int,
        role: str,
        signature: str,
        guard: Optional[ProposalGuard] = None,
    ) -> ProposalRecord:
        return self._mutate(
            proposal_id=proposal_id,
            transform=lambda proposal, now: record_signature(
                proposal, role=role, signature=signature, signed_at=now
            ),
            guard=guard,
            event="proposal.signed",
            details={"role": role},
        )

    def reset_proposal(self, *, proposal_id: int) -> ProposalRecord:
        return self._mutate(
            proposal_id=proposal_id,
            transform=lambda proposal, _now: reset_to_draft(proposal),
            event="proposal.reset",
        )

    def mark_sent(self, *, proposal_id: int) -> ProposalRecord:
        return self._mutate(
            proposal_id=proposal_id,
            transform=lambda proposal, _now: mark_sent(proposal),
            event="proposal.sent",
        )

    def get_payment_schedule(self, *, proposal_id: int) -> ProposalPaymentScheduleResponse:
        return to_schedule_response(self.get_proposal(proposal_id=proposal_id))

    def seed_demo_proposal(self) -> Optional[ProposalRecord]:
        if self._repository.count_proposals() > 0:
            return None
        logger.info("Seeding demo proposal into empty store")
        return self.create_proposal(payload=DEMO_PROPOSAL)

    def _mutate(
        self,
        *,
        proposal_id: int,
        transform: ProposalTransform,
        event: str,
        items: Optional[Sequence[ProposalItemInput]] = None,
        guard: Optional[ProposalGuard] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> ProposalRecord:
        now = self._clock()
        changes: dict[str, Any] = {}

        def _apply(proposal: ProposalRecord) -> dict[str, Any]:
            # Runs under the repository write lock, so the guard sees committed state.
            if guard is not None:
                guard(proposal)
            changes.update(_changed_fields(before=proposal, after=transform(proposal, now)))
            changes["updated_at"] = now
            return changes

        result = self._repository.mutate_proposal(
            proposal_id=proposal_id, mutate=_apply, items=items
        )
        if result is None:
            raise ProposalNotFoundError("PROPOSAL_NOT_FOUND")
        logger.info(
            event,
            extra={
                "extra_fields": {
                    "proposal_id": proposal_id,
                    "status": result.status,
                    "changed_fields": sorted(changes),
                    **(details or {}),
                }
            },
        )
        return result


def to_proposal_response(proposal: ProposalRecord) -> ProposalResponse:
    return ProposalResponse(
        id=proposal.id,
        **{name: getattr(proposal, name) for name in ProposalFields.model_fields},
        items=proposal.items,
        locked=is_locked(proposal),
    )


def to_schedule_response(proposal: ProposalRecord) -> ProposalPaymentScheduleResponse:
    return ProposalPaymentScheduleResponse(
        proposal_id=proposal.id,
        payment_option=proposal.payment_option,
        schedule=round_schedule(schedule_for_proposal(proposal)),
    )


def _changed_fields(*, before: ProposalFields, after: ProposalFields) -> dict[str, Any]:
    return {
        name: getattr(after, name)
        for name in ProposalFields.model_fields
        if name not in _TIMESTAMP_FIELDS and getattr(after, name) != getattr(before, name)
    }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
