from decimal import Decimal

import pytest

from src.core.proposals.errors import (
    ProposalNotFoundError,
    ProposalTransitionError,
    ProposalValidationError,
)
from src.core.proposals.models import ProposalUpdateRequest
from src.core.proposals.service import (
    DEMO_PROPOSAL,
    ProposalService,
    to_proposal_response,
)
from src.infrastructure.proposals import InMemoryProposalRepository
from tests.factories import create_request


def test_create_applies_defaults_and_orders_items(proposal_service, clock):
    proposal = proposal_service.create_proposal(payload=create_request())

    assert proposal.id == 1
    assert proposal.status == "draft"
    assert proposal.created_at == clock()
    assert proposal.updated_at == clock()
    assert [(item.title, item.order) for item in proposal.items] == [
        ("Product Modules", 0),
        ("Admin Panel", 1),
    ]


def test_list_returns_newest_first(proposal_service, clock):
    first = proposal_service.create_proposal(payload=create_request(client_name="A"))
    clock.advance(minutes=1)
    second = proposal_service.create_proposal(payload=create_request(client_name="B"))

    assert [proposal.id for proposal in proposal_service.list_proposals()] == [
        second.id,
        first.id,
    ]


def test_get_and_find_missing_proposal(proposal_service):
    assert proposal_service.find_proposal(proposal_id=99) is None
    with pytest.raises(ProposalNotFoundError, match="PROPOSAL_NOT_FOUND"):
        proposal_service.get_proposal(proposal_id=99)


def test_writes_on_missing_proposal_fail_loudly(proposal_service):
    with pytest.raises(ProposalNotFoundError):
        proposal_service.update_proposal(
            proposal_id=99, payload=ProposalUpdateRequest(client_name="x")
        )
    with pytest.raises(ProposalNotFoundError):
        proposal_service.delete_proposal(proposal_id=99)
    with pytest.raises(ProposalNotFoundError):
        proposal_service.reset_proposal(proposal_id=99)


def test_update_without_items_leaves_items_untouched(proposal_service, clock):
    proposal = proposal_service.create_proposal(payload=create_request())
    later = clock.advance(minutes=3)

    updated = proposal_service.update_proposal(
        proposal_id=proposal.id,
        payload=ProposalUpdateRequest(total_development_fee="1500"),
    )

    assert updated.total_development_fee == Decimal("1500")
    assert updated.items == proposal.items
    assert updated.updated_at == later
    assert updated.created_at == proposal.created_at


def test_update_with_items_reconciles_by_id(proposal_service):
    proposal = proposal_service.create_proposal(payload=create_request())
    first, second = proposal.items

    updated = proposal_service.update_proposal(
        proposal_id=proposal.id,
        payload=ProposalUpdateRequest.model_validate(
            {"items": [{"id": second.id, "title": second.title}, {"title": "Hosting"}]}
        ),
    )

    assert [(item.id, item.title, item.order) for item in updated.items] == [
        (second.id, second.title, 0),
        (updated.items[1].id, "Hosting", 1),
    ]
    assert first.id not in {item.id for item in updated.items}


def test_sign_then_reset_then_sign_again(proposal_service):
    proposal = proposal_service.create_proposal(payload=create_request())
    proposal_service.sign_proposal(proposal_id=proposal.id, role="noviq", signature="n")
    signed = proposal_service.sign_proposal(
        proposal_id=proposal.id, role="licensee", signature="l"
    )
    assert signed.status == "signed"

    reset = proposal_service.reset_proposal(proposal_id=proposal.id)
    assert reset.status == "draft"
    assert reset.noviq_signature is None
    assert reset.licensee_signature is None

    again = proposal_service.sign_proposal(
        proposal_id=proposal.id, role="licensee", signature="l2"
    )
    assert again.licensee_signature == "l2"


def test_mark_sent_and_invalid_transition(proposal_service):
    proposal = proposal_service.create_proposal(payload=create_request())

    assert proposal_service.mark_sent(proposal_id=proposal.id).status == "sent"

    proposal_service.sign_proposal(proposal_id=proposal.id, role="noviq", signature="n")
    proposal_service.sign_proposal(proposal_id=proposal.id, role="licensee", signature="l")
    with pytest.raises(ProposalTransitionError):
        proposal_service.mark_sent(proposal_id=proposal.id)


def test_rejected_update_leaves_stored_proposal_unchanged(proposal_service):
    proposal = proposal_service.create_proposal(payload=create_request())

    with pytest.raises(ProposalValidationError):
        proposal_service.update_proposal(
            proposal_id=proposal.id,
            payload=ProposalUpdateRequest(status="signed", client_name="Changed"),
        )

    assert proposal_service.get_proposal(proposal_id=proposal.id) == proposal


def test_guard_runs_before_any_change(proposal_service):
    proposal = proposal_service.create_proposal(payload=create_request())

    def _deny(_proposal):
        raise PermissionError("denied")

    with pytest.raises(PermissionError):
        proposal_service.apply_field_changes(
            proposal_id=proposal.id, changes={"client_name": "x"}, guard=_deny
        )
    assert proposal_service.get_proposal(proposal_id=proposal.id).client_name == "JHL"


def test_payment_schedule_is_rounded_for_display(proposal_service):
    proposal = proposal_service.create_proposal(
        payload=create_request(total_development_fee="1000", payment_option="installment")
    )

    response = proposal_service.get_payment_schedule(proposal_id=proposal.id)

    assert response.payment_option == "installment"
    assert response.schedule.upfront == Decimal("500.00")
    assert response.schedule.monthly == Decimal("166.67")
    assert response.schedule.months == 3


def test_seed_demo_proposal_only_into_empty_store(clock):
    service = ProposalService(repository=InMemoryProposalRepository(), clock=clock)

    seeded = service.seed_demo_proposal()

    assert seeded is not None
    assert seeded.client_name == DEMO_PROPOSAL.client_name
    assert len(seeded.items) == 4
    assert service.seed_demo_proposal() is None
    assert len(service.list_proposals()) == 1


def test_response_exposes_lock_flag(proposal_service):
    proposal = proposal_service.create_proposal(payload=create_request())
    assert to_proposal_response(proposal).locked is False

    signed = proposal_service.sign_proposal(
        proposal_id=proposal.id, role="licensee", signature="l"
    )
    assert to_proposal_response(signed).locked is True
