from threading import Barrier, Thread

import pytest

from src.core.proposals.errors import ProposalLockedError
from src.core.proposals.models import ProposalSignRequest, PublicProposalUpdateRequest
from src.core.proposals.policy import PublicSignerCapability
from src.core.proposals.service import ProposalService
from src.infrastructure.proposals import InMemoryProposalRepository, SqliteProposalRepository
from tests.factories import create_request


class _InterleavingRepository(InMemoryProposalRepository):
    """Commits a competing request right after the caller starts its write."""

    def __init__(self) -> None:
        super().__init__()
        self.competing_write = None

    def mutate_proposal(self, **kwargs):
        competing, self.competing_write = self.competing_write, None
        if competing is not None:
            competing()
        return super().mutate_proposal(**kwargs)


def _licensee(signature: str) -> ProposalSignRequest:
    return ProposalSignRequest(role="licensee", signature=signature)


@pytest.fixture
def interleaving(clock):
    repository = _InterleavingRepository()
    service = ProposalService(repository=repository, clock=clock)
    proposal = service.create_proposal(payload=create_request())
    signer = PublicSignerCapability(service=service, proposal_id=proposal.id)
    return repository, service, signer


def test_competing_licensee_signature_wins_and_second_is_locked(interleaving):
    repository, service, signer = interleaving
    repository.competing_write = lambda: signer.sign(_licensee("FIRST"))

    with pytest.raises(ProposalLockedError):
        signer.sign(_licensee("SECOND"))

    stored = service.get_proposal(proposal_id=signer.proposal_id)
    assert stored.licensee_signature == "FIRST"


def test_payment_edit_arriving_after_signature_is_locked(interleaving):
    repository, service, signer = interleaving
    repository.competing_write = lambda: signer.sign(_licensee("FIRST"))

    with pytest.raises(ProposalLockedError):
        signer.update_payment(PublicProposalUpdateRequest(payment_option="installment"))

    stored = service.get_proposal(proposal_id=signer.proposal_id)
    assert stored.payment_option == "milestone"
    assert stored.licensee_signature == "FIRST"


@pytest.mark.parametrize("backend", ["in_memory", "sqlite"])
def test_parallel_licensee_signatures_record_exactly_one(backend, tmp_path, clock):
    if backend == "sqlite":
        repository = SqliteProposalRepository(database_path=str(tmp_path / "race.sqlite"))
    else:
        repository = InMemoryProposalRepository()
    service = ProposalService(repository=repository, clock=clock)
    proposal = service.create_proposal(payload=create_request())
    signer = PublicSignerCapability(service=service, proposal_id=proposal.id)

    attempts = 8
    barrier = Barrier(attempts)
    accepted: list[str] = []
    locked: list[str] = []

    def _sign(signature: str) -> None:
        barrier.wait()
        try:
            signer.sign(_licensee(signature))
        except ProposalLockedError:
            locked.append(signature)
        else:
            accepted.append(signature)

    threads = [Thread(target=_sign, args=(f"sig-{index}",)) for index in range(attempts)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(accepted) == 1
    assert len(locked) == attempts - 1
    stored = service.get_proposal(proposal_id=proposal.id)
    assert stored.licensee_signature == accepted[0]
