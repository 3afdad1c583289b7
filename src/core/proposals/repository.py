from typing import Any, Callable, Mapping, Optional, Protocol, Sequence

from src.core.proposals.items import ItemInsert
from src.core.proposals.models import ProposalFields, ProposalItemInput, ProposalRecord

ProposalMutation = Callable[[ProposalRecord], Mapping[str, Any]]


class ProposalRepository(Protocol):
    def list_proposals(self) -> list[ProposalRecord]: ...

    def get_proposal(self, *, proposal_id: int) -> Optional[ProposalRecord]: ...

    def count_proposals(self) -> int: ...

    def create_proposal(
        self, *, fields: ProposalFields, items: Sequence[ItemInsert]
    ) -> ProposalRecord: ...

    def update_proposal(
        self,
        *,
        proposal_id: int,
        changes: Mapping[str, Any],
        items: Optional[Sequence[ProposalItemInput]] = None,
    ) -> Optional[ProposalRecord]: ...

    def mutate_proposal(
        self,
        *,
        proposal_id: int,
        mutate: ProposalMutation,
        items: Optional[Sequence[ProposalItemInput]] = None,
    ) -> Optional[ProposalRecord]:
        """Read, derive changes and write as one atomic step.

        ``mutate`` receives the current record inside the write lock or
        transaction and returns the field changes to store. Anything it raises
        aborts the write.
        """
        ...

    def delete_proposal(self, *, proposal_id: int) -> bool: ...
