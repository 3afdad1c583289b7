from copy import deepcopy
from threading import Lock
from typing import Any, Mapping, Optional, Sequence

from src.core.proposals.items import ItemInsert, plan_item_reconciliation, sort_items
from src.core.proposals.models import (
    ProposalFields,
    ProposalItemInput,
    ProposalItemRecord,
    ProposalRecord,
)
from src.core.proposals.repository import ProposalMutation, ProposalRepository


class InMemoryProposalRepository(ProposalRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._proposals: dict[int, ProposalFields] = {}
        self._items: dict[int, ProposalItemRecord] = {}
        self._next_proposal_id = 1
        self._next_item_id = 1

    def list_proposals(self) -> list[ProposalRecord]:
        with self._lock:
            rows = [self._to_record(proposal_id) for proposal_id in self._proposals]
        return sorted(rows, key=lambda row: (row.created_at, row.id), reverse=True)

    def get_proposal(self, *, proposal_id: int) -> Optional[ProposalRecord]:
        with self._lock:
            if proposal_id not in self._proposals:
                return None
            return self._to_record(proposal_id)

    def count_proposals(self) -> int:
        with self._lock:
            return len(self._proposals)

    def create_proposal(
        self, *, fields: ProposalFields, items: Sequence[ItemInsert]
    ) -> ProposalRecord:
        with self._lock:
            proposal_id = self._next_proposal_id
            self._next_proposal_id += 1
            self._proposals[proposal_id] = deepcopy(fields)
            for item in items:
                self._insert_item(proposal_id=proposal_id, item=item)
            return self._to_record(proposal_id)

    def update_proposal(
        self,
        *,
        proposal_id: int,
        changes: Mapping[str, Any],
        items: Optional[Sequence[ProposalItemInput]] = None,
    ) -> Optional[ProposalRecord]:
        return self.mutate_proposal(
            proposal_id=proposal_id, mutate=lambda _current: changes, items=items
        )

    def mutate_proposal(
        self,
        *,
        proposal_id: int,
        mutate: ProposalMutation,
        items: Optional[Sequence[ProposalItemInput]] = None,
    ) -> Optional[ProposalRecord]:
        with self._lock:
            current = self._proposals.get(proposal_id)
            if current is None:
                return None
            changes = mutate(self._to_record(proposal_id))
            self._proposals[proposal_id] = current.model_copy(update=deepcopy(dict(changes)))

            if items is not None:
                plan = plan_item_reconciliation(
                    proposal_id=proposal_id,
                    existing=self._items_for(proposal_id),
                    submitted=items,
                )
                for updated in plan.updates:
                    self._items[updated.id] = updated
                for inserted in plan.inserts:
                    self._insert_item(proposal_id=proposal_id, item=inserted)
                for item_id in plan.deletes:
                    self._items.pop(item_id, None)
            return self._to_record(proposal_id)

    def delete_proposal(self, *, proposal_id: int) -> bool:
        with self._lock:
            if self._proposals.pop(proposal_id, None) is None:
                return False
            for item in self._items_for(proposal_id):
                del self._items[item.id]
            return True

    def _insert_item(self, *, proposal_id: int, item: ItemInsert) -> None:
        item_id = self._next_item_id
        self._next_item_id += 1
        self._items[item_id] = ProposalItemRecord(
            id=item_id,
            proposal_id=proposal_id,
            title=item.title,
            description=item.description,
            order=item.order,
        )

    def _items_for(self, proposal_id: int) -> list[ProposalItemRecord]:
        return [item for item in self._items.values() if item.proposal_id == proposal_id]

    def _to_record(self, proposal_id: int) -> ProposalRecord:
        fields = self._proposals[proposal_id]
        return ProposalRecord(
            id=proposal_id,
            **deepcopy(dict(fields)),
            items=[deepcopy(item) for item in sort_items(self._items_for(proposal_id))],
        )
