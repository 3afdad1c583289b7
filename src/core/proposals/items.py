from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from src.core.proposals.models import ProposalItemInput, ProposalItemRecord


@dataclass(frozen=True)
class ItemInsert:
    title: str
    description: Optional[str]
    order: int


@dataclass(frozen=True)
class ItemReconciliationPlan:
    updates: list[ProposalItemRecord] = field(default_factory=list)
    inserts: list[ItemInsert] = field(default_factory=list)
    deletes: list[int] = field(default_factory=list)


def build_item_inserts(items: Iterable[ProposalItemInput]) -> list[ItemInsert]:
    return [
        ItemInsert(title=item.title, description=item.description, order=position)
        for position, item in enumerate(items)
    ]


def plan_item_reconciliation(
    *,
    proposal_id: int,
    existing: Sequence[ProposalItemRecord],
    submitted: Sequence[ProposalItemInput],
) -> ItemReconciliationPlan:
    """Diff a submitted item list against the stored one.

    Submitted items carrying the id of a stored item update it in place; any
    other entry (no id, a foreign id, or a repeated id) is inserted. Stored
    items not referenced are deleted. ``order`` always comes from the position
    in ``submitted``.
    """
    existing_ids = {item.id for item in existing}
    kept_ids: set[int] = set()
    updates: list[ProposalItemRecord] = []
    inserts: list[ItemInsert] = []

    for position, item in enumerate(submitted):
        if item.id is not None and item.id in existing_ids and item.id not in kept_ids:
            kept_ids.add(item.id)
            updates.append(
                ProposalItemRecord(
                    id=item.id,
                    proposal_id=proposal_id,
                    title=item.title,
                    description=item.description,
                    order=position,
                )
            )
        else:
            inserts.append(
                ItemInsert(title=item.title, description=item.description, order=position)
            )

    deletes = [item.id for item in existing if item.id not in kept_ids]
    return ItemReconciliationPlan(updates=updates, inserts=inserts, deletes=deletes)


def sort_items(items: Iterable[ProposalItemRecord]) -> list[ProposalItemRecord]:
    return sorted(items, key=lambda item: (item.order, item.id))
