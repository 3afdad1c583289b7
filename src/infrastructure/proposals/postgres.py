from contextlib import closing
from importlib.util import find_spec
from typing import Any, Mapping, Optional, Sequence

from src.core.proposals.items import ItemInsert, plan_item_reconciliation
from src.core.proposals.models import (
    ProposalFields,
    ProposalItemInput,
    ProposalItemRecord,
    ProposalRecord,
)
from src.core.proposals.repository import ProposalMutation, ProposalRepository
from src.infrastructure.postgres_migrations import (
    AGREEMENTS_NAMESPACE,
    apply_postgres_migrations,
)
from src.infrastructure.proposals.columns import (
    ITEM_SELECT_COLUMNS,
    PROPOSAL_SELECT_COLUMNS,
    fields_to_column_values,
    row_to_fields,
    row_to_item,
    to_column_values,
)

_JSONB_COLUMNS = frozenset({"payment_terms_json"})


class PostgresProposalRepository(ProposalRepository):
    def __init__(self, *, dsn: str) -> None:
        if not dsn:
            raise RuntimeError("AGREEMENT_POSTGRES_DSN_REQUIRED")
        if find_spec("psycopg") is None:
            raise RuntimeError("AGREEMENT_POSTGRES_DRIVER_MISSING")
        self._dsn = dsn
        self._init_db()

    def list_proposals(self) -> list[ProposalRecord]:
        query = f"""
            SELECT {PROPOSAL_SELECT_COLUMNS}
            FROM proposals
            ORDER BY created_at DESC, id DESC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query).fetchall()
            return [self._to_record(connection, row) for row in rows]

    def get_proposal(self, *, proposal_id: int) -> Optional[ProposalRecord]:
        with closing(self._connect()) as connection:
            return self._read_proposal(connection, proposal_id)

    def count_proposals(self) -> int:
        with closing(self._connect()) as connection:
            row = connection.execute("SELECT COUNT(*) AS total FROM proposals").fetchone()
        return int(row["total"])

    def create_proposal(
        self, *, fields: ProposalFields, items: Sequence[ItemInsert]
    ) -> ProposalRecord:
        values = fields_to_column_values(fields)
        columns = ", ".join(values)
        placeholders = ", ".join(_placeholder(column) for column in values)
        with closing(self._connect()) as connection:
            row = connection.execute(
                f"INSERT INTO proposals ({columns}) VALUES ({placeholders}) RETURNING id",
                tuple(values.values()),
            ).fetchone()
            proposal_id = int(row["id"])
            for item in items:
                self._insert_item(connection, proposal_id, item)
            connection.commit()
            return self._read_proposal(connection, proposal_id)

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
        with closing(self._connect()) as connection:
            exists = connection.execute(
                "SELECT id FROM proposals WHERE id = %s FOR UPDATE", (proposal_id,)
            ).fetchone()
            if exists is None:
                connection.rollback()
                return None
            try:
                values = to_column_values(mutate(self._read_proposal(connection, proposal_id)))
            except Exception:
                connection.rollback()
                raise
            if values:
                assignments = ", ".join(
                    f"{column} = {_placeholder(column)}" for column in values
                )
                connection.execute(
                    f"UPDATE proposals SET {assignments} WHERE id = %s",
                    (*values.values(), proposal_id),
                )
            if items is not None:
                self._reconcile_items(connection, proposal_id, items)
            connection.commit()
            return self._read_proposal(connection, proposal_id)

    def delete_proposal(self, *, proposal_id: int) -> bool:
        with closing(self._connect()) as connection:
            row = connection.execute(
                "DELETE FROM proposals WHERE id = %s RETURNING id", (proposal_id,)
            ).fetchone()
            connection.commit()
        return row is not None

    def _reconcile_items(
        self, connection: Any, proposal_id: int, items: Sequence[ProposalItemInput]
    ) -> None:
        plan = plan_item_reconciliation(
            proposal_id=proposal_id,
            existing=self._read_items(connection, proposal_id),
            submitted=items,
        )
        for updated in plan.updates:
            connection.execute(
                """
                UPDATE proposal_items
                SET title = %s, description = %s, item_order = %s
                WHERE id = %s AND proposal_id = %s
                """,
                (updated.title, updated.description, updated.order, updated.id, proposal_id),
            )
        for inserted in plan.inserts:
            self._insert_item(connection, proposal_id, inserted)
        for item_id in plan.deletes:
            connection.execute(
                "DELETE FROM proposal_items WHERE id = %s AND proposal_id = %s",
                (item_id, proposal_id),
            )

    def _insert_item(self, connection: Any, proposal_id: int, item: ItemInsert) -> None:
        connection.execute(
            """
            INSERT INTO proposal_items (proposal_id, title, description, item_order)
            VALUES (%s, %s, %s, %s)
            """,
            (proposal_id, item.title, item.description, item.order),
        )

    def _read_proposal(self, connection: Any, proposal_id: int) -> Optional[ProposalRecord]:
        row = connection.execute(
            f"SELECT {PROPOSAL_SELECT_COLUMNS} FROM proposals WHERE id = %s", (proposal_id,)
        ).fetchone()
        if row is None:
            return None
        return self._to_record(connection, row)

    def _read_items(self, connection: Any, proposal_id: int) -> list[ProposalItemRecord]:
        rows = connection.execute(
            f"""
            SELECT {ITEM_SELECT_COLUMNS}
            FROM proposal_items
            WHERE proposal_id = %s
            ORDER BY item_order ASC, id ASC
            """,
            (proposal_id,),
        ).fetchall()
        return [row_to_item(row) for row in rows]

    def _to_record(self, connection: Any, row: Mapping[str, Any]) -> ProposalRecord:
        proposal_id = int(row["id"])
        return ProposalRecord(
            id=proposal_id,
            **row_to_fields(row),
            items=self._read_items(connection, proposal_id),
        )

    def _connect(self):
        psycopg, dict_row = _import_psycopg()
        return psycopg.connect(self._dsn, row_factory=dict_row)

    def _init_db(self) -> None:
        with closing(self._connect()) as connection:
            apply_postgres_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE)


def _placeholder(column: str) -> str:
    if column in _JSONB_COLUMNS:
        return "%s::jsonb"
    return "%s"


def _import_psycopg():
    import psycopg
    from psycopg.rows import dict_row

    return psycopg, dict_row
