import sqlite3
from contextlib import closing
from pathlib import Path
from threading import Lock
from typing import Any, Mapping, Optional, Sequence

from src.core.proposals.items import ItemInsert, plan_item_reconciliation
from src.core.proposals.models import ProposalFields, ProposalItemInput, ProposalRecord
from src.core.proposals.repository import ProposalMutation, ProposalRepository
from src.infrastructure.proposals.columns import (
    ITEM_SELECT_COLUMNS,
    PROPOSAL_SELECT_COLUMNS,
    fields_to_column_values,
    row_to_fields,
    row_to_item,
    to_column_values,
)


class SqliteProposalRepository(ProposalRepository):
    def __init__(self, *, database_path: str) -> None:
        self._lock = Lock()
        self._database_path = database_path
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
        placeholders = ", ".join("?" for _ in values)
        with self._lock, closing(self._connect()) as connection:
            cursor = connection.execute(
                f"INSERT INTO proposals ({columns}) VALUES ({placeholders})",
                tuple(values.values()),
            )
            proposal_id = int(cursor.lastrowid)
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
        with self._lock, closing(self._connect()) as connection:
            # Write lock up front so another process cannot commit between read and write.
            connection.execute("BEGIN IMMEDIATE")
            current = self._read_proposal(connection, proposal_id)
            if current is None:
                connection.rollback()
                return None
            try:
                values = to_column_values(mutate(current))
            except Exception:
                connection.rollback()
                raise
            if values:
                assignments = ", ".join(f"{column} = ?" for column in values)
                connection.execute(
                    f"UPDATE proposals SET {assignments} WHERE id = ?",
                    (*values.values(), proposal_id),
                )
            if items is not None:
                self._reconcile_items(connection, proposal_id, items)
            connection.commit()
            return self._read_proposal(connection, proposal_id)

    def delete_proposal(self, *, proposal_id: int) -> bool:
        with self._lock, closing(self._connect()) as connection:
            cursor = connection.execute("DELETE FROM proposals WHERE id = ?", (proposal_id,))
            connection.commit()
        return cursor.rowcount > 0

    def _reconcile_items(
        self,
        connection: sqlite3.Connection,
        proposal_id: int,
        items: Sequence[ProposalItemInput],
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
                SET title = ?, description = ?, item_order = ?
                WHERE id = ? AND proposal_id = ?
                """,
                (updated.title, updated.description, updated.order, updated.id, proposal_id),
            )
        for inserted in plan.inserts:
            self._insert_item(connection, proposal_id, inserted)
        for item_id in plan.deletes:
            connection.execute(
                "DELETE FROM proposal_items WHERE id = ? AND proposal_id = ?",
                (item_id, proposal_id),
            )

    def _insert_item(
        self, connection: sqlite3.Connection, proposal_id: int, item: ItemInsert
    ) -> None:
        connection.execute(
            """
            INSERT INTO proposal_items (proposal_id, title, description, item_order)
            VALUES (?, ?, ?, ?)
            """,
            (proposal_id, item.title, item.description, item.order),
        )

    def _read_proposal(
        self, connection: sqlite3.Connection, proposal_id: int
    ) -> Optional[ProposalRecord]:
        row = connection.execute(
            f"SELECT {PROPOSAL_SELECT_COLUMNS} FROM proposals WHERE id = ?", (proposal_id,)
        ).fetchone()
        if row is None:
            return None
        return self._to_record(connection, row)

    def _read_items(self, connection: sqlite3.Connection, proposal_id: int):
        rows = connection.execute(
            f"""
            SELECT {ITEM_SELECT_COLUMNS}
            FROM proposal_items
            WHERE proposal_id = ?
            ORDER BY item_order ASC, id ASC
            """,
            (proposal_id,),
        ).fetchall()
        return [row_to_item(row) for row in rows]

    def _to_record(self, connection: sqlite3.Connection, row: sqlite3.Row) -> ProposalRecord:
        proposal_id = int(row["id"])
        return ProposalRecord(
            id=proposal_id,
            **row_to_fields(row),
            items=self._read_items(connection, proposal_id),
        )

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON")
        return connection

    def _init_db(self) -> None:
        Path(self._database_path).parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as connection:
            connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS proposals (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    client_name TEXT NOT NULL,
                    title TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'draft',
                    total_development_fee TEXT NOT NULL DEFAULT '900',
                    domain_package_fee TEXT NULL DEFAULT '0',
                    payment_option TEXT NOT NULL DEFAULT 'milestone',
                    payment_terms_json TEXT NULL,
                    noviq_signature TEXT NULL,
                    noviq_sign_date TEXT NULL,
                    licensee_signature TEXT NULL,
                    licensee_sign_date TEXT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS proposal_items (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    proposal_id INTEGER NOT NULL REFERENCES proposals(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    description TEXT NULL,
                    item_order INTEGER NOT NULL DEFAULT 0
                );

                CREATE INDEX IF NOT EXISTS idx_proposal_items_proposal_id
                    ON proposal_items (proposal_id);
                """
            )
            connection.commit()
