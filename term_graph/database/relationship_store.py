"""SQLite-backed relationship store."""

import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Iterable

from ..errors import ConflictError, InvalidArgumentError, NotFoundError
from ..models.enums import Direction, RelationshipType
from ..models.relationship import Relationship, RelationshipCreate, RelationshipUpdate
from .connection import get_connection

logger = logging.getLogger(__name__)


def _integrity_error(error: sqlite3.IntegrityError, source_id: str, target_id: str, rel_type: str):
    """Translate a constraint violation into an engine error."""
    message = str(error)
    if "UNIQUE" in message:
        return ConflictError(
            f'Relationship of type "{rel_type}" already exists between '
            f'"{source_id}" and "{target_id}"'
        )
    if "CHECK" in message:
        return InvalidArgumentError("Cannot create a relationship from a term to itself")
    if "FOREIGN KEY" in message:
        return NotFoundError(f"Term '{source_id}' or '{target_id}'")
    return ConflictError(message)


class SQLiteRelationshipStore:
    """Relationship records in the ``term_relationships`` table."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = db_path
        self._local = threading.local()

    @contextmanager
    def write_transaction(self) -> Generator[None, None, None]:
        """
        Hold the database write lock for a check-then-write sequence.

        ``BEGIN IMMEDIATE`` blocks writers on other connections, including
        other processes sharing the file, until the block exits. Store calls
        made inside the block on the same thread reuse its connection and are
        committed together on exit, or rolled back on error.
        """
        if self._held_connection() is not None:
            yield
            return

        with get_connection(self.db_path) as conn:
            conn.execute("BEGIN IMMEDIATE")
            self._local.conn = conn
            try:
                yield
            except Exception:
                conn.rollback()
                raise
            else:
                conn.commit()
            finally:
                self._local.conn = None

    def insert(self, data: RelationshipCreate) -> Relationship:
        relationship_id = str(uuid.uuid4())
        now = datetime.now().isoformat()

        with self._connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    """INSERT INTO term_relationships
                    (id, source_term_id, target_term_id, relationship_type,
                     description, created_by, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)""",
                    (
                        relationship_id,
                        data.source_term_id,
                        data.target_term_id,
                        data.relationship_type.value,
                        data.description,
                        data.created_by,
                        now,
                    ),
                )
                self._commit(conn)
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise _integrity_error(
                    e, data.source_term_id, data.target_term_id, data.relationship_type.value
                ) from e

            cursor.execute("SELECT * FROM term_relationships WHERE id = ?", (relationship_id,))
            return Relationship.from_row(dict(cursor.fetchone()))

    def find_by_id(self, relationship_id: str) -> Relationship | None:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM term_relationships WHERE id = ?", (relationship_id,))
            row = cursor.fetchone()
            if row:
                return Relationship.from_row(dict(row))
            return None

    def find_by_endpoint(
        self, term_id: str, direction: Direction = Direction.BOTH
    ) -> list[Relationship]:
        if direction == Direction.OUTGOING:
            where, params = "source_term_id = ?", [term_id]
        elif direction == Direction.INCOMING:
            where, params = "target_term_id = ?", [term_id]
        else:
            where, params = "source_term_id = ? OR target_term_id = ?", [term_id, term_id]

        return self._select(where, params)

    def find_by_type(self, types: Iterable[RelationshipType]) -> list[Relationship]:
        values = [RelationshipType(t).value for t in types]
        if not values:
            return []
        placeholders = ", ".join("?" for _ in values)
        return self._select(f"relationship_type IN ({placeholders})", values)

    def find_by_pair(
        self,
        source_term_id: str,
        target_term_id: str,
        relationship_type: RelationshipType | None = None,
    ) -> list[Relationship]:
        where = "source_term_id = ? AND target_term_id = ?"
        params = [source_term_id, target_term_id]
        if relationship_type:
            where += " AND relationship_type = ?"
            params.append(relationship_type.value)
        return self._select(where, params)

    def find_touching(self, term_ids: Iterable[str]) -> list[Relationship]:
        ids = list(dict.fromkeys(term_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        return self._select(
            f"source_term_id IN ({placeholders}) OR target_term_id IN ({placeholders})",
            ids + ids,
        )

    def update(self, relationship_id: str, data: RelationshipUpdate) -> Relationship | None:
        updates = {}
        if data.relationship_type is not None:
            updates["relationship_type"] = data.relationship_type.value
        if data.description is not None:
            updates["description"] = data.description

        with self._connection() as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT * FROM term_relationships WHERE id = ?", (relationship_id,))
            row = cursor.fetchone()
            if not row:
                return None
            current = Relationship.from_row(dict(row))

            if updates:
                updates["updated_at"] = datetime.now().isoformat()
                set_clause = ", ".join(f"{k} = ?" for k in updates.keys())
                values = list(updates.values()) + [relationship_id]
                try:
                    cursor.execute(
                        f"UPDATE term_relationships SET {set_clause} WHERE id = ?",
                        values,
                    )
                    self._commit(conn)
                except sqlite3.IntegrityError as e:
                    conn.rollback()
                    raise _integrity_error(
                        e,
                        current.source_term_id,
                        current.target_term_id,
                        updates.get("relationship_type", current.relationship_type.value),
                    ) from e

            cursor.execute("SELECT * FROM term_relationships WHERE id = ?", (relationship_id,))
            return Relationship.from_row(dict(cursor.fetchone()))

    def delete(self, relationship_id: str) -> Relationship | None:
        deleted = self._delete("id = ?", [relationship_id])
        return deleted[0] if deleted else None

    def delete_by_endpoint(self, term_id: str) -> list[Relationship]:
        return self._delete("source_term_id = ? OR target_term_id = ?", [term_id, term_id])

    def delete_by_pair(self, source_term_id: str, target_term_id: str) -> list[Relationship]:
        return self._delete(
            "source_term_id = ? AND target_term_id = ?", [source_term_id, target_term_id]
        )

    # ==================== Helpers ====================

    def _held_connection(self) -> sqlite3.Connection | None:
        return getattr(self._local, "conn", None)

    @contextmanager
    def _connection(self) -> Generator[sqlite3.Connection, None, None]:
        """The open write transaction's connection, or a fresh one."""
        held = self._held_connection()
        if held is not None:
            yield held
            return
        with get_connection(self.db_path) as conn:
            yield conn

    def _commit(self, conn: sqlite3.Connection) -> None:
        # Inside write_transaction the commit happens when the block exits.
        if conn is not self._held_connection():
            conn.commit()

    def _select(self, where: str, params: list) -> list[Relationship]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM term_relationships WHERE {where} ORDER BY rowid",
                params,
            )
            return [Relationship.from_row(dict(row)) for row in cursor.fetchall()]

    def _delete(self, where: str, params: list) -> list[Relationship]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT * FROM term_relationships WHERE {where} ORDER BY rowid",
                params,
            )
            rows = [Relationship.from_row(dict(row)) for row in cursor.fetchall()]
            if rows:
                cursor.execute(f"DELETE FROM term_relationships WHERE {where}", params)
                self._commit(conn)
                logger.debug(f"Deleted {len(rows)} relationship(s) where {where}")
            return rows
