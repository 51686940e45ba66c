"""SQLite term and learning-progress store.

The glossary's own term service is the system of record for terms. This
store keeps the few attributes the graph engine reads, so the engine and its
MCP server can run stand-alone.
"""

import logging
import re
from pathlib import Path

from ..errors import ConflictError, NotFoundError
from ..models.term import TermCreate, TermSummary
from .connection import get_connection

logger = logging.getLogger(__name__)


class SQLiteTermStore:
    """Terms in the ``terms`` table and progress in ``user_learning``."""

    def __init__(self, db_path: Path | str | None = None):
        self.db_path = db_path

    # ==================== Term Operations ====================

    def add_term(self, term_data: TermCreate) -> TermSummary:
        """
        Register a term.

        Raises:
            ConflictError: If a term with the same ID already exists
        """
        term_id = term_data.term_id or self._generate_term_id(term_data.name)

        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()

            cursor.execute("SELECT id FROM terms WHERE id = ?", (term_id,))
            if cursor.fetchone():
                raise ConflictError(f"Term with ID '{term_id}' already exists")

            cursor.execute(
                """INSERT INTO terms
                (id, name, description, status, is_essential, context_id)
                VALUES (?, ?, ?, ?, ?, ?)""",
                (
                    term_id,
                    term_data.name,
                    term_data.description,
                    term_data.status.value,
                    int(term_data.is_essential),
                    term_data.context_id,
                ),
            )
            conn.commit()

            cursor.execute("SELECT * FROM terms WHERE id = ?", (term_id,))
            return TermSummary.from_row(dict(cursor.fetchone()))

    def get_term(self, term_id: str) -> TermSummary | None:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM terms WHERE id = ?", (term_id,))
            row = cursor.fetchone()
            if row:
                return TermSummary.from_row(dict(row))
            return None

    def get_term_by_name(self, name: str) -> TermSummary | None:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT * FROM terms WHERE name = ?", (name,))
            row = cursor.fetchone()
            if row:
                return TermSummary.from_row(dict(row))
            return None

    def exists(self, term_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1 FROM terms WHERE id = ?", (term_id,))
            return cursor.fetchone() is not None

    def is_essential(self, term_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT is_essential FROM terms WHERE id = ?", (term_id,))
            row = cursor.fetchone()
            return bool(row and row[0])

    def essential_term_ids(self) -> list[str]:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM terms WHERE is_essential = 1 ORDER BY rowid")
            return [row[0] for row in cursor.fetchall()]

    def term_ids_in_context(self, context_id: str) -> list[str]:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id FROM terms WHERE context_id = ? ORDER BY rowid", (context_id,)
            )
            return [row[0] for row in cursor.fetchall()]

    # ==================== Learning Progress ====================

    def mark_learned(self, user_id: str, term_id: str) -> bool:
        """Mark a term as learned. Returns False if it already was."""
        if not self.exists(term_id):
            raise NotFoundError("Term", term_id)

        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "INSERT OR IGNORE INTO user_learning (user_id, term_id) VALUES (?, ?)",
                (user_id, term_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def unmark_learned(self, user_id: str, term_id: str) -> bool:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM user_learning WHERE user_id = ? AND term_id = ?",
                (user_id, term_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def learned_term_ids(self, user_id: str) -> set[str]:
        with get_connection(self.db_path) as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT term_id FROM user_learning WHERE user_id = ?", (user_id,))
            return {row[0] for row in cursor.fetchall()}

    # ==================== Helpers ====================

    def _generate_term_id(self, name: str) -> str:
        """Generate a term ID from the term name."""
        term_id = name.lower()
        term_id = re.sub(r"[^a-z0-9]+", "_", term_id)
        term_id = term_id.strip("_")
        return term_id or "term"

    def resolve_term_id(self, identifier: str) -> str | None:
        """Resolve a term identifier (ID or name) to a term ID."""
        term = self.get_term(identifier)
        if term:
            return term.id

        term = self.get_term_by_name(identifier)
        if term:
            return term.id

        generated_id = self._generate_term_id(identifier)
        term = self.get_term(generated_id)
        if term:
            return term.id

        return None
