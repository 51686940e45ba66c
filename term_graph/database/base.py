"""Contracts for the stores the engine reads from and writes to."""

from contextlib import AbstractContextManager
from typing import Iterable, Protocol, runtime_checkable

from ..models.enums import Direction, RelationshipType
from ..models.relationship import Relationship, RelationshipCreate, RelationshipUpdate
from ..models.term import TermSummary


@runtime_checkable
class RelationshipStore(Protocol):
    """Durable storage of relationship records.

    ``insert`` must enforce uniqueness of (source, target, type) atomically
    and raise ``ConflictError`` on violation, whatever the caller checked
    beforehand. Finders return records in insertion order.

    ``write_transaction`` returns a context manager that keeps other writers
    to the same data out while the caller checks and then writes. A store
    shared between processes must make it exclusive across them.
    """

    def write_transaction(self) -> AbstractContextManager: ...

    def insert(self, data: RelationshipCreate) -> Relationship: ...

    def find_by_id(self, relationship_id: str) -> Relationship | None: ...

    def find_by_endpoint(
        self, term_id: str, direction: Direction = Direction.BOTH
    ) -> list[Relationship]: ...

    def find_by_type(self, types: Iterable[RelationshipType]) -> list[Relationship]: ...

    def find_by_pair(
        self,
        source_term_id: str,
        target_term_id: str,
        relationship_type: RelationshipType | None = None,
    ) -> list[Relationship]: ...

    def find_touching(self, term_ids: Iterable[str]) -> list[Relationship]: ...

    def update(self, relationship_id: str, data: RelationshipUpdate) -> Relationship | None: ...

    def delete(self, relationship_id: str) -> Relationship | None: ...

    def delete_by_endpoint(self, term_id: str) -> list[Relationship]: ...

    def delete_by_pair(self, source_term_id: str, target_term_id: str) -> list[Relationship]: ...


@runtime_checkable
class TermOracle(Protocol):
    """Read-only view of the glossary's terms."""

    def exists(self, term_id: str) -> bool: ...

    def is_essential(self, term_id: str) -> bool: ...

    def get_term(self, term_id: str) -> TermSummary | None: ...

    def essential_term_ids(self) -> list[str]: ...

    def term_ids_in_context(self, context_id: str) -> list[str]: ...


@runtime_checkable
class LearningProgressSource(Protocol):
    """Which terms a user has marked as learned."""

    def learned_term_ids(self, user_id: str) -> set[str]: ...
