"""In-process stores, for embedding the engine without SQLite."""

import threading
import uuid
from contextlib import nullcontext
from datetime import datetime
from typing import Iterable

from ..errors import ConflictError, InvalidArgumentError
from ..models.enums import Direction, RelationshipType
from ..models.relationship import Relationship, RelationshipCreate, RelationshipUpdate
from ..models.term import TermSummary


class InMemoryRelationshipStore:
    """Relationship records held in a dict, keyed by id in insertion order."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: dict[str, Relationship] = {}

    def write_transaction(self):
        """Nothing to hold: the records never leave this process."""
        return nullcontext()

    def insert(self, data: RelationshipCreate) -> Relationship:
        if data.source_term_id == data.target_term_id:
            raise InvalidArgumentError("Cannot create a relationship from a term to itself")

        with self._lock:
            for existing in self._records.values():
                if (
                    existing.source_term_id == data.source_term_id
                    and existing.target_term_id == data.target_term_id
                    and existing.relationship_type == data.relationship_type
                ):
                    raise ConflictError(
                        f'Relationship of type "{data.relationship_type.value}" already exists '
                        f'between "{data.source_term_id}" and "{data.target_term_id}"'
                    )

            relationship = Relationship(
                id=str(uuid.uuid4()),
                source_term_id=data.source_term_id,
                target_term_id=data.target_term_id,
                relationship_type=data.relationship_type,
                description=data.description,
                created_by=data.created_by,
                created_at=datetime.now(),
            )
            self._records[relationship.id] = relationship
            return relationship.model_copy()

    def find_by_id(self, relationship_id: str) -> Relationship | None:
        record = self._records.get(relationship_id)
        return record.model_copy() if record else None

    def find_by_endpoint(
        self, term_id: str, direction: Direction = Direction.BOTH
    ) -> list[Relationship]:
        def matches(rel: Relationship) -> bool:
            if direction == Direction.OUTGOING:
                return rel.source_term_id == term_id
            if direction == Direction.INCOMING:
                return rel.target_term_id == term_id
            return term_id in (rel.source_term_id, rel.target_term_id)

        return self._select(matches)

    def find_by_type(self, types: Iterable[RelationshipType]) -> list[Relationship]:
        wanted = {RelationshipType(t) for t in types}
        return self._select(lambda rel: rel.relationship_type in wanted)

    def find_by_pair(
        self,
        source_term_id: str,
        target_term_id: str,
        relationship_type: RelationshipType | None = None,
    ) -> list[Relationship]:
        return self._select(
            lambda rel: rel.source_term_id == source_term_id
            and rel.target_term_id == target_term_id
            and (relationship_type is None or rel.relationship_type == relationship_type)
        )

    def find_touching(self, term_ids: Iterable[str]) -> list[Relationship]:
        ids = set(term_ids)
        return self._select(lambda rel: rel.source_term_id in ids or rel.target_term_id in ids)

    def update(self, relationship_id: str, data: RelationshipUpdate) -> Relationship | None:
        with self._lock:
            current = self._records.get(relationship_id)
            if current is None:
                return None

            changes = {}
            if data.relationship_type is not None:
                for other in self._records.values():
                    if (
                        other.id != relationship_id
                        and other.source_term_id == current.source_term_id
                        and other.target_term_id == current.target_term_id
                        and other.relationship_type == data.relationship_type
                    ):
                        raise ConflictError(
                            f'Relationship of type "{data.relationship_type.value}" already '
                            f"exists between these terms"
                        )
                changes["relationship_type"] = data.relationship_type
            if data.description is not None:
                changes["description"] = data.description

            if changes:
                changes["updated_at"] = datetime.now()
                current = current.model_copy(update=changes)
                self._records[relationship_id] = current
            return current.model_copy()

    def delete(self, relationship_id: str) -> Relationship | None:
        with self._lock:
            return self._records.pop(relationship_id, None)

    def delete_by_endpoint(self, term_id: str) -> list[Relationship]:
        return self._delete(lambda rel: term_id in (rel.source_term_id, rel.target_term_id))

    def delete_by_pair(self, source_term_id: str, target_term_id: str) -> list[Relationship]:
        return self._delete(
            lambda rel: rel.source_term_id == source_term_id
            and rel.target_term_id == target_term_id
        )

    def _select(self, predicate) -> list[Relationship]:
        with self._lock:
            records = list(self._records.values())
        return [rel.model_copy() for rel in records if predicate(rel)]

    def _delete(self, predicate) -> list[Relationship]:
        with self._lock:
            doomed = [rel for rel in self._records.values() if predicate(rel)]
            for rel in doomed:
                del self._records[rel.id]
            return doomed


class InMemoryTermStore:
    """Terms and learning progress held in dicts."""

    def __init__(self, terms: Iterable[TermSummary] = ()):
        self._terms: dict[str, TermSummary] = {term.id: term for term in terms}
        self._learned: dict[str, set[str]] = {}

    def add_term(self, term: TermSummary) -> TermSummary:
        if term.id in self._terms:
            raise ConflictError(f"Term with ID '{term.id}' already exists")
        self._terms[term.id] = term
        return term

    def exists(self, term_id: str) -> bool:
        return term_id in self._terms

    def is_essential(self, term_id: str) -> bool:
        term = self._terms.get(term_id)
        return bool(term and term.is_essential)

    def get_term(self, term_id: str) -> TermSummary | None:
        return self._terms.get(term_id)

    def essential_term_ids(self) -> list[str]:
        return [term.id for term in self._terms.values() if term.is_essential]

    def term_ids_in_context(self, context_id: str) -> list[str]:
        return [term.id for term in self._terms.values() if term.context_id == context_id]

    def mark_learned(self, user_id: str, term_id: str) -> bool:
        learned = self._learned.setdefault(user_id, set())
        if term_id in learned:
            return False
        learned.add(term_id)
        return True

    def learned_term_ids(self, user_id: str) -> set[str]:
        return set(self._learned.get(user_id, set()))
