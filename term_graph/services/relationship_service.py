"""Relationship service: validated CRUD and graph queries over term relationships."""

import logging
import threading

from ..config import HierarchyConfig
from ..database.base import RelationshipStore, TermOracle
from ..errors import ConflictError, InvalidArgumentError, NotFoundError
from ..models.enums import Direction, RelationshipScheme, RelationshipType
from ..models.relationship import (
    RelatedRelationship,
    Relationship,
    RelationshipCreate,
    RelationshipUpdate,
)
from ..models.views import HierarchyNode
from .hierarchy import HierarchyGraph

logger = logging.getLogger(__name__)


class RelationshipService:
    """Service for managing relationships between terms."""

    def __init__(
        self,
        store: RelationshipStore,
        terms: TermOracle,
        config: HierarchyConfig | None = None,
    ):
        self.store = store
        self.terms = terms
        self.config = config or HierarchyConfig.for_scheme(RelationshipScheme.CLASSIC)
        # Serialises mutations in this process; the store transaction covers other
        # processes sharing the same database. Reads take neither.
        self._write_lock = threading.RLock()

    # ==================== Mutations ====================

    def create_relationship(self, data: RelationshipCreate) -> Relationship:
        """
        Create a relationship between two terms.

        Checks run in order and the first failure wins: the type must belong
        to the active scheme, both terms must exist, a term cannot relate to
        itself, the (source, target, type) triple must be new, and a
        hierarchical edge must not close a cycle.

        Raises:
            InvalidArgumentError: Unknown type, self-reference or cycle
            NotFoundError: Source or target term is missing
            ConflictError: The relationship already exists
        """
        self._check_type(data.relationship_type)

        if not self.terms.exists(data.source_term_id):
            raise NotFoundError("Source term", data.source_term_id)
        if not self.terms.exists(data.target_term_id):
            raise NotFoundError("Target term", data.target_term_id)

        if data.source_term_id == data.target_term_id:
            raise InvalidArgumentError("Cannot create a relationship from a term to itself")

        with self._write_lock, self.store.write_transaction():
            if self.store.find_by_pair(
                data.source_term_id, data.target_term_id, data.relationship_type
            ):
                raise ConflictError(
                    f'Relationship of type "{data.relationship_type.value}" already exists '
                    f"between these terms"
                )

            if self.config.is_hierarchical(data.relationship_type):
                self._check_acyclic(
                    data.source_term_id, data.target_term_id, data.relationship_type
                )

            # Store also enforces the unique (source, target, type) triple.
            relationship = self.store.insert(data)

        logger.info(
            f"Created relationship {relationship.id}: {relationship.source_term_id} "
            f"--{relationship.relationship_type.value}--> {relationship.target_term_id}"
        )
        return relationship

    def update_relationship(self, relationship_id: str, data: RelationshipUpdate) -> Relationship:
        """
        Update a relationship's type and/or description.

        Endpoints never change. Changing the type onto a hierarchical type
        re-runs the cycle check with this edge's current arc ignored.
        """
        if data.relationship_type is not None:
            self._check_type(data.relationship_type)

        with self._write_lock, self.store.write_transaction():
            existing = self.get_relationship(relationship_id)

            new_type = data.relationship_type
            if (
                new_type is not None
                and new_type != existing.relationship_type
                and self.config.is_hierarchical(new_type)
            ):
                self._check_acyclic(
                    existing.source_term_id,
                    existing.target_term_id,
                    new_type,
                    exclude_id=existing.id,
                )

            updated = self.store.update(relationship_id, data)
            if updated is None:
                raise NotFoundError("Relationship", relationship_id)

        logger.info(f"Updated relationship {relationship_id}")
        return updated

    def delete_relationship(self, relationship_id: str) -> Relationship:
        with self._write_lock:
            deleted = self.store.delete(relationship_id)
        if deleted is None:
            raise NotFoundError("Relationship", relationship_id)
        logger.info(f"Deleted relationship {relationship_id}")
        return deleted

    def delete_relationship_between(
        self, source_term_id: str, target_term_id: str
    ) -> list[Relationship]:
        """Delete every relationship from source to target, whatever its type."""
        with self._write_lock:
            deleted = self.store.delete_by_pair(source_term_id, target_term_id)
        if not deleted:
            raise NotFoundError(
                f"Relationship between '{source_term_id}' and '{target_term_id}'"
            )
        if len(deleted) > 1:
            logger.warning(
                f"Deleted {len(deleted)} typed relationships between "
                f"{source_term_id} and {target_term_id}"
            )
        return deleted

    def delete_relationships_for_term(self, term_id: str) -> list[Relationship]:
        """Remove every relationship touching a term (cascade on term removal)."""
        with self._write_lock:
            deleted = self.store.delete_by_endpoint(term_id)
        logger.info(f"Removed {len(deleted)} relationship(s) for term {term_id}")
        return deleted

    # ==================== Queries ====================

    def get_relationship(self, relationship_id: str) -> Relationship:
        relationship = self.store.find_by_id(relationship_id)
        if relationship is None:
            raise NotFoundError("Relationship", relationship_id)
        return relationship

    def find_relationships_for_term(self, term_id: str) -> list[RelatedRelationship]:
        """All relationships of a term, seen from that term."""
        self._require_term(term_id)

        enriched = []
        for rel in self.store.find_by_endpoint(term_id, Direction.BOTH):
            outgoing = rel.source_term_id == term_id
            enriched.append(
                RelatedRelationship(
                    id=rel.id,
                    relationship_type=rel.relationship_type,
                    description=rel.description,
                    direction=Direction.OUTGOING if outgoing else Direction.INCOMING,
                    related_term=self.terms.get_term(rel.other_end(term_id)),
                    created_at=rel.created_at,
                    updated_at=rel.updated_at,
                )
            )
        return enriched

    def find_related_terms_by_type(
        self, term_id: str, relationship_type: RelationshipType
    ) -> list[str]:
        """IDs of terms linked to ``term_id`` by an edge of the given type, either way."""
        self._require_term(term_id)

        related = {}
        for rel in self.store.find_by_endpoint(term_id, Direction.BOTH):
            if rel.relationship_type == relationship_type:
                related[rel.other_end(term_id)] = None
        return list(related)

    def direct_parents(self, term_id: str) -> list[str]:
        """Immediate prerequisites of a term, from its own edges only."""
        parents = {}
        for rel in self.store.find_by_endpoint(term_id, Direction.BOTH):
            pair = self.config.orient_relationship(rel)
            if pair is not None and pair[1] == term_id:
                parents[pair[0]] = None
        return list(parents)

    def hierarchy_relationships(self) -> list[Relationship]:
        return self.store.find_by_type(self.config.hierarchical_types)

    def load_hierarchy(self, exclude_id: str | None = None) -> HierarchyGraph:
        """Load all hierarchical edges once into an in-memory graph."""
        return HierarchyGraph(self.hierarchy_relationships(), self.config, exclude_id=exclude_id)

    def get_hierarchy(self, root_term_id: str | None = None) -> HierarchyNode | list[Relationship]:
        """Tree under ``root_term_id``, or the raw hierarchical edges without a root."""
        if root_term_id is None:
            return self.hierarchy_relationships()
        return self.build_hierarchy_tree(root_term_id)

    def build_hierarchy_tree(self, root_term_id: str) -> HierarchyNode:
        """
        Build the tree of terms below a root along hierarchical edges.

        Terms are placed in depth-first pre-order, so each appears at most
        once, under the first parent that reaches it. An edge leading back to
        a term already placed (a cycle or a diamond) is dropped from the tree.
        """
        root_term = self.terms.get_term(root_term_id)
        if root_term is None:
            raise NotFoundError("Term", root_term_id)

        graph = self.load_hierarchy()
        root = self._tree_node(root_term)
        visited = {root_term_id}
        stack = [(root, child_id) for child_id in reversed(graph.children_of(root_term_id))]

        while stack:
            parent, term_id = stack.pop()
            if term_id in visited:
                logger.debug(f"Hierarchy tree skips revisited term {term_id}")
                continue
            visited.add(term_id)

            term = self.terms.get_term(term_id)
            if term is None:
                continue
            node = self._tree_node(term)
            parent.children.append(node)
            stack.extend((node, child_id) for child_id in reversed(graph.children_of(term_id)))

        return root

    # ==================== Helpers ====================

    def _tree_node(self, term) -> HierarchyNode:
        return HierarchyNode(
            term_id=term.id,
            name=term.name,
            description=term.description,
            status=term.status,
        )

    def _require_term(self, term_id: str) -> None:
        if not self.terms.exists(term_id):
            raise NotFoundError("Term", term_id)

    def _check_type(self, relationship_type: RelationshipType) -> None:
        if not self.config.is_allowed(relationship_type):
            allowed = sorted(t.value for t in self.config.allowed_types)
            raise InvalidArgumentError(
                f"Relationship type '{relationship_type.value}' is not part of the "
                f"{self.config.scheme.value} scheme. Must be one of: {allowed}"
            )

    def _check_acyclic(
        self,
        source_term_id: str,
        target_term_id: str,
        relationship_type: RelationshipType,
        exclude_id: str | None = None,
    ) -> None:
        parent_id, child_id = self.config.orient(source_term_id, target_term_id, relationship_type)
        graph = self.load_hierarchy(exclude_id=exclude_id)
        if graph.would_create_cycle(parent_id, child_id):
            raise InvalidArgumentError(
                "Cannot create this relationship as it would create a circular dependency"
            )
