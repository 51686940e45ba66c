"""
Tests for relationship validation, mutation and queries.

Most tests run against both the SQLite and the in-memory stores.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from term_graph.config import CLASSIC_TYPES
from term_graph.database import SQLiteRelationshipStore
from term_graph.errors import ConflictError, InvalidArgumentError, NotFoundError
from term_graph.models import (
    Direction,
    HierarchyNode,
    RelationshipCreate,
    RelationshipType,
    RelationshipUpdate,
)
from term_graph.services import RelationshipService

# =============================================================================
# Creation
# =============================================================================


class TestCreateRelationship:
    def test_creates_relationship(self, link, service):
        rel = link("a", "b", RelationshipType.RELATED, description="often confused", created_by="kim")

        assert rel.id
        assert rel.source_term_id == "a"
        assert rel.target_term_id == "b"
        assert rel.relationship_type == RelationshipType.RELATED
        assert rel.created_by == "kim"
        assert service.get_relationship(rel.id).description == "often confused"

    @pytest.mark.parametrize("rel_type", sorted(CLASSIC_TYPES, key=lambda t: t.value))
    def test_self_reference_is_invalid_for_every_type(self, link, rel_type):
        with pytest.raises(InvalidArgumentError, match="itself"):
            link("a", "a", rel_type)

    def test_missing_source_is_not_found(self, link):
        with pytest.raises(NotFoundError, match="Source term"):
            link("nope", "a")

    def test_missing_target_is_not_found(self, link):
        with pytest.raises(NotFoundError, match="Target term"):
            link("a", "nope")

    def test_existence_is_checked_before_self_reference(self, link):
        with pytest.raises(NotFoundError):
            link("ghost", "ghost")

    def test_duplicate_triple_conflicts(self, link):
        link("a", "b", RelationshipType.SYNONYM)
        with pytest.raises(ConflictError):
            link("a", "b", RelationshipType.SYNONYM)

    def test_same_pair_with_another_type_is_allowed(self, link, relationship_store):
        link("a", "b", RelationshipType.SYNONYM)
        link("a", "b", RelationshipType.RELATED)
        assert len(relationship_store.find_by_pair("a", "b")) == 2

    def test_type_outside_scheme_is_invalid(self, link):
        with pytest.raises(InvalidArgumentError, match="classic"):
            link("a", "b", RelationshipType.INHERITANCE)

    def test_closing_parent_chain_is_rejected(self, link, relationship_store):
        link("a", "b")  # A depends on B
        link("b", "c")  # B depends on C

        with pytest.raises(InvalidArgumentError, match="circular"):
            link("c", "a")

        assert relationship_store.find_by_pair("c", "a") == []

    def test_closing_child_chain_is_rejected(self, link):
        link("a", "b", RelationshipType.CHILD)
        link("b", "c", RelationshipType.CHILD)

        with pytest.raises(InvalidArgumentError, match="circular"):
            link("c", "a", RelationshipType.CHILD)

    def test_mixed_parent_and_child_cycle_is_rejected(self, link):
        link("a", "b", RelationshipType.PARENT)  # B is A's parent
        with pytest.raises(InvalidArgumentError):
            link("a", "b", RelationshipType.CHILD)  # B would be A's child

    def test_restating_parent_as_child_is_allowed(self, link):
        link("a", "b", RelationshipType.PARENT)
        rel = link("b", "a", RelationshipType.CHILD)
        assert rel.relationship_type == RelationshipType.CHILD

    def test_non_hierarchical_edges_may_form_cycles(self, link):
        link("a", "b", RelationshipType.RELATED)
        link("b", "c", RelationshipType.RELATED)
        link("c", "a", RelationshipType.RELATED)

    def test_store_uniqueness_wins_over_stale_precheck(self, link, service, monkeypatch):
        link("a", "b", RelationshipType.ANTONYM)
        monkeypatch.setattr(service.store, "find_by_pair", lambda *args, **kwargs: [])

        with pytest.raises(ConflictError):
            link("a", "b", RelationshipType.ANTONYM)

    def test_concurrent_duplicates_create_one_edge(self, service, relationship_store):
        data = RelationshipCreate(
            source_term_id="a", target_term_id="b", relationship_type=RelationshipType.RELATED
        )
        barrier = threading.Barrier(6)

        def attempt(_):
            barrier.wait()
            try:
                service.create_relationship(data)
                return True
            except ConflictError:
                return False

        with ThreadPoolExecutor(max_workers=6) as pool:
            results = list(pool.map(attempt, range(6)))

        assert results.count(True) == 1
        assert len(relationship_store.find_by_pair("a", "b")) == 1

    def test_concurrent_opposite_parents_create_no_cycle(self, service):
        forward = RelationshipCreate(
            source_term_id="a", target_term_id="b", relationship_type=RelationshipType.PARENT
        )
        backward = RelationshipCreate(
            source_term_id="b", target_term_id="a", relationship_type=RelationshipType.PARENT
        )
        barrier = threading.Barrier(2)

        def attempt(data):
            barrier.wait()
            try:
                service.create_relationship(data)
                return True
            except InvalidArgumentError:
                return False

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(attempt, [forward, backward]))

        assert sorted(results) == [False, True]

    def test_services_sharing_a_database_create_no_cycle(self, sqlite_stores, db_path):
        terms, _ = sqlite_stores
        # Separate services hold separate locks, as two server processes would.
        services = [RelationshipService(SQLiteRelationshipStore(db_path), terms) for _ in range(2)]
        requests = [
            RelationshipCreate(
                source_term_id="a", target_term_id="b", relationship_type=RelationshipType.PARENT
            ),
            RelationshipCreate(
                source_term_id="b", target_term_id="a", relationship_type=RelationshipType.PARENT
            ),
        ]
        barrier = threading.Barrier(2)

        def attempt(service, data):
            barrier.wait()
            try:
                service.create_relationship(data)
                return True
            except InvalidArgumentError:
                return False

        with ThreadPoolExecutor(max_workers=2) as pool:
            results = list(pool.map(attempt, services, requests))

        assert sorted(results) == [False, True]
        stored = SQLiteRelationshipStore(db_path).find_by_type([RelationshipType.PARENT])
        assert len(stored) == 1


# =============================================================================
# Update & Delete
# =============================================================================


class TestUpdateRelationship:
    def test_updates_description(self, link, service):
        rel = link("a", "b", RelationshipType.RELATED)
        updated = service.update_relationship(rel.id, RelationshipUpdate(description="see also"))

        assert updated.description == "see also"
        assert updated.relationship_type == RelationshipType.RELATED
        assert updated.updated_at is not None

    def test_missing_relationship_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.update_relationship("missing", RelationshipUpdate(description="x"))

    def test_type_change_that_closes_cycle_is_rejected(self, link, service):
        link("a", "b")
        link("b", "c")
        rel = link("c", "a", RelationshipType.RELATED)

        with pytest.raises(InvalidArgumentError, match="circular"):
            service.update_relationship(
                rel.id, RelationshipUpdate(relationship_type=RelationshipType.PARENT)
            )

        assert service.get_relationship(rel.id).relationship_type == RelationshipType.RELATED

    def test_flipping_an_edge_ignores_its_old_arc(self, link, service):
        rel = link("a", "b", RelationshipType.PARENT)
        updated = service.update_relationship(
            rel.id, RelationshipUpdate(relationship_type=RelationshipType.CHILD)
        )
        assert updated.relationship_type == RelationshipType.CHILD

    def test_type_change_onto_existing_triple_conflicts(self, link, service):
        link("a", "b", RelationshipType.PARENT)
        rel = link("a", "b", RelationshipType.RELATED)

        with pytest.raises(ConflictError):
            service.update_relationship(
                rel.id, RelationshipUpdate(relationship_type=RelationshipType.PARENT)
            )

    def test_type_outside_scheme_is_invalid(self, link, service):
        rel = link("a", "b", RelationshipType.RELATED)
        with pytest.raises(InvalidArgumentError):
            service.update_relationship(
                rel.id, RelationshipUpdate(relationship_type=RelationshipType.DEPENDENCY)
            )


class TestDeleteRelationship:
    def test_delete_by_id(self, link, service):
        rel = link("a", "b")
        service.delete_relationship(rel.id)
        with pytest.raises(NotFoundError):
            service.get_relationship(rel.id)

    def test_delete_missing_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.delete_relationship("missing")

    def test_delete_between_removes_all_types_for_pair(self, link, service, relationship_store):
        link("a", "b", RelationshipType.PARENT)
        link("a", "b", RelationshipType.RELATED)
        keep = link("b", "a", RelationshipType.RELATED)

        deleted = service.delete_relationship_between("a", "b")

        assert len(deleted) == 2
        assert [rel.id for rel in relationship_store.find_by_endpoint("a")] == [keep.id]

    def test_delete_between_without_edge_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.delete_relationship_between("a", "b")

    def test_delete_for_term_cascades(self, link, service, relationship_store):
        link("a", "b")
        link("c", "a", RelationshipType.RELATED)
        other = link("b", "c")

        deleted = service.delete_relationships_for_term("a")

        assert len(deleted) == 2
        assert [rel.id for rel in relationship_store.find_by_type(RelationshipType)] == [other.id]


# =============================================================================
# Queries
# =============================================================================


class TestFindRelationships:
    def test_relationships_are_annotated_with_direction(self, link, service):
        out = link("a", "b", RelationshipType.PARENT)
        inc = link("c", "a", RelationshipType.SYNONYM)

        related = {rel.id: rel for rel in service.find_relationships_for_term("a")}

        assert related[out.id].direction == Direction.OUTGOING
        assert related[out.id].related_term.name == "Bounded Context"
        assert related[inc.id].direction == Direction.INCOMING
        assert related[inc.id].related_term.id == "c"

    def test_unknown_term_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.find_relationships_for_term("nope")

    def test_related_terms_by_type_uses_both_directions(self, link, service):
        link("a", "b", RelationshipType.SYNONYM)
        link("c", "a", RelationshipType.SYNONYM)
        link("a", "d", RelationshipType.RELATED)

        assert service.find_related_terms_by_type("a", RelationshipType.SYNONYM) == ["b", "c"]

    def test_related_terms_are_deduplicated(self, link, service):
        link("a", "b", RelationshipType.RELATED)
        link("b", "a", RelationshipType.RELATED)

        assert service.find_related_terms_by_type("a", RelationshipType.RELATED) == ["b"]

    def test_direct_parents_combine_parent_and_child_edges(self, link, service):
        link("a", "b", RelationshipType.PARENT)
        link("c", "a", RelationshipType.CHILD)
        link("a", "d", RelationshipType.CHILD)

        assert service.direct_parents("a") == ["b", "c"]


class TestHierarchy:
    def test_tree_follows_child_direction(self, link, service):
        link("a", "b", RelationshipType.CHILD)
        link("a", "c", RelationshipType.CHILD)
        link("d", "b", RelationshipType.PARENT)  # B is D's parent

        tree = service.get_hierarchy("a")

        assert isinstance(tree, HierarchyNode)
        assert tree.name == "Aggregate"
        children = {child.term_id: child for child in tree.children}
        assert list(children) == ["b", "c"]
        assert [grandchild.term_id for grandchild in children["b"].children] == ["d"]

    def test_tree_terminates_on_cyclic_data(self, raw_link, service):
        raw_link("a", "b", RelationshipType.CHILD)
        raw_link("b", "c", RelationshipType.CHILD)
        raw_link("c", "a", RelationshipType.CHILD)

        tree = service.build_hierarchy_tree("a")

        assert list(tree.iter_term_ids()) == ["a", "b", "c"]
        assert tree.children[0].children[0].children == []

    def test_shared_descendant_appears_once(self, link, service):
        link("a", "b", RelationshipType.CHILD)
        link("a", "c", RelationshipType.CHILD)
        link("b", "d", RelationshipType.CHILD)
        link("c", "d", RelationshipType.CHILD)

        tree = service.build_hierarchy_tree("a")

        assert list(tree.iter_term_ids()) == ["a", "b", "d", "c"]
        placement = {child.term_id: [n.term_id for n in child.children] for child in tree.children}
        assert placement == {"b": ["d"], "c": []}

    def test_without_root_returns_hierarchical_edges(self, link, service):
        parent = link("a", "b", RelationshipType.PARENT)
        child = link("c", "d", RelationshipType.CHILD)
        link("a", "c", RelationshipType.RELATED)

        edges = service.get_hierarchy()

        assert [rel.id for rel in edges] == [parent.id, child.id]

    def test_unknown_root_is_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.get_hierarchy("nope")
