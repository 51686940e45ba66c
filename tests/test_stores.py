"""Tests for the store contract, shared by the SQLite and in-memory stores."""

import sqlite3

import pytest

from term_graph.database import (
    LearningProgressSource,
    RelationshipStore,
    SQLiteRelationshipStore,
    TermOracle,
    get_db_path,
    init_database,
    set_db_path,
)
from term_graph.errors import ConflictError, InvalidArgumentError, NotFoundError
from term_graph.models import (
    Direction,
    RelationshipCreate,
    RelationshipType,
    RelationshipUpdate,
    TermCreate,
)


def _create(source, target, rel_type=RelationshipType.RELATED):
    return RelationshipCreate(
        source_term_id=source, target_term_id=target, relationship_type=rel_type
    )


class TestRelationshipStore:
    def test_satisfies_protocols(self, relationship_store, term_store):
        assert isinstance(relationship_store, RelationshipStore)
        assert isinstance(term_store, TermOracle)
        assert isinstance(term_store, LearningProgressSource)

    def test_insert_and_find(self, relationship_store):
        rel = relationship_store.insert(_create("a", "b"))

        found = relationship_store.find_by_id(rel.id)
        assert found == rel
        assert found.created_at is not None
        assert relationship_store.find_by_id("missing") is None

    def test_insert_enforces_uniqueness(self, relationship_store):
        relationship_store.insert(_create("a", "b"))
        with pytest.raises(ConflictError):
            relationship_store.insert(_create("a", "b"))

    def test_insert_rejects_self_reference(self, relationship_store):
        with pytest.raises(InvalidArgumentError):
            relationship_store.insert(_create("a", "a"))

    def test_find_by_endpoint_direction(self, relationship_store):
        out = relationship_store.insert(_create("a", "b"))
        inc = relationship_store.insert(_create("c", "a"))

        assert relationship_store.find_by_endpoint("a", Direction.OUTGOING) == [out]
        assert relationship_store.find_by_endpoint("a", Direction.INCOMING) == [inc]
        assert relationship_store.find_by_endpoint("a") == [out, inc]

    def test_find_by_type_and_pair(self, relationship_store):
        parent = relationship_store.insert(_create("a", "b", RelationshipType.PARENT))
        related = relationship_store.insert(_create("a", "b"))

        assert relationship_store.find_by_type([RelationshipType.PARENT]) == [parent]
        assert relationship_store.find_by_type([]) == []
        assert relationship_store.find_by_pair("a", "b") == [parent, related]
        assert relationship_store.find_by_pair("a", "b", RelationshipType.RELATED) == [related]
        assert relationship_store.find_by_pair("b", "a") == []

    def test_find_touching(self, relationship_store):
        ab = relationship_store.insert(_create("a", "b"))
        relationship_store.insert(_create("c", "d"))

        assert relationship_store.find_touching(["b"]) == [ab]
        assert relationship_store.find_touching([]) == []

    def test_update(self, relationship_store):
        rel = relationship_store.insert(_create("a", "b"))

        updated = relationship_store.update(
            rel.id, RelationshipUpdate(relationship_type=RelationshipType.SYNONYM)
        )

        assert updated.relationship_type == RelationshipType.SYNONYM
        assert updated.source_term_id == "a"
        assert relationship_store.update("missing", RelationshipUpdate(description="x")) is None

    def test_delete_variants(self, relationship_store):
        ab = relationship_store.insert(_create("a", "b"))
        relationship_store.insert(_create("a", "b", RelationshipType.SYNONYM))
        relationship_store.insert(_create("c", "a"))
        relationship_store.insert(_create("c", "d"))

        assert relationship_store.delete(ab.id).id == ab.id
        assert relationship_store.delete(ab.id) is None
        assert len(relationship_store.delete_by_pair("a", "b")) == 1
        assert len(relationship_store.delete_by_endpoint("a")) == 1
        assert [rel.source_term_id for rel in relationship_store.find_touching(["c"])] == ["c"]


class TestTermStore:
    def test_oracle_queries(self, term_store):
        assert term_store.exists("a")
        assert not term_store.exists("zzz")
        assert term_store.is_essential("a")
        assert not term_store.is_essential("d")
        assert not term_store.is_essential("zzz")
        assert term_store.get_term("b").name == "Bounded Context"
        assert term_store.essential_term_ids() == ["a", "b", "c"]
        assert term_store.term_ids_in_context("events") == ["d"]

    def test_learning_progress(self, term_store):
        assert term_store.mark_learned("u", "a")
        assert not term_store.mark_learned("u", "a")
        assert term_store.learned_term_ids("u") == {"a"}
        assert term_store.learned_term_ids("someone-else") == set()


class TestSQLiteTermStore:
    def test_add_term_generates_id(self, sqlite_stores):
        terms, _ = sqlite_stores
        term = terms.add_term(TermCreate(name="Value Object!"))

        assert term.id == "value_object"
        assert terms.resolve_term_id("Value Object!") == "value_object"
        assert terms.resolve_term_id("value object") == "value_object"
        assert terms.resolve_term_id("unknown") is None

    def test_duplicate_term(self, sqlite_stores):
        terms, _ = sqlite_stores
        with pytest.raises(ConflictError):
            terms.add_term(TermCreate(name="Aggregate", term_id="a"))

    def test_mark_unknown_term(self, sqlite_stores):
        terms, _ = sqlite_stores
        with pytest.raises(NotFoundError):
            terms.mark_learned("u", "zzz")

    def test_unmark(self, sqlite_stores):
        terms, _ = sqlite_stores
        terms.mark_learned("u", "a")

        assert terms.unmark_learned("u", "a")
        assert not terms.unmark_learned("u", "a")
        assert terms.learned_term_ids("u") == set()

    def test_relationship_to_unknown_term_is_not_found(self, sqlite_stores):
        _, relationships = sqlite_stores
        with pytest.raises(NotFoundError):
            relationships.insert(_create("a", "zzz"))


class TestSQLiteRelationshipStore:
    def test_write_transaction_commits_on_exit(self, sqlite_stores, db_path):
        _, relationships = sqlite_stores

        with relationships.write_transaction():
            relationships.insert(_create("a", "b"))
            relationships.insert(_create("b", "c"))
            # Still uncommitted, so a fresh store sees nothing yet.
            assert SQLiteRelationshipStore(db_path).find_touching(["b"]) == []

        assert len(relationships.find_touching(["b"])) == 2

    def test_write_transaction_rolls_back_on_error(self, sqlite_stores):
        _, relationships = sqlite_stores

        with pytest.raises(RuntimeError):
            with relationships.write_transaction():
                relationships.insert(_create("a", "b"))
                raise RuntimeError("abort")

        assert relationships.find_by_pair("a", "b") == []

    def test_write_transaction_excludes_other_writers(self, sqlite_stores, db_path):
        _, relationships = sqlite_stores

        with relationships.write_transaction():
            other = sqlite3.connect(str(db_path), timeout=0)
            try:
                with pytest.raises(sqlite3.OperationalError):
                    other.execute("BEGIN IMMEDIATE")
            finally:
                other.close()


class TestDefaultDatabasePath:
    def test_stores_without_a_path_follow_the_default(self, tmp_path):
        previous = get_db_path()
        store = SQLiteRelationshipStore()
        try:
            init_database(tmp_path / "first.db")
            assert store.find_by_type([RelationshipType.PARENT]) == []

            set_db_path(tmp_path / "second.db")
            init_database()
            assert store.find_by_type([RelationshipType.PARENT]) == []
        finally:
            set_db_path(previous)

        assert (tmp_path / "first.db").exists()
        assert (tmp_path / "second.db").exists()
