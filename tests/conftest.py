"""Shared fixtures: a small glossary seeded into SQLite or in-memory stores."""

import pytest

from term_graph.database import (
    InMemoryRelationshipStore,
    InMemoryTermStore,
    SQLiteRelationshipStore,
    SQLiteTermStore,
    create_tables,
    get_connection,
)
from term_graph.models import (
    RelationshipCreate,
    RelationshipType,
    TermCreate,
    TermStatus,
    TermSummary,
)
from term_graph.services import (
    DependencyResolver,
    DiagramProjector,
    OnboardingService,
    RelationshipService,
)

# (id, name, essential, context)
GLOSSARY = [
    ("a", "Aggregate", True, "core"),
    ("b", "Bounded Context", True, "core"),
    ("c", "Context Map", True, "core"),
    ("d", "Domain Event", False, "events"),
]


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "term_graph.db"
    with get_connection(path) as conn:
        create_tables(conn.cursor())
        conn.commit()
    return path


@pytest.fixture
def sqlite_stores(db_path):
    terms = SQLiteTermStore(db_path)
    for term_id, name, essential, context_id in GLOSSARY:
        terms.add_term(
            TermCreate(
                name=name,
                term_id=term_id,
                is_essential=essential,
                status=TermStatus.ACTIVE,
                context_id=context_id,
            )
        )
    return terms, SQLiteRelationshipStore(db_path)


@pytest.fixture
def memory_stores():
    terms = InMemoryTermStore(
        TermSummary(
            id=term_id,
            name=name,
            is_essential=essential,
            status=TermStatus.ACTIVE,
            context_id=context_id,
        )
        for term_id, name, essential, context_id in GLOSSARY
    )
    return terms, InMemoryRelationshipStore()


@pytest.fixture(params=["sqlite", "memory"])
def stores(request):
    return request.getfixturevalue(f"{request.param}_stores")


@pytest.fixture
def term_store(stores):
    return stores[0]


@pytest.fixture
def relationship_store(stores):
    return stores[1]


@pytest.fixture
def service(relationship_store, term_store):
    return RelationshipService(relationship_store, term_store)


@pytest.fixture
def resolver(service):
    return DependencyResolver(service)


@pytest.fixture
def onboarding(resolver, term_store):
    return OnboardingService(resolver, term_store, term_store)


@pytest.fixture
def projector(relationship_store, term_store):
    return DiagramProjector(relationship_store, term_store)


@pytest.fixture
def link(service):
    """Create a relationship through the service."""

    def _link(source, target, rel_type=RelationshipType.PARENT, **kwargs):
        return service.create_relationship(
            RelationshipCreate(
                source_term_id=source,
                target_term_id=target,
                relationship_type=rel_type,
                **kwargs,
            )
        )

    return _link


@pytest.fixture
def raw_link(relationship_store):
    """Insert a relationship straight into the store, skipping validation."""

    def _raw_link(source, target, rel_type=RelationshipType.PARENT):
        return relationship_store.insert(
            RelationshipCreate(
                source_term_id=source,
                target_term_id=target,
                relationship_type=rel_type,
            )
        )

    return _raw_link
