"""Configuration for the term graph engine and its server."""

import os
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field

from .models.enums import RelationshipScheme, RelationshipType
from .models.relationship import Relationship

DEFAULT_DB_PATH = Path.home() / ".term_graph" / "term_graph.db"

CLASSIC_TYPES = frozenset({
    RelationshipType.SYNONYM,
    RelationshipType.ANTONYM,
    RelationshipType.RELATED,
    RelationshipType.PARENT,
    RelationshipType.CHILD,
})

STRUCTURAL_TYPES = frozenset({
    RelationshipType.AGGREGATION,
    RelationshipType.ASSOCIATION,
    RelationshipType.DEPENDENCY,
    RelationshipType.INHERITANCE,
})


class HierarchyConfig(BaseModel):
    """
    Which relationship types are hierarchical, and which way they point.

    An edge ``A --t--> B`` with ``t`` in ``parent_types`` means B is the parent
    (prerequisite) of A. With ``t`` in ``child_types`` it means B is a child of
    A. Every hierarchical edge therefore reduces to a (parent, child) pair, and
    the acyclicity invariant is enforced over those pairs.
    """

    model_config = ConfigDict(frozen=True)

    scheme: RelationshipScheme
    allowed_types: frozenset[RelationshipType]
    parent_types: frozenset[RelationshipType] = frozenset()
    child_types: frozenset[RelationshipType] = frozenset()

    @classmethod
    def for_scheme(cls, scheme: RelationshipScheme | str) -> "HierarchyConfig":
        scheme = RelationshipScheme(scheme)
        if scheme == RelationshipScheme.STRUCTURAL:
            return cls(
                scheme=scheme,
                allowed_types=STRUCTURAL_TYPES,
                parent_types=frozenset({RelationshipType.INHERITANCE}),
                child_types=frozenset({RelationshipType.AGGREGATION}),
            )
        return cls(
            scheme=scheme,
            allowed_types=CLASSIC_TYPES,
            parent_types=frozenset({RelationshipType.PARENT}),
            child_types=frozenset({RelationshipType.CHILD}),
        )

    @property
    def hierarchical_types(self) -> frozenset[RelationshipType]:
        return self.parent_types | self.child_types

    def is_allowed(self, relationship_type: RelationshipType) -> bool:
        return relationship_type in self.allowed_types

    def is_hierarchical(self, relationship_type: RelationshipType) -> bool:
        return relationship_type in self.hierarchical_types

    def orient(
        self,
        source_term_id: str,
        target_term_id: str,
        relationship_type: RelationshipType,
    ) -> tuple[str, str] | None:
        """Return (parent_id, child_id) for a hierarchical edge, else None."""
        if relationship_type in self.parent_types:
            return target_term_id, source_term_id
        if relationship_type in self.child_types:
            return source_term_id, target_term_id
        return None

    def orient_relationship(self, relationship: Relationship) -> tuple[str, str] | None:
        return self.orient(
            relationship.source_term_id,
            relationship.target_term_id,
            relationship.relationship_type,
        )


class Settings(BaseModel):
    """Runtime settings, read from the environment."""

    db_path: Path = DEFAULT_DB_PATH
    scheme: RelationshipScheme = RelationshipScheme.CLASSIC
    log_level: str = "INFO"
    port: int | None = Field(None, description="Serve streamable HTTP on this port")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if environ is None else environ
        values = {}
        if env.get("TERM_GRAPH_DB_PATH"):
            values["db_path"] = Path(env["TERM_GRAPH_DB_PATH"])
        if env.get("TERM_GRAPH_SCHEME"):
            values["scheme"] = env["TERM_GRAPH_SCHEME"].lower()
        if env.get("TERM_GRAPH_LOG_LEVEL"):
            values["log_level"] = env["TERM_GRAPH_LOG_LEVEL"].upper()
        if env.get("PORT"):
            values["port"] = env["PORT"]
        return cls(**values)

    @property
    def hierarchy(self) -> HierarchyConfig:
        return HierarchyConfig.for_scheme(self.scheme)
