"""Enums for the term relationship graph."""

from enum import Enum


class RelationshipType(str, Enum):
    """Types of relationships between terms."""

    # Classic glossary scheme
    SYNONYM = "synonym"
    ANTONYM = "antonym"
    RELATED = "related"
    PARENT = "parent"  # Target is the parent of source
    CHILD = "child"    # Target is a child of source

    # Structural (UML-style) scheme
    AGGREGATION = "aggregation"  # Source aggregates target as a part
    ASSOCIATION = "association"
    DEPENDENCY = "dependency"
    INHERITANCE = "inheritance"  # Source specialises target


class RelationshipScheme(str, Enum):
    """Which relationship vocabulary is active."""

    CLASSIC = "classic"
    STRUCTURAL = "structural"


class Direction(str, Enum):
    """Direction of an edge relative to a given term."""

    OUTGOING = "outgoing"  # Term is the source
    INCOMING = "incoming"  # Term is the target
    BOTH = "both"


class TermStatus(str, Enum):
    """Lifecycle status of a term."""

    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    DEPRECATED = "deprecated"


class ExportFormat(str, Enum):
    """Output formats for diagram export."""

    JSON = "json"
    MERMAID = "mermaid"
    MARKDOWN = "markdown"
