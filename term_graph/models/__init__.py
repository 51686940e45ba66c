from .enums import Direction, ExportFormat, RelationshipScheme, RelationshipType, TermStatus
from .term import TermCreate, TermSummary
from .relationship import (
    RelatedRelationship,
    Relationship,
    RelationshipCreate,
    RelationshipUpdate,
)
from .views import (
    Diagram,
    DiagramEdge,
    DiagramNode,
    HierarchyNode,
    LearningPathEntry,
    LearningProgress,
)

__all__ = [
    "Direction",
    "ExportFormat",
    "RelationshipScheme",
    "RelationshipType",
    "TermStatus",
    "TermCreate",
    "TermSummary",
    "RelatedRelationship",
    "Relationship",
    "RelationshipCreate",
    "RelationshipUpdate",
    "Diagram",
    "DiagramEdge",
    "DiagramNode",
    "HierarchyNode",
    "LearningPathEntry",
    "LearningProgress",
]
