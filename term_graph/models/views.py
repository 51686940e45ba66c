"""Derived, non-persisted views computed from the relationship graph."""

from typing import Optional
from pydantic import BaseModel, Field

from .enums import RelationshipType, TermStatus


class HierarchyNode(BaseModel):
    """A term and its children along hierarchical edges."""

    term_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TermStatus] = None
    children: list["HierarchyNode"] = Field(default_factory=list)

    def iter_term_ids(self):
        """Yield every term id in the tree, pre-order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node.term_id
            stack.extend(reversed(node.children))

    def to_dict(self) -> dict:
        return {
            "term_id": self.term_id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value if self.status else None,
            "children": [child.to_dict() for child in self.children],
        }


HierarchyNode.model_rebuild()


class LearningPathEntry(BaseModel):
    """One step of a learning path."""

    term_id: str
    term_name: Optional[str] = None
    order: int = Field(..., ge=1, description="1-based position in the path")
    dependencies: list[str] = Field(default_factory=list)
    is_learned: bool = False

    def to_dict(self) -> dict:
        return {
            "term_id": self.term_id,
            "term_name": self.term_name,
            "order": self.order,
            "dependencies": list(self.dependencies),
            "is_learned": self.is_learned,
        }


class LearningProgress(BaseModel):
    """How far a user is through the essential terms."""

    user_id: str
    total_essential_terms: int
    learned_essential_terms: int
    percent_complete: int
    remaining_term_ids: list[str] = Field(default_factory=list)
    learned_term_ids: list[str] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump()


class DiagramNode(BaseModel):
    id: str
    label: str
    description: Optional[str] = None
    status: TermStatus = TermStatus.DRAFT


class DiagramEdge(BaseModel):
    id: str
    source: str
    target: str
    type: RelationshipType
    description: Optional[str] = None


class Diagram(BaseModel):
    """Node/edge view of a set of terms."""

    nodes: list[DiagramNode] = Field(default_factory=list)
    edges: list[DiagramEdge] = Field(default_factory=list)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json")
