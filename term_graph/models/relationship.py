"""Relationship models for the term graph."""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .enums import Direction, RelationshipType
from .term import TermSummary


class RelationshipCreate(BaseModel):
    """Input model for creating a relationship."""

    source_term_id: str = Field(..., description="Source term ID")
    target_term_id: str = Field(..., description="Target term ID")
    relationship_type: RelationshipType = Field(..., description="Type of relationship")
    description: Optional[str] = Field(None, description="Why this relationship exists")
    created_by: str = Field(default="system", description="User who requested the relationship")


class RelationshipUpdate(BaseModel):
    """Model for updating the mutable fields of a relationship."""

    relationship_type: Optional[RelationshipType] = None
    description: Optional[str] = None


class Relationship(BaseModel):
    """Full relationship model."""

    id: str
    source_term_id: str
    target_term_id: str
    relationship_type: RelationshipType
    description: Optional[str] = None
    created_by: str = "system"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "Relationship":
        """Create a Relationship from a database row."""
        data = dict(row)

        for field in ["created_at", "updated_at"]:
            if data.get(field):
                try:
                    data[field] = datetime.fromisoformat(data[field])
                except (ValueError, TypeError):
                    data[field] = None

        if isinstance(data.get("relationship_type"), str):
            data["relationship_type"] = RelationshipType(data["relationship_type"])

        return cls(**data)

    def other_end(self, term_id: str) -> str:
        """Return the endpoint that is not ``term_id``."""
        return self.target_term_id if self.source_term_id == term_id else self.source_term_id

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "source_term_id": self.source_term_id,
            "target_term_id": self.target_term_id,
            "relationship_type": self.relationship_type.value,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class RelatedRelationship(BaseModel):
    """A relationship seen from one of its endpoints."""

    id: str
    relationship_type: RelationshipType
    description: Optional[str] = None
    direction: Direction
    related_term: Optional[TermSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "relationship_type": self.relationship_type.value,
            "description": self.description,
            "direction": self.direction.value,
            "related_term": self.related_term.to_dict() if self.related_term else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
