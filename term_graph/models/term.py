"""Term models.

Terms are owned by the glossary's term store; the graph engine only reads
the handful of attributes below.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from .enums import TermStatus


class TermCreate(BaseModel):
    """Input model for registering a term with the bundled term store."""

    name: str = Field(..., description="Human-readable term name")
    description: Optional[str] = Field(None, description="Short definition")
    status: TermStatus = Field(default=TermStatus.DRAFT)
    is_essential: bool = Field(default=False, description="Required for onboarding")
    context_id: Optional[str] = Field(None, description="Bounded context the term belongs to")
    term_id: Optional[str] = Field(None, description="Custom ID (auto-generated if not provided)")


class TermSummary(BaseModel):
    """Display attributes of a term."""

    id: str
    name: str
    description: Optional[str] = None
    status: TermStatus = TermStatus.DRAFT
    is_essential: bool = False
    context_id: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict) -> "TermSummary":
        """Create a TermSummary from a database row."""
        data = dict(row)
        data["is_essential"] = bool(data.get("is_essential"))

        if data.get("created_at"):
            try:
                data["created_at"] = datetime.fromisoformat(data["created_at"])
            except (ValueError, TypeError):
                data["created_at"] = None

        if isinstance(data.get("status"), str):
            data["status"] = TermStatus(data["status"])

        return cls(**data)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "is_essential": self.is_essential,
            "context_id": self.context_id,
        }
