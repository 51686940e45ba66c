"""
Term Relationship Graph

Typed relationships between glossary terms, with acyclic hierarchies,
hierarchy trees, dependency-ordered learning paths and diagram exports.
"""

from .config import HierarchyConfig, Settings
from .errors import ConflictError, InvalidArgumentError, NotFoundError, TermGraphError
from .services import (
    DependencyResolver,
    DiagramProjector,
    OnboardingService,
    RelationshipService,
)

__version__ = "0.1.0"

__all__ = [
    "HierarchyConfig",
    "Settings",
    "ConflictError",
    "InvalidArgumentError",
    "NotFoundError",
    "TermGraphError",
    "DependencyResolver",
    "DiagramProjector",
    "OnboardingService",
    "RelationshipService",
]
