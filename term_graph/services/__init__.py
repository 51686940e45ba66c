from .hierarchy import HierarchyGraph
from .relationship_service import RelationshipService
from .dependency_resolver import DependencyResolver
from .onboarding_service import OnboardingService
from .diagram_projector import DiagramProjector, generate_markdown
from .mermaid_generator import generate_mermaid, generate_learning_path_mermaid

__all__ = [
    "HierarchyGraph",
    "RelationshipService",
    "DependencyResolver",
    "OnboardingService",
    "DiagramProjector",
    "generate_markdown",
    "generate_mermaid",
    "generate_learning_path_mermaid",
]
