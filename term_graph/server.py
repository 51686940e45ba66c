"""
Term Relationship Graph MCP Server

Exposes glossary term relationships, hierarchy trees, onboarding learning
paths and diagram exports as MCP tools.
"""

import logging

from fastmcp import FastMCP

from .config import Settings
from .database import SQLiteRelationshipStore, SQLiteTermStore, init_database, set_db_path
from .errors import TermGraphError
from .models.enums import ExportFormat, RelationshipType, TermStatus
from .models.relationship import RelationshipCreate, RelationshipUpdate
from .models.term import TermCreate
from .services.dependency_resolver import DependencyResolver
from .services.diagram_projector import DiagramProjector
from .services.mermaid_generator import generate_learning_path_mermaid
from .services.onboarding_service import OnboardingService
from .services.relationship_service import RelationshipService

logger = logging.getLogger(__name__)

settings = Settings.from_env()

mcp = FastMCP(
    "Term Relationship Graph",
    instructions="Typed relationships between glossary terms. Maintains acyclic "
    "parent/child hierarchies, builds hierarchy trees, recommends the order in "
    "which essential terms should be learned, and renders relationship diagrams.",
)

# Stores resolve the database path on every call, so set_db_path() applies.
term_store = SQLiteTermStore()
relationship_store = SQLiteRelationshipStore()
relationship_service = RelationshipService(relationship_store, term_store, settings.hierarchy)
resolver = DependencyResolver(relationship_service)
onboarding_service = OnboardingService(resolver, term_store, term_store)
diagram_projector = DiagramProjector(relationship_store, term_store)


def _error(e: TermGraphError) -> dict:
    return {"success": False, "error": str(e), "error_type": e.error_type}


def _resolve(identifier: str) -> str:
    """Resolve a term ID or name; unknown identifiers pass through unchanged."""
    return term_store.resolve_term_id(identifier) or identifier


def _parse_relationship_type(value: str) -> RelationshipType | dict:
    try:
        return RelationshipType(value)
    except ValueError:
        valid_types = sorted(t.value for t in relationship_service.config.allowed_types)
        return {
            "success": False,
            "error": f"Invalid relationship_type '{value}'. Must be one of: {valid_types}",
            "error_type": "invalid_argument",
        }


# ==================== Terms & Progress ====================


@mcp.tool()
def add_term(
    name: str,
    description: str | None = None,
    status: str = "draft",
    is_essential: bool = False,
    context_id: str | None = None,
    term_id: str | None = None,
) -> dict:
    """
    Register a glossary term so it can take part in relationships.

    Args:
        name: Human-readable term name (e.g., "Aggregate Root")
        description: Short definition
        status: One of "draft", "active", "archived", "deprecated"
        is_essential: Whether new team members must learn this term
        context_id: Bounded context the term belongs to
        term_id: Custom ID. Auto-generated from name if not provided.
    """
    try:
        term = term_store.add_term(
            TermCreate(
                name=name,
                description=description,
                status=TermStatus(status),
                is_essential=is_essential,
                context_id=context_id,
                term_id=term_id,
            )
        )
        return {
            "success": True,
            "term": term.to_dict(),
            "message": f"Registered term '{name}' with ID '{term.id}'",
        }
    except ValueError as e:
        return {"success": False, "error": str(e)}
    except Exception as e:
        logger.exception("add_term failed")
        return {"success": False, "error": f"Failed to add term: {str(e)}"}


@mcp.tool()
def mark_term_learned(user_id: str, term: str) -> dict:
    """
    Record that a user has learned a term.

    Args:
        user_id: The learner
        term: Term ID or name
    """
    try:
        term_id = _resolve(term)
        created = term_store.mark_learned(user_id, term_id)
        return {"success": True, "term_id": term_id, "already_learned": not created}
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("mark_term_learned failed")
        return {"success": False, "error": f"Failed to mark term learned: {str(e)}"}


@mcp.tool()
def unmark_term_learned(user_id: str, term: str) -> dict:
    """Remove a term from a user's learned set."""
    try:
        term_id = _resolve(term)
        removed = term_store.unmark_learned(user_id, term_id)
        return {"success": True, "term_id": term_id, "removed": removed}
    except Exception as e:
        logger.exception("unmark_term_learned failed")
        return {"success": False, "error": f"Failed to unmark term: {str(e)}"}


# ==================== Relationships ====================


@mcp.tool()
def create_relationship(
    source_term: str,
    target_term: str,
    relationship_type: str,
    description: str | None = None,
    created_by: str = "system",
) -> dict:
    """
    Create a typed relationship between two terms.

    Args:
        source_term: Source term ID or name
        target_term: Target term ID or name
        relationship_type: In the classic scheme one of:
            - "parent": Target is the parent of source (learn target first)
            - "child": Target is a child of source
            - "synonym", "antonym", "related": Non-hierarchical links
            In the structural scheme: "inheritance", "aggregation",
            "association", "dependency".
        description: Why this relationship exists
        created_by: Who requested the relationship

    Returns:
        Created relationship. Fails on self-references, duplicates, and
        hierarchical edges that would create a cycle.

    Example:
        create_relationship(
            source_term="Aggregate Root",
            target_term="Entity",
            relationship_type="parent",
            description="An aggregate root is a special kind of entity"
        )
    """
    try:
        rel_type = _parse_relationship_type(relationship_type)
        if isinstance(rel_type, dict):
            return rel_type

        relationship = relationship_service.create_relationship(
            RelationshipCreate(
                source_term_id=_resolve(source_term),
                target_term_id=_resolve(target_term),
                relationship_type=rel_type,
                description=description,
                created_by=created_by,
            )
        )
        return {
            "success": True,
            "relationship": relationship.to_dict(),
            "message": (
                f"Created {relationship_type} relationship: "
                f"{relationship.source_term_id} → {relationship.target_term_id}"
            ),
        }
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("create_relationship failed")
        return {"success": False, "error": f"Failed to create relationship: {str(e)}"}


@mcp.tool()
def update_relationship(
    relationship_id: str,
    relationship_type: str | None = None,
    description: str | None = None,
) -> dict:
    """
    Change the type or description of a relationship. Endpoints are fixed.

    Args:
        relationship_id: ID of the relationship
        relationship_type: New type (re-validated against the hierarchy)
        description: New description
    """
    try:
        rel_type = None
        if relationship_type is not None:
            rel_type = _parse_relationship_type(relationship_type)
            if isinstance(rel_type, dict):
                return rel_type

        relationship = relationship_service.update_relationship(
            relationship_id,
            RelationshipUpdate(relationship_type=rel_type, description=description),
        )
        return {"success": True, "relationship": relationship.to_dict()}
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("update_relationship failed")
        return {"success": False, "error": f"Failed to update relationship: {str(e)}"}


@mcp.tool()
def delete_relationship(relationship_id: str) -> dict:
    """Delete a relationship by ID."""
    try:
        deleted = relationship_service.delete_relationship(relationship_id)
        return {"success": True, "deleted": deleted.to_dict()}
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("delete_relationship failed")
        return {"success": False, "error": f"Failed to delete relationship: {str(e)}"}


@mcp.tool()
def delete_relationship_between(source_term: str, target_term: str) -> dict:
    """
    Delete the relationships from one term to another, whatever their type.

    Use delete_relationship with an ID to remove a single typed edge.
    """
    try:
        deleted = relationship_service.delete_relationship_between(
            _resolve(source_term), _resolve(target_term)
        )
        return {"success": True, "deleted": [rel.to_dict() for rel in deleted]}
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("delete_relationship_between failed")
        return {"success": False, "error": f"Failed to delete relationship: {str(e)}"}


@mcp.tool()
def get_term_relationships(term: str) -> dict:
    """
    List every relationship of a term, marked outgoing or incoming, with the
    related term's details.
    """
    try:
        term_id = _resolve(term)
        relationships = relationship_service.find_relationships_for_term(term_id)
        return {
            "success": True,
            "term_id": term_id,
            "relationships": [rel.to_dict() for rel in relationships],
            "count": len(relationships),
        }
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("get_term_relationships failed")
        return {"success": False, "error": f"Failed to get relationships: {str(e)}"}


@mcp.tool()
def get_related_terms(term: str, relationship_type: str) -> dict:
    """IDs of the terms linked to a term by a given relationship type, in either direction."""
    try:
        rel_type = _parse_relationship_type(relationship_type)
        if isinstance(rel_type, dict):
            return rel_type

        term_id = _resolve(term)
        related = relationship_service.find_related_terms_by_type(term_id, rel_type)
        return {"success": True, "term_id": term_id, "related_term_ids": related}
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("get_related_terms failed")
        return {"success": False, "error": f"Failed to get related terms: {str(e)}"}


@mcp.tool()
def get_hierarchy(root_term: str | None = None) -> dict:
    """
    Get the term hierarchy.

    Args:
        root_term: Term ID or name to build a tree from. Without it, all
            hierarchical relationships are returned as a flat list.
    """
    try:
        if root_term is None:
            relationships = relationship_service.get_hierarchy()
            return {
                "success": True,
                "relationships": [rel.to_dict() for rel in relationships],
                "count": len(relationships),
            }

        tree = relationship_service.get_hierarchy(_resolve(root_term))
        return {"success": True, "tree": tree.to_dict()}
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("get_hierarchy failed")
        return {"success": False, "error": f"Failed to get hierarchy: {str(e)}"}


# ==================== Onboarding ====================


@mcp.tool()
def get_learning_path(user_id: str, output_format: str = "json") -> dict:
    """
    Get the recommended order for learning the essential terms.

    Every term comes after the terms it depends on (its parents).

    Args:
        user_id: The learner; learned terms are flagged in the path
        output_format: "json", "mermaid", or "both"
    """
    try:
        path = onboarding_service.get_learning_path(user_id)
        result = {"success": True, "user_id": user_id, "count": len(path)}
        if output_format in ("json", "both"):
            result["path"] = [entry.to_dict() for entry in path]
        if output_format in ("mermaid", "both"):
            result["mermaid"] = generate_learning_path_mermaid(path)
        return result
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("get_learning_path failed")
        return {"success": False, "error": f"Failed to get learning path: {str(e)}"}


@mcp.tool()
def get_next_recommended_terms(user_id: str, limit: int = 5) -> dict:
    """Unlearned essential terms whose dependencies the user has already learned."""
    try:
        recommendations = onboarding_service.get_next_recommended_terms(user_id, limit)
        return {
            "success": True,
            "user_id": user_id,
            "recommendations": [entry.to_dict() for entry in recommendations],
            "count": len(recommendations),
        }
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("get_next_recommended_terms failed")
        return {"success": False, "error": f"Failed to get recommendations: {str(e)}"}


@mcp.tool()
def can_learn_term(user_id: str, term: str) -> dict:
    """Whether all of a term's dependencies are learned by the user."""
    try:
        term_id = _resolve(term)
        return {
            "success": True,
            "term_id": term_id,
            "can_learn": onboarding_service.can_learn_term(user_id, term_id),
        }
    except TermGraphError as e:
        return _error(e)
    except Exception as e:
        logger.exception("can_learn_term failed")
        return {"success": False, "error": f"Failed to check term: {str(e)}"}


@mcp.tool()
def get_learning_progress(user_id: str) -> dict:
    """How many essential terms the user has learned."""
    try:
        progress = onboarding_service.get_learning_progress(user_id)
        return {"success": True, **progress.to_dict()}
    except Exception as e:
        logger.exception("get_learning_progress failed")
        return {"success": False, "error": f"Failed to get progress: {str(e)}"}


# ==================== Diagrams ====================


@mcp.tool()
def get_diagram(
    terms: list[str] | None = None,
    context_id: str | None = None,
    output_format: str = "json",
    title: str | None = None,
) -> dict:
    """
    Render the relationships among a set of terms.

    Args:
        terms: Term IDs or names forming the scope
        context_id: Use every term of this bounded context as the scope
        output_format: "json", "mermaid", or "markdown"
        title: Optional diagram title

    Only edges with both ends in the scope are included.
    """
    try:
        try:
            export_format = ExportFormat(output_format)
        except ValueError:
            valid_formats = [f.value for f in ExportFormat]
            return {
                "success": False,
                "error": f"Invalid output_format '{output_format}'. Must be one of: {valid_formats}",
            }

        if context_id is not None:
            diagram = diagram_projector.diagram_for_context(context_id)
        elif terms:
            diagram = diagram_projector.diagram_for_scope(_resolve(t) for t in terms)
        else:
            return {"success": False, "error": "Provide either terms or context_id"}

        result = {
            "success": True,
            "node_count": len(diagram.nodes),
            "edge_count": len(diagram.edges),
        }
        if export_format == ExportFormat.JSON:
            result.update(diagram.to_dict())
        else:
            result[export_format.value] = diagram_projector.export(diagram, export_format, title)
        return result
    except Exception as e:
        logger.exception("get_diagram failed")
        return {"success": False, "error": f"Failed to build diagram: {str(e)}"}


def main():
    """Run the MCP server."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    set_db_path(settings.db_path)
    init_database()
    logger.info(f"Relationship scheme: {settings.scheme.value}")

    if settings.port:
        # Streamable HTTP mode
        import uvicorn
        from starlette.middleware.cors import CORSMiddleware

        app = mcp.http_app()
        app = CORSMiddleware(
            app=app,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=["mcp-session-id", "mcp-protocol-version"],
            max_age=86400,
        )

        uvicorn.run(app, host="0.0.0.0", port=settings.port)
    else:
        # Standard stdio mode for local usage
        mcp.run()


if __name__ == "__main__":
    main()
