"""Node/edge projections of the relationship graph, and their text exports."""

import json
import logging
from datetime import datetime
from typing import Iterable

from ..database.base import RelationshipStore, TermOracle
from ..models.enums import ExportFormat
from ..models.views import Diagram, DiagramEdge, DiagramNode
from .mermaid_generator import generate_mermaid

logger = logging.getLogger(__name__)


class DiagramProjector:
    """Read-only view of a scope of terms and the edges between them."""

    def __init__(self, store: RelationshipStore, terms: TermOracle):
        self.store = store
        self.terms = terms

    def diagram_for_scope(self, term_ids: Iterable[str]) -> Diagram:
        """
        Nodes for the given terms, and every edge with both ends among them.

        Edges that leave the scope, or reach a term that no longer exists, are
        dropped entirely.
        """
        scope = list(dict.fromkeys(term_ids))
        if not scope:
            return Diagram()

        nodes = []
        for term_id in scope:
            term = self.terms.get_term(term_id)
            if term is None:
                logger.debug(f"Diagram scope term {term_id} not found; skipping node")
                continue
            nodes.append(
                DiagramNode(
                    id=term.id,
                    label=term.name,
                    description=term.description,
                    status=term.status,
                )
            )

        in_scope = {node.id for node in nodes}
        edges = [
            DiagramEdge(
                id=rel.id,
                source=rel.source_term_id,
                target=rel.target_term_id,
                type=rel.relationship_type,
                description=rel.description,
            )
            for rel in self.store.find_touching(scope)
            if rel.source_term_id in in_scope and rel.target_term_id in in_scope
        ]

        return Diagram(nodes=nodes, edges=edges)

    def diagram_for_context(self, context_id: str) -> Diagram:
        return self.diagram_for_scope(self.terms.term_ids_in_context(context_id))

    def export(
        self,
        diagram: Diagram,
        export_format: ExportFormat | str = ExportFormat.JSON,
        title: str | None = None,
    ) -> str:
        export_format = ExportFormat(export_format)

        match export_format:
            case ExportFormat.JSON:
                return json.dumps(diagram.to_dict(), indent=2)
            case ExportFormat.MERMAID:
                return generate_mermaid(diagram, title=title)
            case ExportFormat.MARKDOWN:
                return generate_markdown(diagram, title=title)
            case _:
                raise ValueError(f"Unknown export format: {export_format}")


def generate_markdown(diagram: Diagram, title: str | None = None) -> str:
    """Render a diagram as a Markdown glossary section, one heading per term."""
    labels = {node.id: node.label for node in diagram.nodes}
    outgoing: dict[str, list[DiagramEdge]] = {}
    for edge in diagram.edges:
        outgoing.setdefault(edge.source, []).append(edge)

    lines = [f"# {title or 'Term Relationships'}", ""]
    lines.append(f"Generated on: {datetime.now().isoformat()}")
    lines.append("")

    if not diagram.nodes:
        lines.append("*No terms in scope.*")
        return "\n".join(lines) + "\n"

    for node in diagram.nodes:
        lines.append(f"## {node.label}")
        lines.append("")
        lines.append(f"**Status:** `{node.status.value}`")
        lines.append("")

        if node.description:
            lines.append(node.description)
            lines.append("")

        edges = outgoing.get(node.id, [])
        if edges:
            lines.append("**Relationships:**")
            lines.append("")
            for edge in edges:
                lines.append(f"- **{edge.type.value}:** {labels.get(edge.target, edge.target)}")
                if edge.description:
                    lines.append(f"  - {edge.description}")
            lines.append("")

    return "\n".join(lines)
