"""Mermaid diagram generation for term relationship visualization."""

import re

from ..models.enums import RelationshipType, TermStatus
from ..models.views import Diagram, LearningPathEntry


def generate_mermaid(diagram: Diagram, title: str | None = None) -> str:
    """
    Generate a Mermaid flowchart from a diagram view.

    Node styling by term status:
    - draft: Grey dashed border
    - active: Green fill
    - archived / deprecated: Muted fill

    Edge styling by relationship type:
    - parent / child / inheritance: Solid arrow
    - aggregation: Thick arrow
    - dependency: Dotted arrow
    - synonym / antonym / related / association: Undirected dotted line
    """
    lines = ["graph TD"]

    lines.extend([
        "    classDef draft fill:#f8f9fa,stroke:#868e96,stroke-width:2px,stroke-dasharray:5",
        "    classDef active fill:#8ce99a,stroke:#333,stroke-width:2px",
        "    classDef archived fill:#dee2e6,stroke:#495057,stroke-width:1px,color:#495057",
        "    classDef deprecated fill:#ffc9c9,stroke:#c92a2a,stroke-width:1px",
    ])

    if title:
        lines.append(f"    subgraph {_sanitize_id(title)}[{_escape_label(title)}]")

    for node in diagram.nodes:
        node_id = _sanitize_id(node.id)
        label = _escape_label(node.label)
        lines.append(f'    {node_id}["{label}"]:::{_get_status_class(node.status)}')

    if title:
        lines.append("    end")

    for edge in diagram.edges:
        source = _sanitize_id(edge.source)
        target = _sanitize_id(edge.target)
        lines.append(f"    {_get_edge_style(edge.type, source, target)}")

    return "\n".join(lines)


def generate_learning_path_mermaid(path: list[LearningPathEntry]) -> str:
    """
    Generate a Mermaid diagram for a learning path.

    Dependencies point at the terms that need them; learned terms are
    highlighted.
    """
    lines = ["graph TB"]

    lines.extend([
        "    classDef learned fill:#2ecc71,stroke:#333,stroke-width:2px,color:#fff",
        "    classDef pending fill:#ffe066,stroke:#333,stroke-width:2px",
    ])

    for entry in path:
        node_id = _sanitize_id(entry.term_id)
        label = _escape_label(f"{entry.order}. {entry.term_name or entry.term_id}")
        class_name = "learned" if entry.is_learned else "pending"
        lines.append(f'    {node_id}["{label}"]:::{class_name}')

    for entry in path:
        for dep_id in entry.dependencies:
            lines.append(f"    {_sanitize_id(dep_id)} --> {_sanitize_id(entry.term_id)}")

    return "\n".join(lines)


def _sanitize_id(id_str: str) -> str:
    """Convert ID to valid Mermaid node ID."""
    sanitized = re.sub(r"[^a-zA-Z0-9_]", "_", id_str)
    if sanitized and sanitized[0].isdigit():
        sanitized = "n_" + sanitized
    return sanitized or "node"


def _escape_label(label: str) -> str:
    """Escape special characters in labels."""
    return (
        label.replace('"', "'")
        .replace("\n", " ")
        .replace("[", "(")
        .replace("]", ")")
    )


def _get_status_class(status: TermStatus) -> str:
    return status.value


def _get_edge_style(relationship_type: RelationshipType, source: str, target: str) -> str:
    """Get Mermaid edge syntax based on relationship type."""
    match relationship_type:
        case RelationshipType.PARENT:
            return f'{source} -->|"parent"| {target}'
        case RelationshipType.CHILD:
            return f'{source} -->|"child"| {target}'
        case RelationshipType.INHERITANCE:
            return f'{source} -->|"inherits"| {target}'
        case RelationshipType.AGGREGATION:
            return f'{source} ==>|"aggregates"| {target}'
        case RelationshipType.DEPENDENCY:
            return f'{source} -.->|"depends on"| {target}'
        case RelationshipType.SYNONYM:
            return f'{source} -.-|"synonym"| {target}'
        case RelationshipType.ANTONYM:
            return f'{source} -.-|"antonym"| {target}'
        case RelationshipType.RELATED:
            return f'{source} -.-|"related"| {target}'
        case RelationshipType.ASSOCIATION:
            return f'{source} ---|"association"| {target}'
        case _:
            return f"{source} --> {target}"
