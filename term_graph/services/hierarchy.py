"""In-memory view of the hierarchical subgraph."""

from typing import Iterable

from ..config import HierarchyConfig
from ..models.relationship import Relationship


class HierarchyGraph:
    """
    Parent/child adjacency built from a one-shot load of hierarchical edges.

    Each hierarchical relationship is reduced to a (parent, child) pair using
    the active ``HierarchyConfig``, so ``A --parent--> B`` and
    ``B --child--> A`` describe the same arc. Traversals use explicit stacks
    and call-local visited sets, so they terminate on cyclic data.
    """

    def __init__(
        self,
        relationships: Iterable[Relationship],
        config: HierarchyConfig,
        exclude_id: str | None = None,
    ):
        self._children: dict[str, dict[str, None]] = {}
        self._parents: dict[str, dict[str, None]] = {}

        for rel in relationships:
            if rel.id == exclude_id:
                continue
            pair = config.orient_relationship(rel)
            if pair is not None:
                self.add_arc(*pair)

    def add_arc(self, parent_id: str, child_id: str) -> None:
        self._children.setdefault(parent_id, {})[child_id] = None
        self._parents.setdefault(child_id, {})[parent_id] = None

    def children_of(self, term_id: str) -> list[str]:
        return list(self._children.get(term_id, {}))

    def parents_of(self, term_id: str) -> list[str]:
        return list(self._parents.get(term_id, {}))

    def descendants(self, term_id: str) -> list[str]:
        """All terms reachable from ``term_id`` in the child direction, pre-order."""
        visited = {term_id}
        result = []
        stack = list(reversed(self.children_of(term_id)))

        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            result.append(current)
            stack.extend(reversed(self.children_of(current)))

        return result

    def would_create_cycle(self, parent_id: str, child_id: str) -> bool:
        """Check whether adding the arc parent -> child would close a cycle."""
        if parent_id == child_id:
            return True
        return parent_id in self.descendants(child_id)
