"""Dependency resolution: learning paths over the term hierarchy."""

import logging
from typing import Collection, Iterable, Mapping

from ..errors import NotFoundError
from ..models.views import LearningPathEntry
from .relationship_service import RelationshipService

logger = logging.getLogger(__name__)


class DependencyResolver:
    """
    Orders terms so that prerequisites come first.

    A term's dependencies are its parents along hierarchical edges. The
    resolver only reads; every call loads what it needs and keeps its
    traversal state local.
    """

    def __init__(self, relationships: RelationshipService):
        self.relationships = relationships

    def build_dependency_map(self, term_ids: Iterable[str]) -> dict[str, list[str]]:
        """
        Map each term to its direct dependencies within the same set.

        Dependencies outside ``term_ids`` are not tracked.
        """
        working_set = dict.fromkeys(term_ids)
        graph = self.relationships.load_hierarchy()

        return {
            term_id: [
                parent_id
                for parent_id in graph.parents_of(term_id)
                if parent_id in working_set and parent_id != term_id
            ]
            for term_id in working_set
        }

    def topological_learning_path(
        self,
        term_ids: Iterable[str],
        learned_term_ids: Collection[str],
        dependency_map: Mapping[str, list[str]] | None = None,
    ) -> list[LearningPathEntry]:
        """
        Depth-first post-order over the dependency map.

        Terms are visited in the given order and each is placed after its
        dependencies. A dependency that is still on the traversal stack means
        the data holds a cycle: that edge is skipped and the traversal goes
        on, so the dependent may then precede one of its dependencies.
        """
        ordered_ids = list(dict.fromkeys(term_ids))
        if dependency_map is None:
            dependency_map = self.build_dependency_map(ordered_ids)
        learned = set(learned_term_ids)

        path: list[LearningPathEntry] = []
        visited: set[str] = set()
        in_progress: set[str] = set()

        def place(term_id: str) -> None:
            in_progress.discard(term_id)
            visited.add(term_id)
            path.append(
                LearningPathEntry(
                    term_id=term_id,
                    order=len(path) + 1,
                    dependencies=list(dependency_map.get(term_id, [])),
                    is_learned=term_id in learned,
                )
            )

        for root_id in ordered_ids:
            if root_id in visited:
                continue

            in_progress.add(root_id)
            stack = [(root_id, iter(dependency_map.get(root_id, [])))]

            while stack:
                term_id, dependencies = stack[-1]
                for dep_id in dependencies:
                    if dep_id in in_progress:
                        logger.warning(
                            f"Dependency cycle detected at {term_id} -> {dep_id}; "
                            f"skipping edge"
                        )
                        continue
                    if dep_id in visited:
                        continue
                    in_progress.add(dep_id)
                    stack.append((dep_id, iter(dependency_map.get(dep_id, []))))
                    break
                else:
                    stack.pop()
                    place(term_id)

        return path

    def next_recommended_terms(
        self,
        learning_path: list[LearningPathEntry],
        learned_term_ids: Collection[str] = (),
        limit: int = 5,
    ) -> list[LearningPathEntry]:
        """Unlearned entries whose dependencies in the path are all learned."""
        learned = set(learned_term_ids)
        by_id = {entry.term_id: entry for entry in learning_path}

        def is_learned(term_id: str) -> bool:
            entry = by_id.get(term_id)
            if entry is not None:
                return entry.is_learned
            return term_id in learned

        ready = [
            entry
            for entry in learning_path
            if not entry.is_learned and all(is_learned(dep) for dep in entry.dependencies)
        ]
        return ready[: max(limit, 0)]

    def can_learn_term(self, term_id: str, learned_term_ids: Collection[str]) -> bool:
        """True if the term has no dependencies or all of them are learned."""
        if not self.relationships.terms.exists(term_id):
            raise NotFoundError("Term", term_id)

        parents = self.relationships.direct_parents(term_id)
        if not parents:
            return True

        learned = set(learned_term_ids)
        return all(parent_id in learned for parent_id in parents)
