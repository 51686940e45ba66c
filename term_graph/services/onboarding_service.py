"""Onboarding: learning paths and progress for a user over the essential terms."""

import logging

from ..database.base import LearningProgressSource, TermOracle
from ..errors import NotFoundError
from ..models.views import LearningPathEntry, LearningProgress
from .dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)


class OnboardingService:
    """Binds the dependency resolver to the essential terms and a user's progress."""

    def __init__(
        self,
        resolver: DependencyResolver,
        terms: TermOracle,
        progress: LearningProgressSource,
    ):
        self.resolver = resolver
        self.terms = terms
        self.progress = progress

    def get_learning_path(self, user_id: str) -> list[LearningPathEntry]:
        """Recommended order over all essential terms for a user."""
        essential_ids = self.terms.essential_term_ids()
        learned = self.progress.learned_term_ids(user_id)

        path = self.resolver.topological_learning_path(essential_ids, learned)
        return [self._with_name(entry) for entry in path]

    def get_next_recommended_terms(self, user_id: str, limit: int = 5) -> list[LearningPathEntry]:
        learned = self.progress.learned_term_ids(user_id)
        path = self.get_learning_path(user_id)
        return self.resolver.next_recommended_terms(path, learned, limit)

    def can_learn_term(self, user_id: str, term_id: str) -> bool:
        learned = self.progress.learned_term_ids(user_id)
        return self.resolver.can_learn_term(term_id, learned)

    def get_learning_progress(self, user_id: str) -> LearningProgress:
        """Share of essential terms the user has learned."""
        essential_ids = self.terms.essential_term_ids()
        learned = self.progress.learned_term_ids(user_id)

        learned_essential = [term_id for term_id in essential_ids if term_id in learned]
        remaining = [term_id for term_id in essential_ids if term_id not in learned]
        total = len(essential_ids)

        return LearningProgress(
            user_id=user_id,
            total_essential_terms=total,
            learned_essential_terms=len(learned_essential),
            # Half-up, not banker's rounding.
            percent_complete=int(len(learned_essential) / total * 100 + 0.5) if total else 0,
            remaining_term_ids=remaining,
            learned_term_ids=learned_essential,
        )

    def _with_name(self, entry: LearningPathEntry) -> LearningPathEntry:
        term = self.terms.get_term(entry.term_id)
        if term is None:
            raise NotFoundError("Term", entry.term_id)
        return entry.model_copy(update={"term_name": term.name})
