"""
RuleGate Matcher

Public evaluation API. Fetches the rulesets of a condition set from the
storage collaborator and evaluates them with that set's catalogue:

    matcher = Matcher(registry, store)

    result = matcher.evaluate_first("discounts", {"order_total": 150})
    if result:
        percent = result.get_meta("percent")

    for match in matcher.evaluate_all("discounts", context):
        ...

Catalogues handed to a Matcher are frozen: registration after that point
raises RegistrationError.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Iterable, Mapping, Optional, Union

from ..models import MatchResult, MatchResultCollection, Ruleset
from ..store import RulesetQuery, RulesetStore
from .catalogue import Catalogue, CatalogueRegistry
from .evaluator import RuleEvaluator, RulesetEvaluation

logger = logging.getLogger(__name__)

CatalogueSource = Union[CatalogueRegistry, Catalogue, Iterable[Catalogue]]


def _as_registry(catalogues: CatalogueSource) -> CatalogueRegistry:
    if isinstance(catalogues, CatalogueRegistry):
        return catalogues
    registry = CatalogueRegistry()
    if isinstance(catalogues, Catalogue):
        registry.add(catalogues)
    else:
        for catalogue in catalogues:
            registry.add(catalogue)
    return registry


class Matcher:
    """Evaluates stored rulesets against argument contexts."""

    def __init__(self, catalogues: CatalogueSource, store: RulesetStore) -> None:
        self.catalogues = _as_registry(catalogues)
        self.catalogues.freeze()
        self.store = store

    def evaluator(self, set_id: str) -> RuleEvaluator:
        """
        Evaluator bound to one condition set's catalogue.

        Raises:
            CatalogueNotFoundError: If set_id has no catalogue
        """
        return RuleEvaluator(self.catalogues.get(set_id))

    def _fetch(self, set_id: str, query: Optional[RulesetQuery]) -> list[Ruleset]:
        return list(self.store.fetch(set_id, query))

    def evaluate_first(
        self,
        set_id: str,
        context: Optional[Mapping[str, Any]] = None,
        query: Optional[RulesetQuery] = None,
    ) -> MatchResult:
        """
        Return the first stored ruleset that matches the context.

        Rulesets after the first match are not evaluated.

        Raises:
            CatalogueNotFoundError: If set_id has no catalogue
        """
        evaluator = self.evaluator(set_id)
        start = time.perf_counter()

        rulesets = self._fetch(set_id, query)
        result = next(
            evaluator.iter_matches(rulesets, context or {}),
            MatchResult.no_match(),
        )

        duration_ms = round((time.perf_counter() - start) * 1000, 3)
        logger.debug(
            "evaluate_first %s: %s", set_id, result.ruleset_id or "no match",
            extra={"set_id": set_id, "ruleset_id": result.ruleset_id,
                   "duration_ms": duration_ms},
        )
        return result

    def evaluate_all(
        self,
        set_id: str,
        context: Optional[Mapping[str, Any]] = None,
        query: Optional[RulesetQuery] = None,
    ) -> MatchResultCollection:
        """
        Return every stored ruleset that matches the context, in storage order.

        Raises:
            CatalogueNotFoundError: If set_id has no catalogue
        """
        evaluator = self.evaluator(set_id)
        start = time.perf_counter()

        rulesets = self._fetch(set_id, query)
        results = MatchResultCollection(evaluator.iter_matches(rulesets, context or {}))

        duration_ms = round((time.perf_counter() - start) * 1000, 3)
        logger.debug(
            "evaluate_all %s: %d of %d rulesets matched", set_id, len(results), len(rulesets),
            extra={"set_id": set_id, "matches": len(results), "duration_ms": duration_ms},
        )
        return results

    def explain(
        self,
        set_id: str,
        context: Optional[Mapping[str, Any]] = None,
        query: Optional[RulesetQuery] = None,
    ) -> list[RulesetEvaluation]:
        """Full evaluation records for every stored ruleset, matched or not."""
        evaluator = self.evaluator(set_id)
        return [
            evaluator.evaluate_ruleset(ruleset, context or {})
            for ruleset in self._fetch(set_id, query)
        ]
