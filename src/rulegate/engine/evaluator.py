"""
RuleGate Group/Rule Evaluator

Evaluates rulesets (OR of AND-groups) against an argument context.

Rule outcomes:
- TRUE / FALSE from the typed comparison
- SKIPPED when a required argument is absent from the context; skipped
  rules are excluded from their group's AND
- FALSE (never an exception) for an unknown condition, an operator
  outside the condition's operator set, an invalid threshold, a
  resolver callback that raised, or a comparison that raised

Group semantics:
- A group matches when every non-skipped rule is TRUE; evaluation stops
  at the first FALSE
- A group whose rules were all skipped matches
- A group with no rules never matches

Ruleset semantics:
- Groups are tried in storage order; the first matching group wins

Evaluation order is exactly the supplied order. Rules and groups are
never reordered.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional

from ..exceptions import ResolutionError
from ..models import (
    Group,
    MatchResult,
    MatchResultCollection,
    Rule,
    RuleOutcome,
    Ruleset,
)
from .catalogue import Catalogue
from .type_registry import get_descriptor
from .value_resolver import ValueResolver

logger = logging.getLogger(__name__)


# =============================================================================
# Evaluation Records
# =============================================================================

@dataclass(frozen=True)
class RuleEvaluation:
    """
    Outcome of evaluating one rule.

    Attributes:
        rule: The evaluated rule
        outcome: TRUE, FALSE or SKIPPED
        explanation: Human-readable reason for the outcome
        missing_arguments: Required context keys that were absent
        error: Resolver failure captured during evaluation, if any
    """
    rule: Rule
    outcome: RuleOutcome
    explanation: str = ""
    missing_arguments: tuple[str, ...] = ()
    error: Optional[ResolutionError] = None

    @property
    def passed(self) -> bool:
        return self.outcome == RuleOutcome.TRUE

    @property
    def skipped(self) -> bool:
        return self.outcome == RuleOutcome.SKIPPED


@dataclass(frozen=True)
class GroupEvaluation:
    """Outcome of one AND-group. `rules` holds only the rules actually evaluated."""
    index: int
    matched: bool
    rules: tuple[RuleEvaluation, ...] = ()

    @property
    def all_skipped(self) -> bool:
        return bool(self.rules) and all(r.skipped for r in self.rules)

    @property
    def missing_arguments(self) -> list[str]:
        missing: list[str] = []
        for evaluation in self.rules:
            for key in evaluation.missing_arguments:
                if key not in missing:
                    missing.append(key)
        return missing


@dataclass(frozen=True)
class RulesetEvaluation:
    """Outcome of one ruleset. `groups` holds only the groups actually evaluated."""
    ruleset: Ruleset
    matched: bool
    matched_group_index: Optional[int] = None
    groups: tuple[GroupEvaluation, ...] = ()

    @property
    def errors(self) -> list[ResolutionError]:
        return [r.error for g in self.groups for r in g.rules if r.error is not None]

    def to_match_result(self) -> MatchResult:
        if not self.matched:
            return MatchResult.no_match()
        return MatchResult(
            matched=True,
            ruleset=self.ruleset,
            matched_group_index=self.matched_group_index,
        )


# =============================================================================
# Evaluator
# =============================================================================

class RuleEvaluator:
    """
    Evaluates rules, groups and rulesets against one catalogue.

    Usage:
        evaluator = RuleEvaluator(catalogue)
        evaluation = evaluator.evaluate_ruleset(ruleset, {"order_total": 150})
        if evaluation.matched:
            ...

    The evaluator holds no per-call state and may be shared across
    threads once its catalogue is frozen.
    """

    def __init__(
        self,
        catalogue: Catalogue,
        resolver: Optional[ValueResolver] = None,
    ) -> None:
        self.catalogue = catalogue
        self.resolver = resolver or ValueResolver()

    def evaluate_rule(self, rule: Rule, context: Mapping[str, Any]) -> RuleEvaluation:
        """Evaluate a single rule."""
        definition = self.catalogue.get(rule.condition)
        if definition is None:
            logger.debug(
                "Unknown condition %s in rule %s", rule.condition, rule.id,
                extra={"set_id": self.catalogue.set_id, "rule_id": rule.id,
                       "condition": rule.condition},
            )
            return RuleEvaluation(
                rule=rule,
                outcome=RuleOutcome.FALSE,
                explanation=f"{rule.condition}: unknown condition",
            )

        if rule.operator not in self.catalogue.operators_for(definition.name):
            return RuleEvaluation(
                rule=rule,
                outcome=RuleOutcome.FALSE,
                explanation=f"{rule.condition} {rule.operator}: operator not allowed",
            )

        missing = tuple(
            key for key in sorted(definition.required_arguments) if key not in context
        )
        if missing:
            return RuleEvaluation(
                rule=rule,
                outcome=RuleOutcome.SKIPPED,
                explanation=f"{rule.condition}: SKIPPED (missing {', '.join(missing)})",
                missing_arguments=missing,
            )

        try:
            operands = self.resolver.resolve(definition, rule, context)
        except Exception as exc:
            error = ResolutionError(
                message=f"Value resolver for '{definition.name}' failed: {exc}",
                details={"rule_id": rule.id, "exception": type(exc).__name__},
                set_id=self.catalogue.set_id,
                condition=definition.name,
            )
            logger.warning(
                "Value resolver failed for condition %s: %s", definition.name, exc,
                extra={"set_id": self.catalogue.set_id, "rule_id": rule.id,
                       "condition": definition.name, "operator": rule.operator},
            )
            return RuleEvaluation(
                rule=rule,
                outcome=RuleOutcome.FALSE,
                explanation=f"{rule.condition}: resolver error",
                error=error,
            )

        try:
            passed = get_descriptor(definition.value_type).compare(
                rule.operator, operands.live, operands.threshold,
            )
        except Exception as exc:
            logger.warning(
                "Comparison failed for condition %s: %s", definition.name, exc,
                extra={"set_id": self.catalogue.set_id, "rule_id": rule.id,
                       "condition": definition.name, "operator": rule.operator},
            )
            return RuleEvaluation(
                rule=rule,
                outcome=RuleOutcome.FALSE,
                explanation=f"{rule.condition} {rule.operator}: comparison error ({type(exc).__name__})",
            )

        if passed:
            explanation = f"{rule.condition} {rule.operator} {operands.threshold!r}: PASSED"
        else:
            explanation = (
                f"{rule.condition} {rule.operator} {operands.threshold!r}: "
                f"FAILED (actual: {operands.live!r})"
            )

        return RuleEvaluation(
            rule=rule,
            outcome=RuleOutcome.from_bool(passed),
            explanation=explanation,
        )

    def evaluate_group(
        self,
        group: Group,
        context: Mapping[str, Any],
        index: int = 0,
    ) -> GroupEvaluation:
        """Evaluate an AND-group, stopping at the first FALSE rule."""
        if not group.rules:
            return GroupEvaluation(index=index, matched=False)

        evaluations: list[RuleEvaluation] = []
        for rule in group.rules:
            evaluation = self.evaluate_rule(rule, context)
            evaluations.append(evaluation)
            if evaluation.outcome == RuleOutcome.FALSE:
                return GroupEvaluation(index=index, matched=False, rules=tuple(evaluations))

        return GroupEvaluation(index=index, matched=True, rules=tuple(evaluations))

    def evaluate_ruleset(self, ruleset: Ruleset, context: Mapping[str, Any]) -> RulesetEvaluation:
        """Evaluate a ruleset's groups in order, stopping at the first match."""
        groups: list[GroupEvaluation] = []
        for index, group in enumerate(ruleset.groups):
            evaluation = self.evaluate_group(group, context, index)
            groups.append(evaluation)
            if evaluation.matched:
                return RulesetEvaluation(
                    ruleset=ruleset,
                    matched=True,
                    matched_group_index=index,
                    groups=tuple(groups),
                )

        return RulesetEvaluation(ruleset=ruleset, matched=False, groups=tuple(groups))

    def iter_matches(
        self,
        rulesets: Iterable[Ruleset],
        context: Mapping[str, Any],
    ) -> Iterator[MatchResult]:
        """Lazily yield a MatchResult for each matching ruleset, in order."""
        for ruleset in rulesets:
            evaluation = self.evaluate_ruleset(ruleset, context)
            if evaluation.matched:
                yield evaluation.to_match_result()


# =============================================================================
# Convenience Functions
# =============================================================================

def evaluate_first(
    catalogue: Catalogue,
    rulesets: Iterable[Ruleset],
    context: Optional[Mapping[str, Any]] = None,
) -> MatchResult:
    """
    Return the first matching ruleset.

    Rulesets after the first match are not evaluated.
    """
    matches = RuleEvaluator(catalogue).iter_matches(rulesets, context or {})
    return next(matches, MatchResult.no_match())


def evaluate_all(
    catalogue: Catalogue,
    rulesets: Iterable[Ruleset],
    context: Optional[Mapping[str, Any]] = None,
) -> MatchResultCollection:
    """Return every matching ruleset, in supplied order."""
    return MatchResultCollection(
        RuleEvaluator(catalogue).iter_matches(rulesets, context or {})
    )


def explain(
    catalogue: Catalogue,
    rulesets: Iterable[Ruleset],
    context: Optional[Mapping[str, Any]] = None,
) -> list[RulesetEvaluation]:
    """Full evaluation records for every ruleset, matched or not."""
    evaluator = RuleEvaluator(catalogue)
    return [evaluator.evaluate_ruleset(r, context or {}) for r in rulesets]


__all__ = [
    "GroupEvaluation",
    "RuleEvaluation",
    "RuleEvaluator",
    "RulesetEvaluation",
    "evaluate_all",
    "evaluate_first",
    "explain",
]
