"""
RuleGate - Condition Registration and Rule Matching Engine

Application authors register named, typed conditions (facts evaluable
against a runtime context). Rules authored against those conditions are
combined into rulesets (OR of AND-groups) and evaluated per request to
decide which rulesets match.

Key Features:
- Closed set of value types, each with its own operators and comparator
- Per-condition-set catalogues with registration-time validation
- Three rule outcomes: TRUE, FALSE and SKIPPED (missing arguments)
- First-match and all-matches evaluation over stored rulesets
- Built-in date/time, request and user conditions
- YAML/JSON rule packs validated with pydantic

Quick Start:
    from rulegate import (
        Catalogue, ConditionDefinition, InMemoryRulesetStore,
        Matcher, Ruleset, ValueType,
    )

    catalogue = Catalogue("discounts")
    catalogue.register(ConditionDefinition(
        name="order_total",
        value_type=ValueType.NUMBER,
        argument_key="order_total",
    ))

    store = InMemoryRulesetStore()
    store.add("discounts", Ruleset.from_dict({
        "id": "big-order",
        "groups": [{"rules": [
            {"condition": "order_total", "operator": ">", "value": 100},
        ]}],
    }))

    matcher = Matcher(catalogue, store)
    result = matcher.evaluate_first("discounts", {"order_total": 150})
    result.ruleset_id   # "big-order"

Version: 0.1.0
"""
from __future__ import annotations

__version__ = "0.1.0"

# =============================================================================
# Models (Re-exported for convenience)
# =============================================================================
from .models import (
    ConditionDefinition,
    Group,
    MatchResult,
    MatchResultCollection,
    Operator,
    Rule,
    RuleOutcome,
    Ruleset,
    UnitValue,
    ValueType,
)

# =============================================================================
# Engine
# =============================================================================
from .engine import (
    Catalogue,
    CatalogueRegistry,
    Matcher,
    RuleEvaluator,
    evaluate_all,
    evaluate_first,
)

# =============================================================================
# Storage
# =============================================================================
from .store import (
    InMemoryRulesetStore,
    RulesetQuery,
    RulesetStore,
)

# =============================================================================
# Exceptions
# =============================================================================
from .exceptions import (
    CatalogueNotFoundError,
    DuplicateConditionError,
    InvalidConditionError,
    PackLoadError,
    PackValidationError,
    PackVersionMismatch,
    RegistrationError,
    ResolutionError,
    RuleGateError,
    UnknownTypeError,
)

__all__ = [
    "__version__",
    # Models
    "ConditionDefinition",
    "Group",
    "MatchResult",
    "MatchResultCollection",
    "Operator",
    "Rule",
    "RuleOutcome",
    "Ruleset",
    "UnitValue",
    "ValueType",
    # Engine
    "Catalogue",
    "CatalogueRegistry",
    "Matcher",
    "RuleEvaluator",
    "evaluate_all",
    "evaluate_first",
    # Storage
    "InMemoryRulesetStore",
    "RulesetQuery",
    "RulesetStore",
    # Exceptions
    "CatalogueNotFoundError",
    "DuplicateConditionError",
    "InvalidConditionError",
    "PackLoadError",
    "PackValidationError",
    "PackVersionMismatch",
    "RegistrationError",
    "ResolutionError",
    "RuleGateError",
    "UnknownTypeError",
]
