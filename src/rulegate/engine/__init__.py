"""
RuleGate Engine

    from rulegate.engine import (
        Catalogue, CatalogueRegistry,
        Matcher, RuleEvaluator,
        evaluate_first, evaluate_all,
    )
"""
from __future__ import annotations

# =============================================================================
# Type Registry
# =============================================================================
from .type_registry import (
    TYPE_REGISTRY,
    TypeDescriptor,
    compare,
    default_operators,
    get_descriptor,
)

# =============================================================================
# Catalogue
# =============================================================================
from .catalogue import (
    Catalogue,
    CatalogueRegistry,
    definition_from_config,
)

# =============================================================================
# Evaluation
# =============================================================================
from .value_resolver import (
    ResolvedOperands,
    ValueResolver,
)
from .evaluator import (
    GroupEvaluation,
    RuleEvaluation,
    RuleEvaluator,
    RulesetEvaluation,
    evaluate_all,
    evaluate_first,
    explain,
)
from .matcher import Matcher

__all__ = [
    # Type Registry
    "TYPE_REGISTRY",
    "TypeDescriptor",
    "compare",
    "default_operators",
    "get_descriptor",
    # Catalogue
    "Catalogue",
    "CatalogueRegistry",
    "definition_from_config",
    # Evaluation
    "GroupEvaluation",
    "Matcher",
    "ResolvedOperands",
    "RuleEvaluation",
    "RuleEvaluator",
    "RulesetEvaluation",
    "ValueResolver",
    "evaluate_all",
    "evaluate_first",
    "explain",
]
