"""
RuleGate Models

All data models used by the matching engine:

    from rulegate.models import (
        # Enums
        ValueType, Operator, RuleOutcome,
        # Conditions
        ConditionDefinition, UnitValue,
        # Rules
        Rule, Group, Ruleset,
        # Results
        MatchResult, MatchResultCollection,
    )
"""
from __future__ import annotations

# =============================================================================
# Enums
# =============================================================================
from .enums import (
    Operator,
    RuleOutcome,
    ValueType,
)

# =============================================================================
# Conditions
# =============================================================================
from .conditions import (
    ConditionDefinition,
    UnitValue,
    ValueResolverFn,
    coerce_value_type,
    operator_key,
)

# =============================================================================
# Rules
# =============================================================================
from .rules import (
    Group,
    Rule,
    Ruleset,
    rulesets_from_dicts,
)

# =============================================================================
# Results
# =============================================================================
from .results import (
    MatchResult,
    MatchResultCollection,
)

__all__ = [
    # Enums
    "Operator",
    "RuleOutcome",
    "ValueType",
    # Conditions
    "ConditionDefinition",
    "UnitValue",
    "ValueResolverFn",
    "coerce_value_type",
    "operator_key",
    # Rules
    "Group",
    "Rule",
    "Ruleset",
    "rulesets_from_dicts",
    # Results
    "MatchResult",
    "MatchResultCollection",
]
