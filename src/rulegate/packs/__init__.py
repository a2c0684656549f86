"""
RuleGate Rule Packs

Schema validation and loading for rule packs.

Rule packs are YAML or JSON files that define one condition set: its
conditions and the rulesets authored against them.

Usage:
    from rulegate.packs import load_rule_pack, RulePackLoader

    # Load a single rule pack
    pack = load_rule_pack("path/to/discounts.yaml")
    result = pack.matcher().evaluate_first(pack.set_id, {"order_total": 150})

    # Use a loader for multiple packs
    loader = RulePackLoader()
    loader.load("path/to/discounts.yaml")
    loader.load("path/to/banners.yaml")
    matcher = loader.matcher()
"""
from __future__ import annotations

from .loader import (
    RulePack,
    RulePackLoader,
    load_rule_pack,
    load_rule_pack_from_string,
    validate_reference_integrity,
)
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    GroupSchema,
    OptionSchema,
    RulePackSchema,
    RuleSchema,
    RulesetSchema,
    check_schema_version,
    validate_rule_pack,
)

__all__ = [
    # Version
    "SCHEMA_VERSION",
    # Loader
    "RulePack",
    "RulePackLoader",
    "load_rule_pack",
    "load_rule_pack_from_string",
    # Validation
    "check_schema_version",
    "validate_reference_integrity",
    "validate_rule_pack",
    # Schemas (for advanced usage)
    "ConditionSchema",
    "GroupSchema",
    "OptionSchema",
    "RulePackSchema",
    "RuleSchema",
    "RulesetSchema",
]
