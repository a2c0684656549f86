"""
RuleGate Enumerations

Value types, operators and evaluation outcomes used throughout the engine.

All enums inherit from (str, Enum) for JSON serialization compatibility.
"""
from __future__ import annotations

from enum import Enum


# =============================================================================
# Value Types
# =============================================================================

class ValueType(str, Enum):
    """
    Closed set of value types a condition can declare.

    Each variant has exactly one TypeDescriptor in the type registry,
    which owns its default operators, validator and comparator.
    """
    TEXT = "text"
    NUMBER = "number"
    NUMBER_UNIT = "number_unit"        # {number, unit}
    TEXT_UNIT = "text_unit"            # {text, unit}
    SELECT = "select"                  # single scalar choice
    MULTI_SELECT = "multi_select"
    BOOLEAN = "boolean"
    DATE = "date"                      # YYYY-MM-DD
    TIME = "time"                      # HH:MM[:SS]
    IP = "ip"
    EMAIL = "email"
    TAGS = "tags"                      # set of user-authored string patterns
    REFERENCE = "reference"            # single external identifier
    REFERENCE_MULTI = "reference_multi"

    @property
    def is_unit_qualified(self) -> bool:
        """True for types whose authored value is a {number|text, unit} pair."""
        return self in {ValueType.NUMBER_UNIT, ValueType.TEXT_UNIT}


# =============================================================================
# Operators
# =============================================================================

class Operator(str, Enum):
    """Every comparison operator understood by at least one value type."""
    # Equality / ordering
    EQ = "=="
    NE = "!="
    GT = ">"
    LT = "<"
    GTE = ">="
    LTE = "<="

    # Text
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"
    EMPTY = "empty"
    NOT_EMPTY = "not_empty"
    REGEX = "regex"

    # Boolean
    YES = "yes"
    NO = "no"

    # Collections
    ANY = "any"
    NONE = "none"
    ALL = "all"

    # Tag sets
    ANY_EXACT = "any_exact"
    NONE_EXACT = "none_exact"
    ANY_CONTAINS = "any_contains"
    NONE_CONTAINS = "none_contains"
    ANY_STARTS = "any_starts"
    NONE_STARTS = "none_starts"
    ANY_ENDS = "any_ends"
    NONE_ENDS = "none_ends"

    # Network / email patterns
    IP_MATCH = "ip_match"
    IP_NOT_MATCH = "ip_not_match"
    EMAIL_MATCH = "email_match"
    EMAIL_NOT_MATCH = "email_not_match"


# =============================================================================
# Evaluation Outcomes
# =============================================================================

class RuleOutcome(str, Enum):
    """
    Outcome of evaluating one rule.

    SKIPPED is distinct from FALSE: a rule whose required arguments are
    absent from the context is excluded from its group's AND.
    """
    TRUE = "true"
    FALSE = "false"
    SKIPPED = "skipped"

    @classmethod
    def from_bool(cls, value: bool) -> RuleOutcome:
        return cls.TRUE if value else cls.FALSE
