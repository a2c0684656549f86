"""
Type Registry

One TypeDescriptor per ValueType. A descriptor owns:
  - the default operator set for conditions of that type
  - a validator applied to the authored threshold before comparing
  - the comparator implementing the type's operator semantics
  - the zero value used when a context argument is missing

The registry is closed: every ValueType variant must have a descriptor,
checked when this module is imported.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Union

from ..exceptions import UnknownTypeError
from ..models.conditions import coerce_value_type, operator_key
from ..models.enums import Operator, ValueType
from . import comparators as cmp

logger = logging.getLogger(__name__)

Comparator = Callable[[str, Any, Any], bool]
Validator = Callable[[Any], bool]


# ---------------------------------------------------------------------------
# Operator sets
# ---------------------------------------------------------------------------

def _ops(*operators: Operator) -> tuple[str, ...]:
    return tuple(op.value for op in operators)


EQUALITY_OPERATORS = _ops(Operator.EQ, Operator.NE)
NUMERIC_OPERATORS = _ops(
    Operator.EQ, Operator.NE, Operator.GT, Operator.LT, Operator.GTE, Operator.LTE,
)
TEXT_OPERATORS = _ops(
    Operator.EQ, Operator.NE,
    Operator.CONTAINS, Operator.NOT_CONTAINS,
    Operator.STARTS_WITH, Operator.ENDS_WITH,
    Operator.EMPTY, Operator.NOT_EMPTY,
    Operator.REGEX,
)
BOOLEAN_OPERATORS = _ops(Operator.YES, Operator.NO)
DATE_OPERATORS = NUMERIC_OPERATORS
TIME_OPERATORS = _ops(Operator.EQ, Operator.NE, Operator.GT, Operator.LT)
COLLECTION_OPERATORS = _ops(Operator.ANY, Operator.NONE, Operator.ALL)
COLLECTION_ANY_NONE_OPERATORS = _ops(Operator.ANY, Operator.NONE)
TAG_OPERATORS = _ops(
    Operator.ANY_EXACT, Operator.NONE_EXACT,
    Operator.ANY_CONTAINS, Operator.NONE_CONTAINS,
    Operator.ANY_STARTS, Operator.NONE_STARTS,
    Operator.ANY_ENDS, Operator.NONE_ENDS,
)
TAG_ENDS_OPERATORS = _ops(Operator.ANY_ENDS, Operator.NONE_ENDS)
IP_OPERATORS = _ops(Operator.IP_MATCH, Operator.IP_NOT_MATCH)
EMAIL_OPERATORS = _ops(Operator.EMAIL_MATCH, Operator.EMAIL_NOT_MATCH)


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TypeDescriptor:
    """Evaluation behaviour of one value type."""
    value_type: ValueType
    default_operators: tuple[str, ...]
    comparator: Comparator
    validator: Validator = cmp.always_valid
    zero_value: Any = None
    # Operators that never read the threshold, so validation is skipped.
    threshold_free: frozenset[str] = frozenset()
    # Accepted in explicit operator overrides on top of the defaults.
    extra_operators: tuple[str, ...] = ()

    @property
    def operators(self) -> tuple[str, ...]:
        """Every operator this type can evaluate."""
        return self.default_operators + self.extra_operators

    def supports(self, operator: Any) -> bool:
        return operator_key(operator) in self.operators

    def compare(self, operator: Any, live: Any, threshold: Any) -> bool:
        """
        Validate the threshold, then compare.

        Returns False (never raises) for invalid thresholds, unsupported
        operators and incomparable operands.
        """
        op = operator_key(operator)
        if op not in self.operators:
            return False
        if op not in self.threshold_free and not self.validator(threshold):
            logger.debug(
                "Invalid %s threshold %r for operator %s",
                self.value_type.value, threshold, op,
            )
            return False
        try:
            return bool(self.comparator(op, live, threshold))
        except (TypeError, ValueError):
            return False


_EMPTY_OPS = frozenset({Operator.EMPTY.value, Operator.NOT_EMPTY.value})

TYPE_REGISTRY: dict[ValueType, TypeDescriptor] = {
    ValueType.TEXT: TypeDescriptor(
        ValueType.TEXT, TEXT_OPERATORS, cmp.compare_text, cmp.valid_text, "", _EMPTY_OPS,
    ),
    ValueType.TEXT_UNIT: TypeDescriptor(
        ValueType.TEXT_UNIT, TEXT_OPERATORS, cmp.compare_text, cmp.valid_text, "", _EMPTY_OPS,
    ),
    ValueType.NUMBER: TypeDescriptor(
        ValueType.NUMBER, NUMERIC_OPERATORS, cmp.compare_numeric, cmp.valid_number, 0,
    ),
    ValueType.NUMBER_UNIT: TypeDescriptor(
        ValueType.NUMBER_UNIT, NUMERIC_OPERATORS, cmp.compare_numeric, cmp.valid_number, 0,
    ),
    ValueType.BOOLEAN: TypeDescriptor(
        ValueType.BOOLEAN, BOOLEAN_OPERATORS, cmp.compare_boolean, cmp.always_valid, False,
        frozenset(BOOLEAN_OPERATORS),
    ),
    ValueType.DATE: TypeDescriptor(
        ValueType.DATE, DATE_OPERATORS, cmp.compare_date, cmp.valid_date, None,
    ),
    ValueType.TIME: TypeDescriptor(
        ValueType.TIME, TIME_OPERATORS, cmp.compare_time, cmp.valid_time, None,
    ),
    ValueType.SELECT: TypeDescriptor(
        ValueType.SELECT, EQUALITY_OPERATORS, cmp.compare_equality, cmp.valid_scalar, "",
    ),
    ValueType.MULTI_SELECT: TypeDescriptor(
        ValueType.MULTI_SELECT, COLLECTION_OPERATORS, cmp.compare_collection,
        cmp.valid_collection, frozenset(), extra_operators=EQUALITY_OPERATORS,
    ),
    ValueType.REFERENCE: TypeDescriptor(
        ValueType.REFERENCE, EQUALITY_OPERATORS, cmp.compare_collection,
        cmp.valid_collection, frozenset(), extra_operators=COLLECTION_OPERATORS,
    ),
    ValueType.REFERENCE_MULTI: TypeDescriptor(
        ValueType.REFERENCE_MULTI, COLLECTION_OPERATORS, cmp.compare_collection,
        cmp.valid_collection, frozenset(), extra_operators=EQUALITY_OPERATORS,
    ),
    ValueType.TAGS: TypeDescriptor(
        ValueType.TAGS, TAG_OPERATORS, cmp.compare_tags, cmp.valid_tags, "",
    ),
    ValueType.IP: TypeDescriptor(
        ValueType.IP, IP_OPERATORS, cmp.compare_ip, cmp.valid_ip_patterns, "",
    ),
    ValueType.EMAIL: TypeDescriptor(
        ValueType.EMAIL, EMAIL_OPERATORS, cmp.compare_email, cmp.valid_email_patterns, "",
    ),
}

_missing = [t.value for t in ValueType if t not in TYPE_REGISTRY]
if _missing:
    raise RuntimeError(f"Value types without a descriptor: {_missing}")


def get_descriptor(value_type: Union[ValueType, str]) -> TypeDescriptor:
    """
    Look up the descriptor for a value type.

    Raises:
        UnknownTypeError: If value_type is not a known ValueType
    """
    vt = coerce_value_type(value_type)
    try:
        return TYPE_REGISTRY[vt]
    except KeyError:
        raise UnknownTypeError(
            message=f"No descriptor for value type '{vt.value}'",
            details={"value_type": vt.value},
        ) from None


def default_operators(value_type: Union[ValueType, str]) -> tuple[str, ...]:
    return get_descriptor(value_type).default_operators


def compare(
    value_type: Union[ValueType, str],
    operator: Any,
    live: Any,
    threshold: Any,
) -> bool:
    """Compare live against threshold using the semantics of value_type."""
    return get_descriptor(value_type).compare(operator, live, threshold)


__all__ = [
    "BOOLEAN_OPERATORS",
    "COLLECTION_ANY_NONE_OPERATORS",
    "COLLECTION_OPERATORS",
    "DATE_OPERATORS",
    "EMAIL_OPERATORS",
    "EQUALITY_OPERATORS",
    "IP_OPERATORS",
    "NUMERIC_OPERATORS",
    "TAG_ENDS_OPERATORS",
    "TAG_OPERATORS",
    "TEXT_OPERATORS",
    "TIME_OPERATORS",
    "TYPE_REGISTRY",
    "TypeDescriptor",
    "compare",
    "default_operators",
    "get_descriptor",
]
