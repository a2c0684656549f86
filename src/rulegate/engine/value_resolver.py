"""
RuleGate Value Resolver

Produces the (live, threshold) operand pair for one rule:

- live: read from the context under the definition's argument_key, or
  computed by its value_resolver
- threshold: the rule's authored value; for unit-qualified types, the
  number/text part of the {number|text, unit} pair

Resolvers receive a read-only per-rule view of the context. For
number_unit rules the view carries `_unit` and `_number`, for text_unit
rules `_unit` and `_text`. The caller's mapping is never mutated, so
injected keys cannot leak from one rule into the next.
"""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..models import ConditionDefinition, Rule, UnitValue, ValueType
from .type_registry import get_descriptor

UNIT_KEY = "_unit"
NUMBER_KEY = "_number"
TEXT_KEY = "_text"


@dataclass(frozen=True)
class ResolvedOperands:
    """Live and threshold operands for one comparison."""
    live: Any
    threshold: Any
    unit: Optional[str] = None


class ValueResolver:
    """
    Resolves rule operands from an argument context.

    Resolver callbacks may raise; exceptions propagate to the caller,
    which decides how to record them.
    """

    def resolve(
        self,
        definition: ConditionDefinition,
        rule: Rule,
        context: Mapping[str, Any],
    ) -> ResolvedOperands:
        """
        Resolve the operands of a rule.

        Args:
            definition: The rule's condition definition
            rule: The rule being evaluated
            context: Caller-supplied argument context (not modified)

        Returns:
            ResolvedOperands with live value, threshold and unit
        """
        threshold, unit = split_authored_value(definition.value_type, rule.value)

        if definition.value_resolver is not None:
            view = self.rule_context(definition.value_type, context, threshold, unit)
            if definition.pass_authored_value:
                live = definition.value_resolver(view, threshold)
            else:
                live = definition.value_resolver(view)
        else:
            # Booleans without a key read the context under their own name.
            key = definition.argument_key or definition.name
            live = context.get(key)
            if live is None:
                live = get_descriptor(definition.value_type).zero_value

        return ResolvedOperands(live=live, threshold=threshold, unit=unit)

    @staticmethod
    def rule_context(
        value_type: ValueType,
        context: Mapping[str, Any],
        threshold: Any,
        unit: Optional[str],
    ) -> Mapping[str, Any]:
        """Build the read-only context view handed to a resolver."""
        if value_type == ValueType.NUMBER_UNIT:
            return MappingProxyType({**context, UNIT_KEY: unit, NUMBER_KEY: threshold})
        if value_type == ValueType.TEXT_UNIT:
            return MappingProxyType({**context, UNIT_KEY: unit, TEXT_KEY: threshold})
        return MappingProxyType(dict(context))


def split_authored_value(value_type: ValueType, value: Any) -> tuple[Any, Optional[str]]:
    """
    Split an authored value into (threshold, unit).

    Non-unit types return the value unchanged with no unit. Unit types
    accept a mapping or UnitValue; any other shape is used as the
    threshold with no unit.
    """
    if not value_type.is_unit_qualified:
        return value, None

    pair = UnitValue.coerce(value)
    if pair is None:
        return value, None
    if value_type == ValueType.NUMBER_UNIT:
        return pair.number, pair.unit
    return pair.text, pair.unit


__all__ = [
    "NUMBER_KEY",
    "ResolvedOperands",
    "TEXT_KEY",
    "UNIT_KEY",
    "ValueResolver",
    "split_authored_value",
]
