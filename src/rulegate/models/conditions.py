"""
RuleGate Condition Definitions

A ConditionDefinition describes one named, typed fact the engine can
evaluate: where its live value comes from (a context key or a resolver
callback), which context keys it requires, and which operators apply.

Definitions are created once at catalogue registration time and are
immutable thereafter.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from ..exceptions import InvalidConditionError, UnknownTypeError
from .enums import Operator, ValueType


# A resolver receives the (read-only) argument context and, when the
# definition sets pass_authored_value, the rule's authored value.
ValueResolverFn = Callable[..., Any]

OptionList = list[dict[str, Any]]
OptionSource = Union[OptionList, Callable[[], OptionList]]


def operator_key(operator: Any) -> str:
    """Normalize an operator (enum member or string) to its plain string form."""
    if isinstance(operator, Operator):
        return operator.value
    return str(operator).strip() if operator is not None else ""


def coerce_value_type(value_type: Union[ValueType, str]) -> ValueType:
    """
    Coerce a value type name to ValueType.

    Raises:
        UnknownTypeError: If the name is not a known value type
    """
    if isinstance(value_type, ValueType):
        return value_type
    try:
        return ValueType(str(value_type))
    except ValueError:
        raise UnknownTypeError(
            message=f"Unknown value type: '{value_type}'",
            details={
                "value_type": str(value_type),
                "known_types": [t.value for t in ValueType],
            },
        ) from None


# =============================================================================
# Unit-Qualified Values
# =============================================================================

@dataclass(frozen=True)
class UnitValue:
    """
    Authored value for number_unit / text_unit conditions.

    Exactly one of number or text is meaningful, depending on the type.
    """
    unit: Optional[str] = None
    number: Any = None
    text: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> Optional[UnitValue]:
        """Build a UnitValue from a mapping; returns None for other shapes."""
        if isinstance(value, UnitValue):
            return value
        if isinstance(value, Mapping):
            return cls(
                unit=value.get("unit"),
                number=value.get("number"),
                text=value.get("text"),
            )
        return None


# =============================================================================
# Condition Definition
# =============================================================================

@dataclass(frozen=True)
class ConditionDefinition:
    """
    A named, typed fact that rules can compare against.

    Attributes:
        name: Unique name within a catalogue
        label: Human-readable label
        group: Display category (irrelevant to evaluation)
        value_type: One of ValueType (strings are coerced)
        operators: Explicit operator override; None means the type default
        argument_key: Context key holding the live value
        value_resolver: Callable computing the live value from the context
        required_arguments: Context keys that must be present, else the rule is skipped
        pass_authored_value: Pass the rule's authored value to value_resolver
        description: Optional help text
        options: Choices for select types (list or zero-arg callable)
        units: Unit choices for unit-qualified types (list or zero-arg callable)
    """
    name: str
    value_type: ValueType = ValueType.TEXT
    label: str = ""
    group: str = "General"
    operators: Optional[tuple[str, ...]] = None
    argument_key: Optional[str] = None
    value_resolver: Optional[ValueResolverFn] = field(default=None, compare=False)
    required_arguments: frozenset[str] = frozenset()
    pass_authored_value: bool = False
    description: Optional[str] = None
    options: Optional[OptionSource] = field(default=None, compare=False, hash=False)
    units: Optional[OptionSource] = field(default=None, compare=False, hash=False)

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidConditionError(message="Condition name cannot be empty")

        object.__setattr__(self, "value_type", coerce_value_type(self.value_type))

        if not self.label:
            object.__setattr__(self, "label", _label_from_name(self.name))

        if self.operators is not None:
            object.__setattr__(
                self, "operators", tuple(operator_key(op) for op in self.operators)
            )
            if not self.operators:
                raise InvalidConditionError(
                    message=f"Condition '{self.name}' has an empty operator override",
                    details={"condition": self.name},
                )

        required = self.required_arguments
        if isinstance(required, str):
            required = (required,)
        object.__setattr__(self, "required_arguments", frozenset(required))

        has_arg = bool(self.argument_key)
        has_resolver = self.value_resolver is not None

        if has_resolver and not callable(self.value_resolver):
            raise InvalidConditionError(
                message=f"Condition '{self.name}' value_resolver is not callable",
                details={"condition": self.name},
            )

        if self.value_type == ValueType.BOOLEAN:
            if has_arg and has_resolver:
                raise InvalidConditionError(
                    message=f"Condition '{self.name}' sets both argument_key and value_resolver",
                    details={"condition": self.name},
                )
        elif has_arg == has_resolver:
            raise InvalidConditionError(
                message=(
                    f"Condition '{self.name}' must set exactly one of "
                    f"argument_key or value_resolver"
                ),
                details={
                    "condition": self.name,
                    "argument_key": self.argument_key,
                    "has_resolver": has_resolver,
                },
            )

        if self.pass_authored_value and not has_resolver:
            raise InvalidConditionError(
                message=f"Condition '{self.name}' passes the authored value but has no resolver",
                details={"condition": self.name},
            )

    @property
    def is_computed(self) -> bool:
        """Check if the live value comes from a resolver callback."""
        return self.value_resolver is not None

    def resolve_options(self) -> OptionList:
        """Return select options, calling the option source if it is callable."""
        return _resolve_option_source(self.options)

    def resolve_units(self) -> OptionList:
        """Return unit options, calling the unit source if it is callable."""
        return _resolve_option_source(self.units)


def _label_from_name(name: str) -> str:
    return name.replace("_", " ").replace("-", " ").title()


def _resolve_option_source(source: Optional[OptionSource]) -> OptionList:
    if source is None:
        return []
    if callable(source):
        return list(source())
    return list(source)
