"""
RuleGate Condition Catalogue

Registers named ConditionDefinitions for one condition set and resolves
each definition's effective operator set.

Key features:
- Duplicate names, unknown value types and unsupported operator
  overrides are rejected at registration time, not at evaluation time
- Config-based registration with sensible defaults
- Built-in condition references by name
- freeze() makes the catalogue read-only for concurrent evaluation

CatalogueRegistry holds catalogues keyed by condition set ID. It is an
explicit value passed to the Matcher; there is no process-wide registry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from ..exceptions import (
    CatalogueNotFoundError,
    DuplicateConditionError,
    InvalidConditionError,
    RegistrationError,
)
from ..models import ConditionDefinition, ValueType
from .type_registry import get_descriptor

logger = logging.getLogger(__name__)

ConditionSpec = Union[ConditionDefinition, str, Mapping[str, Any]]

# Config keys accepted by register_config(); anything else is rejected.
_CONFIG_KEYS = frozenset({
    "label", "group", "type", "value_type", "operators", "argument_key", "arg",
    "value_resolver", "compare_value", "required_arguments", "required_args",
    "pass_authored_value", "description", "options", "units",
})


class Catalogue:
    """
    Named condition definitions for one condition set.

    Usage:
        catalogue = Catalogue("discounts")
        catalogue.register(ConditionDefinition(
            name="order_total",
            value_type=ValueType.NUMBER,
            argument_key="order_total",
            operators=(">", "<"),
        ))
        catalogue.register_builtin("day_of_week")
        catalogue.register_config("cart_items", type="number", argument_key="item_count")

        catalogue.operators_for("order_total")   # (">", "<")
    """

    def __init__(
        self,
        set_id: str = "default",
        conditions: Optional[Iterable[ConditionSpec]] = None,
    ) -> None:
        if not set_id:
            raise RegistrationError(message="Condition set ID cannot be empty")
        self.set_id = set_id
        self._definitions: dict[str, ConditionDefinition] = {}
        self._operators: dict[str, tuple[str, ...]] = {}
        self._frozen = False

        if conditions:
            self.register_many(conditions)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, definition: ConditionDefinition) -> ConditionDefinition:
        """
        Register a condition definition.

        Args:
            definition: The definition to register

        Returns:
            The registered definition

        Raises:
            RegistrationError: If the catalogue is frozen
            DuplicateConditionError: If the name is already registered
            UnknownTypeError: If the value type has no descriptor
            InvalidConditionError: If the operator override is not supported by the type
        """
        if self._frozen:
            raise RegistrationError(
                message=f"Catalogue is frozen; cannot register '{definition.name}'",
                set_id=self.set_id,
            )

        if definition.name in self._definitions:
            raise DuplicateConditionError(
                message=f"Condition '{definition.name}' is already registered",
                details={"condition": definition.name},
                set_id=self.set_id,
            )

        descriptor = get_descriptor(definition.value_type)

        if definition.operators is not None:
            unsupported = [op for op in definition.operators if not descriptor.supports(op)]
            if unsupported:
                raise InvalidConditionError(
                    message=(
                        f"Condition '{definition.name}' overrides operators not "
                        f"supported by type '{descriptor.value_type.value}': {unsupported}"
                    ),
                    details={
                        "condition": definition.name,
                        "unsupported": unsupported,
                        "supported": list(descriptor.operators),
                    },
                    set_id=self.set_id,
                )
            operators = definition.operators
        else:
            operators = descriptor.default_operators

        self._definitions[definition.name] = definition
        self._operators[definition.name] = operators

        logger.debug(
            "Registered condition %s (%s) in set %s",
            definition.name, definition.value_type.value, self.set_id,
        )
        return definition

    def register_config(self, name: str, **config: Any) -> ConditionDefinition:
        """
        Register a condition from keyword configuration.

        Defaults: label derived from name, group "General", type "text".
        `arg`, `compare_value` and `required_args` are accepted as aliases
        for `argument_key`, `value_resolver` and `required_arguments`.
        """
        return self.register(definition_from_config(name, config))

    def register_builtin(self, name: str) -> ConditionDefinition:
        """
        Register a condition from the built-in library.

        Raises:
            InvalidConditionError: If no built-in condition has that name
        """
        from ..builtin import get_builtin

        definition = get_builtin(name)
        if definition is None:
            raise InvalidConditionError(
                message=f"Built-in condition '{name}' not found",
                details={"condition": name},
                set_id=self.set_id,
            )
        return self.register(definition)

    def register_many(self, conditions: Iterable[ConditionSpec]) -> list[ConditionDefinition]:
        """
        Register a mix of definitions, built-in names and config mappings.

        A config mapping must carry its name under the "name" key.
        """
        registered = []
        for spec in conditions:
            if isinstance(spec, ConditionDefinition):
                registered.append(self.register(spec))
            elif isinstance(spec, str):
                registered.append(self.register_builtin(spec))
            elif isinstance(spec, Mapping):
                config = dict(spec)
                name = config.pop("name", None)
                if not name:
                    raise InvalidConditionError(
                        message="Condition config is missing 'name'",
                        details={"config_keys": sorted(config)},
                        set_id=self.set_id,
                    )
                registered.append(self.register_config(str(name), **config))
            else:
                raise InvalidConditionError(
                    message=f"Invalid condition format: {type(spec).__name__}",
                    set_id=self.set_id,
                )
        return registered

    def freeze(self) -> Catalogue:
        """Make the catalogue read-only. Returns self."""
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, name: str) -> Optional[ConditionDefinition]:
        return self._definitions.get(name)

    def require(self, name: str) -> ConditionDefinition:
        """
        Get a definition by name.

        Raises:
            KeyError: If the name is not registered
        """
        try:
            return self._definitions[name]
        except KeyError:
            raise KeyError(f"Condition '{name}' is not registered in set '{self.set_id}'") from None

    def operators_for(self, name: str) -> tuple[str, ...]:
        """Effective operators for a condition: its override, else the type default."""
        self.require(name)
        return self._operators[name]

    def names(self) -> list[str]:
        return list(self._definitions)

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def __iter__(self) -> Iterator[ConditionDefinition]:
        return iter(self._definitions.values())

    def __repr__(self) -> str:
        return f"Catalogue(set_id={self.set_id!r}, conditions={len(self)})"

    def describe(self) -> list[dict[str, Any]]:
        """
        Serializable listing of every condition, for authoring tools.

        Callable option and unit sources are resolved.
        """
        listing = []
        for definition in self._definitions.values():
            listing.append({
                "name": definition.name,
                "label": definition.label,
                "group": definition.group,
                "type": definition.value_type.value,
                "operators": list(self._operators[definition.name]),
                "required_arguments": sorted(definition.required_arguments),
                "description": definition.description,
                "options": definition.resolve_options(),
                "units": definition.resolve_units(),
            })
        return listing


def definition_from_config(name: str, config: Mapping[str, Any]) -> ConditionDefinition:
    """
    Build a ConditionDefinition from a plain configuration mapping.

    Raises:
        InvalidConditionError: If the config has unknown keys
        UnknownTypeError: If the type is not a known value type
    """
    unknown = sorted(set(config) - _CONFIG_KEYS)
    if unknown:
        raise InvalidConditionError(
            message=f"Condition '{name}' has unknown config keys: {unknown}",
            details={"condition": name, "unknown_keys": unknown},
        )

    operators = config.get("operators")
    required = config.get("required_arguments", config.get("required_args")) or ()
    if isinstance(required, str):
        required = (required,)

    return ConditionDefinition(
        name=name,
        value_type=config.get("value_type", config.get("type", ValueType.TEXT)),
        label=config.get("label") or "",
        group=config.get("group") or "General",
        operators=tuple(operators) if operators is not None else None,
        argument_key=config.get("argument_key", config.get("arg")),
        value_resolver=config.get("value_resolver", config.get("compare_value")),
        required_arguments=frozenset(required),
        pass_authored_value=bool(config.get("pass_authored_value", False)),
        description=config.get("description"),
        options=config.get("options"),
        units=config.get("units"),
    )


@dataclass
class CatalogueRegistry:
    """
    Catalogues keyed by condition set ID.

    Usage:
        registry = CatalogueRegistry()
        registry.add(Catalogue("discounts", [...]))
        registry.get("discounts")
    """
    _catalogues: dict[str, Catalogue] = field(default_factory=dict)

    def add(self, catalogue: Catalogue) -> Catalogue:
        """
        Add a catalogue.

        Raises:
            RegistrationError: If a catalogue for the same set ID exists
        """
        if catalogue.set_id in self._catalogues:
            raise RegistrationError(
                message=f"Condition set '{catalogue.set_id}' is already registered",
                set_id=catalogue.set_id,
            )
        self._catalogues[catalogue.set_id] = catalogue
        return catalogue

    def create(self, set_id: str, conditions: Optional[Iterable[ConditionSpec]] = None) -> Catalogue:
        """Create, add and return a new catalogue."""
        return self.add(Catalogue(set_id, conditions))

    def get(self, set_id: str) -> Catalogue:
        """
        Get the catalogue for a condition set.

        Raises:
            CatalogueNotFoundError: If no catalogue is registered for set_id
        """
        catalogue = self._catalogues.get(set_id)
        if catalogue is None:
            raise CatalogueNotFoundError(
                message=f"No catalogue registered for condition set '{set_id}'",
                details={"known_sets": sorted(self._catalogues)},
                set_id=set_id,
            )
        return catalogue

    def set_ids(self) -> list[str]:
        return list(self._catalogues)

    def __contains__(self, set_id: object) -> bool:
        return set_id in self._catalogues

    def __len__(self) -> int:
        return len(self._catalogues)

    def freeze(self) -> None:
        for catalogue in self._catalogues.values():
            catalogue.freeze()
