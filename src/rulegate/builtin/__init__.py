"""
RuleGate Built-in Conditions

Ready-made condition definitions that catalogues can register by name:

    catalogue.register_builtin("day_of_week")
    Catalogue("promotions", ["is_weekend", "ip_address", {...}])

Definitions are immutable and shared between catalogues.
"""
from __future__ import annotations

from typing import Optional

from ..models import ConditionDefinition
from . import cart, dates, request, user

_BUILTINS: dict[str, ConditionDefinition] = {}
for _module in (dates, request, user, cart):
    for _definition in _module.CONDITIONS:
        if _definition.name in _BUILTINS:
            raise RuntimeError(f"Duplicate built-in condition: {_definition.name}")
        _BUILTINS[_definition.name] = _definition


def get_builtin(name: str) -> Optional[ConditionDefinition]:
    """Return the built-in definition with this name, or None."""
    return _BUILTINS.get(name)


def builtin_names(group: Optional[str] = None) -> list[str]:
    """Names of all built-in conditions, optionally limited to one display group."""
    return [
        name for name, definition in _BUILTINS.items()
        if group is None or definition.group == group
    ]


def builtin_conditions() -> list[ConditionDefinition]:
    return list(_BUILTINS.values())


__all__ = [
    "builtin_conditions",
    "builtin_names",
    "get_builtin",
]
