"""
Built-in user conditions.

Context keys: is_logged_in, user_roles (or user_role), user_email,
user_registered (registration moment).
"""
from __future__ import annotations

from typing import Any, Mapping

from ..engine.type_registry import COLLECTION_ANY_NONE_OPERATORS
from ..models import ConditionDefinition, ValueType
from ..units import AGE_UNITS, age_in
from .dates import current_moment

GROUP_USER = "User"


def user_roles(context: Mapping[str, Any]) -> list[str]:
    roles = context.get("user_roles", context.get("user_role"))
    if roles is None:
        return []
    if isinstance(roles, str):
        return [roles]
    return [str(r) for r in roles]


def account_age(context: Mapping[str, Any]) -> int:
    return age_in(context["user_registered"], context.get("_unit") or "day", current_moment(context))


CONDITIONS = (
    ConditionDefinition(
        name="is_logged_in",
        group=GROUP_USER,
        value_type=ValueType.BOOLEAN,
        argument_key="is_logged_in",
    ),
    ConditionDefinition(
        name="user_role",
        label="Role",
        group=GROUP_USER,
        value_type=ValueType.MULTI_SELECT,
        operators=COLLECTION_ANY_NONE_OPERATORS,
        value_resolver=user_roles,
    ),
    ConditionDefinition(
        name="user_email",
        label="Email",
        group=GROUP_USER,
        value_type=ValueType.EMAIL,
        argument_key="user_email",
        description="Full email, @domain, domain or .tld patterns.",
    ),
    ConditionDefinition(
        name="user_date_registered",
        label="Date Registered",
        group=GROUP_USER,
        value_type=ValueType.DATE,
        argument_key="user_registered",
    ),
    ConditionDefinition(
        name="account_age",
        group=GROUP_USER,
        value_type=ValueType.NUMBER_UNIT,
        value_resolver=account_age,
        required_arguments=frozenset({"user_registered"}),
        units=AGE_UNITS,
        description="How long the user has been registered.",
    ),
)
