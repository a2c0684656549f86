"""
Built-in cart conditions.

Context keys: cart_weight (number), cart_weight_unit (unit of cart_weight,
default "g").
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping

from ..models import ConditionDefinition, ValueType
from ..units import convert, unit_options

GROUP_CART = "Cart"


def cart_weight(context: Mapping[str, Any]) -> Decimal:
    """Cart weight expressed in the rule's unit."""
    source_unit = str(context.get("cart_weight_unit") or "g").lower()
    target_unit = str(context.get("_unit") or source_unit).lower()
    return convert(context["cart_weight"], source_unit, target_unit, family="weight")


CONDITIONS = (
    ConditionDefinition(
        name="cart_weight",
        group=GROUP_CART,
        value_type=ValueType.NUMBER_UNIT,
        value_resolver=cart_weight,
        required_arguments=frozenset({"cart_weight"}),
        units=unit_options("weight"),
        description="Total cart weight, converted to the rule's unit.",
    ),
)
