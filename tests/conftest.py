"""
Pytest configuration and fixtures for RuleGate tests.

Provides helper factories and common fixtures matching actual model definitions.
"""
import logging
from typing import Any, Optional

import pytest

from rulegate.engine import Catalogue
from rulegate.models import (
    ConditionDefinition,
    Group,
    Rule,
    Ruleset,
    ValueType,
)
from rulegate.store import InMemoryRulesetStore


# =============================================================================
# Factory Helpers
# =============================================================================

def make_rule(
    condition: str,
    operator: str,
    value: Any = None,
    id: Optional[str] = None,
) -> Rule:
    """Create a Rule with a readable default ID."""
    return Rule(
        condition=condition,
        operator=operator,
        value=value,
        id=id or f"{condition}-{operator}",
    )


def make_group(*rules: Rule) -> Group:
    """Create an AND-group from rules."""
    return Group(rules=tuple(rules))


def make_ruleset(
    id: str,
    *groups: Group,
    title: Optional[str] = None,
    status: str = "active",
    order: int = 0,
    metadata: Optional[dict] = None,
) -> Ruleset:
    """Create a Ruleset (OR of groups) with required fields."""
    return Ruleset(
        id=id,
        groups=tuple(groups),
        title=title if title is not None else id.replace("-", " ").title(),
        status=status,
        order=order,
        metadata=metadata or {},
    )


def make_catalogue(set_id: str = "test", *definitions: ConditionDefinition) -> Catalogue:
    """Create a Catalogue holding the given definitions."""
    catalogue = Catalogue(set_id)
    for definition in definitions:
        catalogue.register(definition)
    return catalogue


def make_store(set_id: str, *rulesets: Ruleset) -> InMemoryRulesetStore:
    """Create an in-memory store holding rulesets for one condition set."""
    store = InMemoryRulesetStore()
    store.add_many(set_id, rulesets)
    return store


def arg_condition(name: str, value_type: ValueType = ValueType.TEXT, **kwargs) -> ConditionDefinition:
    """Create a condition reading the context key of the same name."""
    return ConditionDefinition(name=name, value_type=value_type, argument_key=name, **kwargs)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def shop_catalogue() -> Catalogue:
    """Catalogue with typical e-commerce conditions."""
    return make_catalogue(
        "shop",
        arg_condition("order_total", ValueType.NUMBER),
        arg_condition("country", ValueType.SELECT),
        arg_condition("coupon", ValueType.TEXT),
        arg_condition("is_member", ValueType.BOOLEAN),
        arg_condition("cart_categories", ValueType.MULTI_SELECT),
        arg_condition("customer_email", ValueType.EMAIL),
        arg_condition("visitor_ip", ValueType.IP),
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from RG_* settings in the caller's environment."""
    for name in (
        "RG_LOG_LEVEL",
        "RG_LOG_FORMAT",
        "RG_TIMEZONE",
        "RG_DEFAULT_STATUS",
        "RG_STRICT_SCHEMA_VERSION",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def rulegate_logs(caplog):
    """Capture engine log records at DEBUG level."""
    caplog.set_level(logging.DEBUG, logger="rulegate")
    return caplog


@pytest.fixture
def restore_rulegate_logger():
    """Undo configure_logging() handler and level changes after a test."""
    logger = logging.getLogger("rulegate")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
