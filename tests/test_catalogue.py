"""
Tests for the Condition Catalogue

Tests cover:
- Registration and lookup
- Definition invariants (argument_key XOR value_resolver)
- Operator override round-trip and validation
- Config-based and built-in registration
- Freezing and the catalogue registry
"""
import pytest

from rulegate.engine import Catalogue, CatalogueRegistry, evaluate_first
from rulegate.engine.type_registry import default_operators
from rulegate.exceptions import (
    CatalogueNotFoundError,
    DuplicateConditionError,
    InvalidConditionError,
    RegistrationError,
    UnknownTypeError,
)
from rulegate.models import ConditionDefinition, ValueType

from tests.conftest import (
    arg_condition,
    make_catalogue,
    make_group,
    make_rule,
    make_ruleset,
)


class TestConditionDefinition:
    """Tests for ConditionDefinition invariants."""

    def test_label_derived_from_name(self):
        """Test the label defaults to a title-cased name."""
        definition = arg_condition("order_total", ValueType.NUMBER)
        assert definition.label == "Order Total"
        assert definition.group == "General"

    def test_string_type_is_coerced(self):
        """Test a string value type becomes a ValueType."""
        definition = ConditionDefinition(name="x", value_type="number", argument_key="x")
        assert definition.value_type is ValueType.NUMBER

    def test_unknown_type_rejected(self):
        """Test an unknown value type raises UnknownTypeError."""
        with pytest.raises(UnknownTypeError):
            ConditionDefinition(name="x", value_type="currency", argument_key="x")

    def test_requires_exactly_one_source(self):
        """Test neither or both of argument_key/value_resolver is rejected."""
        with pytest.raises(InvalidConditionError):
            ConditionDefinition(name="x", value_type=ValueType.TEXT)
        with pytest.raises(InvalidConditionError):
            ConditionDefinition(
                name="x",
                value_type=ValueType.TEXT,
                argument_key="x",
                value_resolver=lambda ctx: "x",
            )

    def test_boolean_may_omit_source(self):
        """Test boolean conditions may set neither source."""
        definition = ConditionDefinition(name="is_vip", value_type=ValueType.BOOLEAN)
        assert definition.argument_key is None
        assert not definition.is_computed

    def test_pass_authored_value_requires_resolver(self):
        """Test pass_authored_value without a resolver is rejected."""
        with pytest.raises(InvalidConditionError):
            ConditionDefinition(name="x", argument_key="x", pass_authored_value=True)

    def test_required_arguments_string_is_one_key(self):
        """Test a bare string is not split into characters."""
        definition = arg_condition("vip", ValueType.BOOLEAN, required_arguments="user_id")
        assert definition.required_arguments == frozenset({"user_id"})

    def test_empty_override_rejected(self):
        """Test an empty operator override is rejected."""
        with pytest.raises(InvalidConditionError):
            arg_condition("x", ValueType.NUMBER, operators=())

    def test_callable_options_resolved(self):
        """Test option sources may be zero-argument callables."""
        definition = arg_condition(
            "plan", ValueType.SELECT, options=lambda: [{"value": "pro", "label": "Pro"}],
        )
        assert definition.resolve_options() == [{"value": "pro", "label": "Pro"}]


class TestCatalogue:
    """Tests for Catalogue registration and lookup."""

    def test_register_and_get(self):
        """Test a registered definition can be fetched by name."""
        catalogue = make_catalogue("shop", arg_condition("order_total", ValueType.NUMBER))
        assert "order_total" in catalogue
        assert catalogue.get("order_total").value_type == ValueType.NUMBER
        assert catalogue.get("missing") is None
        assert len(catalogue) == 1

    def test_duplicate_name_rejected(self):
        """Test registering the same name twice fails."""
        catalogue = make_catalogue("shop", arg_condition("coupon"))
        with pytest.raises(DuplicateConditionError) as exc_info:
            catalogue.register(arg_condition("coupon"))
        assert exc_info.value.set_id == "shop"
        assert isinstance(exc_info.value, RegistrationError)

    def test_require_unknown_raises_key_error(self):
        """Test require() raises for unknown names."""
        with pytest.raises(KeyError):
            make_catalogue().require("nope")

    def test_operator_override_round_trip(self):
        """Test operators_for returns exactly the override."""
        catalogue = make_catalogue(
            "shop", arg_condition("order_total", ValueType.NUMBER, operators=(">", "<")),
        )
        assert catalogue.operators_for("order_total") == (">", "<")

    def test_operators_default_to_type(self):
        """Test operators_for falls back to the type default."""
        catalogue = make_catalogue("shop", arg_condition("coupon"))
        assert catalogue.operators_for("coupon") == default_operators(ValueType.TEXT)

    def test_unsupported_override_rejected(self):
        """Test an override containing operators unknown to the type fails."""
        catalogue = Catalogue("shop")
        with pytest.raises(InvalidConditionError) as exc_info:
            catalogue.register(
                arg_condition("order_total", ValueType.NUMBER, operators=(">", "contains")),
            )
        assert exc_info.value.details["unsupported"] == ["contains"]

    def test_register_config_defaults(self):
        """Test config registration applies label, group and type defaults."""
        catalogue = Catalogue("shop")
        definition = catalogue.register_config("promo_code", argument_key="promo")
        assert definition.value_type == ValueType.TEXT
        assert definition.label == "Promo Code"
        assert definition.group == "General"

    def test_register_config_aliases(self):
        """Test arg/compare_value/required_args aliases."""
        catalogue = Catalogue("shop")
        definition = catalogue.register_config(
            "items",
            type="number",
            compare_value=lambda ctx: len(ctx["cart"]),
            required_args=["cart"],
        )
        assert definition.is_computed
        assert definition.required_arguments == frozenset({"cart"})

    def test_register_config_single_required_arg_string(self):
        """Test a single required argument given as a string is one key."""
        catalogue = Catalogue("users")
        definition = catalogue.register_config(
            "vip", type="boolean", arg="is_vip", required_args="user_id",
        )
        assert definition.required_arguments == frozenset({"user_id"})

        rulesets = [make_ruleset("vip-only", make_group(make_rule("vip", "yes")))]
        assert not evaluate_first(catalogue, rulesets, {"user_id": 7, "is_vip": False})
        assert evaluate_first(catalogue, rulesets, {"user_id": 7, "is_vip": True})

    def test_register_config_unknown_key(self):
        """Test unknown config keys are rejected."""
        with pytest.raises(InvalidConditionError):
            Catalogue("shop").register_config("x", argument_key="x", placeholder="e.g. 10")

    def test_register_builtin(self):
        """Test registering a built-in condition by name."""
        catalogue = Catalogue("shop")
        catalogue.register_builtin("day_of_week")
        assert catalogue.operators_for("day_of_week") == ("any", "none")

    def test_unknown_builtin_rejected(self):
        """Test unknown built-in names are rejected."""
        with pytest.raises(InvalidConditionError):
            Catalogue("shop").register_builtin("moon_phase")

    def test_register_many_mixed(self):
        """Test constructor registration of definitions, names and configs."""
        catalogue = Catalogue("shop", [
            arg_condition("coupon"),
            "is_weekend",
            {"name": "total", "type": "number", "argument_key": "order_total"},
        ])
        assert catalogue.names() == ["coupon", "is_weekend", "total"]

    def test_freeze_blocks_registration(self):
        """Test registration after freeze() fails."""
        catalogue = Catalogue("shop").freeze()
        assert catalogue.frozen
        with pytest.raises(RegistrationError):
            catalogue.register(arg_condition("coupon"))

    def test_describe(self):
        """Test the serialisable listing."""
        catalogue = make_catalogue(
            "shop",
            arg_condition("plan", ValueType.SELECT, options=[{"value": "pro", "label": "Pro"}]),
        )
        [entry] = catalogue.describe()
        assert entry["name"] == "plan"
        assert entry["type"] == "select"
        assert entry["operators"] == ["==", "!="]
        assert entry["options"] == [{"value": "pro", "label": "Pro"}]


class TestCatalogueRegistry:
    """Tests for CatalogueRegistry."""

    def test_get_by_set_id(self):
        """Test catalogues are keyed by condition set ID."""
        registry = CatalogueRegistry()
        registry.create("shop", [arg_condition("coupon")])
        assert registry.get("shop").get("coupon") is not None
        assert "shop" in registry

    def test_unknown_set_id(self):
        """Test unknown set IDs raise CatalogueNotFoundError."""
        registry = CatalogueRegistry()
        with pytest.raises(CatalogueNotFoundError) as exc_info:
            registry.get("nope")
        assert exc_info.value.code == "RG_CATALOGUE_NOT_FOUND"

    def test_duplicate_set_id(self):
        """Test adding two catalogues for one set ID fails."""
        registry = CatalogueRegistry()
        registry.create("shop")
        with pytest.raises(RegistrationError):
            registry.create("shop")
