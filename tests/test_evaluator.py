"""
Tests for the Group/Rule Evaluator

Tests cover:
- Rule outcomes (TRUE, FALSE, SKIPPED)
- Unknown conditions, disallowed operators and resolver failures
- AND-group semantics including vacuous groups
- OR over groups and first-group-wins
- evaluate_first / evaluate_all equivalence and early stop
- Unit changes flipping number_unit outcomes
"""
import dataclasses
import logging

import pytest

from rulegate.engine import Catalogue, RuleEvaluator, evaluate_all, evaluate_first, explain
from rulegate.engine.type_registry import TYPE_REGISTRY
from rulegate.exceptions import ResolutionError
from rulegate.models import ConditionDefinition, RuleOutcome, ValueType

from tests.conftest import (
    arg_condition,
    make_catalogue,
    make_group,
    make_rule,
    make_ruleset,
)


@pytest.fixture
def evaluator(shop_catalogue):
    return RuleEvaluator(shop_catalogue)


@pytest.fixture
def badge_catalogue(monkeypatch):
    """Catalogue with order_total and a tags condition whose comparator raises."""
    catalogue = make_catalogue(
        "shop",
        arg_condition("order_total", ValueType.NUMBER),
        arg_condition("badges", ValueType.TAGS),
    )

    def exploding(operator, live, threshold):
        raise RuntimeError("comparator bug")

    monkeypatch.setitem(
        TYPE_REGISTRY,
        ValueType.TAGS,
        dataclasses.replace(TYPE_REGISTRY[ValueType.TAGS], comparator=exploding),
    )
    return catalogue


# =============================================================================
# Rules
# =============================================================================

class TestEvaluateRule:
    """Tests for single-rule evaluation."""

    def test_true_and_false(self, evaluator):
        """Test plain comparison outcomes."""
        rule = make_rule("order_total", ">", 100)
        assert evaluator.evaluate_rule(rule, {"order_total": 150}).outcome == RuleOutcome.TRUE
        assert evaluator.evaluate_rule(rule, {"order_total": 50}).outcome == RuleOutcome.FALSE

    def test_explanation(self, evaluator):
        """Test explanations mention the outcome and actual value."""
        result = evaluator.evaluate_rule(make_rule("order_total", ">", 100), {"order_total": 50})
        assert "FAILED" in result.explanation
        assert "50" in result.explanation

    def test_unknown_condition_is_false(self, evaluator):
        """Test a rule naming an unregistered condition is FALSE."""
        result = evaluator.evaluate_rule(make_rule("nope", "==", 1), {})
        assert result.outcome == RuleOutcome.FALSE
        assert "unknown condition" in result.explanation

    def test_disallowed_operator_is_false(self):
        """Test an operator outside the override is FALSE."""
        catalogue = make_catalogue(
            "shop", arg_condition("order_total", ValueType.NUMBER, operators=(">",)),
        )
        result = RuleEvaluator(catalogue).evaluate_rule(
            make_rule("order_total", "<", 100), {"order_total": 50},
        )
        assert result.outcome == RuleOutcome.FALSE

    def test_missing_required_argument_is_skipped(self):
        """Test a rule is SKIPPED when a required argument is absent."""
        catalogue = make_catalogue(
            "shop",
            ConditionDefinition(
                name="cart_size",
                value_type=ValueType.NUMBER,
                value_resolver=lambda ctx: len(ctx["cart"]),
                required_arguments=frozenset({"cart"}),
            ),
        )
        result = RuleEvaluator(catalogue).evaluate_rule(make_rule("cart_size", ">", 1), {})
        assert result.outcome == RuleOutcome.SKIPPED
        assert result.missing_arguments == ("cart",)

    def test_resolver_error_is_false_and_logged(self, rulegate_logs):
        """Test a raising resolver yields FALSE with a captured ResolutionError."""
        def broken(ctx):
            raise RuntimeError("backend down")

        catalogue = make_catalogue("shop", ConditionDefinition(name="score", value_resolver=broken))
        result = RuleEvaluator(catalogue).evaluate_rule(make_rule("score", "==", "x"), {})

        assert result.outcome == RuleOutcome.FALSE
        assert isinstance(result.error, ResolutionError)
        assert result.error.condition == "score"
        assert result.error.details["exception"] == "RuntimeError"
        warnings = [r for r in rulegate_logs.records if r.levelno == logging.WARNING]
        assert warnings and warnings[0].condition == "score"

    def test_invalid_threshold_is_false(self, evaluator):
        """Test a malformed threshold compares FALSE instead of raising."""
        result = evaluator.evaluate_rule(make_rule("order_total", ">", "lots"), {"order_total": 5})
        assert result.outcome == RuleOutcome.FALSE

    def test_uncompilable_regex_is_false(self, evaluator):
        """Test a regex threshold that cannot compile makes only that rule FALSE."""
        result = evaluator.evaluate_rule(
            make_rule("coupon", "regex", "a{4294967296}"), {"coupon": "aaa"},
        )
        assert result.outcome == RuleOutcome.FALSE

    def test_comparator_error_is_false_and_logged(self, badge_catalogue, rulegate_logs):
        """Test an exception raised while comparing yields FALSE and a warning."""
        result = RuleEvaluator(badge_catalogue).evaluate_rule(
            make_rule("badges", "any_exact", ["gold"]), {"badges": "gold"},
        )
        assert result.outcome == RuleOutcome.FALSE
        assert "comparison error" in result.explanation
        warnings = [r for r in rulegate_logs.records if r.levelno == logging.WARNING]
        assert warnings and warnings[0].condition == "badges"


# =============================================================================
# Groups
# =============================================================================

class TestEvaluateGroup:
    """Tests for AND-group semantics."""

    def test_all_true_matches(self, evaluator):
        """Test a group matches when every rule is TRUE."""
        group = make_group(
            make_rule("order_total", ">", 100),
            make_rule("country", "==", "CA"),
        )
        assert evaluator.evaluate_group(group, {"order_total": 150, "country": "CA"}).matched

    def test_short_circuit_on_false(self, evaluator):
        """Test evaluation stops at the first FALSE rule."""
        group = make_group(
            make_rule("order_total", ">", 100, id="r1"),
            make_rule("country", "==", "CA", id="r2"),
        )
        result = evaluator.evaluate_group(group, {"order_total": 50, "country": "CA"})
        assert not result.matched
        assert [r.rule.id for r in result.rules] == ["r1"]

    def test_skipped_rules_excluded(self):
        """Test a skipped rule does not block the other rules."""
        catalogue = make_catalogue(
            "shop",
            arg_condition("order_total", ValueType.NUMBER),
            arg_condition(
                "coupon", ValueType.TEXT, required_arguments=frozenset({"coupon"}),
            ),
        )
        group = make_group(make_rule("order_total", ">", 100), make_rule("coupon", "==", "X"))
        result = RuleEvaluator(catalogue).evaluate_group(group, {"order_total": 150})
        assert result.matched
        assert result.missing_arguments == ["coupon"]

    def test_all_skipped_group_matches(self):
        """Test a group whose rules were all skipped matches (vacuous AND)."""
        catalogue = make_catalogue(
            "shop",
            arg_condition("coupon", ValueType.TEXT, required_arguments=frozenset({"coupon"})),
        )
        group = make_group(make_rule("coupon", "==", "X"))
        result = RuleEvaluator(catalogue).evaluate_group(group, {})
        assert result.matched
        assert result.all_skipped

    def test_empty_group_never_matches(self, evaluator):
        """Test a group with no rules does not match."""
        assert not evaluator.evaluate_group(make_group(), {}).matched

    def test_rule_order_preserved(self, evaluator):
        """Test rules are evaluated in stored order, not sorted."""
        group = make_group(
            make_rule("order_total", ">", 1, id="z"),
            make_rule("country", "==", "CA", id="a"),
        )
        result = evaluator.evaluate_group(group, {"order_total": 5, "country": "CA"})
        assert [r.rule.id for r in result.rules] == ["z", "a"]


# =============================================================================
# Rulesets
# =============================================================================

class TestEvaluateRuleset:
    """Tests for OR over groups."""

    def test_first_matching_group_wins(self, evaluator):
        """Test the matched group index is the first matching group."""
        ruleset = make_ruleset(
            "promo",
            make_group(make_rule("country", "==", "US")),
            make_group(make_rule("order_total", ">", 100)),
            make_group(make_rule("order_total", ">", 10)),
        )
        result = evaluator.evaluate_ruleset(ruleset, {"country": "CA", "order_total": 150})
        assert result.matched
        assert result.matched_group_index == 1
        assert len(result.groups) == 2

    def test_no_groups_never_matches(self, evaluator):
        """Test a ruleset with no groups does not match."""
        assert not evaluator.evaluate_ruleset(make_ruleset("empty"), {}).matched

    def test_match_result(self, evaluator):
        """Test conversion to a MatchResult."""
        ruleset = make_ruleset("promo", make_group(make_rule("is_member", "yes")))
        match = evaluator.evaluate_ruleset(ruleset, {"is_member": True}).to_match_result()
        assert match.ruleset_id == "promo"
        assert match.matched_group is ruleset.groups[0]


# =============================================================================
# First / All
# =============================================================================

class TestEvaluateFirstAndAll:
    """Tests for the evaluate_first / evaluate_all functions."""

    def test_order_total_end_to_end(self, shop_catalogue):
        """Test a single order_total > 100 rule end to end."""
        rulesets = [make_ruleset("big-order", make_group(make_rule("order_total", ">", 100)))]

        assert evaluate_first(shop_catalogue, rulesets, {"order_total": 150}).ruleset_id == "big-order"
        assert not evaluate_first(shop_catalogue, rulesets, {"order_total": 50})
        assert evaluate_all(shop_catalogue, rulesets, {"order_total": 50}).is_empty()

    def test_first_equals_first_of_all(self, shop_catalogue):
        """Test evaluate_first returns the first element of evaluate_all."""
        rulesets = [
            make_ruleset("a", make_group(make_rule("order_total", ">", 1000))),
            make_ruleset("b", make_group(make_rule("order_total", ">", 100))),
            make_ruleset("c", make_group(make_rule("order_total", ">", 10))),
        ]
        context = {"order_total": 150}
        all_matches = evaluate_all(shop_catalogue, rulesets, context)
        assert all_matches.ruleset_ids() == ["b", "c"]
        assert evaluate_first(shop_catalogue, rulesets, context).ruleset == all_matches.first().ruleset

    def test_first_stops_after_match(self):
        """Test rulesets after the first match are never evaluated."""
        calls = []

        def counted(ctx):
            calls.append(1)
            return 150

        catalogue = make_catalogue(
            "shop",
            ConditionDefinition(name="total", value_type=ValueType.NUMBER, value_resolver=counted),
        )
        rulesets = [
            make_ruleset(name, make_group(make_rule("total", ">", 100)))
            for name in ("a", "b", "c")
        ]

        assert evaluate_first(catalogue, rulesets, {}).ruleset_id == "a"
        assert len(calls) == 1

        calls.clear()
        assert evaluate_all(catalogue, rulesets, {}).count() == 3
        assert len(calls) == 3

    def test_unit_change_flips_outcome(self):
        """Test changing only the unit of a number_unit rule changes the outcome."""
        catalogue = Catalogue("users")
        catalogue.register_builtin("account_age")
        context = {"user_registered": "2024-01-01T00:00:00+00:00", "now": "2024-01-11T00:00:00+00:00"}

        in_days = make_ruleset("r", make_group(make_rule("account_age", ">", {"number": 5, "unit": "day"})))
        in_weeks = make_ruleset("r", make_group(make_rule("account_age", ">", {"number": 5, "unit": "week"})))

        assert evaluate_first(catalogue, [in_days], context)
        assert not evaluate_first(catalogue, [in_weeks], context)

    def test_uncompilable_regex_does_not_stop_later_rulesets(self, shop_catalogue):
        """Test a ruleset with an uncompilable regex is passed over, not fatal."""
        rulesets = [
            make_ruleset("bad-coupon", make_group(make_rule("coupon", "regex", "a{4294967296}"))),
            make_ruleset("big-order", make_group(make_rule("order_total", ">", 100))),
        ]
        context = {"coupon": "aaa", "order_total": 150}

        assert evaluate_first(shop_catalogue, rulesets, context).ruleset_id == "big-order"
        assert evaluate_all(shop_catalogue, rulesets, context).ruleset_ids() == ["big-order"]

    def test_comparator_error_does_not_stop_later_rulesets(self, badge_catalogue):
        """Test a raising comparator only fails its own rule."""
        rulesets = [
            make_ruleset("gold", make_group(make_rule("badges", "any_exact", ["gold"]))),
            make_ruleset("big-order", make_group(make_rule("order_total", ">", 100))),
        ]
        context = {"badges": "gold", "order_total": 150}

        assert evaluate_first(badge_catalogue, rulesets, context).ruleset_id == "big-order"
        assert evaluate_all(badge_catalogue, rulesets, context).ruleset_ids() == ["big-order"]

    def test_none_context(self, shop_catalogue):
        """Test a None context behaves like an empty context."""
        rulesets = [make_ruleset("m", make_group(make_rule("is_member", "no")))]
        assert evaluate_first(shop_catalogue, rulesets, None)

    def test_explain_includes_non_matches(self, shop_catalogue):
        """Test explain() returns records for every ruleset."""
        rulesets = [
            make_ruleset("a", make_group(make_rule("order_total", ">", 1000))),
            make_ruleset("b", make_group(make_rule("order_total", ">", 100))),
        ]
        records = explain(shop_catalogue, rulesets, {"order_total": 150})
        assert [r.matched for r in records] == [False, True]
