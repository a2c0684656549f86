"""
Tests for the rulegate CLI

Tests cover:
- validate / conditions / evaluate commands
- Exit codes (0 match, 1 no match, 2 error)
- Context input forms
"""
import json
from pathlib import Path

import pytest
import yaml

from rulegate.cli import EXIT_ERROR, EXIT_MATCH, EXIT_NO_MATCH, main

DISCOUNTS_PACK = str(Path(__file__).parent.parent / "packs" / "discounts.yaml")


@pytest.fixture(autouse=True)
def _quiet_logging(restore_rulegate_logger):
    yield


def run(capsys, *argv):
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, json.loads(out) if out.strip() else None


class TestValidate:
    """Tests for the validate command."""

    def test_valid_pack(self, capsys):
        """Test a valid pack reports its counts."""
        code, output = run(capsys, "validate", DISCOUNTS_PACK)
        assert code == EXIT_MATCH
        assert output["valid"] is True
        assert output["packs"][0]["set_id"] == "discounts"
        assert output["packs"][0]["rulesets"] == 5

    def test_invalid_pack(self, capsys, tmp_path):
        """Test an invalid pack reports a structured error."""
        path = tmp_path / "bad.yaml"
        path.write_text(yaml.safe_dump({"set_id": "x", "rulesets": [{"title": "no id"}]}))
        code, output = run(capsys, "validate", str(path))
        assert code == EXIT_ERROR
        assert output["error"]["code"] == "RG_PACK_VALIDATION_ERROR"

    def test_version_mismatch_and_lenient(self, capsys, tmp_path):
        """Test --lenient accepts another major version."""
        path = tmp_path / "v2.yaml"
        path.write_text(yaml.safe_dump({"schema_version": "2.0.0", "set_id": "x"}))

        code, output = run(capsys, "validate", str(path))
        assert code == EXIT_ERROR
        assert output["error"]["code"] == "RG_PACK_VERSION_MISMATCH"

        code, _ = run(capsys, "--lenient", "validate", str(path))
        assert code == EXIT_MATCH


class TestConditions:
    """Tests for the conditions command."""

    def test_lists_conditions(self, capsys):
        """Test condition listing includes built-ins and their groups."""
        code, output = run(capsys, "conditions", DISCOUNTS_PACK)
        assert code == EXIT_MATCH
        by_name = {c["name"]: c for c in output["conditions"]}
        assert by_name["day_of_week"]["group"] == "Date & Time"
        assert by_name["order_total"]["operators"] == [">", ">=", "<", "<="]


class TestEvaluate:
    """Tests for the evaluate command."""

    def test_first_match(self, capsys):
        """Test single-match output and exit code."""
        code, output = run(
            capsys, "evaluate", DISCOUNTS_PACK, "--context", '{"order_total": 150}',
        )
        assert code == EXIT_MATCH
        assert output["ruleset_id"] == "big-order"

    def test_no_match(self, capsys):
        """Test exit code 1 when nothing matches."""
        context = '{"order_total": 10, "user_registered": "2024-06-01", "now": "2024-06-12"}'
        code, output = run(capsys, "evaluate", DISCOUNTS_PACK, "--context", context)
        assert code == EXIT_NO_MATCH
        assert output["matched"] is False

    def test_all_from_yaml_file(self, capsys, tmp_path):
        """Test --all with a YAML context file."""
        path = tmp_path / "context.yaml"
        path.write_text(yaml.safe_dump({
            "order_total": 150,
            "user_email": "kim@shop.example",
            "user_registered": "2020-01-01",
        }))
        code, output = run(capsys, "evaluate", DISCOUNTS_PACK, "--context", str(path), "--all")
        assert code == EXIT_MATCH
        assert [m["ruleset_id"] for m in output["matches"]] == [
            "big-order", "loyal-customer", "staff",
        ]

    def test_status_any_includes_drafts(self, capsys):
        """Test --status any evaluates draft rulesets."""
        context = '{"cart_categories": ["hats"], "user_registered": "2024-06-01", "now": "2024-06-12"}'
        code, output = run(
            capsys, "evaluate", DISCOUNTS_PACK, "--context", context, "--all", "--status", "any",
        )
        assert code == EXIT_MATCH
        assert [m["ruleset_id"] for m in output["matches"]] == ["hats-clearance"]

    def test_explain(self, capsys):
        """Test --explain prints every ruleset with rule outcomes."""
        code, output = run(
            capsys, "evaluate", DISCOUNTS_PACK, "--context", '{"order_total": 150}', "--explain",
        )
        assert code == EXIT_MATCH
        big_order = next(e for e in output if e["ruleset_id"] == "big-order")
        assert big_order["groups"][0]["rules"][0]["outcome"] == "true"

    def test_invalid_context(self, capsys):
        """Test an unreadable context exits with an error."""
        code, output = run(capsys, "evaluate", DISCOUNTS_PACK, "--context", "missing.json")
        assert code == EXIT_ERROR
        assert output["error"]["code"] == "RG_CONTEXT_ERROR"

    def test_context_must_be_object(self, capsys, tmp_path):
        """Test a non-object context is rejected."""
        path = tmp_path / "context.json"
        path.write_text("[1, 2]")
        code, output = run(capsys, "evaluate", DISCOUNTS_PACK, "--context", str(path))
        assert code == EXIT_ERROR


class TestMain:
    """Tests for top-level argument handling."""

    def test_no_command(self, capsys):
        """Test running without a command prints help and fails."""
        assert main([]) == EXIT_ERROR
        assert "usage" in capsys.readouterr().out.lower()
