"""
RuleGate CLI

Validate rule packs, list their conditions, and evaluate them against a
context:

    rulegate validate packs/discounts.yaml
    rulegate conditions packs/discounts.yaml
    rulegate evaluate packs/discounts.yaml --context '{"order_total": 150}'
    rulegate evaluate packs/discounts.yaml --context context.json --all

Output is JSON on stdout; logs go to stderr.

Exit codes:
    0  valid pack / at least one match
    1  no match
    2  error
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import yaml

from . import __version__
from .exceptions import RuleGateError
from .logging_config import configure_logging
from .packs import RulePackLoader
from .store import RulesetQuery

EXIT_MATCH = 0
EXIT_NO_MATCH = 1
EXIT_ERROR = 2


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _read_context(value: str) -> dict[str, Any]:
    """
    Read an evaluation context from inline JSON, a JSON/YAML file, or stdin ("-").

    Raises:
        ValueError: If the context cannot be read or is not a mapping
    """
    if value == "-":
        data = json.load(sys.stdin)
    elif value.lstrip().startswith("{"):
        data = json.loads(value)
    else:
        path = Path(value)
        if not path.is_file():
            raise ValueError(f"Context file not found: {value}")
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() in {".yaml", ".yml"}:
                data = yaml.safe_load(f)
            else:
                data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError("Context must be a JSON object")
    return data


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate one or more rule packs."""
    loader = RulePackLoader(strict_version=not args.lenient)
    reports = []
    for path in args.packs:
        pack = loader.load(path)
        reports.append({
            "path": path,
            "set_id": pack.set_id,
            "schema_version": pack.schema_version,
            "conditions": len(pack.catalogue),
            "rulesets": len(pack.rulesets),
        })
    _emit({"valid": True, "packs": reports})
    return EXIT_MATCH


def cmd_conditions(args: argparse.Namespace) -> int:
    """List the conditions a rule pack defines."""
    pack = RulePackLoader(strict_version=not args.lenient).load(args.pack)
    _emit({"set_id": pack.set_id, "conditions": pack.catalogue.describe()})
    return EXIT_MATCH


def cmd_evaluate(args: argparse.Namespace) -> int:
    """Evaluate a rule pack against a context."""
    try:
        context = _read_context(args.context)
    except (ValueError, OSError, yaml.YAMLError) as e:
        _emit({"error": {"code": "RG_CONTEXT_ERROR", "message": str(e)}})
        return EXIT_ERROR

    pack = RulePackLoader(strict_version=not args.lenient).load(args.pack)
    matcher = pack.matcher()

    if args.status is None:
        query = RulesetQuery()
    else:
        query = RulesetQuery(status=None if args.status == "any" else args.status)

    if args.explain:
        evaluations = matcher.explain(pack.set_id, context, query)
        _emit([
            {
                "ruleset_id": e.ruleset.id,
                "matched": e.matched,
                "matched_group_index": e.matched_group_index,
                "groups": [
                    {
                        "index": g.index,
                        "matched": g.matched,
                        "rules": [
                            {
                                "rule_id": r.rule.id,
                                "outcome": r.outcome.value,
                                "explanation": r.explanation,
                            }
                            for r in g.rules
                        ],
                    }
                    for g in e.groups
                ],
            }
            for e in evaluations
        ])
        return EXIT_MATCH if any(e.matched for e in evaluations) else EXIT_NO_MATCH

    if args.all:
        matches = matcher.evaluate_all(pack.set_id, context, query)
        _emit({"set_id": pack.set_id, "count": matches.count(), "matches": matches.to_list()})
        return EXIT_MATCH if matches.has_matches() else EXIT_NO_MATCH

    result = matcher.evaluate_first(pack.set_id, context, query)
    _emit({"set_id": pack.set_id, **result.to_dict()})
    return EXIT_MATCH if result else EXIT_NO_MATCH


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RuleGate condition matching CLI",
        prog="rulegate",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Log level (default: RG_LOG_LEVEL)")
    parser.add_argument(
        "--log-format",
        choices=("json", "text"),
        default=None,
        help="Log format (default: RG_LOG_FORMAT)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Accept rule packs with a different schema major version",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate rule packs")
    validate_parser.add_argument("packs", nargs="+", help="Rule pack files (YAML or JSON)")
    validate_parser.set_defaults(func=cmd_validate)

    # Conditions command
    conditions_parser = subparsers.add_parser("conditions", help="List a pack's conditions")
    conditions_parser.add_argument("pack", help="Rule pack file (YAML or JSON)")
    conditions_parser.set_defaults(func=cmd_conditions)

    # Evaluate command
    evaluate_parser = subparsers.add_parser("evaluate", help="Evaluate a pack against a context")
    evaluate_parser.add_argument("pack", help="Rule pack file (YAML or JSON)")
    evaluate_parser.add_argument(
        "--context",
        required=True,
        help="Context as inline JSON, a JSON/YAML file path, or '-' for stdin",
    )
    evaluate_parser.add_argument("--all", action="store_true", help="Return every match")
    evaluate_parser.add_argument(
        "--status",
        default=None,
        help="Ruleset status to evaluate ('any' for all statuses)",
    )
    evaluate_parser.add_argument(
        "--explain",
        action="store_true",
        help="Print per-rule outcomes for every ruleset",
    )
    evaluate_parser.set_defaults(func=cmd_evaluate)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_ERROR

    configure_logging(args.log_level, args.log_format)

    try:
        return args.func(args)
    except RuleGateError as e:
        _emit({"error": e.to_dict()})
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
