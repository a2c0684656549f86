"""
RuleGate Rule Pack Loader

Loads and validates rule packs from YAML or JSON files and converts them
into a Catalogue plus Rulesets.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from ..config import get_settings
from ..engine import Catalogue, CatalogueRegistry, Matcher
from ..exceptions import (
    PackLoadError,
    PackValidationError,
    PackVersionMismatch,
    RegistrationError,
)
from ..models import Group, Rule, Ruleset
from ..store import InMemoryRulesetStore
from .schema import (
    SCHEMA_VERSION,
    ConditionSchema,
    RulePackSchema,
    RulesetSchema,
    check_schema_version,
    validate_rule_pack,
)

logger = logging.getLogger(__name__)


@dataclass
class RulePack:
    """A loaded condition set: its catalogue and its rulesets."""
    set_id: str
    catalogue: Catalogue
    rulesets: list[Ruleset] = field(default_factory=list)
    name: Optional[str] = None
    description: Optional[str] = None
    schema_version: str = SCHEMA_VERSION
    source: Optional[str] = None

    def store(self) -> InMemoryRulesetStore:
        return InMemoryRulesetStore({self.set_id: self.rulesets})

    def matcher(self) -> Matcher:
        """Matcher over this pack alone. Freezes the pack's catalogue."""
        return Matcher(self.catalogue, self.store())


# =============================================================================
# Reference Integrity Validation
# =============================================================================

def validate_reference_integrity(pack: RulePack) -> list[str]:
    """
    Check that rulesets only reference what the catalogue defines.

    Catches:
    - Duplicate ruleset IDs
    - Rules referencing unknown conditions
    - Rules using operators the condition does not allow

    Returns:
        List of error messages (empty when the pack is consistent)
    """
    errors: list[str] = []
    seen: set[str] = set()

    for ruleset in pack.rulesets:
        if ruleset.id in seen:
            errors.append(f"Duplicate ruleset ID: '{ruleset.id}'")
        seen.add(ruleset.id)

        for g_index, group in enumerate(ruleset.groups):
            for rule in group.rules:
                where = f"ruleset '{ruleset.id}' group {g_index}"
                if rule.condition not in pack.catalogue:
                    errors.append(f"{where} references unknown condition '{rule.condition}'")
                elif rule.operator not in pack.catalogue.operators_for(rule.condition):
                    errors.append(
                        f"{where} uses operator '{rule.operator}' not allowed "
                        f"for condition '{rule.condition}'"
                    )

    return errors


# =============================================================================
# Schema to Model Converters
# =============================================================================

def _build_catalogue(schema: RulePackSchema) -> Catalogue:
    catalogue = Catalogue(schema.set_id)
    for condition in schema.conditions:
        if isinstance(condition, str):
            catalogue.register_builtin(condition)
        elif condition.builtin:
            catalogue.register_builtin(condition.builtin)
        else:
            catalogue.register_config(condition.name or "", **condition.to_config())
    return catalogue


def _convert_ruleset(schema: RulesetSchema, default_status: str) -> Ruleset:
    groups = []
    for group in schema.groups:
        rules = []
        for rule in group.rules:
            kwargs: dict[str, Any] = {
                "condition": rule.condition,
                "operator": rule.operator,
                "value": rule.value,
            }
            if rule.id:
                kwargs["id"] = rule.id
            rules.append(Rule(**kwargs))
        groups.append(Group(rules=tuple(rules)))

    return Ruleset(
        id=schema.id,
        title=schema.title,
        status=schema.status or default_status,
        order=schema.order,
        metadata=dict(schema.metadata),
        groups=tuple(groups),
    )


def _convert_rule_pack(schema: RulePackSchema, source: Optional[str] = None) -> RulePack:
    """
    Convert a validated schema to a RulePack.

    Raises:
        PackValidationError: If a condition cannot be registered or a
            ruleset references something the catalogue does not define
    """
    try:
        catalogue = _build_catalogue(schema)
    except RegistrationError as e:
        raise PackValidationError(
            message=f"Invalid condition definition: {e.message}",
            details={"error": e.to_dict(), "path": source},
            set_id=schema.set_id,
        ) from e

    default_status = get_settings().default_status
    pack = RulePack(
        set_id=schema.set_id,
        catalogue=catalogue,
        rulesets=[_convert_ruleset(r, default_status) for r in schema.rulesets],
        name=schema.name,
        description=schema.description,
        schema_version=schema.schema_version,
        source=source,
    )

    errors = validate_reference_integrity(pack)
    if errors:
        raise PackValidationError(
            message=f"Reference integrity validation failed: {len(errors)} errors",
            details={"errors": errors, "path": source},
            set_id=schema.set_id,
        )
    return pack


# =============================================================================
# Loader
# =============================================================================

class RulePackLoader:
    """
    Loads rule packs and keeps them by condition set ID.

    Usage:
        loader = RulePackLoader()
        loader.load("packs/discounts.yaml")
        loader.load("packs/banners.yaml")

        matcher = loader.matcher()
        matcher.evaluate_first("discounts", context)
    """

    def __init__(self, strict_version: Optional[bool] = None) -> None:
        if strict_version is None:
            strict_version = get_settings().strict_schema_version
        self.strict_version = strict_version
        self._packs: dict[str, RulePack] = {}

    def load(self, path: Union[str, Path]) -> RulePack:
        """
        Load a rule pack from a file.

        Raises:
            PackLoadError: If the file cannot be read or parsed
            PackValidationError: If validation fails
            PackVersionMismatch: If schema version incompatible
        """
        path = Path(path)

        try:
            data = self._load_file(path)
        except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
            raise PackLoadError(
                message=f"Failed to load rule pack: {e}",
                details={"path": str(path), "error": str(e)},
            ) from e

        return self.load_data(data, source=str(path))

    def load_string(self, content: str, format: str = "yaml") -> RulePack:
        """
        Load a rule pack from a YAML or JSON string.

        Raises:
            PackLoadError: If the content cannot be parsed
        """
        try:
            if format.lower() == "json":
                data = json.loads(content)
            else:
                data = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise PackLoadError(
                message=f"Failed to parse rule pack: {e}",
                details={"format": format, "error": str(e)},
            ) from e

        return self.load_data(data)

    def load_data(self, data: Any, source: Optional[str] = None) -> RulePack:
        """Validate already-parsed pack data and register the result."""
        if not isinstance(data, dict):
            raise PackLoadError(
                message="Rule pack must be a mapping at the top level",
                details={"path": source, "type": type(data).__name__},
            )

        if self.strict_version and not check_schema_version(data):
            pack_version = data.get("schema_version", "unknown")
            raise PackVersionMismatch(
                message=f"Schema version mismatch: pack has {pack_version}, expected {SCHEMA_VERSION}",
                details={
                    "pack_version": pack_version,
                    "expected_version": SCHEMA_VERSION,
                    "path": source,
                },
            )

        try:
            schema = validate_rule_pack(data)
        except ValidationError as e:
            raise PackValidationError(
                message=f"Rule pack validation failed: {e.error_count()} errors",
                details={
                    "errors": e.errors(include_url=False, include_context=False),
                    "path": source,
                },
            ) from e

        pack = _convert_rule_pack(schema, source)
        if pack.set_id in self._packs:
            raise PackValidationError(
                message=f"Condition set '{pack.set_id}' is already loaded",
                details={"path": source},
                set_id=pack.set_id,
            )
        self._packs[pack.set_id] = pack

        logger.info(
            "Loaded rule pack %s: %d conditions, %d rulesets",
            pack.set_id, len(pack.catalogue), len(pack.rulesets),
            extra={"set_id": pack.set_id},
        )
        return pack

    def _load_file(self, path: Path) -> Any:
        """Load data from YAML or JSON file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                return json.load(f)
            # YAML is a superset of JSON, so other suffixes are read as YAML.
            return yaml.safe_load(f)

    def get_pack(self, set_id: str) -> Optional[RulePack]:
        return self._packs.get(set_id)

    def list_packs(self) -> list[str]:
        return list(self._packs)

    def registry(self) -> CatalogueRegistry:
        registry = CatalogueRegistry()
        for pack in self._packs.values():
            registry.add(pack.catalogue)
        return registry

    def store(self) -> InMemoryRulesetStore:
        return InMemoryRulesetStore({p.set_id: p.rulesets for p in self._packs.values()})

    def matcher(self) -> Matcher:
        """Matcher over every loaded pack. Freezes their catalogues."""
        return Matcher(self.registry(), self.store())


# =============================================================================
# Convenience Functions
# =============================================================================

def load_rule_pack(path: Union[str, Path]) -> RulePack:
    """Load a rule pack from a file with a temporary loader."""
    return RulePackLoader().load(path)


def load_rule_pack_from_string(content: str, format: str = "yaml") -> RulePack:
    """Load a rule pack from a YAML or JSON string."""
    return RulePackLoader().load_string(content, format)
