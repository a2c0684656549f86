"""
RuleGate Rule Pack Schemas

Pydantic models for validating rule pack YAML/JSON files.

A rule pack carries one condition set: the conditions its rules may
reference and the persisted rulesets themselves. Conditions in a pack are
data only, so they read live values from context keys (argument_key) or
name a built-in condition; resolver callbacks are registered in code.

Schema versioning:
- schema_version field tracks breaking changes
- Loaders reject packs whose major version differs (unless not strict)
"""
from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# Schema Version
# =============================================================================

SCHEMA_VERSION = "1.0.0"


# =============================================================================
# Enums as Literals (for YAML validation)
# =============================================================================

ValueTypeValue = Literal[
    "text", "number", "number_unit", "text_unit",
    "select", "multi_select", "boolean", "date", "time",
    "ip", "email", "tags", "reference", "reference_multi",
]


# =============================================================================
# Condition Schemas
# =============================================================================

class OptionSchema(BaseModel):
    """One selectable value for select types or units."""
    value: Union[str, int]
    label: Optional[str] = None


class ConditionSchema(BaseModel):
    """
    Schema for a condition definition.

    Either reads a context key (argument_key) or names a built-in
    condition (builtin). Boolean conditions may set neither, in which
    case the context key is the condition name.
    """
    name: Optional[str] = Field(None, description="Unique condition name (defaults to builtin)")
    builtin: Optional[str] = Field(None, description="Name of a built-in condition")

    label: Optional[str] = None
    group: Optional[str] = None
    type: ValueTypeValue = Field("text", description="Value type")
    operators: Optional[list[str]] = Field(
        None, description="Explicit operator set (defaults to the type's operators)"
    )
    argument_key: Optional[str] = Field(None, description="Context key holding the live value")
    required_arguments: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    options: Optional[list[OptionSchema]] = None
    units: Optional[list[OptionSchema]] = None

    model_config = {
        "extra": "forbid",
    }

    @model_validator(mode="after")
    def validate_source(self) -> "ConditionSchema":
        """Validate that the condition has exactly one live value source."""
        if self.builtin:
            if self.name and self.name != self.builtin:
                raise ValueError(
                    f"Built-in condition '{self.builtin}' cannot be renamed to '{self.name}'"
                )
            if self.argument_key:
                raise ValueError(f"Built-in condition '{self.builtin}' cannot set argument_key")
            self.name = self.builtin
            return self

        if not self.name:
            raise ValueError("Condition requires 'name' or 'builtin'")
        if not self.argument_key and self.type != "boolean":
            raise ValueError(f"Condition '{self.name}' requires 'argument_key'")
        return self

    def to_config(self) -> dict[str, Any]:
        """Keyword configuration accepted by Catalogue.register_config()."""
        config: dict[str, Any] = {
            "type": self.type,
            "argument_key": self.argument_key,
            "required_arguments": self.required_arguments,
        }
        for key in ("label", "group", "description", "operators"):
            value = getattr(self, key)
            if value is not None:
                config[key] = value
        if self.options is not None:
            config["options"] = [o.model_dump(exclude_none=True) for o in self.options]
        if self.units is not None:
            config["units"] = [u.model_dump(exclude_none=True) for u in self.units]
        return config


# =============================================================================
# Ruleset Schemas
# =============================================================================

class RuleSchema(BaseModel):
    """Schema for one authored comparison."""
    id: Optional[str] = None
    condition: str = Field(..., description="Condition name")
    operator: str = Field(..., description="Operator (must be allowed for the condition)")
    value: Any = Field(None, description="Threshold; {number|text, unit} for unit types")

    model_config = {
        "extra": "forbid",
    }


class GroupSchema(BaseModel):
    """Rules combined with AND."""
    rules: list[RuleSchema] = Field(default_factory=list)


class RulesetSchema(BaseModel):
    """Schema for a persisted ruleset (groups combined with OR)."""
    id: str = Field(..., description="Unique ruleset identifier")
    title: str = ""
    status: Optional[str] = Field(None, description="Publication status (defaults to RG_DEFAULT_STATUS)")
    order: int = Field(0, description="Evaluation order (ascending)")
    metadata: dict[str, Any] = Field(default_factory=dict)
    groups: list[GroupSchema] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",
    }


# =============================================================================
# Rule Pack Schema
# =============================================================================

class RulePackSchema(BaseModel):
    """Top-level schema for a rule pack YAML/JSON file."""
    schema_version: str = Field(SCHEMA_VERSION, description="Schema version for compatibility")
    set_id: str = Field(..., min_length=1, description="Condition set identifier")
    name: Optional[str] = Field(None, description="Human-readable name")
    description: Optional[str] = None

    conditions: list[Union[str, ConditionSchema]] = Field(
        default_factory=list,
        description="Condition definitions or built-in condition names",
    )
    rulesets: list[RulesetSchema] = Field(default_factory=list)

    model_config = {
        "extra": "forbid",  # Reject unknown fields
    }


# =============================================================================
# Validation Helpers
# =============================================================================

def validate_rule_pack(data: dict[str, Any]) -> RulePackSchema:
    """
    Validate a rule pack dictionary against the schema.

    Raises:
        pydantic.ValidationError: If validation fails
    """
    return RulePackSchema.model_validate(data)


def check_schema_version(data: dict[str, Any]) -> bool:
    """Check that a rule pack's major schema version matches this release."""
    pack_version = str(data.get("schema_version", SCHEMA_VERSION))
    return pack_version.split(".")[0] == SCHEMA_VERSION.split(".")[0]
