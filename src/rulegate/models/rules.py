"""
RuleGate Rules, Groups and Rulesets

Persisted rule structures consumed by the evaluator:

- Rule: one authored comparison (condition + operator + threshold)
- Group: rules combined with AND
- Ruleset: groups combined with OR, plus identity and metadata owned by
  the storage collaborator

Rulesets are decoded from whatever encoding the storage layer uses; the
from_dict() constructors accept the plain nested-dict form:

    {
        "id": "summer-sale",
        "title": "Summer sale discount",
        "groups": [
            {"rules": [
                {"condition": "order_total", "operator": ">", "value": 100},
            ]},
        ],
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence
from uuid import uuid4

from .conditions import operator_key


@dataclass(frozen=True)
class Rule:
    """
    One authored comparison.

    Attributes:
        condition: Name of the ConditionDefinition this rule tests
        operator: Operator string (must be in the condition's operator set)
        value: Authored threshold; scalar, list, or {number|text, unit} mapping
        id: Stable identifier (generated when absent)
    """
    condition: str
    operator: str
    value: Any = None
    id: str = field(default_factory=lambda: uuid4().hex[:12])

    def __post_init__(self) -> None:
        object.__setattr__(self, "operator", operator_key(self.operator))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Rule:
        kwargs: dict[str, Any] = {
            "condition": str(data.get("condition") or ""),
            "operator": data.get("operator") or "",
            "value": data.get("value"),
        }
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return cls(**kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "condition": self.condition,
            "operator": self.operator,
            "value": self.value,
        }


@dataclass(frozen=True)
class Group:
    """An ordered list of rules combined with logical AND."""
    rules: tuple[Rule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "rules", tuple(self.rules))

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self):
        return iter(self.rules)

    @classmethod
    def from_dict(cls, data: Any) -> Group:
        """Accept either {"rules": [...]} or a bare list of rule dicts."""
        if isinstance(data, Mapping):
            raw_rules = data.get("rules") or []
        else:
            raw_rules = data or []
        return cls(rules=tuple(
            r if isinstance(r, Rule) else Rule.from_dict(r) for r in raw_rules
        ))

    def to_dict(self) -> dict[str, Any]:
        return {"rules": [r.to_dict() for r in self.rules]}


@dataclass(frozen=True)
class Ruleset:
    """
    A persisted rule entity: groups combined with logical OR.

    Attributes:
        id: Storage identity
        groups: Ordered groups; the first matching group wins
        title: Display title
        status: Publication status used by storage queries
        order: Storage sort key (ascending)
        metadata: Opaque annotations owned by the storage collaborator
    """
    id: str
    groups: tuple[Group, ...] = ()
    title: str = ""
    status: str = "active"
    order: int = 0
    metadata: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "groups", tuple(self.groups))

    def get_meta(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Ruleset:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            status=str(data.get("status") or "active"),
            order=int(data.get("order") or 0),
            groups=tuple(Group.from_dict(g) for g in data.get("groups") or []),
            metadata=dict(data.get("metadata") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status,
            "order": self.order,
            "groups": [g.to_dict() for g in self.groups],
            "metadata": dict(self.metadata),
        }


def rulesets_from_dicts(items: Optional[Sequence[Mapping[str, Any]]]) -> list[Ruleset]:
    """Decode a sequence of ruleset dicts, preserving order."""
    return [Ruleset.from_dict(item) for item in items or []]
