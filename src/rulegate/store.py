"""
RuleGate Ruleset Storage

The engine reads persisted rulesets through the RulesetStore protocol and
never writes to storage. InMemoryRulesetStore is the reference
implementation used by rule packs, the CLI and tests.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional, Protocol, Sequence, runtime_checkable

from .config import get_settings
from .models import Ruleset

_UNSET: Any = object()


@dataclass(frozen=True)
class RulesetQuery:
    """
    Storage query for one condition set.

    Attributes:
        status: Required ruleset status; None matches any status.
            Defaults to the configured default status (RG_DEFAULT_STATUS).
        limit: Maximum number of rulesets returned
        metadata: Metadata key/value pairs that must all be equal
    """
    status: Optional[str] = _UNSET
    limit: Optional[int] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.status is _UNSET:
            object.__setattr__(self, "status", get_settings().default_status)
        if self.limit is not None and self.limit < 0:
            raise ValueError(f"limit must be non-negative, got {self.limit}")

    def accepts(self, ruleset: Ruleset) -> bool:
        if self.status is not None and ruleset.status != self.status:
            return False
        return all(ruleset.get_meta(k, _UNSET) == v for k, v in self.metadata.items())


@runtime_checkable
class RulesetStore(Protocol):
    """Read-only source of persisted rulesets."""

    def fetch(self, set_id: str, query: Optional[RulesetQuery] = None) -> Sequence[Ruleset]:
        """Return the rulesets of a condition set in evaluation order."""
        ...


class InMemoryRulesetStore:
    """
    Rulesets held in memory, keyed by condition set ID.

    fetch() returns rulesets accepted by the query, sorted by `order`
    and then by insertion.

    Usage:
        store = InMemoryRulesetStore()
        store.add("discounts", Ruleset(id="summer", groups=[...]))
        store.fetch("discounts")
    """

    def __init__(self, rulesets: Optional[dict[str, Iterable[Ruleset]]] = None) -> None:
        self._rulesets: dict[str, list[Ruleset]] = {}
        for set_id, items in (rulesets or {}).items():
            self.add_many(set_id, items)

    def add(self, set_id: str, ruleset: Ruleset) -> Ruleset:
        """
        Add a ruleset to a condition set.

        Raises:
            ValueError: If a ruleset with the same ID is already stored for set_id
        """
        existing = self._rulesets.setdefault(set_id, [])
        if any(r.id == ruleset.id for r in existing):
            raise ValueError(f"Ruleset '{ruleset.id}' already exists in set '{set_id}'")
        existing.append(ruleset)
        return ruleset

    def add_many(self, set_id: str, rulesets: Iterable[Ruleset]) -> None:
        for ruleset in rulesets:
            self.add(set_id, ruleset)

    def get(self, set_id: str, ruleset_id: str) -> Optional[Ruleset]:
        for ruleset in self._rulesets.get(set_id, []):
            if ruleset.id == ruleset_id:
                return ruleset
        return None

    def set_ids(self) -> list[str]:
        return list(self._rulesets)

    def fetch(self, set_id: str, query: Optional[RulesetQuery] = None) -> Sequence[Ruleset]:
        query = query or RulesetQuery()
        # sorted() is stable, so equal orders keep insertion order.
        selected = sorted(
            (r for r in self._rulesets.get(set_id, []) if query.accepts(r)),
            key=lambda r: r.order,
        )
        if query.limit is not None:
            selected = selected[:query.limit]
        return selected

    def __len__(self) -> int:
        return sum(len(items) for items in self._rulesets.values())


__all__ = [
    "InMemoryRulesetStore",
    "RulesetQuery",
    "RulesetStore",
]
