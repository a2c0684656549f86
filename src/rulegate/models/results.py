"""
RuleGate Match Results

- MatchResult: outcome of single-match evaluation
- MatchResultCollection: every match of a multi-match evaluation

A collection is materialised once; iterating it again replays the same
results rather than re-running evaluation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, TypeVar

from .rules import Group, Ruleset

T = TypeVar("T")


@dataclass(frozen=True)
class MatchResult:
    """
    Result of matching one condition set against a context.

    Attributes:
        matched: Whether any ruleset matched
        ruleset: The matching ruleset (None when nothing matched)
        matched_group_index: Index of the first matching group within it
    """
    matched: bool
    ruleset: Optional[Ruleset] = None
    matched_group_index: Optional[int] = None

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls(matched=False)

    def __bool__(self) -> bool:
        return self.matched

    @property
    def ruleset_id(self) -> Optional[str]:
        return self.ruleset.id if self.ruleset else None

    @property
    def title(self) -> Optional[str]:
        return self.ruleset.title if self.ruleset else None

    @property
    def matched_group(self) -> Optional[Group]:
        if self.ruleset is None or self.matched_group_index is None:
            return None
        return self.ruleset.groups[self.matched_group_index]

    def get_meta(self, key: str, default: Any = None) -> Any:
        """Read an annotation from the matched ruleset's metadata."""
        if self.ruleset is None:
            return default
        return self.ruleset.get_meta(key, default)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched": self.matched,
            "ruleset_id": self.ruleset_id,
            "title": self.title,
            "matched_group_index": self.matched_group_index,
        }


class MatchResultCollection:
    """
    Ordered, finite, restartable sequence of matches.

    Usage:
        matches = matcher.evaluate_all("discounts", context)
        if matches.has_matches():
            best = matches.first()
        pct = sum(matches.map(lambda m: m.get_meta("percent", 0)))
    """

    def __init__(self, results: Iterable[MatchResult] = ()) -> None:
        self._results: tuple[MatchResult, ...] = tuple(results)

    def __iter__(self) -> Iterator[MatchResult]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __bool__(self) -> bool:
        return bool(self._results)

    def __getitem__(self, index: int) -> MatchResult:
        return self._results[index]

    def __repr__(self) -> str:
        return f"MatchResultCollection({list(self.ruleset_ids())!r})"

    def has_matches(self) -> bool:
        return bool(self._results)

    def is_empty(self) -> bool:
        return not self._results

    def count(self) -> int:
        return len(self._results)

    def get_all(self) -> list[MatchResult]:
        return list(self._results)

    def first(self) -> Optional[MatchResult]:
        return self._results[0] if self._results else None

    def last(self) -> Optional[MatchResult]:
        return self._results[-1] if self._results else None

    def filter(self, predicate: Callable[[MatchResult], bool]) -> MatchResultCollection:
        """Return a new collection holding the matches the predicate accepts."""
        return MatchResultCollection(r for r in self._results if predicate(r))

    def map(self, fn: Callable[[MatchResult], T]) -> list[T]:
        return [fn(r) for r in self._results]

    def ruleset_ids(self) -> list[str]:
        return [r.ruleset.id for r in self._results if r.ruleset is not None]

    def titles(self) -> list[str]:
        return [r.ruleset.title for r in self._results if r.ruleset is not None and r.ruleset.title]

    def rulesets(self) -> list[Ruleset]:
        return [r.ruleset for r in self._results if r.ruleset is not None]

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self._results]
