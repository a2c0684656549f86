"""
Typed Comparison Functions

One comparator per value-type family. Each has the signature

    compare_x(operator, live, threshold) -> bool

where `live` is the fact resolved at evaluation time and `threshold` is
the value authored in the rule. Each family also has a validator used
before comparison: an invalid threshold compares False.

Comparators never raise. Unknown operators compare False.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional

from .patterns import (
    EmailAddress,
    ip_matches_any,
    is_valid_email_pattern,
    is_valid_ip_pattern,
    split_patterns,
)

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")
_DELIMITED_REGEX_RE = re.compile(r"^/(.*)/([imsx]*)$", re.DOTALL)
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}
_TRUE_STRINGS = {"1", "true", "yes", "on"}


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def coerce_number(value: Any) -> Optional[Decimal]:
    """Coerce a value to Decimal; None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def coerce_date(value: Any) -> Optional[date]:
    """Coerce a date, datetime or ISO string (YYYY-MM-DD...) to a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) >= 10:
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def coerce_time(value: Any) -> Optional[str]:
    """Coerce a time to a zero-padded HH:MM:SS string."""
    if isinstance(value, datetime):
        value = value.time()
    if isinstance(value, time):
        return value.strftime("%H:%M:%S")
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hour, minute, second = int(match.group(1)), int(match.group(2)), int(match.group(3) or 0)
    if hour > 23 or minute > 59 or second > 59:
        return None
    return f"{hour:02d}:{minute:02d}:{second:02d}"


def is_truthy(value: Any) -> bool:
    """Truthiness with string handling ('false', '0', 'no', 'off' are false)."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def as_string_set(value: Any) -> frozenset[str]:
    """Normalize a scalar or collection to a deduplicated set of strings."""
    if value is None:
        return frozenset()
    if isinstance(value, (list, tuple, set, frozenset)):
        return frozenset(str(v) for v in value if v is not None)
    if isinstance(value, str) and value == "":
        return frozenset()
    return frozenset([str(value)])


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def compile_regex(pattern: Any) -> Optional[re.Pattern[str]]:
    """Compile a plain or /delimited/flags pattern; None when invalid."""
    if not isinstance(pattern, str) or not pattern:
        return None
    flags = 0
    delimited = _DELIMITED_REGEX_RE.match(pattern)
    if delimited:
        pattern = delimited.group(1)
        for flag in delimited.group(2):
            flags |= _REGEX_FLAGS[flag]
    try:
        return re.compile(pattern, flags)
    except (re.error, OverflowError, RecursionError):
        return None


# ---------------------------------------------------------------------------
# Validators
# ---------------------------------------------------------------------------

def always_valid(threshold: Any) -> bool:
    return True


def valid_text(threshold: Any) -> bool:
    return threshold is None or isinstance(threshold, (str, int, float, Decimal))


def valid_number(threshold: Any) -> bool:
    return coerce_number(threshold) is not None


def valid_date(threshold: Any) -> bool:
    return coerce_date(threshold) is not None


def valid_time(threshold: Any) -> bool:
    return coerce_time(threshold) is not None


def valid_scalar(threshold: Any) -> bool:
    return threshold is not None and not isinstance(threshold, (list, tuple, set, frozenset, dict))


def valid_collection(threshold: Any) -> bool:
    return bool(as_string_set(threshold))


def valid_tags(threshold: Any) -> bool:
    if isinstance(threshold, (list, tuple, set, frozenset)):
        return all(isinstance(t, str) for t in threshold)
    return isinstance(threshold, str)


def valid_ip_patterns(threshold: Any) -> bool:
    return any(is_valid_ip_pattern(p) for p in split_patterns(threshold))


def valid_email_patterns(threshold: Any) -> bool:
    return any(is_valid_email_pattern(p) for p in split_patterns(threshold))


# ---------------------------------------------------------------------------
# Comparators
# ---------------------------------------------------------------------------

def compare_text(operator: str, live: Any, threshold: Any) -> bool:
    """Case-sensitive text comparison."""
    if operator == "empty":
        return not live
    if operator == "not_empty":
        return bool(live)

    actual = _as_text(live)

    if operator == "regex":
        pattern = compile_regex(threshold)
        return bool(pattern and pattern.search(actual))

    expected = _as_text(threshold)

    if operator == "==":
        return actual == expected
    if operator == "!=":
        return actual != expected
    if operator == "contains":
        return expected in actual
    if operator == "not_contains":
        return expected not in actual
    if operator == "starts_with":
        return actual.startswith(expected)
    if operator == "ends_with":
        return actual.endswith(expected)
    return False


def compare_numeric(operator: str, live: Any, threshold: Any) -> bool:
    """Numeric comparison; any non-numeric operand compares False."""
    actual = coerce_number(live)
    expected = coerce_number(threshold)
    if actual is None or expected is None:
        return False
    return _ordered(operator, actual, expected, allow_inclusive=True)


def compare_boolean(operator: str, live: Any, threshold: Any) -> bool:
    """yes/no on the live value's truthiness; the threshold is not read."""
    if operator == "yes":
        return is_truthy(live)
    if operator == "no":
        return not is_truthy(live)
    return False


def compare_date(operator: str, live: Any, threshold: Any) -> bool:
    actual = coerce_date(live)
    expected = coerce_date(threshold)
    if actual is None or expected is None:
        return False
    return _ordered(operator, actual, expected, allow_inclusive=True)


def compare_time(operator: str, live: Any, threshold: Any) -> bool:
    # Zero-padded HH:MM:SS strings order lexicographically.
    actual = coerce_time(live)
    expected = coerce_time(threshold)
    if actual is None or expected is None:
        return False
    return _ordered(operator, actual, expected, allow_inclusive=False)


def compare_equality(operator: str, live: Any, threshold: Any) -> bool:
    """Exact match against one stored scalar (string-normalized)."""
    if operator == "==":
        return _as_text(live) == _as_text(threshold)
    if operator == "!=":
        return _as_text(live) != _as_text(threshold)
    return False


def compare_collection(operator: str, live: Any, threshold: Any) -> bool:
    """
    Set comparison between live and authored values.

    any (or ==): the sets intersect
    none (or !=): the sets are disjoint
    all: every authored value is present in the live set
    """
    actual = as_string_set(live)
    expected = as_string_set(threshold)

    if operator in ("any", "=="):
        return bool(actual & expected)
    if operator in ("none", "!="):
        return not (actual & expected)
    if operator == "all":
        return bool(expected) and expected <= actual
    return False


def compare_tags(operator: str, live: Any, threshold: Any) -> bool:
    """
    Match the live string against a set of authored patterns.

    Operators are <polarity>_<mode>: polarity any/none, mode
    exact/contains/starts/ends. Case-insensitive; blank patterns ignored.
    """
    polarity, _, mode = operator.partition("_")
    if polarity not in ("any", "none") or mode not in ("exact", "contains", "starts", "ends"):
        return False

    subject = _as_text(live).lower()
    patterns = [p.lower() for p in _tag_patterns(threshold)]
    matched = any(_tag_match(mode, subject, p) for p in patterns)
    return matched if polarity == "any" else not matched


def _tag_patterns(threshold: Any) -> Iterable[str]:
    if isinstance(threshold, str):
        threshold = [threshold]
    return [t.strip() for t in threshold or [] if isinstance(t, str) and t.strip()]


def _tag_match(mode: str, subject: str, pattern: str) -> bool:
    if mode == "exact":
        return subject == pattern
    if mode == "contains":
        return pattern in subject
    if mode == "starts":
        return subject.startswith(pattern)
    return subject.endswith(pattern)


def compare_ip(operator: str, live: Any, threshold: Any) -> bool:
    """Exact, CIDR and wildcard IP matching."""
    if operator not in ("ip_match", "ip_not_match"):
        return False
    if not live:
        return operator == "ip_not_match"
    matched = ip_matches_any(live, split_patterns(threshold))
    return matched if operator == "ip_match" else not matched


def compare_email(operator: str, live: Any, threshold: Any) -> bool:
    """Full-address, domain, bare-domain and TLD email matching."""
    if operator not in ("email_match", "email_not_match"):
        return False
    email = EmailAddress.parse(live)
    if email is None:
        return operator == "email_not_match"
    matched = email.matches_any(split_patterns(threshold))
    return matched if operator == "email_match" else not matched


def _ordered(operator: str, actual: Any, expected: Any, allow_inclusive: bool) -> bool:
    if operator == "==":
        return actual == expected
    if operator == "!=":
        return actual != expected
    if operator == ">":
        return actual > expected
    if operator == "<":
        return actual < expected
    if allow_inclusive:
        if operator == ">=":
            return actual >= expected
        if operator == "<=":
            return actual <= expected
    return False


__all__ = [
    "as_string_set",
    "coerce_date",
    "coerce_number",
    "coerce_time",
    "compile_regex",
    "is_truthy",
    "compare_boolean",
    "compare_collection",
    "compare_date",
    "compare_email",
    "compare_equality",
    "compare_ip",
    "compare_numeric",
    "compare_tags",
    "compare_text",
    "compare_time",
]
