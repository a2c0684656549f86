"""
RuleGate Units

Time periods and measurement units for unit-qualified conditions.

Periods:
    Fixed-length multipliers in seconds (a month is 30 days, a year 365
    days). Unknown period names fall back to days.

Measurements:
    Option lists for authoring tools plus conversion within one family
    (weight, length, distance, volume, data).
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
YEAR = 365 * DAY

PERIOD_SECONDS: dict[str, int] = {
    "minute": MINUTE,
    "hour": HOUR,
    "day": DAY,
    "week": WEEK,
    "month": MONTH,
    "year": YEAR,
}


# =============================================================================
# Option Lists
# =============================================================================

def _options(*pairs: tuple[str, str]) -> list[dict[str, str]]:
    return [{"value": value, "label": label} for value, label in pairs]


PERIOD_UNITS = _options(
    ("minute", "Minute(s)"),
    ("hour", "Hour(s)"),
    ("day", "Day(s)"),
    ("week", "Week(s)"),
    ("month", "Month(s)"),
    ("year", "Year(s)"),
)

AGE_UNITS = PERIOD_UNITS[2:]

WEIGHT_UNITS = _options(
    ("g", "Grams (g)"),
    ("kg", "Kilograms (kg)"),
    ("oz", "Ounces (oz)"),
    ("lb", "Pounds (lb)"),
)

LENGTH_UNITS = _options(
    ("mm", "Millimeters (mm)"),
    ("cm", "Centimeters (cm)"),
    ("m", "Meters (m)"),
    ("in", "Inches (in)"),
    ("ft", "Feet (ft)"),
)

DISTANCE_UNITS = _options(
    ("m", "Meters (m)"),
    ("km", "Kilometers (km)"),
    ("mi", "Miles (mi)"),
)

VOLUME_UNITS = _options(
    ("ml", "Milliliters (ml)"),
    ("l", "Liters (L)"),
    ("fl_oz", "Fluid Ounces (fl oz)"),
    ("gal", "Gallons (gal)"),
)

DATA_UNITS = _options(
    ("kb", "Kilobytes (KB)"),
    ("mb", "Megabytes (MB)"),
    ("gb", "Gigabytes (GB)"),
    ("tb", "Terabytes (TB)"),
)


# =============================================================================
# Periods
# =============================================================================

def period_multiplier(unit: Optional[str]) -> int:
    """Seconds in one period; plural names are accepted, unknown names mean days."""
    name = (unit or "").strip().lower()
    if name.endswith("s") and name[:-1] in PERIOD_SECONDS:
        name = name[:-1]
    return PERIOD_SECONDS.get(name, DAY)


def to_seconds(unit: Optional[str], amount: Union[int, float]) -> int:
    return int(amount * period_multiplier(unit))


def from_seconds(seconds: Union[int, float], unit: Optional[str]) -> int:
    """Whole periods in a number of seconds (floored)."""
    return int(seconds // period_multiplier(unit))


def _as_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str) and value.strip():
        try:
            moment = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def age_in(start: Any, unit: Optional[str] = "day", now: Optional[datetime] = None) -> int:
    """
    Whole periods elapsed between start and now.

    start may be a datetime, date, Unix timestamp or ISO string. Returns 0
    for an unparsable start or a start in the future.
    """
    moment = _as_datetime(start)
    if moment is None:
        return 0
    current = _as_datetime(now) if now is not None else datetime.now(timezone.utc)
    if current is None:
        return 0
    diff = (current - moment).total_seconds()
    if diff < 0:
        return 0
    return from_seconds(diff, unit)


# =============================================================================
# Measurement Conversion
# =============================================================================

# Factors to each family's base unit: grams, millimeters, meters, milliliters, kilobytes.
_FAMILIES: dict[str, dict[str, Decimal]] = {
    "weight": {
        "g": Decimal("1"),
        "kg": Decimal("1000"),
        "oz": Decimal("28.349523125"),
        "lb": Decimal("453.59237"),
    },
    "length": {
        "mm": Decimal("1"),
        "cm": Decimal("10"),
        "m": Decimal("1000"),
        "in": Decimal("25.4"),
        "ft": Decimal("304.8"),
    },
    "distance": {
        "m": Decimal("1"),
        "km": Decimal("1000"),
        "mi": Decimal("1609.344"),
    },
    "volume": {
        "ml": Decimal("1"),
        "l": Decimal("1000"),
        "fl_oz": Decimal("29.5735295625"),
        "gal": Decimal("3785.411784"),
    },
    "data": {
        "kb": Decimal("1"),
        "mb": Decimal("1024"),
        "gb": Decimal("1048576"),
        "tb": Decimal("1073741824"),
    },
}

UNIT_OPTIONS: dict[str, list[dict[str, str]]] = {
    "period": PERIOD_UNITS,
    "age": AGE_UNITS,
    "weight": WEIGHT_UNITS,
    "length": LENGTH_UNITS,
    "distance": DISTANCE_UNITS,
    "volume": VOLUME_UNITS,
    "data": DATA_UNITS,
}


def unit_options(family: str) -> list[dict[str, str]]:
    """
    Option list for a unit family.

    Raises:
        KeyError: If the family is unknown
    """
    return [dict(option) for option in UNIT_OPTIONS[family]]


def convert(
    value: Union[int, float, Decimal, str],
    from_unit: str,
    to_unit: str,
    family: Optional[str] = None,
) -> Decimal:
    """
    Convert a measurement between two units of the same family.

    "m" is both a length and a distance unit; pass `family` to choose.
    Without it, the first family containing both units is used.

    Raises:
        ValueError: If no family contains both units
    """
    candidates = [family] if family else list(_FAMILIES)
    for name in candidates:
        factors = _FAMILIES.get(name or "", {})
        if from_unit in factors and to_unit in factors:
            return Decimal(str(value)) * factors[from_unit] / factors[to_unit]
    raise ValueError(f"Cannot convert '{from_unit}' to '{to_unit}'")


__all__ = [
    "AGE_UNITS",
    "DATA_UNITS",
    "DISTANCE_UNITS",
    "LENGTH_UNITS",
    "PERIOD_SECONDS",
    "PERIOD_UNITS",
    "UNIT_OPTIONS",
    "VOLUME_UNITS",
    "WEIGHT_UNITS",
    "age_in",
    "convert",
    "from_seconds",
    "period_multiplier",
    "to_seconds",
    "unit_options",
]
