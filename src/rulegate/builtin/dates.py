"""
Built-in date and time conditions.

All values are computed from one clock reading per rule. A `now` entry in
the context (datetime, date, ISO string or Unix timestamp) pins the
clock; otherwise the current time in RG_TIMEZONE is used.

Calendar values that are compared as choices (month, weekday, quarter,
time of day) resolve to strings so they match authored option values.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping

from ..config import get_settings
from ..engine.type_registry import COLLECTION_ANY_NONE_OPERATORS
from ..models import ConditionDefinition, ValueType

GROUP_DATE = "Date & Time"

MONTH_OPTIONS = [
    {"value": str(i), "label": label}
    for i, label in enumerate(
        ["January", "February", "March", "April", "May", "June", "July",
         "August", "September", "October", "November", "December"],
        start=1,
    )
]

WEEKDAY_OPTIONS = [
    {"value": str(i), "label": label}
    for i, label in enumerate(
        ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
        start=1,
    )
]

TIME_OF_DAY_OPTIONS = [
    {"value": "early_morning", "label": "Early Morning (5am-8am)"},
    {"value": "morning", "label": "Morning (8am-12pm)"},
    {"value": "afternoon", "label": "Afternoon (12pm-5pm)"},
    {"value": "evening", "label": "Evening (5pm-9pm)"},
    {"value": "night", "label": "Night (9pm-12am)"},
    {"value": "late_night", "label": "Late Night (12am-5am)"},
]

QUARTER_OPTIONS = [{"value": str(q), "label": f"Q{q}"} for q in range(1, 5)]


def current_moment(context: Mapping[str, Any]) -> datetime:
    """
    The evaluation clock for a context.

    Raises:
        ValueError: If `now` is present but cannot be read as a moment
    """
    now = context.get("now")
    if now is None:
        return datetime.now(get_settings().tz)
    if isinstance(now, datetime):
        return now
    if isinstance(now, date):
        return datetime(now.year, now.month, now.day)
    if isinstance(now, (int, float)) and not isinstance(now, bool):
        return datetime.fromtimestamp(now, tz=get_settings().tz)
    if isinstance(now, str):
        return datetime.fromisoformat(now.strip().replace("Z", "+00:00"))
    raise ValueError(f"Cannot read 'now' from {type(now).__name__}")


def time_of_day(hour: int) -> str:
    if 5 <= hour < 8:
        return "early_morning"
    if 8 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    if hour >= 21:
        return "night"
    return "late_night"


def is_business_hours(moment: datetime) -> bool:
    """Monday to Friday, 9am to 5pm."""
    return moment.isoweekday() <= 5 and 9 <= moment.hour < 17


def _choice(name: str, label: str, resolver, options) -> ConditionDefinition:
    return ConditionDefinition(
        name=name,
        label=label,
        group=GROUP_DATE,
        value_type=ValueType.MULTI_SELECT,
        operators=COLLECTION_ANY_NONE_OPERATORS,
        value_resolver=resolver,
        options=options,
    )


CONDITIONS = (
    ConditionDefinition(
        name="current_date",
        group=GROUP_DATE,
        value_type=ValueType.DATE,
        description="Compare against the current date.",
        value_resolver=lambda ctx: current_moment(ctx).date(),
    ),
    ConditionDefinition(
        name="current_year",
        group=GROUP_DATE,
        value_type=ValueType.NUMBER,
        value_resolver=lambda ctx: current_moment(ctx).year,
    ),
    _choice(
        "current_month", "Current Month",
        lambda ctx: str(current_moment(ctx).month), MONTH_OPTIONS,
    ),
    ConditionDefinition(
        name="day_of_month",
        group=GROUP_DATE,
        value_type=ValueType.NUMBER,
        value_resolver=lambda ctx: current_moment(ctx).day,
    ),
    _choice(
        "day_of_week", "Day of Week",
        lambda ctx: str(current_moment(ctx).isoweekday()), WEEKDAY_OPTIONS,
    ),
    ConditionDefinition(
        name="day_of_year",
        group=GROUP_DATE,
        value_type=ValueType.NUMBER,
        value_resolver=lambda ctx: current_moment(ctx).timetuple().tm_yday,
    ),
    ConditionDefinition(
        name="current_time",
        group=GROUP_DATE,
        value_type=ValueType.TIME,
        description="Compare against the current time (24-hour).",
        value_resolver=lambda ctx: current_moment(ctx).strftime("%H:%M:%S"),
    ),
    _choice(
        "time_of_day", "Time of Day",
        lambda ctx: time_of_day(current_moment(ctx).hour), TIME_OF_DAY_OPTIONS,
    ),
    _choice(
        "quarter", "Quarter",
        lambda ctx: str((current_moment(ctx).month - 1) // 3 + 1), QUARTER_OPTIONS,
    ),
    ConditionDefinition(
        name="week_of_year",
        group=GROUP_DATE,
        value_type=ValueType.NUMBER,
        description="ISO week number.",
        value_resolver=lambda ctx: current_moment(ctx).isocalendar()[1],
    ),
    ConditionDefinition(
        name="is_weekend",
        group=GROUP_DATE,
        value_type=ValueType.BOOLEAN,
        value_resolver=lambda ctx: current_moment(ctx).isoweekday() >= 6,
    ),
    ConditionDefinition(
        name="is_weekday",
        group=GROUP_DATE,
        value_type=ValueType.BOOLEAN,
        value_resolver=lambda ctx: current_moment(ctx).isoweekday() <= 5,
    ),
    ConditionDefinition(
        name="is_business_hours",
        group=GROUP_DATE,
        value_type=ValueType.BOOLEAN,
        description="Monday to Friday, 9am to 5pm.",
        value_resolver=lambda ctx: is_business_hours(current_moment(ctx)),
    ),
)
