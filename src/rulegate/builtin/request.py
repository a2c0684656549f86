"""
Built-in request conditions.

Read request facts the caller placed in the context:

    current_url, request_method, is_ssl, ip_address, country,
    device_type, browser                   plain values
    cookies, headers, query, utm           mappings of name to value
    query_var_name, query_var_value        for query_var
"""
from __future__ import annotations

from typing import Any, Mapping

from ..engine.type_registry import COLLECTION_ANY_NONE_OPERATORS, EQUALITY_OPERATORS
from ..models import ConditionDefinition, ValueType

GROUP_URL = "Request: URL"
GROUP_CONNECTION = "Request: Connection"
GROUP_VISITOR = "Request: Visitor"
GROUP_DEVICE = "Request: Device"
GROUP_UTM = "Request: UTM"

METHOD_OPTIONS = [
    {"value": m, "label": m}
    for m in ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
]

DEVICE_OPTIONS = [
    {"value": "desktop", "label": "Desktop"},
    {"value": "mobile", "label": "Mobile"},
    {"value": "tablet", "label": "Tablet"},
    {"value": "bot", "label": "Bot"},
]

BROWSER_OPTIONS = [
    {"value": b.lower(), "label": b}
    for b in ("Chrome", "Firefox", "Safari", "Edge", "Opera")
]

UTM_OPTIONS = [
    {"value": p, "label": p.title()}
    for p in ("source", "medium", "campaign", "term", "content")
]


def _mapping(context: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = context.get(key)
    return value if isinstance(value, Mapping) else {}


def cookie_exists(context: Mapping[str, Any], name: Any) -> str:
    """The cookie name when it is set, otherwise an empty string."""
    if not name:
        return ""
    return str(name) if str(name) in _mapping(context, "cookies") else ""


def cookie_value(context: Mapping[str, Any]) -> str:
    name = context.get("_unit")
    if not name:
        return ""
    return str(_mapping(context, "cookies").get(name, ""))


def header_value(context: Mapping[str, Any]) -> str:
    """Header lookup by the rule's unit; header names are case-insensitive."""
    name = context.get("_unit")
    if not name:
        return ""
    wanted = str(name).lower()
    for header, value in _mapping(context, "headers").items():
        if str(header).lower() == wanted:
            return str(value)
    return ""


def utm_parameter(context: Mapping[str, Any]) -> str:
    """UTM value from `utm`, falling back to the `utm_`-prefixed query parameter."""
    param = context.get("_unit") or "source"
    utm = _mapping(context, "utm")
    if param in utm:
        return str(utm[param])
    return str(_mapping(context, "query").get(f"utm_{param}", ""))


def request_method(context: Mapping[str, Any]) -> str:
    return str(context.get("request_method") or "GET").upper()


def _visitor_choice(name: str, group: str, options, description: str) -> ConditionDefinition:
    return ConditionDefinition(
        name=name,
        group=group,
        value_type=ValueType.MULTI_SELECT,
        operators=COLLECTION_ANY_NONE_OPERATORS,
        argument_key=name,
        options=options,
        description=description,
    )


CONDITIONS = (
    ConditionDefinition(
        name="current_url",
        label="Current URL",
        group=GROUP_URL,
        value_type=ValueType.TEXT,
        argument_key="current_url",
    ),
    ConditionDefinition(
        name="query_var",
        label="Query Parameter",
        group=GROUP_URL,
        value_type=ValueType.TEXT,
        argument_key="query_var_value",
        required_arguments=frozenset({"query_var_name", "query_var_value"}),
    ),
    ConditionDefinition(
        name="is_ssl",
        label="Is SSL/HTTPS",
        group=GROUP_CONNECTION,
        value_type=ValueType.BOOLEAN,
        argument_key="is_ssl",
    ),
    ConditionDefinition(
        name="request_method",
        group=GROUP_CONNECTION,
        value_type=ValueType.MULTI_SELECT,
        operators=COLLECTION_ANY_NONE_OPERATORS,
        value_resolver=request_method,
        options=METHOD_OPTIONS,
    ),
    ConditionDefinition(
        name="cookie_exists",
        group=GROUP_CONNECTION,
        value_type=ValueType.TEXT,
        operators=EQUALITY_OPERATORS,
        value_resolver=cookie_exists,
        pass_authored_value=True,
        description="The authored value is the cookie name.",
    ),
    ConditionDefinition(
        name="cookie_value",
        group=GROUP_CONNECTION,
        value_type=ValueType.TEXT_UNIT,
        value_resolver=cookie_value,
        description="The unit is the cookie name.",
    ),
    ConditionDefinition(
        name="header_value",
        label="HTTP Header",
        group=GROUP_CONNECTION,
        value_type=ValueType.TEXT_UNIT,
        value_resolver=header_value,
        description="The unit is the header name.",
    ),
    ConditionDefinition(
        name="ip_address",
        label="IP Address",
        group=GROUP_VISITOR,
        value_type=ValueType.IP,
        argument_key="ip_address",
        description="Exact address, CIDR notation or wildcards.",
    ),
    _visitor_choice("country", GROUP_VISITOR, None, "ISO country code of the visitor."),
    _visitor_choice("device_type", GROUP_DEVICE, DEVICE_OPTIONS, "Visitor device type."),
    _visitor_choice("browser", GROUP_DEVICE, BROWSER_OPTIONS, "Visitor browser."),
    ConditionDefinition(
        name="utm_parameter",
        label="UTM Parameter",
        group=GROUP_UTM,
        value_type=ValueType.TEXT_UNIT,
        value_resolver=utm_parameter,
        units=UTM_OPTIONS,
    ),
)
