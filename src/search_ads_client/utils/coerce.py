"""Permissive coercion and extraction helpers for loosely-typed JSON.

The Search Ads API is inconsistent about field types (ids arrive as
numbers or numeric strings, amounts as strings) and about envelope
shapes (``data`` as a list, as an object wrapping ``data``/``items``,
or a bare object). These helpers make each accepted shape explicit and
return a neutral value instead of raising when a field is absent.
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

JSONObject = Dict[str, Any]


def int_from_any(value: Any) -> int:
    """Coerce a JSON value to ``int``.

    Accepts ints, floats (truncated), Decimals and integer strings.
    Anything else, including booleans and non-integer strings, yields 0.

    :param value: Raw JSON value
    :type value: Any
    :return: Integer value or 0
    :rtype: int
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return int(value)
        except (ValueError, OverflowError, InvalidOperation):
            return 0
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    return 0


def float_from_any(value: Any) -> float:
    """Coerce a JSON value to ``float``; 0.0 when not numeric.

    :param value: Raw JSON value
    :type value: Any
    :return: Float value or 0.0
    :rtype: float
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return 0.0
    return 0.0


def string_from_any(value: Any) -> str:
    """Coerce a JSON value to ``str``.

    Floats are rendered as integers because numeric identifiers decoded
    from JSON often arrive as ``123.0``.

    :param value: Raw JSON value
    :type value: Any
    :return: String value or ``""``
    :rtype: str
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        try:
            return str(int(value))
        except (ValueError, OverflowError):
            return ""
    return ""


def bool_from_any(value: Any) -> bool:
    """Coerce a JSON value to ``bool`` (``true``, ``1``, ``yes`` are truthy strings)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False


def map_from_any(value: Any) -> JSONObject:
    return value if isinstance(value, dict) else {}


def list_from_any(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def upper(value: Any) -> str:
    """Trimmed, upper-cased string form of a JSON value."""
    return string_from_any(value).strip().upper()


def first_string(source: JSONObject, *keys: str) -> str:
    """Return the first non-blank string among ``keys``, trimmed.

    :param source: JSON object to probe
    :type source: JSONObject
    :param keys: Candidate keys in priority order
    :type keys: str
    :return: First non-blank value or ``""``
    :rtype: str
    """
    for key in keys:
        text = string_from_any(source.get(key)).strip()
        if text:
            return text
    return ""


def first_present(source: JSONObject, *keys: str) -> Tuple[Any, bool]:
    """Return the value of the first key present in ``source``.

    Presence is what matters here, not truthiness: ``{"installs": 0}``
    yields ``(0, True)``.
    """
    for key in keys:
        if key in source:
            return source[key], True
    return None, False


def first_id(source: JSONObject, *keys: str) -> int:
    """Return the first positive integer id among ``keys``, else 0."""
    for key in keys:
        value = int_from_any(source.get(key))
        if value > 0:
            return value
    return 0


def optional_string(value: Any) -> Optional[str]:
    text = string_from_any(value).strip()
    return text or None


def string_list(value: Any) -> List[str]:
    """Non-blank string items of a JSON array."""
    out = []
    for item in list_from_any(value):
        text = string_from_any(item).strip()
        if text:
            out.append(text)
    return out


def non_blank(values: Optional[Iterable[str]]) -> List[str]:
    return [v.strip() for v in values or () if v and v.strip()]


def non_blank_upper(values: Optional[Iterable[str]]) -> List[str]:
    return [v.upper() for v in non_blank(values)]


def parse_bid(*candidates: Any) -> Tuple[Optional[float], Optional[str]]:
    """Pick the first money object with a positive amount.

    :param candidates: Money-like objects (``{"amount", "currency"}``)
    :type candidates: Any
    :return: ``(amount, currency)``; both None when no candidate qualifies
    :rtype: Tuple[Optional[float], Optional[str]]
    """
    for candidate in candidates:
        bid = map_from_any(candidate)
        if not bid:
            continue
        amount = float_from_any(bid.get("amount"))
        if amount > 0:
            currency = first_string(bid, "currency", "currencyCode")
            return amount, currency or None
    return None, None


def normalize_date_key(raw: str) -> str:
    """Reduce a timestamp to its ``YYYY-MM-DD`` prefix."""
    trimmed = (raw or "").strip()
    return trimmed[:10] if len(trimmed) >= 10 else trimmed


# =============================================================================
# Envelope extraction
# =============================================================================


def extract_data_items(payload: Any) -> List[Any]:
    """Extract the result array from a list response.

    Accepted shapes, in order:

    1. ``{"data": [...]}``
    2. ``{"data": {"data": [...]}}`` or ``{"data": {"items": [...]}}``
    3. ``{"data": {"id": ...}}`` (single object)
    4. ``{"id": ...}`` (bare object)

    :param payload: Decoded JSON response
    :type payload: Any
    :return: List of raw rows; empty when no shape matches
    :rtype: List[Any]
    """
    if isinstance(payload, list):
        return payload
    payload = map_from_any(payload)
    data = payload.get("data")
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("data", "items"):
            if isinstance(data.get(key), list):
                return data[key]
        if "id" in data:
            return [data]
    if "id" in payload:
        return [payload]
    return []


def extract_custom_report_items(payload: Any) -> List[Any]:
    """Like :func:`extract_data_items`, also accepting ``data.reports``."""
    items = extract_data_items(payload)
    if items:
        return items
    data = map_from_any(map_from_any(payload).get("data"))
    return list_from_any(data.get("reports"))


def extract_data_object(payload: Any) -> JSONObject:
    """Return ``payload["data"]`` when it is a non-empty object, else the payload."""
    payload = map_from_any(payload)
    data = map_from_any(payload.get("data"))
    return data if data else payload


def extract_list(payload: Any) -> List[Any]:
    """Result array of an endpoint that may answer with a bare JSON array."""
    if isinstance(payload, list):
        return payload
    payload = map_from_any(payload)
    for key in ("data", "items"):
        if isinstance(payload.get(key), list):
            return payload[key]
    return []


def extract_total_results(payload: Any) -> int:
    """Declared ``pagination.totalResults``, or 0 when absent."""
    pagination = map_from_any(map_from_any(payload).get("pagination"))
    return int_from_any(pagination.get("totalResults"))


def extract_report_rows(payload: Any) -> List[Any]:
    """Rows of a campaign-level report: ``data.reportingDataResponse.row``."""
    data = map_from_any(map_from_any(payload).get("data"))
    reporting = map_from_any(data.get("reportingDataResponse"))
    return list_from_any(reporting.get("row"))
