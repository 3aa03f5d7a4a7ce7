"""
Amount extraction from inconsistent status payloads.

Backends and gateways put the amount under different names, sometimes only
inside a JSON-encoded details blob, sometimes only in the query string of the
collect request URL. Resolution walks those places in a fixed order and stops
at the first positive finite number.
"""

import json
import logging
import math
from typing import Any, Iterable, Mapping
from urllib.parse import parse_qs, urlsplit

from models.status_report import RawStatusReport

logger = logging.getLogger(__name__)

REPORT_AMOUNT_KEYS = ("amount", "transaction_amount", "orderAmount", "order_amount", "am")
DETAILS_AMOUNT_KEYS = ("amount", "transaction_amount", "order_amount", "orderAmount", "am")
DETAILS_URL_KEY = "collect_request_url"
URL_AMOUNT_PARAM = "amount"

UNRESOLVED_AMOUNT = 0.0


def parse_amount(value: Any) -> float | None:
    """Return ``value`` as a float if it is finite and strictly positive, else None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        return None
    return amount


def _search(data: Mapping[str, Any], keys: Iterable[str]) -> float | None:
    for key in keys:
        amount = parse_amount(data.get(key))
        if amount is not None:
            return amount
    return None


def _load_details(details: Any) -> Mapping[str, Any] | None:
    if isinstance(details, Mapping):
        return details
    if isinstance(details, str):
        try:
            parsed = json.loads(details)
        except ValueError:
            logger.debug("[Amount] payment_details is not valid JSON, ignoring it")
            return None
        if isinstance(parsed, Mapping):
            return parsed
    return None


def _amount_from_url(url: Any) -> float | None:
    if not isinstance(url, str) or not url:
        return None
    try:
        query = parse_qs(urlsplit(url).query)
    except ValueError:
        logger.debug("[Amount] collect_request_url could not be parsed, ignoring it")
        return None
    values = query.get(URL_AMOUNT_PARAM)
    return parse_amount(values[0]) if values else None


def resolve_amount(report: RawStatusReport | Mapping[str, Any],
                   fallbacks: Iterable[Any] = ()) -> float:
    """
    Resolve the payment amount from a status report.

    Order:
        1. direct fields on the report
        2. the same kind of fields inside ``payment_details`` (dict or JSON string)
        3. the ``amount`` query parameter of ``payment_details.collect_request_url``
        4. ``fallbacks`` in the given order (redirect amount, then cached amount)

    Args:
        report: RawStatusReport or the raw mapping it was built from
        fallbacks: Candidate amounts consulted last

    Returns:
        The first positive finite amount, or 0.0 meaning "unresolved"
    """
    data = report.payload if isinstance(report, RawStatusReport) else (report or {})

    amount = _search(data, REPORT_AMOUNT_KEYS)
    if amount is not None:
        return amount

    raw_details = report.payment_details if isinstance(report, RawStatusReport) else data.get("payment_details")
    details = _load_details(raw_details)
    if details is not None:
        amount = _search(details, DETAILS_AMOUNT_KEYS)
        if amount is not None:
            return amount
        amount = _amount_from_url(details.get(DETAILS_URL_KEY))
        if amount is not None:
            return amount

    for candidate in fallbacks:
        amount = parse_amount(candidate)
        if amount is not None:
            return amount

    return UNRESOLVED_AMOUNT
