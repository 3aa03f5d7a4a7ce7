"""
Redirect query parsing.

Gateways send the payer back with provider-specific parameter names. This
module folds them into one ``RedirectParamsDTO`` and can rebuild the canonical
status-page query (the failure-redirect page forwards to it).
"""

import logging
from typing import Mapping
from urllib.parse import parse_qs, urlencode, urlsplit

from models.redirect_params import RedirectParamsDTO

logger = logging.getLogger(__name__)

# Identifier aliases in priority order
IDENTIFIER_KEYS = (
    "providerCollectId",
    "EdvironCollectRequestId",
    "collect_request_id",
    "collect_id",
    "provider_collect_id",
    "order_id",
    "custom_order_id",
)
STATUS_KEY = "status"
CAPTURE_STATUS_KEY = "capture_status"
AMOUNT_KEYS = ("amount", "am")

CANONICAL_IDENTIFIER_KEY = "providerCollectId"
STATUS_PAGE_PATH = "/payments/status"


def _first(params: Mapping[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = params.get(key)
        if value is not None and value.strip():
            return value.strip()
    return None


def parse_redirect_params(params: Mapping[str, str]) -> RedirectParamsDTO:
    """
    Build redirect params from an already-decoded single-valued mapping.

    Args:
        params: Query parameters (e.g. FastAPI ``request.query_params``)

    Returns:
        RedirectParamsDTO with every field optional
    """
    return RedirectParamsDTO(
        order_identifier=_first(params, IDENTIFIER_KEYS),
        status=_first(params, (STATUS_KEY,)),
        capture_status=_first(params, (CAPTURE_STATUS_KEY,)),
        amount=_first(params, AMOUNT_KEYS),
    )


def parse_redirect_query(query: str) -> RedirectParamsDTO:
    """
    Parse a raw query string or full redirect URL.

    Repeated keys keep their first value, as browsers' ``URLSearchParams.get`` does.
    """
    if "?" in query or "://" in query:
        query = urlsplit(query).query
    parsed = parse_qs(query, keep_blank_values=False)
    params = {key: values[0] for key, values in parsed.items() if values}
    redirect = parse_redirect_params(params)
    logger.debug(
        f"[Redirect] Parsed params: id={redirect.order_identifier} "
        f"status={redirect.status} capture={redirect.capture_status} amount={redirect.amount}"
    )
    return redirect


def build_status_redirect(redirect: RedirectParamsDTO) -> str:
    """
    Canonical status page URL for a redirect, preserving status, capture and amount.

    Without an identifier the status page is still targeted; it will fall
    back to the resume cache.
    """
    query = {}
    if redirect.order_identifier:
        query[CANONICAL_IDENTIFIER_KEY] = redirect.order_identifier
    if redirect.status:
        query[STATUS_KEY] = redirect.status
    if redirect.capture_status:
        query[CAPTURE_STATUS_KEY] = redirect.capture_status
    if redirect.amount:
        query["amount"] = redirect.amount

    if not query:
        return STATUS_PAGE_PATH
    return f"{STATUS_PAGE_PATH}?{urlencode(query)}"
