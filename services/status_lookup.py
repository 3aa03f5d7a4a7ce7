"""
Backend status lookup.

GET {STATUS_API_URL}/payments/status/{order_id}

The backend aggregates gateway webhooks and answers with a loosely shaped JSON
object. Every failure mode of one call (transport, non-2xx, unusable body) is
raised as TransientFetchException so the poller can report it and carry on.
"""

import asyncio
import logging
from urllib.parse import quote

import aiohttp

from exceptions.reconciliation import TransientFetchException
from models.status_report import RawStatusReport

logger = logging.getLogger(__name__)

STATUS_PATH = "/payments/status/{order_id}"


class StatusLookupClient:

    def __init__(self, session: aiohttp.ClientSession, base_url: str,
                 token: str | None = None, timeout_seconds: float = 30):
        """
        Args:
            session: Shared aiohttp session (owned by the caller)
            base_url: Backend base URL without trailing slash
            token: Optional bearer token
            timeout_seconds: Total timeout per request
        """
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def url_for(self, order_id: str) -> str:
        return self.base_url + STATUS_PATH.format(order_id=quote(order_id, safe=""))

    async def fetch(self, order_id: str) -> RawStatusReport:
        """
        Fetch the current backend view of a payment.

        Raises:
            TransientFetchException: On any failure of this single call
        """
        try:
            async with self.session.get(self.url_for(order_id), headers=self._headers(),
                                        timeout=self.timeout) as response:
                if response.status >= 400:
                    raise TransientFetchException(
                        order_id, await self._error_message(response), status_code=response.status
                    )
                try:
                    body = await response.json(content_type=None)
                except ValueError as e:
                    raise TransientFetchException(
                        order_id, f"Malformed status response: {e}", status_code=response.status
                    ) from e
        except asyncio.TimeoutError as e:
            # Before ClientError: aiohttp's ServerTimeoutError is both
            raise TransientFetchException(order_id, "Status lookup timed out") from e
        except aiohttp.ClientError as e:
            raise TransientFetchException(order_id, f"Status lookup failed: {e}") from e

        if not isinstance(body, dict):
            raise TransientFetchException(order_id, "Malformed status response: expected a JSON object")

        logger.debug(f"[StatusLookup] {order_id}: {body.get('status')!r}")
        return RawStatusReport.from_payload(body)

    @staticmethod
    async def _error_message(response: aiohttp.ClientResponse) -> str:
        fallback = f"Failed to fetch status ({response.status})"
        try:
            body = await response.json(content_type=None)
        except (ValueError, aiohttp.ClientError):
            return fallback
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return fallback
