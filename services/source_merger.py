"""
Source Merger

Combines the three views of an in-flight payment into one snapshot:

1. redirect parameters: applied synchronously so there is something to show
2. cached resume record: identifier and last known amount when the redirect
   carries no status
3. live status lookups: polled until the snapshot locks or polling times out

A status coming from the redirect is only provisional: it is shown
immediately, replaced by whatever the backend reports, and locked only once a
live lookup returns a terminal status.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable

import config
from enums.identifier_source import IdentifierSource
from enums.poll_state import PollState, PollStopReason
from exceptions.reconciliation import MissingIdentifierException, PollTimeoutException
from models.redirect_params import RedirectParamsDTO
from models.resume_record import ResumeRecordDTO
from models.snapshot import SnapshotUpdate, StatusSnapshot
from models.status_report import RawStatusReport
from services.amount_resolver import resolve_amount
from services.poll_controller import PollController
from services.snapshot_store import SnapshotStore, utcnow
from services.status_normalizer import normalize

logger = logging.getLogger(__name__)

LiveFetch = Callable[[str], Awaitable[RawStatusReport]]
SnapshotListener = Callable[["SourceMerger"], None]


class SourceMerger:

    def __init__(
        self,
        interval_seconds: float | None = None,
        timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.interval_seconds = interval_seconds if interval_seconds is not None else config.POLL_INTERVAL_SECONDS
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else config.POLL_TIMEOUT_SECONDS

        self._store = SnapshotStore(clock=clock)
        self._listeners: list[SnapshotListener] = []
        self._redirect: RedirectParamsDTO | None = None
        self._cached_resume: ResumeRecordDTO | None = None
        self._poller: PollController | None = None

        self.lookup_key: str | None = None
        self.error: str | None = None
        self.timed_out = False

    @property
    def snapshot(self) -> StatusSnapshot | None:
        return self._store.snapshot

    @property
    def poll_state(self) -> PollState:
        return self._poller.state if self._poller is not None else PollState.IDLE

    @property
    def poller(self) -> PollController | None:
        return self._poller

    @property
    def stopped_by_terminal(self) -> bool:
        return self._poller is not None and self._poller.stop_reason is PollStopReason.TERMINAL

    def add_listener(self, listener: SnapshotListener) -> None:
        """Register a callback fired after every snapshot or error change."""
        self._listeners.append(listener)

    def reconcile(
        self,
        redirect: RedirectParamsDTO | None,
        cached_resume: ResumeRecordDTO | None,
        live_fetch: LiveFetch,
    ) -> StatusSnapshot:
        """
        Seed the snapshot and start polling.

        Must be called from inside a running event loop. Returns the seeded
        snapshot right away; later changes are delivered to listeners.

        Raises:
            MissingIdentifierException: If neither source yields an order id
                (no lookup is attempted)
        """
        self._redirect = redirect
        self._cached_resume = cached_resume

        if redirect is not None and redirect.order_identifier:
            self.lookup_key = redirect.order_identifier
            identifier_source = IdentifierSource.REDIRECT_COLLECT
        elif cached_resume is not None and cached_resume.provider_order_id:
            self.lookup_key = cached_resume.provider_order_id
            identifier_source = IdentifierSource.CACHED_RESUME
        else:
            logger.warning("[PaymentStatus] No order identifier in redirect or resume cache")
            raise MissingIdentifierException()

        if redirect is not None and redirect.has_status:
            redirect_report = redirect.as_report()
            status = normalize(redirect_report.status, redirect_report.capture_status)
            amount = resolve_amount(redirect_report)
        else:
            status = normalize(None)
            amount = resolve_amount({}, self._cached_amounts())
        self._store.seed(self.lookup_key, identifier_source, status=status, amount=amount)

        self._poller = PollController(
            is_terminal=lambda: self._store.is_terminal_locked,
            on_result=self._handle_report,
            on_error=self._handle_error,
            on_timeout=self._handle_timeout,
            name=self.lookup_key,
        )
        lookup_key = self.lookup_key
        self._poller.start(lambda: live_fetch(lookup_key), self.interval_seconds, self.timeout_seconds)

        self._notify()
        return self._store.snapshot

    def stop(self) -> None:
        if self._poller is not None:
            self._poller.stop()

    async def wait(self) -> StatusSnapshot | None:
        """Wait until polling has stopped and return the final snapshot."""
        if self._poller is not None:
            await self._poller.wait()
        return self._store.snapshot

    def _cached_amounts(self) -> list:
        return [self._cached_resume.amount] if self._cached_resume is not None else []

    def _fallback_amounts(self) -> list:
        fallbacks = []
        if self._redirect is not None and self._redirect.amount:
            fallbacks.append(self._redirect.amount)
        return fallbacks + self._cached_amounts()

    def _handle_report(self, report: RawStatusReport) -> None:
        incoming = SnapshotUpdate(
            status=normalize(report.status, report.capture_status),
            amount=resolve_amount(report, self._fallback_amounts()),
            payment_mode=report.payment_mode,
            order_identifier=report.custom_order_id,
            identifier_source=IdentifierSource.SERVER_CUSTOM if report.custom_order_id else None,
        )
        previous = self._store.snapshot
        current = self._store.apply(incoming)

        if current.status != previous.status:
            logger.info(
                f"[PaymentStatus] {self.lookup_key}: {previous.status.value} -> {current.status.value}"
            )
        self.error = None
        self._notify()

    def _handle_error(self, error: Exception) -> None:
        logger.warning(f"[PaymentStatus] Error fetching payment status for {self.lookup_key}: {error}")
        self.error = str(error) or "Failed to fetch payment status"
        self._notify()

    def _handle_timeout(self) -> None:
        self.timed_out = True
        self.error = str(PollTimeoutException(self.lookup_key, self.timeout_seconds))
        self._notify()

    def _notify(self) -> None:
        for listener in self._listeners:
            try:
                listener(self)
            except Exception as e:
                logger.error(f"[PaymentStatus] Snapshot listener failed: {e}", exc_info=True)
