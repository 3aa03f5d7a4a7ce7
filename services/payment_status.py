"""
Payment Status Service

Keeps one reconciliation session (a SourceMerger) per lookup key while the
status page for that payment is open.

Lifecycle:
- open: payer lands on the status page; seeds the snapshot and starts polling
- get: status page refresh
- close: page left; polling stops and the snapshot is discarded
- sessions whose polling stopped (locked or timed out) are evicted once they
  have been stopped for longer than the retention window
"""

import logging
import time
from typing import Awaitable, Callable

import config
from exceptions.reconciliation import SessionNotFoundException
from models.redirect_params import RedirectParamsDTO
from models.resume_record import ResumeRecordDTO
from models.status_report import RawStatusReport
from models.status_view import PaymentStatusViewDTO
from repositories.resume_record import ResumeRecordRepository
from services.source_merger import SourceMerger

logger = logging.getLogger(__name__)


class PaymentStatusService:

    def __init__(
        self,
        fetch: Callable[[str], Awaitable[RawStatusReport]],
        resume_repository: ResumeRecordRepository,
        interval_seconds: float | None = None,
        timeout_seconds: float | None = None,
        retention_seconds: float | None = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._fetch = fetch
        self._resume_repository = resume_repository
        self._interval_seconds = interval_seconds
        self._timeout_seconds = timeout_seconds
        self._retention_seconds = (
            retention_seconds if retention_seconds is not None else config.SESSION_RETENTION_SECONDS
        )
        self._monotonic = monotonic
        self._sessions: dict[str, SourceMerger] = {}

    @property
    def open_sessions(self) -> int:
        return len(self._sessions)

    async def _load_resume_record(self, redirect: RedirectParamsDTO,
                                  client_id: str | None) -> ResumeRecordDTO | None:
        if redirect.order_identifier:
            return await self._resume_repository.get(redirect.order_identifier)
        return await self._resume_repository.get_last(client_id)

    def evict_stopped(self) -> int:
        """
        Drop sessions stopped for longer than the retention window.

        Returns:
            Number of sessions evicted
        """
        now = self._monotonic()
        expired = [
            key for key, merger in self._sessions.items()
            if merger.poller is not None
            and merger.poller.stopped_at is not None
            and now - merger.poller.stopped_at >= self._retention_seconds
        ]
        for key in expired:
            del self._sessions[key]
        if expired:
            logger.info(f"[PaymentStatus] Evicted {len(expired)} stopped session(s)")
        return len(expired)

    async def open(self, redirect: RedirectParamsDTO, client_id: str | None = None) -> SourceMerger:
        """
        Open (or re-attach to) the session for a redirect.

        A session already open for the same lookup key is returned as is, so
        reloading the status page does not restart polling. A session that
        timed out is replaced by a fresh one.

        Args:
            redirect: Parsed gateway redirect parameters
            client_id: Caller's browser id; only used to find that caller's
                latest resume record when the redirect has no identifier

        Raises:
            MissingIdentifierException: If neither the redirect nor the
                caller's resume record identifies the payment
        """
        self.evict_stopped()
        cached_resume = await self._load_resume_record(redirect, client_id)

        lookup_key = redirect.order_identifier or (cached_resume.provider_order_id if cached_resume else None)
        existing = self._sessions.get(lookup_key) if lookup_key else None
        if existing is not None:
            if not existing.timed_out:
                logger.debug(f"[PaymentStatus] Re-attached to session {lookup_key}")
                return existing
            logger.info(f"[PaymentStatus] Restarting timed-out session {lookup_key}")
            existing.stop()
            del self._sessions[lookup_key]

        merger = SourceMerger(
            interval_seconds=self._interval_seconds,
            timeout_seconds=self._timeout_seconds,
        )
        merger.reconcile(redirect, cached_resume, self._fetch)
        self._sessions[merger.lookup_key] = merger
        logger.info(
            f"[PaymentStatus] Opened session {merger.lookup_key} "
            f"(resume record: {'yes' if cached_resume else 'no'})"
        )
        return merger

    def get(self, order_id: str) -> SourceMerger:
        """
        Find a session by lookup key, or by the identifier currently shown
        on its snapshot (which the server may have replaced).

        Raises:
            SessionNotFoundException: If no such session is open
        """
        self.evict_stopped()
        merger = self._sessions.get(order_id)
        if merger is not None:
            return merger
        for merger in self._sessions.values():
            if merger.snapshot is not None and merger.snapshot.order_identifier == order_id:
                return merger
        raise SessionNotFoundException(order_id)

    def close(self, order_id: str) -> None:
        merger = self.get(order_id)
        merger.stop()
        del self._sessions[merger.lookup_key]
        logger.info(f"[PaymentStatus] Closed session {merger.lookup_key}")

    def close_all(self) -> None:
        for merger in self._sessions.values():
            merger.stop()
        if self._sessions:
            logger.info(f"[PaymentStatus] Closed {len(self._sessions)} open session(s)")
        self._sessions.clear()

    @staticmethod
    def build_view(merger: SourceMerger) -> PaymentStatusViewDTO:
        snapshot = merger.snapshot
        return PaymentStatusViewDTO(
            order_id=snapshot.order_identifier,
            status=snapshot.status,
            message=snapshot.status.message,
            amount=snapshot.amount,
            payment_mode=snapshot.payment_mode,
            terminal=snapshot.is_locked,
            terminal_since=snapshot.terminal_since,
            last_updated_at=snapshot.last_updated_at,
            error=merger.error,
            timed_out=merger.timed_out,
            polling=merger.poller is not None and merger.poller.is_polling,
        )
