"""
Snapshot Store

Holds the single reconciled snapshot of one payment and enforces terminal lock:
once a status is terminal, no later observation (stale, duplicated or out of
order) can change it. Amount and payment mode stay refinable after the lock.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from enums.canonical_status import CanonicalStatus
from enums.identifier_source import IdentifierSource
from models.snapshot import SnapshotUpdate, StatusSnapshot

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def merge_snapshot(current: StatusSnapshot, incoming: SnapshotUpdate, now: datetime) -> StatusSnapshot:
    """
    Merge one observation into a snapshot without mutating either.

    Rules:
    - locked snapshot: status and terminal_since never change
    - unlocked: status follows the observation (a provisional status seeded
      from the redirect is replaced, PENDING included)
    - unlocked + terminal incoming: terminal_since = now
    - amount / payment mode: replaced when resolvable, even after the lock
    - identifier: replaced only by a strictly higher-priority source

    Returns ``current`` itself when nothing changes.
    """
    changes = {}

    if not current.is_locked:
        if incoming.status != current.status:
            changes["status"] = incoming.status
        if incoming.status.is_terminal:
            changes["terminal_since"] = now

    if incoming.amount > 0 and incoming.amount != current.amount:
        changes["amount"] = incoming.amount

    if incoming.payment_mode and incoming.payment_mode != current.payment_mode:
        changes["payment_mode"] = incoming.payment_mode

    if (
        incoming.order_identifier
        and incoming.identifier_source is not None
        and incoming.identifier_source > current.identifier_source
    ):
        changes["order_identifier"] = incoming.order_identifier
        changes["identifier_source"] = incoming.identifier_source

    if not changes:
        return current

    changes["last_updated_at"] = now
    return current.model_copy(update=changes)


class SnapshotStore:
    """Owner of one payment's snapshot; the only writer is ``apply``."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._snapshot: StatusSnapshot | None = None

    @property
    def snapshot(self) -> StatusSnapshot | None:
        return self._snapshot

    @property
    def is_terminal_locked(self) -> bool:
        return self._snapshot is not None and self._snapshot.is_locked

    def seed(self, order_identifier: str, identifier_source: IdentifierSource,
             status: CanonicalStatus = CanonicalStatus.PENDING, amount: float = 0.0) -> StatusSnapshot:
        """
        Create the initial snapshot. A seeded status is never locked;
        only an observation passed to ``apply`` can lock it.
        """
        self._snapshot = StatusSnapshot(
            order_identifier=order_identifier,
            identifier_source=identifier_source,
            status=status,
            amount=amount,
            last_updated_at=self._clock(),
        )
        logger.info(
            f"[Snapshot] Seeded {order_identifier} from {identifier_source.name}: "
            f"status={status.value} amount={amount}"
        )
        return self._snapshot

    def apply(self, incoming: SnapshotUpdate) -> StatusSnapshot:
        if self._snapshot is None:
            raise RuntimeError("SnapshotStore.apply called before seed")

        previous = self._snapshot
        if previous.is_locked and incoming.status != previous.status:
            logger.debug(
                f"[Snapshot] {previous.order_identifier} locked at {previous.status.value}, "
                f"ignoring {incoming.status.value}"
            )

        self._snapshot = merge_snapshot(previous, incoming, self._clock())

        if self._snapshot.is_locked and not previous.is_locked:
            logger.info(
                f"[Snapshot] Final status reached for {self._snapshot.order_identifier}: "
                f"{self._snapshot.status.value}"
            )
        return self._snapshot
