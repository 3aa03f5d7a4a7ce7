from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from enums.canonical_status import CanonicalStatus
from enums.identifier_source import IdentifierSource


class StatusSnapshot(BaseModel):
    """
    Last-known reconciled view of one payment.

    ``amount`` of 0 means "not resolved yet", never a free payment.
    ``terminal_since`` is set once, when the status first locks.
    """
    model_config = ConfigDict(frozen=True)

    order_identifier: str
    identifier_source: IdentifierSource
    status: CanonicalStatus = CanonicalStatus.PENDING
    amount: float = Field(default=0.0, ge=0)
    payment_mode: str | None = None
    last_updated_at: datetime
    terminal_since: datetime | None = None

    @property
    def is_locked(self) -> bool:
        return self.terminal_since is not None


class SnapshotUpdate(BaseModel):
    """One normalized observation to merge into a snapshot."""
    model_config = ConfigDict(frozen=True)

    status: CanonicalStatus = CanonicalStatus.PENDING
    amount: float = Field(default=0.0, ge=0)
    payment_mode: str | None = None
    order_identifier: str | None = None
    identifier_source: IdentifierSource | None = None
