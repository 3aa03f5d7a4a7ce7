from datetime import datetime

from pydantic import BaseModel

from enums.canonical_status import CanonicalStatus


class PaymentStatusViewDTO(BaseModel):
    """What the payment status page renders for one session."""
    order_id: str
    status: CanonicalStatus
    message: str
    amount: float
    payment_mode: str | None = None
    terminal: bool
    terminal_since: datetime | None = None
    last_updated_at: datetime
    error: str | None = None
    timed_out: bool = False
    polling: bool
