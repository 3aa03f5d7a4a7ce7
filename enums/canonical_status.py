from enum import Enum


class CanonicalStatus(str, Enum):
    """
    Reconciled payment status.

    PENDING: Not settled yet (also the answer for anything unrecognized)
    SUCCESS: Paid
    FAILED: Declined or errored at the gateway
    CANCELLED: Dropped by the payer
    """
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not CanonicalStatus.PENDING

    @property
    def message(self) -> str:
        return _STATUS_MESSAGES[self]


_STATUS_MESSAGES = {
    CanonicalStatus.PENDING: "Payment is being processed. Please wait...",
    CanonicalStatus.SUCCESS: "Payment completed successfully!",
    CanonicalStatus.FAILED: "Payment failed. Please try again.",
    CanonicalStatus.CANCELLED: "Payment was cancelled by user.",
}
