"""
Reconciliation-related exceptions.
"""

from .base import PaymentStatusException


class ReconciliationException(PaymentStatusException):
    """Base exception for status reconciliation errors."""
    pass


class MissingIdentifierException(ReconciliationException):
    """Raised when neither the redirect nor the resume cache yields an order id."""

    def __init__(self):
        super().__init__("No order ID found in redirect parameters or resume cache")


class TransientFetchException(ReconciliationException):
    """Raised when a single status lookup fails (network, non-2xx, bad body)."""

    def __init__(self, order_id: str, reason: str, status_code: int | None = None):
        details = {'order_id': order_id}
        if status_code is not None:
            details['status_code'] = status_code
        super().__init__(reason, details=details)
        self.order_id = order_id
        self.reason = reason
        self.status_code = status_code


class PollTimeoutException(ReconciliationException):
    """Raised (or surfaced) when polling hits its wall-clock ceiling without a terminal status."""

    def __init__(self, order_id: str, timeout_seconds: float):
        super().__init__(
            f"Payment {order_id} is still pending after {timeout_seconds:g}s, stopped checking for updates",
            details={'order_id': order_id, 'timeout_seconds': timeout_seconds}
        )
        self.order_id = order_id
        self.timeout_seconds = timeout_seconds


class PollStateException(ReconciliationException):
    """Raised when the poll controller is driven from an invalid state."""

    def __init__(self, current_state: str, operation: str):
        super().__init__(
            f"Cannot {operation} poll controller in state {current_state}",
            details={'state': current_state, 'operation': operation}
        )
        self.current_state = current_state
        self.operation = operation


class SessionNotFoundException(ReconciliationException):
    """Raised when no open status session exists for an order."""

    def __init__(self, order_id: str):
        super().__init__(
            f"No payment status session open for order {order_id}",
            details={'order_id': order_id}
        )
        self.order_id = order_id
