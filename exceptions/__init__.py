"""
Custom exceptions for the payment status reconciler.

Exception Hierarchy:
--------------------
PaymentStatusException (base)
└── ReconciliationException
    ├── MissingIdentifierException
    ├── TransientFetchException
    ├── PollTimeoutException
    ├── PollStateException
    └── SessionNotFoundException

Usage:
------
Services raise specific exceptions:
    raise MissingIdentifierException()

The status router catches them and answers with an advisory message:
    try:
        merger = await service.open(redirect)
    except MissingIdentifierException as e:
        raise HTTPException(status_code=400, detail=str(e))

An unparsable nested details blob is not an exception: the amount resolver
treats it as absent.
"""

from .base import PaymentStatusException
from .reconciliation import (
    ReconciliationException,
    MissingIdentifierException,
    TransientFetchException,
    PollTimeoutException,
    PollStateException,
    SessionNotFoundException,
)

__all__ = [
    # Base
    'PaymentStatusException',

    # Reconciliation
    'ReconciliationException',
    'MissingIdentifierException',
    'TransientFetchException',
    'PollTimeoutException',
    'PollStateException',
    'SessionNotFoundException',
]
