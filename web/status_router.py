"""
Payment status page API.

The gateway redirects the payer to GET /payments/status with its own query
parameters; the page then refreshes through GET /payments/status/{order_id}
and releases the session with DELETE when it is left.
"""

import logging

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from exceptions.reconciliation import MissingIdentifierException, SessionNotFoundException
from models.status_view import PaymentStatusViewDTO
from services.payment_status import PaymentStatusService
from utils.redirect_params import build_status_redirect, parse_redirect_params

logger = logging.getLogger(__name__)

status_router = APIRouter(prefix="/payments", tags=["payments"])

# Set by the payment creation page; the same id scopes that browser's resume records
CLIENT_ID_COOKIE = "payment_client_id"


def get_payment_status_service(request: Request) -> PaymentStatusService:
    return request.app.state.payment_status_service


@status_router.get("/status", response_model=PaymentStatusViewDTO)
async def open_status(request: Request):
    """
    Open the status view for a gateway redirect.

    Query parameters are whatever the gateway sent (see utils.redirect_params).
    Without an identifier in the query, the most recent resume record saved
    for this browser (the ``payment_client_id`` cookie) is used.

    Returns:
        200: Current view (seeded from the redirect, polling started)
        400: Neither the query nor the resume cache identifies the payment
    """
    redirect = parse_redirect_params(request.query_params)
    service = get_payment_status_service(request)
    try:
        merger = await service.open(redirect, client_id=request.cookies.get(CLIENT_ID_COOKIE))
    except MissingIdentifierException as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    return service.build_view(merger)


@status_router.get("/status/{order_id}", response_model=PaymentStatusViewDTO)
async def read_status(order_id: str, request: Request):
    service = get_payment_status_service(request)
    try:
        merger = service.get(order_id)
    except SessionNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    return service.build_view(merger)


@status_router.delete("/status/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_status(order_id: str, request: Request):
    service = get_payment_status_service(request)
    try:
        service.close(order_id)
    except SessionNotFoundException as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@status_router.get("/failure-redirect")
async def failure_redirect(request: Request):
    """Forward a gateway failure redirect to the canonical status view."""
    redirect = parse_redirect_params(request.query_params)
    target = build_status_redirect(redirect)
    logger.info(f"[Redirect] Forwarding failure redirect to {target}")
    return RedirectResponse(url=target, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
