import asyncio
import logging
import traceback
from contextlib import asynccontextmanager

import aiohttp
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis

import config
from exceptions.base import PaymentStatusException
from repositories.resume_record import ResumeRecordRepository
from services.payment_status import PaymentStatusService
from services.status_lookup import StatusLookupClient
from web.status_router import status_router


def create_app(payment_status_service: PaymentStatusService | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        payment_status_service: Pre-built service (tests). When omitted, the
            lifespan opens the aiohttp session and Redis client and builds one.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        http_session = None
        redis = None

        # Startup
        service = payment_status_service
        if service is None:
            http_session = aiohttp.ClientSession()
            redis = Redis(host=config.REDIS_HOST, port=config.REDIS_PORT,
                          password=config.REDIS_PASSWORD, decode_responses=True)
            lookup = StatusLookupClient(
                http_session,
                base_url=config.STATUS_API_URL,
                token=config.STATUS_API_TOKEN,
                timeout_seconds=config.STATUS_API_TIMEOUT_SECONDS,
            )
            service = PaymentStatusService(
                fetch=lookup.fetch,
                resume_repository=ResumeRecordRepository(redis, config.RESUME_RECORD_TTL_SECONDS),
            )
            logging.info(f"[Startup] Status lookups against {config.STATUS_API_URL}")
        app.state.payment_status_service = service

        yield

        # Shutdown
        logging.warning('Shutting down..')
        service.close_all()
        # Let cancelled poll tasks unwind before their session goes away
        await asyncio.sleep(0)

        if http_session is not None:
            await http_session.close()
        if redis is not None:
            await redis.aclose()
        logging.warning('Bye!')

    app = FastAPI(title="Payment Status", lifespan=lifespan)
    app.include_router(status_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint for container monitoring."""
        return {"status": "healthy"}

    @app.exception_handler(PaymentStatusException)
    async def payment_status_exception_handler(request: Request, exc: PaymentStatusException):
        logging.error(f"[API] {exc!r} on {request.method} {request.url.path}")
        return JSONResponse(status_code=500, content={"message": exc.message, "details": exc.details})

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception):
        logging.error(f"[API] Unhandled error on {request.method} {request.url.path}: {exc}\n"
                      f"{traceback.format_exc()}")
        return JSONResponse(
            status_code=500,
            content={"message": f"An error occurred: {str(exc)}"},
        )

    return app


def main() -> None:
    from utils.config_validator import validate_or_exit
    validate_or_exit(config)

    uvicorn.run(create_app(), host=config.WEBAPP_HOST, port=config.WEBAPP_PORT, log_config=None)
