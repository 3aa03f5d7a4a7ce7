"""
Unit tests for PaymentStatusService session handling.
"""

import asyncio
import time

import pytest

from enums.canonical_status import CanonicalStatus
from exceptions.reconciliation import MissingIdentifierException, SessionNotFoundException
from models.redirect_params import RedirectParamsDTO
from models.resume_record import ResumeRecordDTO
from repositories.resume_record import ResumeRecordRepository
from services.payment_status import PaymentStatusService


@pytest.fixture
def repository(redis_client):
    return ResumeRecordRepository(redis_client, ttl_seconds=3600)


def make_service(fetch, repository, timeout_seconds=2, **kwargs) -> PaymentStatusService:
    return PaymentStatusService(
        fetch=fetch,
        resume_repository=repository,
        interval_seconds=0.01,
        timeout_seconds=timeout_seconds,
        **kwargs,
    )


class ShiftedClock:
    """time.monotonic() plus an adjustable offset."""

    def __init__(self):
        self.offset = 0.0

    def __call__(self) -> float:
        return time.monotonic() + self.offset


class TestOpen:

    @pytest.mark.asyncio
    async def test_loads_resume_record_by_redirect_id(self, repository, scripted_fetch):
        await repository.save(ResumeRecordDTO(provider_order_id="c-1", amount=500))
        fetch = scripted_fetch({"status": "SUCCESS"})
        service = make_service(fetch, repository)

        merger = await service.open(RedirectParamsDTO(order_identifier="c-1", status="SUCCESS"))
        final = await asyncio.wait_for(merger.wait(), timeout=1)

        assert final.status == CanonicalStatus.SUCCESS
        assert final.amount == 500.0
        assert final.is_locked

    @pytest.mark.asyncio
    async def test_falls_back_to_last_record(self, repository, scripted_fetch):
        await repository.save(ResumeRecordDTO(provider_order_id="c-2", amount=80), client_id="browser-1")
        fetch = scripted_fetch({"status": "PENDING"})
        service = make_service(fetch, repository)

        merger = await service.open(RedirectParamsDTO(), client_id="browser-1")

        assert merger.lookup_key == "c-2"
        assert merger.snapshot.amount == 80.0
        service.close_all()

    @pytest.mark.asyncio
    async def test_last_record_not_shared_between_clients(self, repository, scripted_fetch):
        await repository.save(ResumeRecordDTO(provider_order_id="c-2", amount=80), client_id="browser-1")
        fetch = scripted_fetch({"status": "PENDING"})
        service = make_service(fetch, repository)

        with pytest.raises(MissingIdentifierException):
            await service.open(RedirectParamsDTO(), client_id="browser-2")
        with pytest.raises(MissingIdentifierException):
            await service.open(RedirectParamsDTO())

        assert service.open_sessions == 0
        assert fetch.calls == []

    @pytest.mark.asyncio
    async def test_missing_identifier(self, repository, scripted_fetch):
        fetch = scripted_fetch({"status": "SUCCESS"})
        service = make_service(fetch, repository)

        with pytest.raises(MissingIdentifierException):
            await service.open(RedirectParamsDTO(status="SUCCESS"))

        assert service.open_sessions == 0
        assert fetch.calls == []

    @pytest.mark.asyncio
    async def test_reopen_returns_existing_session(self, repository, scripted_fetch):
        service = make_service(scripted_fetch({"status": "PENDING"}), repository)

        first = await service.open(RedirectParamsDTO(order_identifier="c-3"))
        second = await service.open(RedirectParamsDTO(order_identifier="c-3", status="FAILED"))

        assert first is second
        service.close_all()

    @pytest.mark.asyncio
    async def test_reopen_restarts_timed_out_session(self, repository, scripted_fetch):
        fetch = scripted_fetch({"status": "PENDING"})
        service = make_service(fetch, repository, timeout_seconds=0.05)

        first = await service.open(RedirectParamsDTO(order_identifier="c-3"))
        await asyncio.wait_for(first.wait(), timeout=1)
        assert first.timed_out
        calls_after_timeout = len(fetch.calls)

        second = await service.open(RedirectParamsDTO(order_identifier="c-3"))
        await asyncio.sleep(0.03)

        assert second is not first
        assert second.poller.is_polling
        assert len(fetch.calls) > calls_after_timeout
        assert service.get("c-3") is second
        assert service.open_sessions == 1
        service.close_all()


class TestGetAndClose:

    @pytest.mark.asyncio
    async def test_get_by_server_custom_id(self, repository, scripted_fetch):
        service = make_service(scripted_fetch({"status": "SUCCESS", "custom_order_id": "SCH-9"}), repository)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-4"))
        await asyncio.wait_for(merger.wait(), timeout=1)

        assert service.get("c-4") is merger
        assert service.get("SCH-9") is merger

    @pytest.mark.asyncio
    async def test_close_stops_polling(self, repository, scripted_fetch):
        fetch = scripted_fetch({"status": "PENDING"})
        service = make_service(fetch, repository)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-5"))

        service.close("c-5")
        calls_at_close = len(fetch.calls)
        await asyncio.sleep(0.05)

        assert not merger.poller.is_polling
        assert len(fetch.calls) == calls_at_close
        with pytest.raises(SessionNotFoundException):
            service.get("c-5")

    @pytest.mark.asyncio
    async def test_close_unknown(self, repository, scripted_fetch):
        service = make_service(scripted_fetch({}), repository)
        with pytest.raises(SessionNotFoundException):
            service.close("nope")

    @pytest.mark.asyncio
    async def test_build_view(self, repository, scripted_fetch):
        service = make_service(scripted_fetch({"status": "PENDING"}), repository)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-6", status="FAILED", amount="20"))

        view = service.build_view(merger)

        assert view.order_id == "c-6"
        assert view.status == CanonicalStatus.FAILED
        assert view.message == "Payment failed. Please try again."
        assert view.amount == 20.0
        assert view.terminal is False
        assert view.polling is True
        service.close_all()


class TestEviction:

    @pytest.mark.asyncio
    async def test_stopped_session_evicted_after_retention(self, repository, scripted_fetch):
        clock = ShiftedClock()
        service = make_service(scripted_fetch({"status": "SUCCESS"}), repository,
                               retention_seconds=60, monotonic=clock)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-7"))
        await asyncio.wait_for(merger.wait(), timeout=1)

        assert service.get("c-7") is merger

        clock.offset = 61
        with pytest.raises(SessionNotFoundException):
            service.get("c-7")
        assert service.open_sessions == 0

    @pytest.mark.asyncio
    async def test_stopped_session_kept_within_retention(self, repository, scripted_fetch):
        clock = ShiftedClock()
        service = make_service(scripted_fetch({"status": "SUCCESS"}), repository,
                               retention_seconds=60, monotonic=clock)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-8"))
        await asyncio.wait_for(merger.wait(), timeout=1)

        clock.offset = 30

        assert service.evict_stopped() == 0
        assert service.get("c-8") is merger

    @pytest.mark.asyncio
    async def test_polling_session_never_evicted(self, repository, scripted_fetch):
        clock = ShiftedClock()
        service = make_service(scripted_fetch({"status": "PENDING"}), repository,
                               retention_seconds=0, monotonic=clock)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-9"))

        clock.offset = 3600

        assert service.evict_stopped() == 0
        assert service.get("c-9") is merger
        service.close_all()

    @pytest.mark.asyncio
    async def test_open_evicts_other_expired_sessions(self, repository, scripted_fetch):
        clock = ShiftedClock()
        service = make_service(scripted_fetch({"status": "SUCCESS"}), repository,
                               retention_seconds=60, monotonic=clock)
        merger = await service.open(RedirectParamsDTO(order_identifier="c-10"))
        await asyncio.wait_for(merger.wait(), timeout=1)

        clock.offset = 120
        await service.open(RedirectParamsDTO(order_identifier="c-11"))

        assert service.open_sessions == 1
        with pytest.raises(SessionNotFoundException):
            service.get("c-10")
        service.close_all()
