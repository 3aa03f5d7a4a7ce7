"""
Poll Controller

Repeatedly calls a status fetch until the snapshot locks, the wall-clock
ceiling is hit, or the caller stops it.

State machine: IDLE -> POLLING -> STOPPED

- the first fetch runs immediately, then one tick per interval
- at most one fetch is outstanding; a tick that finds one pending is skipped
- a failed fetch is reported and polling goes on
- after stop() (or any other transition to STOPPED) an in-flight fetch
  result is dropped on arrival
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable

from enums.poll_state import PollState, PollStopReason
from exceptions.reconciliation import PollStateException

logger = logging.getLogger(__name__)

FetchCallable = Callable[[], Awaitable[Any]]


class PollController:

    def __init__(
        self,
        is_terminal: Callable[[], bool],
        on_result: Callable[[Any], None],
        on_error: Callable[[Exception], None],
        on_timeout: Callable[[], None] | None = None,
        name: str = "payment",
    ):
        """
        Args:
            is_terminal: Asked after every fetch; True stops polling for good
            on_result: Receives each successful fetch result
            on_error: Receives each fetch failure (polling continues)
            on_timeout: Called once if the ceiling is reached while polling
            name: Label used in log lines (usually the order id)
        """
        self._is_terminal = is_terminal
        self._on_result = on_result
        self._on_error = on_error
        self._on_timeout = on_timeout
        self._name = name

        self._state = PollState.IDLE
        self._stop_reason: PollStopReason | None = None
        self._fetch: FetchCallable | None = None
        self._ticker: asyncio.Task | None = None
        self._inflight: asyncio.Task | None = None
        self._timeout_handle: asyncio.TimerHandle | None = None
        self._stopped = asyncio.Event()

        self.fetch_count = 0
        self.skipped_ticks = 0
        self.stopped_at: float | None = None  # time.monotonic() when STOPPED was entered

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def stop_reason(self) -> PollStopReason | None:
        return self._stop_reason

    @property
    def is_polling(self) -> bool:
        return self._state is PollState.POLLING

    def start(self, fetch: FetchCallable, interval_seconds: float, timeout_seconds: float) -> asyncio.Task:
        """
        Begin polling. Must be called from inside a running event loop.

        Returns:
            The ticker task (the handle); cancel it through ``stop()``, not directly.

        Raises:
            PollStateException: If the controller is not IDLE
        """
        if self._state is not PollState.IDLE:
            raise PollStateException(self._state.value, "start")

        loop = asyncio.get_running_loop()
        self._fetch = fetch
        self._state = PollState.POLLING
        self._timeout_handle = loop.call_later(timeout_seconds, self._handle_timeout)
        self._ticker = loop.create_task(self._tick_loop(interval_seconds), name=f"poll-{self._name}")

        logger.info(
            f"[Poll] Started for {self._name} "
            f"(interval: {interval_seconds:g}s, timeout: {timeout_seconds:g}s)"
        )
        return self._ticker

    def stop(self) -> None:
        """Stop polling. Safe to call at any time and more than once."""
        self._finish(PollStopReason.CANCELLED)

    async def wait(self) -> PollStopReason | None:
        """Wait until the controller is STOPPED and return why."""
        await self._stopped.wait()
        return self._stop_reason

    async def _tick_loop(self, interval_seconds: float) -> None:
        while self._state is PollState.POLLING:
            if self._inflight is None or self._inflight.done():
                self._inflight = asyncio.create_task(self._fetch_once())
            else:
                self.skipped_ticks += 1
                logger.debug(f"[Poll] Previous fetch for {self._name} still pending, skipping tick")
            await asyncio.sleep(interval_seconds)

    async def _fetch_once(self) -> None:
        self.fetch_count += 1
        try:
            result = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if self._state is not PollState.POLLING:
                return
            self._on_error(e)
        else:
            if self._state is not PollState.POLLING:
                logger.debug(f"[Poll] Dropping late result for {self._name}")
                return
            try:
                self._on_result(result)
            except Exception as e:
                logger.error(f"[Poll] Result handler failed for {self._name}: {e}", exc_info=True)
                self._on_error(e)

        if self._is_terminal():
            self._finish(PollStopReason.TERMINAL)

    def _handle_timeout(self) -> None:
        self._timeout_handle = None
        if self._state is not PollState.POLLING:
            return
        logger.warning(f"[Poll] Timed out waiting for a final status for {self._name}")
        self._finish(PollStopReason.TIMEOUT)
        if self._on_timeout is not None:
            self._on_timeout()

    def _finish(self, reason: PollStopReason) -> None:
        if self._state is PollState.STOPPED:
            return

        was_polling = self._state is PollState.POLLING
        self._state = PollState.STOPPED
        self._stop_reason = reason
        self.stopped_at = time.monotonic()

        if self._timeout_handle is not None:
            self._timeout_handle.cancel()
            self._timeout_handle = None

        current = asyncio.current_task() if was_polling else None
        if self._ticker is not None and self._ticker is not current:
            self._ticker.cancel()
        if self._inflight is not None and self._inflight is not current:
            self._inflight.cancel()

        self._stopped.set()
        if was_polling:
            logger.info(f"[Poll] Stopped for {self._name} ({reason.value}, {self.fetch_count} fetches)")
