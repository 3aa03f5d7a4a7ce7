"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports
config_mock = MagicMock()
config_mock.STATUS_API_URL = "http://status-api.test"
config_mock.STATUS_API_TOKEN = None
config_mock.STATUS_API_TIMEOUT_SECONDS = 5.0
config_mock.POLL_INTERVAL_SECONDS = 0.01  # Fast ticks for tests
config_mock.POLL_TIMEOUT_SECONDS = 2.0
config_mock.RESUME_RECORD_TTL_SECONDS = 3600
config_mock.SESSION_RETENTION_SECONDS = 300.0
config_mock.REDIS_HOST = "localhost"
config_mock.REDIS_PORT = 6379
config_mock.REDIS_PASSWORD = None
config_mock.LOG_LEVEL = "DEBUG"
config_mock.LOG_MASK_SECRETS = True
config_mock.LOG_RETENTION_DAYS = 1
config_mock.WEBAPP_HOST = "127.0.0.1"
config_mock.WEBAPP_PORT = 5000

sys.modules['config'] = config_mock


# ============================================================================
# Clock Fixtures
# ============================================================================

class FakeClock:
    """Deterministic UTC clock; each call returns the current time, tick() advances it."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def tick(self, seconds: float = 1.0) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()


# ============================================================================
# Status Lookup Fixtures
# ============================================================================

class ScriptedFetch:
    """
    Async stand-in for the backend status lookup.

    Returns (or raises) the scripted responses in order; the last entry
    repeats once the script runs out. Records every order id requested.
    """

    def __init__(self, *responses, delay: float = 0.0):
        self.responses = list(responses)
        self.delay = delay
        self.calls: list[str] = []

    async def __call__(self, order_id: str):
        import asyncio
        from models.status_report import RawStatusReport

        self.calls.append(order_id)
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if self.delay:
            await asyncio.sleep(self.delay)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            return RawStatusReport.from_payload(response)
        return response


@pytest.fixture
def scripted_fetch():
    return ScriptedFetch
