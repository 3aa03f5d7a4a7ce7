"""
Unit tests for startup configuration validation.
"""

from types import SimpleNamespace

import pytest

from utils.config_validator import (
    ConfigValidationError,
    validate_or_exit,
    validate_polling,
    validate_startup_config,
    validate_status_api_url,
)


def make_config(**overrides):
    values = dict(
        STATUS_API_URL="https://api.example.com",
        POLL_INTERVAL_SECONDS=4,
        POLL_TIMEOUT_SECONDS=300,
        RESUME_RECORD_TTL_SECONDS=86400,
        SESSION_RETENTION_SECONDS=900,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


class TestStatusApiUrl:

    def test_valid(self):
        validate_status_api_url("http://localhost:3095")
        validate_status_api_url("https://api.example.com/v1")

    @pytest.mark.parametrize("url", [None, "", "localhost:3095", "ftp://api.example.com", "https://"])
    def test_invalid(self, url):
        with pytest.raises(ConfigValidationError):
            validate_status_api_url(url)


class TestPolling:

    def test_valid(self):
        validate_polling(4, 300)

    @pytest.mark.parametrize("interval,timeout", [(0, 300), (-1, 300), (4, 0), (10, 5)])
    def test_invalid(self, interval, timeout):
        with pytest.raises(ConfigValidationError):
            validate_polling(interval, timeout)


class TestStartupConfig:

    def test_defaults_pass(self):
        validate_startup_config(make_config())

    def test_bad_ttl(self):
        with pytest.raises(ConfigValidationError, match="RESUME_RECORD_TTL_SECONDS"):
            validate_startup_config(make_config(RESUME_RECORD_TTL_SECONDS=0))

    def test_validate_or_exit(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            validate_or_exit(make_config(STATUS_API_URL=""))

        assert exc_info.value.code == 1
        assert "STATUS_API_URL" in capsys.readouterr().err

    def test_negative_session_retention(self):
        with pytest.raises(ConfigValidationError, match="SESSION_RETENTION_SECONDS"):
            validate_startup_config(make_config(SESSION_RETENTION_SECONDS=-1))
