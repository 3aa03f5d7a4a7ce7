"""
Configuration Validation Module

Validates critical configuration values at startup to fail-fast
with clear error messages instead of runtime failures.
"""

import sys
from urllib.parse import urlparse


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def validate_status_api_url(url: str | None) -> None:
    """
    Validate the backend status endpoint base URL.

    Args:
        url: STATUS_API_URL value

    Raises:
        ConfigValidationError: If URL is missing or not http(s)
    """
    if not url:
        raise ConfigValidationError(
            "STATUS_API_URL is required to look up payment status!\n"
            "Add to .env: STATUS_API_URL=https://api.example.com"
        )

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigValidationError(
            f"STATUS_API_URL must be an absolute http(s) URL (got: {url})"
        )


def validate_polling(interval_seconds: float, timeout_seconds: float) -> None:
    """
    Validate polling interval and wall-clock ceiling.

    Args:
        interval_seconds: POLL_INTERVAL_SECONDS value
        timeout_seconds: POLL_TIMEOUT_SECONDS value

    Raises:
        ConfigValidationError: If either is non-positive or the ceiling is below one interval
    """
    if interval_seconds <= 0:
        raise ConfigValidationError(
            f"POLL_INTERVAL_SECONDS must be positive (got: {interval_seconds})"
        )

    if timeout_seconds <= 0:
        raise ConfigValidationError(
            f"POLL_TIMEOUT_SECONDS must be positive (got: {timeout_seconds})"
        )

    if timeout_seconds < interval_seconds:
        raise ConfigValidationError(
            f"POLL_TIMEOUT_SECONDS ({timeout_seconds}) must not be shorter than "
            f"POLL_INTERVAL_SECONDS ({interval_seconds})"
        )


def validate_resume_ttl(ttl_seconds: int) -> None:
    if ttl_seconds <= 0:
        raise ConfigValidationError(
            f"RESUME_RECORD_TTL_SECONDS must be positive (got: {ttl_seconds})"
        )


def validate_session_retention(retention_seconds: float) -> None:
    if retention_seconds < 0:
        raise ConfigValidationError(
            f"SESSION_RETENTION_SECONDS must not be negative (got: {retention_seconds})"
        )


def validate_startup_config(config_module) -> None:
    """
    Validate all critical configuration at startup.

    Args:
        config_module: The config module to validate

    Raises:
        ConfigValidationError: If any validation fails
    """
    validate_status_api_url(getattr(config_module, 'STATUS_API_URL', None))
    validate_polling(
        getattr(config_module, 'POLL_INTERVAL_SECONDS', 0),
        getattr(config_module, 'POLL_TIMEOUT_SECONDS', 0),
    )
    validate_resume_ttl(getattr(config_module, 'RESUME_RECORD_TTL_SECONDS', 0))
    validate_session_retention(getattr(config_module, 'SESSION_RETENTION_SECONDS', 0))


def validate_or_exit(config_module) -> None:
    """
    Validate configuration and exit with error message if validation fails.

    Args:
        config_module: The config module to validate
    """
    try:
        validate_startup_config(config_module)
    except ConfigValidationError as e:
        print(f"\n ERROR: Invalid configuration\n", file=sys.stderr)
        print(f"{e}\n", file=sys.stderr)
        sys.exit(1)
