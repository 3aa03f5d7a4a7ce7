"""
Centralized Logging Configuration

- log level, retention and masking come from config
- daily rotation of logs/payment_status.log
- console output with the same format
- secret and payer PII masking on both handlers
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config

LOG_FILE_NAME = "payment_status.log"
LOG_FORMAT = '%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s'


class SecretMaskingFilter(logging.Filter):
    """
    Replaces credentials and payer contact data in log records with
    ``[REDACTED_*]`` markers.

    Masks:
    - status API bearer tokens and api keys
    - tokens and passwords in key=value form
    - payer e-mail addresses
    - payer phone numbers
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        (re.compile(r'(api[_-]?key["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-]{16,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_API_KEY]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.=]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-\.:]{16,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),

        # Only labelled or "+"-prefixed numbers; bare digit runs are often order ids
        (re.compile(r'(phone["\']?\s*[:=]\s*["\']?)(\+?[\d\s\-()]{7,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_PHONE]\3'),
        (re.compile(r'(?<![\w+])\+\d{1,3}[-.\s]?\d{3,5}[-.\s]?\d{3,5}(?:[-.\s]?\d{1,4})?\b'), '[REDACTED_PHONE]'),
    ]

    def mask(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Records are modified, never dropped
        if record.msg:
            record.msg = self.mask(str(record.msg))

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)

        return True


def setup_logging(log_dir: Path | str = "logs"):
    """
    Initialize logging for the whole process.

    Call once at startup (run.py). Replaces any handlers already on the root
    logger so repeated calls do not duplicate output.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True)

    log_level_str = getattr(config, "LOG_LEVEL", "INFO")
    log_level = getattr(logging, str(log_level_str).upper(), logging.INFO)
    retention_days = getattr(config, "LOG_RETENTION_DAYS", 7)
    mask_secrets = getattr(config, "LOG_MASK_SECRETS", True)

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    file_handler = logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8"
    )
    console_handler = logging.StreamHandler()

    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if mask_secrets:
            handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # uvicorn installs its own handlers; route its records through ours
    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    logging.info(
        f"Logging initialized: Level={log_level_str}, Retention={retention_days} days, "
        f"Masking={'ENABLED' if mask_secrets else 'DISABLED'}"
    )
