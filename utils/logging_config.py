"""
Centralized Logging Configuration

One root configuration for the API process: a console handler, a daily
rotated file under LOG_DIR (skipped in test runs), and a masking filter on
both so provider credentials, signed headers and customer PII never reach
the retained logs. uvicorn's loggers are routed through the same handlers.
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config
from enums.runtime_environment import RuntimeEnvironment

LOG_FORMAT = '%(asctime)s | %(name)-28s | %(levelname)-8s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_NAME = "storefront.log"

# Third-party loggers that are noisy at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "aiohttp.access")


class SecretMaskingFilter(logging.Filter):
    """
    Replaces credentials and customer PII in log records with [REDACTED_*] markers.

    Order matters: the prefixed provider keys run before the generic
    key=value patterns so they keep their specific marker.
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        # Stripe / Resend keys and the webhook signing secret
        (re.compile(r'\b(sk|rk|pk)_(live|test)_[A-Za-z0-9]{8,}'), '[REDACTED_STRIPE_KEY]'),
        (re.compile(r'\bwhsec_[A-Za-z0-9_]{8,}'), '[REDACTED_WEBHOOK_SECRET]'),
        (re.compile(r'\bre_[A-Za-z0-9_]{16,}'), '[REDACTED_RESEND_KEY]'),

        # Stripe-Signature header values and the X-Session-Data hash
        (re.compile(r'(v[01]=)([a-f0-9]{32,})'), r'\1[REDACTED_SIGNATURE]'),
        (re.compile(r'(hash=)([a-f0-9]{32,})'), r'\1[REDACTED_SESSION_HASH]'),

        # Generic credentials
        (re.compile(r'(client[_-]?secret["\']?\s*[:=]\s*["\']?)([^\s"\'&]{8,})', re.IGNORECASE),
         r'\1[REDACTED_CLIENT_SECRET]'),
        (re.compile(r'(admin[_-]?token["\']?\s*[:=]\s*["\']?)([^\s"\'&]+)', re.IGNORECASE),
         r'\1[REDACTED_ADMIN_TOKEN]'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\'&]+)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]'),

        # Customer PII
        (re.compile(r'\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b'), '[REDACTED_EMAIL]'),
        (re.compile(r'(?<!\d)(\+?1[-.\s]?)?\(?\d{3}\)?[-.\s]\d{3}[-.\s]\d{4}(?!\d)'), '[REDACTED_PHONE]'),
    ]

    def mask(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        # Render first so values passed as %-style args are masked too
        record.msg = self.mask(record.getMessage())
        record.args = None
        return True


def _build_file_handler(log_dir: Path, retention_days: int) -> logging.Handler:
    log_dir.mkdir(parents=True, exist_ok=True)
    return logging.handlers.TimedRotatingFileHandler(
        filename=log_dir / LOG_FILE_NAME,
        when="midnight",
        interval=1,
        backupCount=retention_days,
        encoding="utf-8"
    )


def setup_logging() -> None:
    """
    Configure the root logger. Call once at startup (run.py).

    - Level from config.LOG_LEVEL
    - Daily rotation, config.LOG_RETENTION_DAYS files kept (no file in test runs)
    - Masking when config.LOG_MASK_SECRETS is set
    """
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if config.RUNTIME_ENVIRONMENT != RuntimeEnvironment.TEST:
        handlers.append(_build_file_handler(Path(config.LOG_DIR), config.LOG_RETENTION_DAYS))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if config.LOG_MASK_SECRETS:
            handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)

    # uvicorn installs its own handlers unless told otherwise
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.propagate = True

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"Logging initialized: level={config.LOG_LEVEL}, retention={config.LOG_RETENTION_DAYS} days, "
                 f"masking={'on' if config.LOG_MASK_SECRETS else 'off'}")
