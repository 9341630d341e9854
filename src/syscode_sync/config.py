"""Runtime configuration and logging setup.

Configuration is read from environment variables (a local .env file is
loaded first). Explicit overrides, typically from CLI flags, win over the
environment.

Environment Variables:
    SYNC_API_BASE_URL: Asset-management API base URL (required)
    SYNC_API_TOKEN: API token (required)
    SYNC_API_TOKEN_HEADER: Header carrying the token (default: Authorization)
    SYNC_VERIFY_ATTEMPTS: Read-back attempts after a group create (default: 3)
    SYNC_VERIFY_DELAY_SECONDS: Seconds between read-back attempts (default: 3)
    SYNC_ASSET_LOOKUP_LIMIT: Asset query page size, at least 10 (default: 10)
    SYNC_GROUP_DESCRIPTION: Description template for new groups, {syscode}
    SYNC_REQUEST_TIMEOUT_SECONDS: HTTP request timeout (default: 60)
    SYNC_MAX_RETRIES: Attempts for retryable read failures (default: 3)
"""
import logging
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from .api.auth import DEFAULT_TOKEN_HEADER
from .api.exceptions import ConfigurationError
from .membership.use_cases.resolve_group import DEFAULT_DESCRIPTION_TEMPLATE
from .membership.use_cases.resolve_members import MIN_LOOKUP_LIMIT

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


@dataclass
class SyncConfig:
    """Settings for one reconciliation run."""

    base_url: str
    api_token: str = field(repr=False)
    token_header: str = DEFAULT_TOKEN_HEADER
    verify_attempts: int = 3
    verify_delay_seconds: float = 3.0
    asset_lookup_limit: int = MIN_LOOKUP_LIMIT
    group_description: str = DEFAULT_DESCRIPTION_TEMPLATE
    request_timeout_seconds: float = 60.0
    max_retries: int = 3

    def __post_init__(self):
        missing = []
        if not self.base_url:
            missing.append("SYNC_API_BASE_URL")
        if not self.api_token:
            missing.append("SYNC_API_TOKEN")
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                missing_keys=missing,
            )
        if self.verify_attempts < 1:
            raise ConfigurationError("SYNC_VERIFY_ATTEMPTS must be at least 1")
        if self.verify_delay_seconds < 0:
            raise ConfigurationError("SYNC_VERIFY_DELAY_SECONDS must not be negative")
        if "{syscode}" not in self.group_description:
            raise ConfigurationError("SYNC_GROUP_DESCRIPTION must contain {syscode}")
        self.asset_lookup_limit = max(MIN_LOOKUP_LIMIT, self.asset_lookup_limit)

    @classmethod
    def from_env(cls, **overrides: Any) -> "SyncConfig":
        """Load settings from the environment.

        Overrides whose value is None are ignored, so unset CLI flags fall
        through to the environment.

        Raises:
            ConfigurationError: If required settings are missing or invalid.
        """
        load_dotenv()

        values = {
            "base_url": os.getenv("SYNC_API_BASE_URL", ""),
            "api_token": os.getenv("SYNC_API_TOKEN", ""),
            "token_header": os.getenv("SYNC_API_TOKEN_HEADER") or DEFAULT_TOKEN_HEADER,
            "verify_attempts": _env_int("SYNC_VERIFY_ATTEMPTS", 3),
            "verify_delay_seconds": _env_float("SYNC_VERIFY_DELAY_SECONDS", 3.0),
            "asset_lookup_limit": _env_int("SYNC_ASSET_LOOKUP_LIMIT", MIN_LOOKUP_LIMIT),
            "group_description": os.getenv("SYNC_GROUP_DESCRIPTION") or DEFAULT_DESCRIPTION_TEMPLATE,
            "request_timeout_seconds": _env_float("SYNC_REQUEST_TIMEOUT_SECONDS", 60.0),
            "max_retries": _env_int("SYNC_MAX_RETRIES", 3),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)


class _MaxLevelFilter(logging.Filter):
    """Pass records strictly below a level."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def setup_logging(verbose: bool = False, logger_name: Optional[str] = "syscode_sync") -> logging.Logger:
    """Route progress to stdout and problems to stderr.

    INFO (and DEBUG when verbose) go to stdout; WARNING and above go to
    stderr. Calling this again replaces the handlers instead of stacking
    them.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(logging.DEBUG)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stdout_handler.setFormatter(formatter)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)

    logger.addHandler(stdout_handler)
    logger.addHandler(stderr_handler)
    return logger
