#!/usr/bin/env python3
"""Exception Hierarchy for the SysCode group sync.

Every error raised by the HTTP client, the CSV reader or the configuration
layer derives from SyncError, so callers can catch the whole family with a
single except clause.

Design Principles:
    - Exceptions preserve context (original error, details)
    - Transport errors carry enough detail to decide whether to retry
    - Gateways convert these into explicit results; use cases never see them

Exception Hierarchy:
    SyncError (base)
    ├── ConfigurationError (fix config)
    ├── CsvSourceError (fix input file)
    ├── APIError
    │   ├── RateLimitError
    │   ├── NotFoundError
    │   ├── ValidationError
    │   └── ServerError
    ├── NetworkError
    │   ├── ConnectionError
    │   └── TimeoutError
    └── ResponseParseError (payload missing required fields)
"""
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class SyncError(Exception):
    """Base exception for all sync errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "CONFIGURATION_ERROR")
        details: Additional context as a dictionary
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__.upper()
        self.details = details or {}
        self.cause = cause

        if cause:
            self.__cause__ = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.insert(0, f"[{self.code}]")
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            parts.append(f"({detail_str})")
        return " ".join(parts)

# ============================================
# Precondition Errors
# ============================================

class ConfigurationError(SyncError):
    """Raised when configuration is missing or invalid."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            **kwargs,
        )


class CsvSourceError(SyncError):
    """Raised when the input CSV is missing, unreadable or lacks columns.

    Attributes:
        path: Path of the offending file
        missing_columns: Required columns absent from the header
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        missing_columns: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        if missing_columns:
            details["missing_columns"] = missing_columns
        super().__init__(
            message,
            code="CSV_SOURCE_ERROR",
            details=details,
            **kwargs,
        )
        self.path = path
        self.missing_columns = missing_columns or []


# ============================================
# API Errors
# ============================================

class APIError(SyncError):
    """Base class for API response errors.

    Attributes:
        status_code: HTTP status code
        endpoint: API endpoint that was called
        response_body: Raw response body (may be truncated)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        endpoint: Optional[str] = None,
        response_body: Optional[str] = None,
        method: str = "GET",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["status_code"] = status_code
        if endpoint:
            details["endpoint"] = endpoint
        if method:
            details["method"] = method
        if response_body:
            details["response_body"] = response_body[:500] if len(response_body) > 500 else response_body

        kwargs.setdefault("code", f"API_ERROR_{status_code}")

        super().__init__(
            message,
            details=details,
            **kwargs,
        )
        self.status_code = status_code
        self.endpoint = endpoint
        self.response_body = response_body
        self.method = method


class RateLimitError(APIError):
    """Raised when API rate limit is exceeded (HTTP 429).

    Attributes:
        retry_after: Seconds to wait before retrying (from Retry-After header)
    """

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[int] = None,
        **kwargs,
    ):
        kwargs.setdefault("status_code", 429)
        details = kwargs.pop("details", {})
        if retry_after:
            details["retry_after_seconds"] = retry_after
        super().__init__(
            message,
            code="RATE_LIMIT_EXCEEDED",
            details=details,
            **kwargs,
        )
        self.retry_after = retry_after or 60


class NotFoundError(APIError):
    """Raised when requested resource is not found (HTTP 404)."""

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        message = f"{resource_type} not found"
        if resource_id:
            message = f"{resource_type} '{resource_id}' not found"

        kwargs.setdefault("status_code", 404)
        details = kwargs.pop("details", {})
        details["resource_type"] = resource_type
        if resource_id:
            details["resource_id"] = resource_id

        super().__init__(
            message,
            code="NOT_FOUND",
            details=details,
            **kwargs,
        )


class ValidationError(APIError):
    """Raised when API validation fails (HTTP 400/422)."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("status_code", 400)
        super().__init__(message, code="VALIDATION_ERROR", **kwargs)


class ServerError(APIError):
    """Raised when server returns 5xx error."""

    def __init__(
        self,
        message: str = "Server error",
        **kwargs,
    ):
        kwargs.setdefault("status_code", 500)
        super().__init__(
            message,
            code="SERVER_ERROR",
            **kwargs,
        )


# ============================================
# Network Errors
# ============================================

class NetworkError(SyncError):
    """Base class for network-related errors."""


class ConnectionError(NetworkError):
    """Raised when connection to server fails."""

    def __init__(
        self,
        message: str = "Failed to connect to server",
        host: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if host:
            details["host"] = host
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details=details,
            **kwargs,
        )


class TimeoutError(NetworkError):
    """Raised when request times out."""

    def __init__(
        self,
        message: str = "Request timed out",
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            code="TIMEOUT_ERROR",
            details=details,
            **kwargs,
        )


# ============================================
# Payload Errors
# ============================================

class ResponseParseError(SyncError):
    """Raised when an API payload lacks the fields a typed record needs.

    Attributes:
        record_type: Name of the record being parsed (e.g. "Group")
        missing_field: The first required field that was absent or unusable
    """

    def __init__(
        self,
        record_type: str,
        missing_field: str,
        payload: Any = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["record_type"] = record_type
        details["missing_field"] = missing_field
        if payload is not None:
            details["payload"] = str(payload)[:200]
        super().__init__(
            f"{record_type} payload has no usable '{missing_field}'",
            code="RESPONSE_PARSE_ERROR",
            details=details,
            **kwargs,
        )
        self.record_type = record_type
        self.missing_field = missing_field


__all__ = [
    "SyncError",
    "ConfigurationError",
    "CsvSourceError",
    "APIError",
    "RateLimitError",
    "NotFoundError",
    "ValidationError",
    "ServerError",
    "NetworkError",
    "ConnectionError",
    "TimeoutError",
    "ResponseParseError",
]
