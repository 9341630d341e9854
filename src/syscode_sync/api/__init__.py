"""Asset-management API modules.

Classes:
    AssetApiClient: Generic HTTP client with typed errors and read retries
    ApiTokenAuth: Static token credentials

Exceptions:
    SyncError: Base exception for all sync errors
    ConfigurationError: Missing or invalid configuration
    CsvSourceError: Input CSV missing, unreadable or lacking columns
    APIError: API request failures
    NetworkError: Network connectivity issues
    ResponseParseError: Payload missing required fields

Resilience:
    retry_async: Retry on retryable exceptions with backoff
    retry_until: Bounded retry until a predicate holds
"""
from .auth import ApiTokenAuth
from .client import AssetApiClient
from .exceptions import (
    APIError,
    ConfigurationError,
    ConnectionError,
    CsvSourceError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    ResponseParseError,
    ServerError,
    SyncError,
    TimeoutError,
    ValidationError,
)
from .resilience import RetryOutcome, retry_async, retry_until

__all__ = [
    "AssetApiClient",
    "ApiTokenAuth",
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
    "RetryOutcome",
    "retry_async",
    "retry_until",
]
