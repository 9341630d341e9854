#!/usr/bin/env python3
"""API token authentication for the asset-management API.

The API authenticates every request with a long-lived token sent in a single
header. Token acquisition and rotation are handled outside this tool; this
module only turns the configured token into request headers.

Security Notes:
    - Tokens are held in memory only (never persisted or logged)
    - Log lines use token_id, a SHA-256 prefix, never the token itself

Example:
    >>> auth = ApiTokenAuth(token=config.api_token, header=config.token_header)
    >>> headers = auth.headers()
"""
import hashlib
from dataclasses import dataclass, field

from .exceptions import ConfigurationError

DEFAULT_TOKEN_HEADER = "Authorization"


@dataclass
class ApiTokenAuth:
    """Static token credentials.

    Attributes:
        token: The API token.
        header: Header carrying the token. For "Authorization" the value is
            sent as "Bearer <token>"; any other header carries the raw token.
    """

    token: str = field(repr=False)
    header: str = DEFAULT_TOKEN_HEADER

    def __post_init__(self):
        if not self.token or not self.token.strip():
            raise ConfigurationError(
                "API token is required. Set SYNC_API_TOKEN.",
                missing_keys=["SYNC_API_TOKEN"],
            )
        self.token = self.token.strip()

    @property
    def token_id(self) -> str:
        """Safe identifier for logging (SHA-256 hash, first 8 chars)."""
        return hashlib.sha256(self.token.encode()).hexdigest()[:8]

    def headers(self) -> dict[str, str]:
        """Request headers carrying the token."""
        if self.header.lower() == "authorization":
            value = f"Bearer {self.token}"
        else:
            value = self.token
        return {
            self.header: value,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
