"""Domain entities for SysCode group membership.

These are pure domain objects with no infrastructure dependencies. Records
coming back from the API are parsed into typed entities through from_api()
constructors, which raise ResponseParseError when a required field is
missing instead of letting loosely shaped dicts travel through the code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from ...api.exceptions import APIError, ResponseParseError

T = TypeVar("T")

# Syscode assigned to rows whose SysCode cell is empty
NO_SYSCODE = "no-syscode"


def _usable_id(value: Any) -> Optional[str]:
    """Return value as an identifier string, or None if it cannot be one."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _upper_per_char(text: str) -> str:
    """Uppercase one character at a time, keeping any character whose
    uppercase form is longer than itself (e.g. "ß" stays "ß", never "SS").
    """
    return "".join(c.upper() if len(c.upper()) == 1 else c for c in text)


def extract_items(payload: Any, record_type: str) -> list[dict]:
    """Pull the record list out of a query response.

    Accepts either a bare JSON list or an object with an "items" list.
    Non-dict entries are dropped.

    Raises:
        ResponseParseError: If the payload has neither shape
    """
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict) and isinstance(payload.get("items"), list):
        items = payload["items"]
    else:
        raise ResponseParseError(record_type, "items", payload=payload)
    return [item for item in items if isinstance(item, dict)]


def extract_entity(payload: Any, record_type: str) -> dict:
    """Unwrap the {"entity": {...}} envelope used by create and fetch responses.

    Raises:
        ResponseParseError: If there is no entity object
    """
    if isinstance(payload, dict) and isinstance(payload.get("entity"), dict):
        return payload["entity"]
    raise ResponseParseError(record_type, "entity", payload=payload)


# ============================================
# Input side
# ============================================

@dataclass(frozen=True)
class DeviceRow:
    """A single record from the input CSV."""

    name: str
    fqdn: str
    raw_syscode: str = ""
    row_number: int = 0


@dataclass(frozen=True)
class WorkItem:
    """One (device, syscode) pair to reconcile.

    A row listing N syscodes yields N work items sharing name and fqdn.
    """

    name: str
    fqdn: str
    syscode: str
    row_number: int = 0


@dataclass(frozen=True)
class SyscodeBucket:
    """All work items that share one syscode; the unit of failure isolation."""

    syscode: str
    items: tuple[WorkItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)


# ============================================
# API records
# ============================================

@dataclass(frozen=True)
class Group:
    """A custom group in the remote API.

    Attributes:
        id: Opaque group identifier
        name: Group name (the syscode)
        created_now: True if this run created the group
        member_ids: Current members, when the payload carried them
    """

    id: str
    name: str
    created_now: bool = False
    member_ids: tuple[str, ...] = ()

    @classmethod
    def from_api(
        cls,
        data: Any,
        created_now: bool = False,
        fallback_name: str = "",
    ) -> "Group":
        """Parse a group record.

        Raises:
            ResponseParseError: If the record has no usable id
        """
        if not isinstance(data, dict):
            raise ResponseParseError("Group", "id", payload=data)
        group_id = _usable_id(data.get("id"))
        if group_id is None:
            raise ResponseParseError("Group", "id", payload=data)

        name = data.get("name")
        members = data.get("membersId") or []
        member_ids = tuple(
            m for m in (_usable_id(raw) for raw in members) if m is not None
        ) if isinstance(members, list) else ()

        return cls(
            id=group_id,
            name=name if isinstance(name, str) and name else fallback_name,
            created_now=created_now,
            member_ids=member_ids,
        )


@dataclass(frozen=True)
class AssetCandidate:
    """An asset returned by a name query.

    fqdn keeps whatever the API sent; only string values can ever match.
    """

    id: str
    name: Optional[str] = None
    fqdn: Any = None

    @classmethod
    def from_api(cls, data: Any) -> "AssetCandidate":
        """Parse an asset record.

        Raises:
            ResponseParseError: If the record has no usable id
        """
        if not isinstance(data, dict):
            raise ResponseParseError("Asset", "id", payload=data)
        asset_id = _usable_id(data.get("id"))
        if asset_id is None:
            raise ResponseParseError("Asset", "id", payload=data)
        name = data.get("name")
        return cls(
            id=asset_id,
            name=name if isinstance(name, str) else None,
            fqdn=data.get("fqdn"),
        )

    def matches_fqdn(self, fqdn: str) -> bool:
        """Ordinal case-insensitive FQDN comparison; non-string FQDNs never match."""
        return isinstance(self.fqdn, str) and _upper_per_char(self.fqdn) == _upper_per_char(fqdn)


@dataclass(frozen=True)
class ResolvedAsset:
    """An asset accepted for a work item."""

    id: str
    fqdn: str


@dataclass(frozen=True)
class MembershipUpdate:
    """Full member list to write to a group."""

    group_id: str
    member_ids: tuple[str, ...] = ()

    def to_payload(self) -> dict:
        """Request body for the membership replace call."""
        return {"membersId": list(self.member_ids)}


# ============================================
# Results
# ============================================

class GroupError(str, Enum):
    """Why a syscode's group could not be resolved."""

    LOOKUP_FAILED = "lookup_failed"
    CREATE_FAILED = "create_failed"
    VERIFICATION_FAILED = "verification_failed"


@dataclass
class GatewayResult(Generic[T]):
    """Outcome of a single API call made through a gateway.

    Gateways never raise; callers branch on success.
    """

    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    response_body: Optional[str] = None
    endpoint: Optional[str] = None

    @classmethod
    def ok(cls, value: Optional[T] = None, endpoint: Optional[str] = None) -> "GatewayResult[T]":
        return cls(success=True, value=value, endpoint=endpoint)

    @classmethod
    def failure(cls, error: Exception, endpoint: Optional[str] = None) -> "GatewayResult[T]":
        """Build a failed result, keeping HTTP context when the error has it."""
        status_code = None
        response_body = None
        if isinstance(error, APIError):
            status_code = error.status_code
            response_body = error.response_body
            endpoint = endpoint or error.endpoint
        return cls(
            success=False,
            error=str(error),
            status_code=status_code,
            response_body=response_body,
            endpoint=endpoint,
        )

    def describe(self) -> str:
        """One-line description of a failure for log output."""
        parts = [self.error or "unknown error"]
        if self.endpoint:
            parts.append(f"uri={self.endpoint}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.response_body:
            parts.append(f"body={self.response_body[:500]}")
        return " | ".join(parts)


@dataclass
class GroupResult:
    """Result of resolving the group for one syscode."""

    success: bool
    syscode: str
    group: Optional[Group] = None
    error: Optional[GroupError] = None
    message: Optional[str] = None
    verify_attempts: int = 0

    @property
    def group_id(self) -> Optional[str]:
        return self.group.id if self.group else None


@dataclass
class MemberResolution:
    """Result of resolving the members of one bucket."""

    syscode: str
    member_ids: list[str] = field(default_factory=list)
    unresolved: list[WorkItem] = field(default_factory=list)
    lookup_errors: int = 0
    duplicates: int = 0
