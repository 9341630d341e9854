"""Domain layer for SysCode group membership.

Contains:
- Entities: Core business objects and typed API records
- Ports: Interface definitions for infrastructure adapters
"""

from .entities import (
    NO_SYSCODE,
    AssetCandidate,
    DeviceRow,
    GatewayResult,
    Group,
    GroupError,
    GroupResult,
    MemberResolution,
    MembershipUpdate,
    ResolvedAsset,
    SyscodeBucket,
    WorkItem,
)
from .ports import IAssetGateway, IDeviceRowSource, IGroupGateway

__all__ = [
    # Entities
    "NO_SYSCODE",
    "DeviceRow",
    "WorkItem",
    "SyscodeBucket",
    "Group",
    "AssetCandidate",
    "ResolvedAsset",
    "MembershipUpdate",
    "GroupError",
    "GatewayResult",
    "GroupResult",
    "MemberResolution",
    # Ports
    "IDeviceRowSource",
    "IGroupGateway",
    "IAssetGateway",
]
