"""Port interfaces for SysCode group membership.

These are abstract interfaces (ports) that define how the domain
interacts with external systems. Concrete implementations (adapters)
are provided in the adapters module.

This follows the Hexagonal Architecture pattern.
"""

from abc import ABC, abstractmethod
from typing import Optional

from .entities import (
    AssetCandidate,
    DeviceRow,
    GatewayResult,
    Group,
    MembershipUpdate,
)


class IDeviceRowSource(ABC):
    """Port for reading the desired state."""

    @abstractmethod
    def read(self) -> list[DeviceRow]:
        """Read every device row.

        Raises:
            CsvSourceError: If the source is missing, unreadable or lacks
                required columns
        """
        ...


class IGroupGateway(ABC):
    """Port for custom group operations.

    Every method returns a GatewayResult and never raises.
    """

    @abstractmethod
    async def find_group_by_name(self, name: str) -> GatewayResult[Optional[Group]]:
        """Look up a group by exact name (limit 1).

        Returns:
            Successful result with the group, or with None if absent
        """
        ...

    @abstractmethod
    async def create_group(self, name: str, description: str) -> GatewayResult[Group]:
        """Create a group with empty membership."""
        ...

    @abstractmethod
    async def fetch_group(self, group_id: str, retry: bool = True) -> GatewayResult[Group]:
        """Fetch a group by id (includes current members when available).

        retry=False makes a single request, for callers that bound their
        own attempts.
        """
        ...

    @abstractmethod
    async def replace_members(self, update: MembershipUpdate) -> GatewayResult[None]:
        """Replace the group's membership with update.member_ids."""
        ...


class IAssetGateway(ABC):
    """Port for asset lookups."""

    @abstractmethod
    async def find_assets_by_name(
        self,
        name: str,
        limit: int = 10,
    ) -> GatewayResult[list[AssetCandidate]]:
        """Query active assets by exact name, in response order."""
        ...
