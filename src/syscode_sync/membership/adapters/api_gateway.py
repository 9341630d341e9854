"""Asset-management API gateway adapters.

These adapters implement IGroupGateway and IAssetGateway on top of
AssetApiClient. They:
- Build endpoint paths and query parameters
- Parse payloads into typed domain records
- Translate every exception into a failed GatewayResult, keeping the
  endpoint, status code and response body for the logs
"""

import logging
from typing import Optional
from urllib.parse import quote

from ...api.client import AssetApiClient
from ...api.exceptions import ResponseParseError
from ..domain.entities import (
    AssetCandidate,
    GatewayResult,
    Group,
    MembershipUpdate,
    extract_entity,
    extract_items,
)
from ..domain.ports import IAssetGateway, IGroupGateway

logger = logging.getLogger(__name__)


class ApiGroupGateway(IGroupGateway):
    """Custom group operations against the API."""

    ENDPOINT = "/groups"

    def __init__(self, client: AssetApiClient):
        """Initialize the gateway.

        Args:
            client: Configured AssetApiClient (inside its async context)
        """
        self.client = client

    def _group_endpoint(self, group_id: str) -> str:
        return f"{self.ENDPOINT}/{quote(str(group_id), safe='')}"

    async def find_group_by_name(self, name: str) -> GatewayResult[Optional[Group]]:
        """Look up a group by exact name."""
        endpoint = self.ENDPOINT
        try:
            payload = await self.client.get(endpoint, params={"name": name, "limit": 1})
            items = extract_items(payload, "Group")
            if not items:
                return GatewayResult.ok(None, endpoint=endpoint)

            group = Group.from_api(items[0], fallback_name=name)
            if group.name != name:
                logger.warning(
                    f"Group query for '{name}' returned '{group.name}' (id={group.id}); "
                    f"treating as not found"
                )
                return GatewayResult.ok(None, endpoint=endpoint)
            return GatewayResult.ok(group, endpoint=endpoint)

        except Exception as e:
            logger.error(f"Group lookup failed for '{name}': {e}")
            return GatewayResult.failure(e, endpoint=endpoint)

    async def create_group(self, name: str, description: str) -> GatewayResult[Group]:
        """Create an empty group named name."""
        endpoint = self.ENDPOINT
        body = {"name": name, "description": description, "membersId": []}
        try:
            payload = await self.client.post(endpoint, json_body=body)
            entity = extract_entity(payload, "Group")
            group = Group.from_api(entity, created_now=True, fallback_name=name)
            return GatewayResult.ok(group, endpoint=endpoint)

        except Exception as e:
            logger.error(f"Group create failed for '{name}': {e}")
            return GatewayResult.failure(e, endpoint=endpoint)

    async def fetch_group(self, group_id: str, retry: bool = True) -> GatewayResult[Group]:
        """Fetch a group by id."""
        endpoint = self._group_endpoint(group_id)
        try:
            payload = await self.client.get(endpoint, retry=retry)
            entity = extract_entity(payload, "Group")
            return GatewayResult.ok(Group.from_api(entity), endpoint=endpoint)

        except Exception as e:
            logger.debug(f"Group fetch failed for id={group_id}: {e}")
            return GatewayResult.failure(e, endpoint=endpoint)

    async def replace_members(self, update: MembershipUpdate) -> GatewayResult[None]:
        """Replace the group's members (full-replace semantics)."""
        endpoint = f"{self._group_endpoint(update.group_id)}/members"
        try:
            await self.client.put(endpoint, json_body=update.to_payload())
            return GatewayResult.ok(None, endpoint=endpoint)

        except Exception as e:
            logger.error(f"Membership update failed for group id={update.group_id}: {e}")
            return GatewayResult.failure(e, endpoint=endpoint)


class ApiAssetGateway(IAssetGateway):
    """Asset lookups against the API."""

    ENDPOINT = "/assets"

    def __init__(self, client: AssetApiClient):
        self.client = client

    async def find_assets_by_name(
        self,
        name: str,
        limit: int = 10,
    ) -> GatewayResult[list[AssetCandidate]]:
        """Query active assets named name, preserving response order.

        Records without a usable id are skipped with a debug log.
        """
        endpoint = self.ENDPOINT
        params = {"name": name, "limit": limit, "active": "true"}
        try:
            payload = await self.client.get(endpoint, params=params)
            candidates = []
            for item in extract_items(payload, "Asset"):
                try:
                    candidates.append(AssetCandidate.from_api(item))
                except ResponseParseError as e:
                    logger.debug(f"Skipping asset record for '{name}': {e}")
            return GatewayResult.ok(candidates, endpoint=endpoint)

        except Exception as e:
            logger.error(f"Asset lookup failed for '{name}': {e}")
            return GatewayResult.failure(e, endpoint=endpoint)
