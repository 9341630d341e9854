"""Resolve Members use case.

Turns the work items of one bucket into asset identifiers:

- Query active assets by exact name
- Accept the first candidate whose FQDN equals the item's FQDN,
  ignoring case
- Keep each identifier once, in first-resolved order

Misses and lookup failures only cost the item concerned; the rest of the
bucket is still resolved.
"""

import logging
from typing import Iterable, Optional

from ..domain.entities import (
    AssetCandidate,
    MemberResolution,
    ResolvedAsset,
    SyscodeBucket,
)
from ..domain.ports import IAssetGateway

logger = logging.getLogger(__name__)

MIN_LOOKUP_LIMIT = 10


def select_asset(candidates: Iterable[AssetCandidate], fqdn: str) -> Optional[ResolvedAsset]:
    """Pick the first candidate whose FQDN matches, or None.

    Candidates are scanned in the order given and scanning stops at the
    first match, so true duplicates (same name and FQDN) resolve to
    whichever the API listed first.
    """
    for candidate in candidates:
        if candidate.matches_fqdn(fqdn):
            return ResolvedAsset(id=candidate.id, fqdn=candidate.fqdn)
    return None


class MemberResolver:
    """Resolve a bucket's work items to asset identifiers."""

    def __init__(self, asset_gateway: IAssetGateway, lookup_limit: int = MIN_LOOKUP_LIMIT):
        """Initialize the resolver.

        Args:
            asset_gateway: Gateway for asset queries
            lookup_limit: Page size for name queries (never below 10)
        """
        self.assets = asset_gateway
        self.lookup_limit = max(MIN_LOOKUP_LIMIT, lookup_limit)

    async def resolve_members(self, bucket: SyscodeBucket) -> MemberResolution:
        """Resolve every item in the bucket, one lookup per item."""
        resolution = MemberResolution(syscode=bucket.syscode)
        syscode = bucket.syscode

        for item in bucket.items:
            result = await self.assets.find_assets_by_name(item.name, limit=self.lookup_limit)
            if not result.success:
                logger.error(
                    f"[{syscode}] Asset lookup failed for {item.name} ({item.fqdn}): "
                    f"{result.describe()}"
                )
                resolution.lookup_errors += 1
                resolution.unresolved.append(item)
                continue

            candidates = result.value or []
            asset = select_asset(candidates, item.fqdn)
            if asset is None:
                logger.warning(
                    f"[{syscode}] No active asset named {item.name!r} with FQDN "
                    f"{item.fqdn!r} ({len(candidates)} candidate(s) checked)"
                )
                resolution.unresolved.append(item)
                continue

            if asset.id in resolution.member_ids:
                logger.info(
                    f"[{syscode}] Asset id={asset.id} ({item.name}) already resolved; skipping duplicate"
                )
                resolution.duplicates += 1
                continue

            logger.debug(f"[{syscode}] Resolved {item.name} ({item.fqdn}) -> id={asset.id}")
            resolution.member_ids.append(asset.id)

        if not resolution.member_ids:
            logger.info(f"[{syscode}] No members resolved; membership will not be updated")
        else:
            logger.info(
                f"[{syscode}] Resolved {len(resolution.member_ids)} member(s), "
                f"{len(resolution.unresolved)} unresolved"
            )
        return resolution
