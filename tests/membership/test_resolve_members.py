"""Tests for MemberResolver and asset selection."""

from unittest.mock import AsyncMock

import pytest

from syscode_sync.api.exceptions import ServerError
from syscode_sync.membership.domain.entities import (
    AssetCandidate,
    GatewayResult,
    SyscodeBucket,
    WorkItem,
)
from syscode_sync.membership.use_cases.resolve_members import MemberResolver, select_asset


def bucket(*items):
    return SyscodeBucket(
        syscode="APP1",
        items=tuple(WorkItem(name=name, fqdn=fqdn, syscode="APP1") for name, fqdn in items),
    )


class TestSelectAsset:
    """Tests for select_asset()."""

    def test_fqdn_match_case_insensitive(self):
        candidates = [
            AssetCandidate(id="a1", name="host1", fqdn="host1.other.com"),
            AssetCandidate(id="a2", name="host1", fqdn="HOST1.example.com"),
        ]

        asset = select_asset(candidates, "host1.example.com")

        assert asset.id == "a2"

    def test_first_match_wins(self):
        candidates = [
            AssetCandidate(id="a1", fqdn="host1.example.com"),
            AssetCandidate(id="a2", fqdn="host1.example.com"),
        ]
        assert select_asset(candidates, "host1.example.com").id == "a1"

    def test_no_match(self):
        candidates = [AssetCandidate(id="a1", fqdn=None), AssetCandidate(id="a2", fqdn="x.y")]
        assert select_asset(candidates, "host1.example.com") is None

    def test_empty(self):
        assert select_asset([], "host1.example.com") is None


class TestMemberResolver:
    """Tests for MemberResolver.resolve_members."""

    @pytest.mark.asyncio
    async def test_resolves_by_fqdn(self):
        assets = AsyncMock()
        assets.find_assets_by_name.return_value = GatewayResult.ok([
            AssetCandidate(id="a1", name="host1", fqdn="host1.other.com"),
            AssetCandidate(id="a2", name="host1", fqdn="HOST1.example.com"),
        ])

        resolution = await MemberResolver(assets).resolve_members(bucket(("host1", "host1.example.com")))

        assert resolution.member_ids == ["a2"]
        assert resolution.unresolved == []
        assets.find_assets_by_name.assert_awaited_once_with("host1", limit=10)

    @pytest.mark.asyncio
    async def test_lookup_limit_never_below_ten(self):
        assets = AsyncMock()
        assets.find_assets_by_name.return_value = GatewayResult.ok([])

        await MemberResolver(assets, lookup_limit=2).resolve_members(bucket(("h", "h.x")))

        assets.find_assets_by_name.assert_awaited_once_with("h", limit=10)

    @pytest.mark.asyncio
    async def test_duplicates_kept_once_in_order(self):
        assets = AsyncMock()
        assets.find_assets_by_name.side_effect = lambda name, limit: GatewayResult.ok([
            AssetCandidate(id={"h1": "a1", "h2": "a2", "h1b": "a1"}[name], fqdn=f"{name}.x"),
        ])

        resolution = await MemberResolver(assets).resolve_members(
            bucket(("h2", "h2.x"), ("h1", "h1.x"), ("h1b", "h1b.x"))
        )

        assert resolution.member_ids == ["a2", "a1"]
        assert resolution.duplicates == 1

    @pytest.mark.asyncio
    async def test_miss_and_error_isolated_to_item(self):
        assets = AsyncMock()
        assets.find_assets_by_name.side_effect = [
            GatewayResult.failure(ServerError(status_code=500)),
            GatewayResult.ok([]),
            GatewayResult.ok([AssetCandidate(id="a3", fqdn="h3.x")]),
        ]

        resolution = await MemberResolver(assets).resolve_members(
            bucket(("h1", "h1.x"), ("h2", "h2.x"), ("h3", "h3.x"))
        )

        assert resolution.member_ids == ["a3"]
        assert [item.name for item in resolution.unresolved] == ["h1", "h2"]
        assert resolution.lookup_errors == 1

    @pytest.mark.asyncio
    async def test_nothing_resolved(self):
        assets = AsyncMock()
        assets.find_assets_by_name.return_value = GatewayResult.ok([AssetCandidate(id="a1", fqdn="other")])

        resolution = await MemberResolver(assets).resolve_members(bucket(("h1", "h1.x")))

        assert resolution.member_ids == []
        assert len(resolution.unresolved) == 1

    @pytest.mark.asyncio
    async def test_same_name_different_fqdn_never_selected(self):
        """Two assets named host1; only the FQDN match is taken, ignoring case."""
        assets = AsyncMock()
        assets.find_assets_by_name.return_value = GatewayResult.ok([
            AssetCandidate(id="corp", name="host1", fqdn="host1.corp.com"),
            AssetCandidate(id="other", name="host1", fqdn="host1.other.com"),
        ])

        resolution = await MemberResolver(assets).resolve_members(bucket(("host1", "HOST1.CORP.COM")))

        assert resolution.member_ids == ["corp"]
