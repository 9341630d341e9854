"""Tests for the API gateway adapters.

AssetApiClient is mocked; these tests check paths, parameters, payload
parsing and the exception-to-result translation.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from syscode_sync.api.client import AssetApiClient
from syscode_sync.api.exceptions import NotFoundError, ServerError, ValidationError
from syscode_sync.membership.adapters.api_gateway import ApiAssetGateway, ApiGroupGateway
from syscode_sync.membership.domain.entities import MembershipUpdate


@pytest.fixture
def mock_client():
    client = MagicMock(spec=AssetApiClient)
    client.get = AsyncMock()
    client.post = AsyncMock()
    client.put = AsyncMock()
    return client


class TestFindGroupByName:
    """Tests for ApiGroupGateway.find_group_by_name."""

    @pytest.mark.asyncio
    async def test_found(self, mock_client):
        mock_client.get.return_value = {"items": [{"id": "g1", "name": "APP1"}]}

        result = await ApiGroupGateway(mock_client).find_group_by_name("APP1")

        assert result.success is True
        assert result.value.id == "g1"
        assert result.value.created_now is False
        mock_client.get.assert_awaited_once_with("/groups", params={"name": "APP1", "limit": 1})

    @pytest.mark.asyncio
    async def test_not_found(self, mock_client):
        mock_client.get.return_value = []

        result = await ApiGroupGateway(mock_client).find_group_by_name("APP1")

        assert result.success is True
        assert result.value is None

    @pytest.mark.asyncio
    async def test_name_mismatch_treated_as_absent(self, mock_client):
        mock_client.get.return_value = {"items": [{"id": "g9", "name": "APP10"}]}

        result = await ApiGroupGateway(mock_client).find_group_by_name("APP1")

        assert result.success is True
        assert result.value is None

    @pytest.mark.asyncio
    async def test_transport_error_becomes_failure(self, mock_client):
        mock_client.get.side_effect = ServerError(
            status_code=503, endpoint="/groups", response_body="unavailable"
        )

        result = await ApiGroupGateway(mock_client).find_group_by_name("APP1")

        assert result.success is False
        assert result.status_code == 503
        assert result.response_body == "unavailable"

    @pytest.mark.asyncio
    async def test_record_without_id_is_failure(self, mock_client):
        mock_client.get.return_value = {"items": [{"name": "APP1"}]}

        result = await ApiGroupGateway(mock_client).find_group_by_name("APP1")

        assert result.success is False


class TestCreateGroup:
    """Tests for ApiGroupGateway.create_group."""

    @pytest.mark.asyncio
    async def test_creates_empty_group(self, mock_client):
        mock_client.post.return_value = {"entity": {"id": "g1"}}

        result = await ApiGroupGateway(mock_client).create_group("APP1", "Auto-created group for SysCode APP1")

        assert result.success is True
        assert result.value.id == "g1"
        assert result.value.name == "APP1"
        assert result.value.created_now is True
        mock_client.post.assert_awaited_once_with(
            "/groups",
            json_body={
                "name": "APP1",
                "description": "Auto-created group for SysCode APP1",
                "membersId": [],
            },
        )

    @pytest.mark.asyncio
    async def test_response_without_id(self, mock_client):
        mock_client.post.return_value = {"entity": {}}

        result = await ApiGroupGateway(mock_client).create_group("APP1", "d")

        assert result.success is False
        assert "id" in result.error

    @pytest.mark.asyncio
    async def test_rejected(self, mock_client):
        mock_client.post.side_effect = ValidationError("bad", status_code=400, endpoint="/groups")

        result = await ApiGroupGateway(mock_client).create_group("APP1", "d")

        assert result.success is False
        assert result.status_code == 400


class TestFetchGroup:
    """Tests for ApiGroupGateway.fetch_group."""

    @pytest.mark.asyncio
    async def test_fetch(self, mock_client):
        mock_client.get.return_value = {"entity": {"id": "g1", "membersId": ["a1", "a2"]}}

        result = await ApiGroupGateway(mock_client).fetch_group("g1")

        assert result.success is True
        assert result.value.member_ids == ("a1", "a2")
        mock_client.get.assert_awaited_once_with("/groups/g1", retry=True)

    @pytest.mark.asyncio
    async def test_id_is_path_quoted(self, mock_client):
        mock_client.get.return_value = {"entity": {"id": "a/b"}}

        await ApiGroupGateway(mock_client).fetch_group("a/b")

        mock_client.get.assert_awaited_once_with("/groups/a%2Fb", retry=True)

    @pytest.mark.asyncio
    async def test_single_shot_read(self, mock_client):
        mock_client.get.return_value = {"entity": {"id": "g1"}}

        await ApiGroupGateway(mock_client).fetch_group("g1", retry=False)

        mock_client.get.assert_awaited_once_with("/groups/g1", retry=False)

    @pytest.mark.asyncio
    async def test_not_yet_visible(self, mock_client):
        mock_client.get.side_effect = NotFoundError("Group", "g1", endpoint="/groups/g1")

        result = await ApiGroupGateway(mock_client).fetch_group("g1")

        assert result.success is False
        assert result.status_code == 404


class TestReplaceMembers:
    """Tests for ApiGroupGateway.replace_members."""

    @pytest.mark.asyncio
    async def test_put_full_list(self, mock_client):
        mock_client.put.return_value = {}

        result = await ApiGroupGateway(mock_client).replace_members(
            MembershipUpdate(group_id="g1", member_ids=("a1", "a2"))
        )

        assert result.success is True
        assert result.endpoint == "/groups/g1/members"
        mock_client.put.assert_awaited_once_with(
            "/groups/g1/members", json_body={"membersId": ["a1", "a2"]}
        )

    @pytest.mark.asyncio
    async def test_failure_keeps_body(self, mock_client):
        mock_client.put.side_effect = ValidationError(
            "bad", status_code=422, endpoint="/groups/g1/members", response_body='{"msg":"unknown id"}'
        )

        result = await ApiGroupGateway(mock_client).replace_members(
            MembershipUpdate(group_id="g1", member_ids=("a1",))
        )

        assert result.success is False
        assert result.status_code == 422
        assert "unknown id" in result.describe()


class TestFindAssetsByName:
    """Tests for ApiAssetGateway.find_assets_by_name."""

    @pytest.mark.asyncio
    async def test_query_parameters(self, mock_client):
        mock_client.get.return_value = {"items": []}

        await ApiAssetGateway(mock_client).find_assets_by_name("host1", limit=10)

        mock_client.get.assert_awaited_once_with(
            "/assets", params={"name": "host1", "limit": 10, "active": "true"}
        )

    @pytest.mark.asyncio
    async def test_candidates_in_response_order(self, mock_client):
        mock_client.get.return_value = [
            {"id": "a1", "name": "host1", "fqdn": "host1.other.com"},
            {"name": "host1", "fqdn": "broken"},
            {"id": "a2", "name": "host1", "fqdn": "host1.example.com"},
        ]

        result = await ApiAssetGateway(mock_client).find_assets_by_name("host1")

        assert result.success is True
        assert [c.id for c in result.value] == ["a1", "a2"]

    @pytest.mark.asyncio
    async def test_error(self, mock_client):
        mock_client.get.side_effect = ServerError(status_code=500)

        result = await ApiAssetGateway(mock_client).find_assets_by_name("host1")

        assert result.success is False
        assert result.value is None
