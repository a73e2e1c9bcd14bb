"""
Tests for the organization directory client.
"""
import pytest
import httpx
from unittest.mock import AsyncMock

from distribution_service.services.organizations import Organization, OrganizationDirectory


ORG_PAYLOAD = {
    "success": True,
    "data": {
        "organizationId": "org-a",
        "organizationCode": "JASS01",
        "organizationName": "JASS Rinconada",
        "address": "Av. Principal 123",
        "status": "ACTIVE",
    },
    "message": "ok",
}


def directory_with(client, **kwargs):
    return OrganizationDirectory(
        base_url="http://users.local/api/",
        token=kwargs.pop("token", ""),
        max_attempts=kwargs.pop("max_attempts", 3),
        backoff_seconds=0,
        client=client,
    )


class TestOrganizationDirectory:

    @pytest.mark.asyncio
    async def test_returns_organization(self, http_response_factory):
        client = AsyncMock()
        client.get.return_value = http_response_factory(200, ORG_PAYLOAD)

        org = await directory_with(client).get_organization_by_id("org-a")

        assert org == Organization(
            organization_id="org-a",
            organization_code="JASS01",
            organization_name="JASS Rinconada",
            address="Av. Principal 123",
            status="ACTIVE",
        )
        assert client.get.call_args[0][0] == "http://users.local/api/organization/org-a"

    @pytest.mark.asyncio
    async def test_sends_bearer_token_when_configured(self, http_response_factory):
        client = AsyncMock()
        client.get.return_value = http_response_factory(200, ORG_PAYLOAD)

        await directory_with(client, token="secret").get_organization_by_id("org-a")

        assert client.get.call_args.kwargs["headers"] == {"Authorization": "Bearer secret"}

    @pytest.mark.asyncio
    async def test_not_found_returns_none_without_retry(self, http_response_factory):
        client = AsyncMock()
        client.get.return_value = http_response_factory(404)

        assert await directory_with(client).get_organization_by_id("org-x") is None
        assert client.get.await_count == 1

    @pytest.mark.asyncio
    async def test_empty_data_returns_none(self, http_response_factory):
        client = AsyncMock()
        client.get.return_value = http_response_factory(200, {"success": False, "data": None})

        assert await directory_with(client).get_organization_by_id("org-a") is None

    @pytest.mark.asyncio
    async def test_retries_server_errors_then_succeeds(self, http_response_factory):
        client = AsyncMock()
        client.get.side_effect = [
            http_response_factory(503),
            http_response_factory(200, ORG_PAYLOAD),
        ]

        org = await directory_with(client).get_organization_by_id("org-a")

        assert org.organization_name == "JASS Rinconada"
        assert client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_bounded_attempts(self):
        client = AsyncMock()
        client.get.side_effect = httpx.ConnectError("refused")

        org = await directory_with(client, max_attempts=3).get_organization_by_id("org-a")

        assert org is None
        assert client.get.await_count == 3

    @pytest.mark.asyncio
    async def test_invalid_json_is_retried_and_degrades(self, http_response_factory):
        response = http_response_factory(200)
        response.json.side_effect = ValueError("not json")
        client = AsyncMock()
        client.get.return_value = response

        assert await directory_with(client, max_attempts=2).get_organization_by_id("org-a") is None
        assert client.get.await_count == 2

    @pytest.mark.asyncio
    async def test_blank_id_skips_lookup(self):
        client = AsyncMock()

        assert await directory_with(client).get_organization_by_id("") is None
        client.get.assert_not_called()
