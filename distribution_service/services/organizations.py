"""
Client for the organization directory (users/organizations microservice).

Lookups retry a bounded number of times with exponential backoff and
degrade to None: callers never see a directory failure.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from distribution_service.core.config import settings
from distribution_service.core.exceptions import EnrichmentError
from distribution_service.services.http_client import get_http_client

logger = logging.getLogger(__name__)

SERVICE_NAME = "organization_directory"


@dataclass
class Organization:
    """Organization metadata as returned by the directory."""
    organization_id: str
    organization_code: Optional[str] = None
    organization_name: Optional[str] = None
    legal_representative: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    logo: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Organization":
        return cls(
            organization_id=data.get("organizationId", ""),
            organization_code=data.get("organizationCode"),
            organization_name=data.get("organizationName"),
            legal_representative=data.get("legalRepresentative"),
            address=data.get("address"),
            phone=data.get("phone"),
            logo=data.get("logo"),
            status=data.get("status"),
        )

    @classmethod
    def placeholder(cls, organization_id: str) -> "Organization":
        """Minimal record used when the directory cannot answer."""
        return cls(organization_id=organization_id)


class OrganizationDirectory:
    """
    Usage:
        directory = OrganizationDirectory()
        org = await directory.get_organization_by_id("org-1")  # Organization | None
    """

    def __init__(
        self,
        base_url: str = settings.ORGANIZATION_SERVICE_URL,
        token: str = settings.ORGANIZATION_SERVICE_TOKEN,
        max_attempts: int = settings.ORGANIZATION_MAX_ATTEMPTS,
        backoff_seconds: float = settings.ORGANIZATION_BACKOFF_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is not None:
            return self._client
        return await get_http_client()

    def _headers(self) -> dict:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def get_organization_by_id(self, organization_id: str) -> Optional[Organization]:
        """
        Fetch one organization.

        Returns:
            Organization, or None when absent or unreachable
        """
        if not organization_id:
            return None

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.backoff_seconds, max=10),
                retry=retry_if_exception_type(EnrichmentError),
                reraise=True,
            ):
                with attempt:
                    return await self._fetch(organization_id)
        except EnrichmentError as e:
            logger.warning(f"Failed to fetch organization {organization_id}: {e}")
            return None

    async def _fetch(self, organization_id: str) -> Optional[Organization]:
        url = f"{self.base_url}/organization/{organization_id}"
        client = await self._get_client()

        try:
            response = await client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise EnrichmentError(
                "Organization directory unreachable",
                service=SERVICE_NAME,
                details={"organization_id": organization_id},
                original_error=e,
            ) from e

        if response.status_code >= 500:
            raise EnrichmentError(
                f"Organization directory error: {response.status_code}",
                service=SERVICE_NAME,
                details={"organization_id": organization_id, "status_code": response.status_code},
            )
        if response.status_code >= 400:
            logger.warning(
                f"Organization {organization_id} not found or access denied: {response.status_code}"
            )
            return None

        try:
            payload = response.json()
        except ValueError as e:
            raise EnrichmentError(
                "Invalid organization directory response",
                service=SERVICE_NAME,
                details={"organization_id": organization_id},
                original_error=e,
            ) from e

        data = (payload or {}).get("data")
        if not data:
            return None
        return Organization.from_api(data)
