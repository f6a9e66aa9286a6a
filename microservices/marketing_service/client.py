"""
Marketing Service Client

Client for other services to call marketing_service.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from core.config_manager import ConfigManager

logger = logging.getLogger(__name__)


class MarketingClient:
    """Client for marketing_service"""

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if config is None:
            config = ConfigManager("default")

        host, port = config.discover_service(
            service_name='marketing_service',
            default_host='localhost',
            default_port=8260,
            env_host_key='MARKETING_SERVICE_HOST',
            env_port_key='MARKETING_SERVICE_PORT'
        )
        self.base_url = f"http://{host}:{port}"
        self.timeout = 30.0
        self.token = token
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=self._transport,
        )

    async def login(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Log in and keep the issued token for later calls.

        Returns:
            Login response or None on bad credentials
        """
        async with self._client() as client:
            response = await client.post(
                "/api/v1/auth/login",
                json={"username": username, "password": password},
            )
            if response.status_code == 401:
                return None
            response.raise_for_status()
            data = response.json()

        self.token = data.get("accessToken")
        return data

    async def get_dashboard(
        self,
        mode: str = "month",
        month: Optional[int] = None,
        year: Optional[int] = None,
        start: Optional[str] = None,
        end: Optional[str] = None,
        branch_id: str = "all",
    ) -> Dict[str, Any]:
        """
        Get dashboard KPIs and chart series.

        Args:
            mode: "month" or "range"
            month: Zero based month (month mode)
            year: Year (month mode)
            start: ISO start date (range mode)
            end: ISO end date (range mode)
            branch_id: Branch filter

        Returns:
            Dashboard response
        """
        params = {"mode": mode, "branch_id": branch_id}
        for key, value in (("month", month), ("year", year), ("start", start), ("end", end)):
            if value is not None:
                params[key] = value

        try:
            async with self._client() as client:
                response = await client.get("/api/v1/dashboard", params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error getting dashboard: {e.response.text}")
            raise

    async def get_calendar_year(
        self,
        year: int,
        branch_id: str = "all",
        category_id: str = "all",
    ) -> Dict[str, Any]:
        """Get the sorted event list of a year"""
        try:
            async with self._client() as client:
                response = await client.get(
                    "/api/v1/calendar/year",
                    params={"year": year, "branch_id": branch_id, "category_id": category_id},
                )
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error getting calendar year {year}: {e.response.text}")
            raise

    async def get_campaign(self, campaign_id: str) -> Optional[Dict[str, Any]]:
        """
        Get campaign by ID.

        Returns:
            Campaign data or None if not found
        """
        try:
            async with self._client() as client:
                response = await client.get(f"/api/v1/campaigns/{campaign_id}")
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Error getting campaign: {e.response.text}")
            raise

    async def list_campaigns(self, **filters: Any) -> Dict[str, Any]:
        """List campaigns; filters are branch_id, category_id, year, month"""
        try:
            async with self._client() as client:
                response = await client.get("/api/v1/campaigns", params=filters)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Error listing campaigns: {e}")
            return {"campaigns": [], "total": 0, "error": str(e)}

    async def health_check(self) -> bool:
        """Check service health"""
        try:
            async with self._client() as client:
                response = await client.get("/health")
                return response.status_code == 200
        except httpx.HTTPError:
            return False


__all__ = ["MarketingClient"]
