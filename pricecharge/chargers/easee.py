"""Easee cloud API client."""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ChargerAuthError, ChargerCommandError
from ..models import ChargerCredentials, ChargerState, EaseeConfig

logger = logging.getLogger(__name__)


class EaseeClient:
    """Async client for the Easee charger REST API.

    A 401 response triggers one token refresh followed by one retry of
    the original request. The refreshed tokens are available through
    `credentials` for persistence.
    """

    brand = "easee"

    def __init__(
        self,
        credentials: Optional[ChargerCredentials] = None,
        config: Optional[EaseeConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.config = config or EaseeConfig()
        self._credentials = credentials
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=self.config.timeout)

    @property
    def credentials(self) -> Optional[ChargerCredentials]:
        return self._credentials

    async def aclose(self):
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    # -------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------

    async def login(self, username: str, password: str) -> ChargerCredentials:
        """Log in with account credentials.

        Raises:
            ChargerAuthError: if Easee rejects the credentials
            ChargerCommandError: on transport errors
        """
        response = await self._send(
            "POST", "/api/accounts/login", json={"userName": username, "password": password}
        )
        if response.status_code >= 400:
            raise ChargerAuthError(self._error_detail(response, "Login failed"), response.status_code)

        self._credentials = self._parse_tokens(response)
        logger.info("Logged in to Easee")
        return self._credentials

    async def refresh_access_token(self) -> bool:
        """Exchange the refresh token for new tokens. Returns True on success."""
        if not self._credentials or not self._credentials.refresh_token:
            return False

        response = await self._send(
            "POST",
            "/api/accounts/refresh_token",
            json={
                "accessToken": self._credentials.access_token,
                "refreshToken": self._credentials.refresh_token,
            },
        )
        if response.status_code >= 400:
            logger.warning(f"Easee token refresh failed ({response.status_code})")
            return False

        self._credentials = self._parse_tokens(response)
        logger.info("Easee access token refreshed")
        return True

    # -------------------------------------------------------------------
    # Device API
    # -------------------------------------------------------------------

    async def list_devices(self) -> List[Dict[str, Any]]:
        """Chargers visible to the account, as {id, name} dicts."""
        data = await self._request("GET", "/api/chargers")
        return [{"id": c.get("id"), "name": c.get("name")} for c in data or []]

    async def get_state(self, device_id: str) -> ChargerState:
        data = await self._request("GET", f"/api/chargers/{device_id}/state")
        return ChargerState.from_easee(data or {})

    async def start(self, device_id: str):
        await self._command(device_id, "start_charging")

    async def pause(self, device_id: str):
        await self._command(device_id, "pause_charging")

    async def resume(self, device_id: str):
        await self._command(device_id, "resume_charging")

    async def _command(self, device_id: str, command: str):
        logger.info(f"Easee {device_id}: {command}")
        await self._request("POST", f"/api/chargers/{device_id}/commands/{command}")

    # -------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------

    async def _request(self, method: str, path: str) -> Any:
        if not self._credentials:
            raise ChargerAuthError("Not authenticated")

        response = await self._send(method, path, headers=self._auth_headers())

        if response.status_code == 401:
            if not await self.refresh_access_token():
                raise ChargerAuthError("Authentication expired", 401)
            response = await self._send(method, path, headers=self._auth_headers())

        if response.status_code >= 400:
            raise ChargerCommandError(f"API request failed: {response.status_code}", response.status_code)

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        headers.update(kwargs.pop("headers", {}))
        try:
            return await self._http_client.request(
                method, f"{self.config.base_url}{path}", headers=headers, **kwargs
            )
        except httpx.HTTPError as e:
            raise ChargerCommandError(f"Easee API unreachable: {e}") from e

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._credentials.access_token}"}

    @staticmethod
    def _parse_tokens(response: httpx.Response) -> ChargerCredentials:
        try:
            data = response.json()
            return ChargerCredentials(access_token=data["accessToken"], refresh_token=data.get("refreshToken"))
        except (ValueError, KeyError, TypeError) as e:
            raise ChargerAuthError("Malformed Easee token response") from e

    @staticmethod
    def _error_detail(response: httpx.Response, default: str) -> str:
        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        return data.get("title") or data.get("message") or f"{default} ({response.status_code})"
