"""
REST client for the Mattermost v4 API.
"""

import logging
from enum import Enum
from typing import Any, Optional

import httpx

from mm_signal.errors import ApiError
from mm_signal.models.entities import Channel, User

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v4"
USER_AGENT = "mm-signal/0.1.0"

STATUS_CODES = {
    400: "invalid_parameter",
    401: "missing_access_token",
    403: "missing_permissions",
}


class TokenStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"  # the server rejected the token (401)
    UNKNOWN = "unknown"  # network failure or unexpected answer; nothing learned about the token


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}{API_PREFIX}",
            headers={
                "User-Agent": USER_AGENT,
                "Accept": "application/json",
                "Authorization": f"Bearer {token}",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @staticmethod
    def _check(resp: httpx.Response) -> httpx.Response:
        if resp.status_code >= 400:
            code = STATUS_CODES.get(resp.status_code, "http_error")
            raise ApiError(f"HTTP {resp.status_code}: {resp.text[:200]}", code=code, status_code=resp.status_code)
        return resp

    async def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        resp = await self._client.get(path, params=params)
        return self._check(resp).json()

    async def post(self, path: str, body: Any = None) -> Any:
        resp = await self._client.post(path, json=body)
        return self._check(resp).json()

    async def get_users(self, page: int = 0, per_page: int = 60) -> list[User]:
        data = await self.get("/users", params={"page": page, "per_page": per_page})
        return [User.model_validate(u) for u in data]

    async def get_users_by_ids(self, ids: list[str]) -> list[User]:
        data = await self.post("/users/ids", list(ids))
        return [User.model_validate(u) for u in data]

    async def get_channel(self, channel_id: str) -> Channel:
        return Channel.model_validate(await self.get(f"/channels/{channel_id}"))

    async def check_token(self) -> TokenStatus:
        """Cheapest authenticated request there is: an empty page of users."""
        try:
            self._check(await self._client.get("/users", params={"page": 0, "per_page": 0}))
        except ApiError as e:
            if e.status_code == 401:
                return TokenStatus.INVALID
            logger.warning("Token check against %s failed: %s", self._base_url, e)
            return TokenStatus.UNKNOWN
        except httpx.HTTPError as e:
            logger.warning("Token check against %s failed: %s", self._base_url, e)
            return TokenStatus.UNKNOWN
        return TokenStatus.VALID

    async def close(self) -> None:
        await self._client.aclose()
