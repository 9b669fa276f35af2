"""
HTTP client shared by the webhook channel, the identity provider and the IP echo lookup.
"""

import base64
from typing import Any, Optional, Union

import httpx

from snowboard_doctor._version import __version__
from snowboard_doctor.errors import HttpError

USER_AGENT = f"snowboard-doctor/{__version__}"


def basic_auth_header(username: str, password: str) -> str:
    """Build an `Authorization: Basic ...` value from a credential pair."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class HttpClient:
    def __init__(
        self,
        base_url: str = "",
        token: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: Union[float, None] = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json", **(headers or {})},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _auth_headers(self, authenticated: bool) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if authenticated and self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _check(resp: httpx.Response) -> None:
        if not resp.is_success:
            raise HttpError(f"HTTP {resp.status_code}: {resp.text[:200]}", status_code=resp.status_code)

    async def get(self, path: str, params: Optional[dict[str, str]] = None, authenticated: bool = True) -> Any:
        resp = await self._client.get(path, params=params, headers=self._auth_headers(authenticated))
        self._check(resp)
        return resp.json()

    async def post(self, path: str, body: Optional[dict[str, Any]] = None, authenticated: bool = True) -> Any:
        resp = await self._client.post(path, json=body, headers=self._auth_headers(authenticated))
        self._check(resp)
        if not resp.content:
            return None
        return resp.json()

    async def post_text(
        self, path: str, body: dict[str, Any], headers: Optional[dict[str, str]] = None,
    ) -> str:
        """POST JSON and return the raw response body, whatever its content type."""
        resp = await self._client.post(
            path, json=body, headers={"Content-Type": "application/json", **(headers or {})},
        )
        self._check(resp)
        return resp.text

    async def close(self) -> None:
        await self._client.aclose()
