"""Base API client with common HTTP logic."""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

import aiohttp

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
UnauthorizedHook = Callable[[], Awaitable[None]]


class APIError(Exception):
    """API error: the server answered with a non-2xx status."""

    def __init__(self, status: int, detail: str):
        self.status = status
        self.detail = detail
        super().__init__(f"API error {status}: {detail}")


class AuthenticationError(APIError):
    """401: missing, expired or invalid token (or bad credentials on login)."""


class TransportError(APIError):
    """No response from the server."""

    def __init__(self, detail: str = "Could not reach the server"):
        super().__init__(0, detail)


class BaseAPIClient:
    """
    Base class for API clients.

    Adds the bearer token from `token_provider` to every request and
    awaits `on_unauthorized` whenever the API answers 401.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token_provider: Optional[TokenProvider] = None,
        on_unauthorized: Optional[UnauthorizedHook] = None,
        user_agent: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.token_provider = token_provider
        self.on_unauthorized = on_unauthorized
        self.user_agent = user_agent
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            headers = {"Content-Type": "application/json"}
            if self.user_agent:
                headers["User-Agent"] = self.user_agent
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=headers,
            )
        return self._session

    def _auth_headers(self) -> dict[str, str]:
        token = self.token_provider() if self.token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make a request and return the decoded JSON body."""
        session = await self._get_session()
        url = f"{self.base_url}/api{path}"
        headers = {**self._auth_headers(), **kwargs.pop("headers", {})}

        try:
            async with session.request(method, url, headers=headers, **kwargs) as resp:
                try:
                    data = await resp.json(content_type=None)
                except ValueError:
                    data = None
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"{method} {path}: no response ({e!r})")
            raise TransportError() from e

        if 200 <= status < 300:
            return data

        detail = "Request failed"
        if isinstance(data, dict):
            detail = data.get("message") or data.get("detail") or detail

        if status == 401:
            logger.warning(f"{method} {path}: unauthorized, clearing session")
            if self.on_unauthorized is not None:
                await self.on_unauthorized()
            raise AuthenticationError(status, detail)

        raise APIError(status, detail)

    async def _get(self, path: str, **kwargs) -> Any:
        """Make GET request."""
        return await self._request("GET", path, **kwargs)

    async def _post(self, path: str, **kwargs) -> Any:
        """Make POST request."""
        return await self._request("POST", path, **kwargs)

    async def _put(self, path: str, **kwargs) -> Any:
        """Make PUT request."""
        return await self._request("PUT", path, **kwargs)

    async def _delete(self, path: str, **kwargs) -> Any:
        """Make DELETE request."""
        return await self._request("DELETE", path, **kwargs)

    async def close(self):
        """Close the session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def extract_list(data: Any, *keys: str) -> list:
    """Accept either a bare list or a list nested under one of `keys`."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in keys:
            value = data.get(key)
            if isinstance(value, list):
                return value
    return []


def require_dict(data: Any) -> dict:
    """
    The JSON object a successful response must carry.

    Raises:
        APIError if the body is missing, not JSON or not an object
    """
    if not isinstance(data, dict):
        raise APIError(200, "Malformed response")
    return data
