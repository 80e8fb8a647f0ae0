"""Auth API client."""
import logging
from dataclasses import dataclass
from typing import Optional

from fuelcoach.models.session import User

from .base import APIError, BaseAPIClient, require_dict

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Successful login payload."""

    user: User
    token: Optional[str]


class AuthClient(BaseAPIClient):
    """Client for /auth endpoints."""

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate with email and password.

        Raises:
            AuthenticationError: invalid credentials
            TransportError: no response from the server
            APIError: any other failure, including an incomplete user payload
        """
        data = require_dict(
            await self._post("/auth/login", json={"email": email, "password": password})
        )
        payload = data.get("user")
        if not isinstance(payload, dict):
            raise APIError(200, "Incomplete user data")
        try:
            user = User.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise APIError(200, "Incomplete user data") from e
        return LoginResult(user=user, token=data.get("token"))

    async def register(self, username: str, email: str, password: str) -> dict:
        """
        Create an account.

        Returns:
            Raw registration response
        """
        data = await self._post(
            "/auth/register",
            json={"username": username, "email": email, "password": password}
        )
        logger.info(f"Registered account for {email}")
        return data if isinstance(data, dict) else {}
