"""API clients for backend communication."""
from typing import Optional

from .auth import AuthClient, LoginResult
from .base import APIError, AuthenticationError, BaseAPIClient, TokenProvider, TransportError, UnauthorizedHook
from .notifications import NotificationsClient
from .products import ProductsClient
from .profiles import ProfilesClient
from .recommendations import RecommendationsClient
from .training import TrainingClient


class APIClient:
    """Unified API client with all sub-clients sharing auth hooks."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token_provider: Optional[TokenProvider] = None,
        on_unauthorized: Optional[UnauthorizedHook] = None,
        user_agent: Optional[str] = None,
    ):
        self.base_url = base_url
        options = dict(
            timeout=timeout,
            token_provider=token_provider,
            on_unauthorized=on_unauthorized,
            user_agent=user_agent,
        )
        self.auth = AuthClient(base_url, **options)
        self.profiles = ProfilesClient(base_url, **options)
        self.training = TrainingClient(base_url, **options)
        self.notifications = NotificationsClient(base_url, **options)
        self.products = ProductsClient(base_url, **options)
        self.recommendations = RecommendationsClient(base_url, **options)

    def _clients(self) -> list[BaseAPIClient]:
        return [
            self.auth,
            self.profiles,
            self.training,
            self.notifications,
            self.products,
            self.recommendations,
        ]

    def set_auth_hooks(
        self,
        token_provider: Optional[TokenProvider],
        on_unauthorized: Optional[UnauthorizedHook],
    ):
        """Wire the token source and 401 handler once the gate exists."""
        for client in self._clients():
            client.token_provider = token_provider
            client.on_unauthorized = on_unauthorized

    async def close(self):
        """Close all client sessions."""
        for client in self._clients():
            await client.close()


__all__ = [
    "APIClient",
    "APIError",
    "AuthClient",
    "AuthenticationError",
    "BaseAPIClient",
    "LoginResult",
    "NotificationsClient",
    "ProductsClient",
    "ProfilesClient",
    "RecommendationsClient",
    "TrainingClient",
    "TransportError",
]
