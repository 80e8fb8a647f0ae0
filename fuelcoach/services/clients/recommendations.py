"""Recommendations API client."""
import logging

from .base import BaseAPIClient, extract_list
from .products import normalize_product

logger = logging.getLogger(__name__)


class RecommendationsClient(BaseAPIClient):
    """Client for /recommendations endpoints."""

    async def for_user(self, user_id: int) -> list[dict]:
        """Current recommendations for a user, with display fields filled."""
        data = await self._get(f"/recommendations/{user_id}")
        recommendations = extract_list(data, "recommendations")
        logger.debug(f"Received {len(recommendations)} recommendations for user {user_id}")
        normalized = [normalize_product(r) for r in recommendations if isinstance(r, dict)]
        return [{**r, "name": r["product_name"]} for r in normalized]

    async def saved(self, user_id: int) -> list[dict]:
        data = await self._get(f"/recommendations/saved/{user_id}")
        return extract_list(data, "recommendations")

    async def for_training(self, training_id: int, user_id: int) -> list[dict]:
        """Ask the server to generate recommendations for a training session."""
        data = await self._post(
            "/recommendations/training",
            json={"trainingId": training_id, "userId": user_id}
        )
        return extract_list(data, "recommendations")
