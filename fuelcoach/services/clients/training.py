"""Training sessions API client."""
import logging
from fuelcoach.models.training import TrainingSession

from .base import BaseAPIClient, extract_list, require_dict

logger = logging.getLogger(__name__)


class TrainingClient(BaseAPIClient):
    """Client for /training endpoints."""

    async def list_for_user(self, user_id: int) -> list[dict]:
        """All training sessions of a user, newest first as the API returns them."""
        data = await self._get(f"/training/user/{user_id}")
        return [s for s in extract_list(data, "sessions", "data") if isinstance(s, dict)]

    async def get(self, session_id: int) -> TrainingSession:
        """
        Get one training session, including recommendations when generated.

        Raises:
            APIError on HTTP failure or a non-object body,
            KeyError/ValueError on a malformed record
        """
        data = require_dict(await self._get(f"/training/{session_id}"))
        return TrainingSession.from_api(data)

    async def create(self, payload: dict) -> int:
        """
        Create a training session.

        Returns:
            The new session_id
        """
        data = require_dict(await self._post("/training", json=payload))
        session_id = data.get("session_id")
        if session_id is None:
            raise ValueError("Training session created without a session_id")
        logger.info(f"Created training session {session_id}")
        return int(session_id)

    async def update(self, session_id: int, payload: dict) -> dict:
        """Update a training session."""
        data = await self._put(f"/training/{session_id}", json=payload)
        return data if isinstance(data, dict) else {}

    async def delete(self, session_id: int) -> bool:
        """Delete a training session."""
        await self._delete(f"/training/{session_id}")
        logger.info(f"Deleted training session {session_id}")
        return True

    async def get_recommendations(self, session_id: int, user_id: int) -> list[dict]:
        """
        Recommendations generated for a session.

        Generation is asynchronous server-side, so an empty list is normal
        right after creation.
        """
        data = await self._get(
            f"/training/{session_id}/recommendations",
            params={"userId": user_id}
        )
        return extract_list(data, "recommendations")
