"""User profiles API client."""
import logging
from typing import Optional

from fuelcoach.schemas.profile import ProfileData, split_restrictions
from fuelcoach.states.gate import ProfileStatus

from .base import APIError, BaseAPIClient

logger = logging.getLogger(__name__)


class ProfilesClient(BaseAPIClient):
    """Client for nutrition/training profile endpoints."""

    async def get(self, user_id: int) -> Optional[dict]:
        """
        Get the user's profile.

        Returns:
            Profile dict (dietary_restrictions split into a list), or None when
            the user has no profile, the response is not successful, the API
            answers 404, or the server is unreachable.
        """
        try:
            data = await self._get(f"/profile/{user_id}/profile")
        except APIError as e:
            if e.status == 404:
                logger.info(f"No profile for user {user_id} (404)")
            else:
                logger.warning(f"Get profile failed for user {user_id}: {e}")
            return None

        if not isinstance(data, dict) or not data.get("success"):
            return None
        profile = (data.get("data") or {}).get("profile")
        if not isinstance(profile, dict):
            logger.info(f"User {user_id} has no profile")
            return None

        restrictions = profile.get("dietary_restrictions")
        return {
            **profile,
            "dietary_restrictions": split_restrictions(restrictions),
        }

    async def fetch_status(self, user_id: int) -> ProfileStatus:
        """Profile check for the gate. Never raises: any failure means ABSENT."""
        profile = await self.get(user_id)
        return ProfileStatus.PRESENT if profile is not None else ProfileStatus.ABSENT

    async def save(self, user_id: int, profile: ProfileData) -> dict:
        """
        Create or update the user's profile.

        Returns:
            {"success": bool, "message": str | None}
        """
        data = await self._post(f"/profile/{user_id}/profile", json=profile.to_api())
        data = data if isinstance(data, dict) else {}
        return {"success": bool(data.get("success")), "message": data.get("message")}
