"""Notification preferences API client."""
import logging

from .base import BaseAPIClient

logger = logging.getLogger(__name__)


class NotificationsClient(BaseAPIClient):
    """Client for notification preference endpoints."""

    async def get_preferences(self, user_id: int) -> dict:
        """
        Get user notification preferences.

        Returns:
            Preferences dict, e.g. {"consumption_reminders": True}
        """
        data = await self._get(f"/users/{user_id}/notification-preferences")
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            return data["data"]
        return {}

    async def consumption_reminders_enabled(self, user_id: int) -> bool:
        prefs = await self.get_preferences(user_id)
        return bool(prefs.get("consumption_reminders"))

    async def update_preferences(self, user_id: int, **preferences) -> bool:
        """
        Update notification preferences.

        Returns:
            True if successful
        """
        try:
            await self._put(f"/users/{user_id}/notification-preferences", json=preferences)
            return True
        except Exception as e:
            logger.error(f"Update notification preferences failed: {e}")
            return False
