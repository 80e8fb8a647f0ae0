"""
Local Notification Center

In-process stand-in for the device notification subsystem: keeps scheduled
reminders until they are cancelled.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Protocol, Union
from uuid import uuid4

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DateTrigger:
    """Fire once at an absolute local time."""
    fire_at: datetime


@dataclass(frozen=True)
class DelayTrigger:
    """Fire once after a delay from scheduling."""
    seconds: int


@dataclass(frozen=True)
class DailyTrigger:
    """Fire every day at a fixed wall-clock time."""
    hour: int
    minute: int
    repeats: bool = True


Trigger = Union[DateTrigger, DelayTrigger, DailyTrigger]


@dataclass
class NotificationContent:
    title: str
    body: str
    sound: bool = True
    data: dict = field(default_factory=dict)


@dataclass
class ScheduledNotification:
    """A reminder held by the notification center."""
    id: str
    trigger: Trigger
    content: NotificationContent
    scheduled_at: datetime

    def next_fire_time(self, after: datetime) -> Optional[datetime]:
        """
        Next time this notification fires at or after `after`.

        Returns:
            datetime, or None for one-shot triggers that already fired
        """
        if isinstance(self.trigger, DateTrigger):
            return self.trigger.fire_at if self.trigger.fire_at >= after else None
        if isinstance(self.trigger, DelayTrigger):
            fire_at = self.scheduled_at + timedelta(seconds=self.trigger.seconds)
            return fire_at if fire_at >= after else None

        candidate = after.replace(
            hour=self.trigger.hour, minute=self.trigger.minute, second=0, microsecond=0
        )
        if candidate < after:
            if not self.trigger.repeats:
                return None
            candidate += timedelta(days=1)
        return candidate


class NotificationPermissionError(Exception):
    """Notifications are not allowed on this device."""


class NotificationCenter(Protocol):
    """Local notification subsystem."""

    async def schedule(self, trigger: Trigger, content: NotificationContent) -> str: ...

    async def cancel(self, notification_id: str) -> None: ...

    async def cancel_all(self) -> None: ...

    async def list_scheduled(self) -> list[ScheduledNotification]: ...


class LocalNotificationCenter:
    """In-memory NotificationCenter."""

    def __init__(self, permission_granted: bool = True, clock=datetime.now):
        self.permission_granted = permission_granted
        self.clock = clock
        self._scheduled: dict[str, ScheduledNotification] = {}

    async def request_permissions(self) -> bool:
        if not self.permission_granted:
            logger.info("Notification permission denied")
        return self.permission_granted

    async def schedule(self, trigger: Trigger, content: NotificationContent) -> str:
        """
        Register a notification.

        Raises:
            NotificationPermissionError if notifications are not allowed
        """
        if not await self.request_permissions():
            raise NotificationPermissionError("Notification permission not granted")

        notification = ScheduledNotification(
            id=str(uuid4()),
            trigger=trigger,
            content=content,
            scheduled_at=self.clock(),
        )
        self._scheduled[notification.id] = notification
        logger.debug(f"Scheduled notification {notification.id}: {trigger}")
        return notification.id

    async def cancel(self, notification_id: str) -> None:
        self._scheduled.pop(notification_id, None)

    async def cancel_all(self) -> None:
        self._scheduled.clear()

    async def list_scheduled(self) -> list[ScheduledNotification]:
        return list(self._scheduled.values())

