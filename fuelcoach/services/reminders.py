"""
Consumption Reminder Scheduler

Schedules local reminders for the products recommended for a training
session, relative to the session's start time.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from fuelcoach.models.training import ConsumptionTiming, Recommendation, TrainingSession
from fuelcoach.services.clients import NotificationsClient, TrainingClient
from fuelcoach.services.local_notifications import (
    DailyTrigger,
    DateTrigger,
    DelayTrigger,
    NotificationCenter,
    NotificationContent,
    Trigger,
)
from fuelcoach.utils.formatters import (
    REMINDER_TITLE,
    TRAINING_ALERT_TITLE,
    format_consumption_reminder,
    format_training_alert,
)
from fuelcoach.utils.timeparse import parse_time

logger = logging.getLogger(__name__)

T = TypeVar("T")
Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class ReminderConfig:
    """Defaults for reminder timing."""

    # Assumed start when a session has no start_time
    default_start_time: time = time(18, 0)

    # Offset for before/after reminders without timing_minutes
    default_timing_minutes: int = 30

    # Daily reminders fire at this wall-clock time
    daily_hour: int = 9
    daily_minute: int = 0

    # Delay used when the planned time already passed
    immediate_delay_seconds: int = 5

    @classmethod
    def from_settings(cls, settings) -> "ReminderConfig":
        return cls(
            default_start_time=parse_time(settings.default_start_time),
            default_timing_minutes=settings.default_timing_minutes,
            daily_hour=settings.daily_reminder_hour,
            daily_minute=settings.daily_reminder_minute,
            immediate_delay_seconds=settings.immediate_delay_seconds,
        )


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded polling: wait `delay_seconds`, then try, up to `max_attempts` times."""

    max_attempts: int = 3
    delay_seconds: float = 4.0

    async def poll(
        self,
        attempt: Callable[[int], Awaitable[Optional[T]]],
        sleep: Sleep = asyncio.sleep,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[T]:
        """
        Call `attempt(n)` until it returns a value other than None.

        The delay comes before each attempt since the awaited data is produced
        asynchronously server-side.

        Returns:
            First non-None result, or None when attempts run out or the poll
            is cancelled
        """
        for n in range(1, self.max_attempts + 1):
            await sleep(self.delay_seconds)
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Poll cancelled")
                return None
            result = await attempt(n)
            if result is not None:
                return result
        return None


class ScheduleStatus(str, Enum):
    DISABLED = "disabled"                      # reminders off in preferences
    NO_RECOMMENDATIONS = "no_recommendations"  # poll exhausted without data
    CANCELLED = "cancelled"                    # caller cancelled the poll
    SCHEDULED = "scheduled"                    # ran; count may be zero


@dataclass
class ScheduleOutcome:
    """What happened when scheduling reminders for a session."""

    status: ScheduleStatus
    scheduled_count: int = 0
    notification_ids: list[str] = field(default_factory=list)

    @property
    def message(self) -> Optional[str]:
        """User-facing confirmation, if any."""
        if self.status is ScheduleStatus.NO_RECOMMENDATIONS:
            return (
                "Could not generate recommendations for this training. "
                "Try again later."
            )
        if self.status is ScheduleStatus.SCHEDULED and self.scheduled_count > 0:
            return f"Scheduled {self.scheduled_count} consumption reminders"
        return None


@dataclass(frozen=True)
class PlannedReminder:
    trigger: Trigger
    body: str


def compute_trigger(
    recommendation: Recommendation,
    session_start: datetime,
    now: datetime,
    config: ReminderConfig = ReminderConfig(),
) -> Optional[PlannedReminder]:
    """
    Trigger and text for one recommendation.

    Reminders whose planned time is not in the future fire after
    `config.immediate_delay_seconds` instead of being dropped.

    Returns:
        PlannedReminder, or None if the recommendation is not schedulable
    """
    if not recommendation.is_schedulable:
        return None

    timing = recommendation.consumption_timing
    name = recommendation.product_name
    minutes = recommendation.timing_minutes
    if minutes is None:
        minutes = config.default_timing_minutes

    if timing is ConsumptionTiming.DAILY:
        return PlannedReminder(
            DailyTrigger(hour=config.daily_hour, minute=config.daily_minute),
            format_consumption_reminder(name, timing, minutes),
        )

    if timing is ConsumptionTiming.BEFORE:
        fire_at = session_start - timedelta(minutes=minutes)
    elif timing is ConsumptionTiming.DURING:
        fire_at = session_start
    else:
        fire_at = session_start + timedelta(minutes=minutes)

    if fire_at > now:
        return PlannedReminder(
            DateTrigger(fire_at),
            format_consumption_reminder(name, timing, minutes),
        )
    return PlannedReminder(
        DelayTrigger(config.immediate_delay_seconds),
        format_consumption_reminder(name, timing, minutes, immediate=True),
    )


class ConsumptionReminderScheduler:
    """Polls recommendations for a new session and schedules reminders."""

    def __init__(
        self,
        training: TrainingClient,
        notifications: NotificationsClient,
        center: NotificationCenter,
        policy: RetryPolicy = RetryPolicy(),
        config: ReminderConfig = ReminderConfig(),
        clock: Callable[[], datetime] = datetime.now,
        sleep: Sleep = asyncio.sleep,
    ):
        self.training = training
        self.notifications = notifications
        self.center = center
        self.policy = policy
        self.config = config
        self.clock = clock
        self.sleep = sleep

    async def reminders_enabled(self, user_id: int) -> bool:
        """Preference lookup; a failed lookup counts as disabled."""
        try:
            return await self.notifications.consumption_reminders_enabled(user_id)
        except Exception as e:
            logger.warning(f"Could not read notification preferences for user {user_id}: {e}")
            return False

    async def fetch_recommendations(
        self,
        session_id: int,
        user_id: int,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Optional[tuple[TrainingSession, list[Recommendation]]]:
        """
        Poll until the server has generated recommendations for the session.

        Returns:
            (refreshed session, recommendations), or None when exhausted
        """

        async def attempt(n: int):
            logger.info(f"Fetching recommendations, attempt {n}/{self.policy.max_attempts}")
            try:
                raw = await self.training.get_recommendations(session_id, user_id)
                if not raw:
                    logger.info(f"No recommendations yet (attempt {n}/{self.policy.max_attempts})")
                    return None
                session = await self.training.get(session_id)
            except Exception as e:
                logger.warning(f"Recommendation fetch attempt {n} failed: {e}")
                return None
            return session, [Recommendation.from_api(r) for r in raw]

        return await self.policy.poll(attempt, sleep=self.sleep, cancel_event=cancel_event)

    async def schedule_for_session(
        self,
        session_id: int,
        user_id: int,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ScheduleOutcome:
        """Check preferences, poll recommendations, schedule reminders. Never raises."""
        if not await self.reminders_enabled(user_id):
            logger.info("Consumption reminders disabled")
            return ScheduleOutcome(ScheduleStatus.DISABLED)

        result = await self.fetch_recommendations(session_id, user_id, cancel_event)
        if cancel_event is not None and cancel_event.is_set():
            return ScheduleOutcome(ScheduleStatus.CANCELLED)
        if result is None:
            logger.info(f"No recommendations generated for session {session_id}")
            return ScheduleOutcome(ScheduleStatus.NO_RECOMMENDATIONS)

        session, recommendations = result
        ids = await self.schedule_recommendations(session, recommendations)
        return ScheduleOutcome(ScheduleStatus.SCHEDULED, len(ids), ids)

    async def schedule_recommendations(
        self,
        session: TrainingSession,
        recommendations: list[Recommendation],
    ) -> list[str]:
        """
        Schedule one reminder per schedulable recommendation.

        A reminder that fails to schedule is logged and skipped.

        Returns:
            IDs of the reminders actually scheduled
        """
        start = session.starts_at(self.config.default_start_time)
        now = self.clock()
        logger.info(f"Session {session.session_id} starts at {start:%Y-%m-%d %H:%M} (now {now:%H:%M})")

        ids = []
        for recommendation in recommendations:
            planned = compute_trigger(recommendation, start, now, self.config)
            if planned is None:
                continue
            try:
                notification_id = await self.center.schedule(
                    planned.trigger,
                    NotificationContent(
                        title=REMINDER_TITLE,
                        body=planned.body,
                        data={"session_id": session.session_id},
                    ),
                )
            except Exception as e:
                logger.error(f"Error scheduling reminder for {recommendation.product_name}: {e}")
                continue
            logger.info(
                f"Scheduled {recommendation.consumption_timing.value} reminder "
                f"for {recommendation.product_name}"
            )
            ids.append(notification_id)

        logger.info(f"{len(ids)} reminders scheduled")
        return ids

    async def schedule_training_alert(self, at: str) -> Optional[str]:
        """
        Daily 'time to train' alert at 'HH:MM'.

        Returns:
            Notification ID, or None if it could not be scheduled

        Raises:
            ValueError if `at` is not a valid time
        """
        alert_time = parse_time(at)
        try:
            return await self.center.schedule(
                DailyTrigger(hour=alert_time.hour, minute=alert_time.minute),
                NotificationContent(title=TRAINING_ALERT_TITLE, body=format_training_alert()),
            )
        except Exception as e:
            logger.error(f"Error scheduling training alert: {e}")
            return None

    async def cancel_for_session(self, session_id: int) -> int:
        """
        Cancel the pending reminders of one training session.

        Returns:
            Number of reminders cancelled
        """
        cancelled = 0
        for notification in await self.center.list_scheduled():
            if notification.content.data.get("session_id") != session_id:
                continue
            await self.center.cancel(notification.id)
            cancelled += 1
        logger.info(f"Cancelled {cancelled} reminders for session {session_id}")
        return cancelled

    async def cancel_all(self):
        """Drop every pending reminder, e.g. when the user signs out."""
        try:
            await self.center.cancel_all()
        except Exception as e:
            logger.error(f"Error cancelling reminders: {e}")
