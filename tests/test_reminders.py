"""
Tests for the consumption reminder scheduler.

Time is fixed with an injected clock and sleeping with a recording fake,
so polling tests run instantly.
"""

import asyncio
from datetime import date, datetime, time
from unittest.mock import AsyncMock, MagicMock

import pytest

from fuelcoach.config import Settings
from fuelcoach.models.training import ConsumptionTiming, Recommendation, TrainingSession
from fuelcoach.services.local_notifications import (
    DailyTrigger,
    DateTrigger,
    DelayTrigger,
    LocalNotificationCenter,
    NotificationContent,
)
from fuelcoach.services.reminders import (
    ConsumptionReminderScheduler,
    ReminderConfig,
    RetryPolicy,
    ScheduleStatus,
    compute_trigger,
)
from fuelcoach.utils.formatters import REMINDER_TITLE, TRAINING_ALERT_TITLE


SESSION_DAY = date(2025, 3, 14)
START = datetime(2025, 3, 14, 18, 0)


def rec(name="Energy Gel", timing="before", minutes=30):
    return Recommendation(name, ConsumptionTiming.parse(timing), minutes)


class FakeSleep:
    """Records requested delays instead of sleeping."""

    def __init__(self, on_sleep=None):
        self.delays = []
        self.on_sleep = on_sleep

    async def __call__(self, seconds):
        self.delays.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep()


def make_scheduler(recommendations, now, enabled=True, center=None, sleep=None, start_time=time(18, 0)):
    training = MagicMock()
    if isinstance(recommendations, list) and recommendations and isinstance(recommendations[0], list):
        training.get_recommendations = AsyncMock(side_effect=recommendations)
    else:
        training.get_recommendations = AsyncMock(return_value=recommendations)
    training.get = AsyncMock(
        return_value=TrainingSession(session_id=7, session_date=SESSION_DAY, start_time=start_time)
    )
    notifications = MagicMock()
    notifications.consumption_reminders_enabled = AsyncMock(return_value=enabled)

    scheduler = ConsumptionReminderScheduler(
        training,
        notifications,
        center or LocalNotificationCenter(clock=lambda: now),
        clock=lambda: now,
        sleep=sleep or FakeSleep(),
    )
    return scheduler, training


# =============================================================================
# Trigger computation
# =============================================================================

class TestComputeTrigger:
    """Tests for compute_trigger."""

    def test_before_in_future(self):
        """18:00 start, 30 min before, now 17:00: fires at 17:30."""
        planned = compute_trigger(rec(), START, datetime(2025, 3, 14, 17, 0))
        assert planned.trigger == DateTrigger(datetime(2025, 3, 14, 17, 30))
        assert planned.body == "Take Energy Gel now, 30 minutes before your training"

    def test_before_already_passed_fires_immediately(self):
        """Now 17:45 is past 17:30: a few-seconds trigger, not a past date."""
        planned = compute_trigger(rec(), START, datetime(2025, 3, 14, 17, 45))
        assert planned.trigger == DelayTrigger(5)
        assert planned.body == "Remember to take Energy Gel before training"

    def test_exactly_now_is_immediate(self):
        planned = compute_trigger(rec(), START, datetime(2025, 3, 14, 17, 30))
        assert isinstance(planned.trigger, DelayTrigger)

    def test_during_fires_at_start(self):
        planned = compute_trigger(rec(timing="during"), START, datetime(2025, 3, 14, 9, 0))
        assert planned.trigger == DateTrigger(START)

    def test_after_fires_after_end_offset(self):
        planned = compute_trigger(rec("Recovery Shake", "after", 45), START, datetime(2025, 3, 14, 9, 0))
        assert planned.trigger == DateTrigger(datetime(2025, 3, 14, 18, 45))
        assert "Recovery Shake" in planned.body

    def test_daily_ignores_session_time(self):
        planned = compute_trigger(rec("Creatine", "daily"), START, datetime(2025, 3, 14, 23, 0))
        assert planned.trigger == DailyTrigger(hour=9, minute=0)
        assert planned.body == "Remember your daily dose of Creatine"

    def test_missing_minutes_uses_default(self):
        planned = compute_trigger(rec(minutes=None), START, datetime(2025, 3, 14, 9, 0))
        assert planned.trigger == DateTrigger(datetime(2025, 3, 14, 17, 30))

    def test_custom_config(self):
        config = ReminderConfig(default_timing_minutes=60, daily_hour=7, daily_minute=15, immediate_delay_seconds=2)
        assert compute_trigger(rec(minutes=None), START, datetime(2025, 3, 14, 9, 0), config).trigger == \
            DateTrigger(datetime(2025, 3, 14, 17, 0))
        assert compute_trigger(rec(timing="daily"), START, START, config).trigger == DailyTrigger(7, 15)
        assert compute_trigger(rec(), START, START, config).trigger == DelayTrigger(2)

    @pytest.mark.parametrize("recommendation", [
        Recommendation(None, ConsumptionTiming.BEFORE, 30),
        Recommendation("Gel", None, 30),
        Recommendation.from_api({"product_name": "Gel", "consumption_timing": "whenever"}),
    ])
    def test_unschedulable_is_skipped(self, recommendation):
        assert compute_trigger(recommendation, START, datetime(2025, 3, 14, 9, 0)) is None

    def test_spanish_timing_alias(self):
        recommendation = Recommendation.from_api(
            {"product_name": "Gel", "consumption_timing": "antes", "timing_minutes": "15"}
        )
        planned = compute_trigger(recommendation, START, datetime(2025, 3, 14, 9, 0))
        assert planned.trigger == DateTrigger(datetime(2025, 3, 14, 17, 45))


class TestReminderConfig:
    def test_from_settings(self):
        settings = Settings(default_start_time="06:30", daily_reminder_hour=8, immediate_delay_seconds=10)
        config = ReminderConfig.from_settings(settings)
        assert config.default_start_time == time(6, 30)
        assert config.daily_hour == 8
        assert config.immediate_delay_seconds == 10


# =============================================================================
# Polling
# =============================================================================

class TestRetryPolicy:
    """Tests for RetryPolicy.poll."""

    def test_sleeps_before_each_attempt(self):
        sleep = FakeSleep()
        attempts = []

        async def attempt(n):
            attempts.append(n)
            return "ready" if n == 2 else None

        result = asyncio.run(RetryPolicy(3, 4.0).poll(attempt, sleep=sleep))
        assert result == "ready"
        assert attempts == [1, 2]
        assert sleep.delays == [4.0, 4.0]

    def test_exhausted(self):
        sleep = FakeSleep()

        async def attempt(n):
            return None

        assert asyncio.run(RetryPolicy(3, 4.0).poll(attempt, sleep=sleep)) is None
        assert sleep.delays == [4.0, 4.0, 4.0]

    def test_cancelled_after_sleep(self):
        async def main():
            cancel = asyncio.Event()
            attempt = AsyncMock(return_value=None)
            result = await RetryPolicy(3, 4.0).poll(attempt, sleep=FakeSleep(cancel.set), cancel_event=cancel)
            return result, attempt

        result, attempt = asyncio.run(main())
        assert result is None
        attempt.assert_not_awaited()


# =============================================================================
# Scheduling
# =============================================================================

class TestScheduleForSession:
    """Tests for ConsumptionReminderScheduler.schedule_for_session."""

    def test_schedules_reminder_before_training(self):
        now = datetime(2025, 3, 14, 17, 0)
        raw = [{"product_name": "Energy Gel", "consumption_timing": "before", "timing_minutes": 30}]
        scheduler, _ = make_scheduler(raw, now)

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.SCHEDULED
        assert outcome.scheduled_count == 1
        assert outcome.message == "Scheduled 1 consumption reminders"

        scheduled = asyncio.run(scheduler.center.list_scheduled())
        assert scheduled[0].trigger == DateTrigger(datetime(2025, 3, 14, 17, 30))
        assert scheduled[0].content.title == REMINDER_TITLE
        assert scheduled[0].content.data == {"session_id": 7}

    def test_disabled_preferences_skip_polling(self):
        sleep = FakeSleep()
        scheduler, training = make_scheduler([{"product_name": "Gel"}], datetime(2025, 3, 14, 17, 0),
                                             enabled=False, sleep=sleep)

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.DISABLED
        assert outcome.scheduled_count == 0
        assert sleep.delays == []
        training.get_recommendations.assert_not_awaited()

    def test_preferences_error_counts_as_disabled(self):
        scheduler, training = make_scheduler([], datetime(2025, 3, 14, 17, 0))
        scheduler.notifications.consumption_reminders_enabled = AsyncMock(side_effect=RuntimeError("down"))

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.DISABLED
        training.get_recommendations.assert_not_awaited()

    def test_no_recommendations_after_retries(self):
        sleep = FakeSleep()
        scheduler, training = make_scheduler([], datetime(2025, 3, 14, 17, 0), sleep=sleep)

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.NO_RECOMMENDATIONS
        assert "Try again later" in outcome.message
        assert training.get_recommendations.await_count == 3
        assert sleep.delays == [4.0, 4.0, 4.0]

    def test_recommendations_arrive_on_second_attempt(self):
        raw = [{"product_name": "Gel", "consumption_timing": "during"}]
        scheduler, training = make_scheduler([[], raw], datetime(2025, 3, 14, 9, 0))

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.scheduled_count == 1
        assert training.get_recommendations.await_count == 2

    def test_fetch_errors_are_retried(self):
        scheduler, training = make_scheduler([], datetime(2025, 3, 14, 9, 0))
        training.get_recommendations = AsyncMock(side_effect=[
            ConnectionError("offline"),
            [{"product_name": "Gel", "consumption_timing": "after"}],
        ])

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.SCHEDULED
        assert outcome.scheduled_count == 1

    def test_missing_start_time_uses_default(self):
        raw = [{"product_name": "Gel", "consumption_timing": "before", "timing_minutes": 30}]
        scheduler, _ = make_scheduler(raw, datetime(2025, 3, 14, 9, 0), start_time=None)

        asyncio.run(scheduler.schedule_for_session(7, 1))
        scheduled = asyncio.run(scheduler.center.list_scheduled())
        assert scheduled[0].trigger == DateTrigger(datetime(2025, 3, 14, 17, 30))

    def test_cancelled_schedules_nothing(self):
        async def main():
            cancel = asyncio.Event()
            scheduler, training = make_scheduler(
                [{"product_name": "Gel", "consumption_timing": "before"}],
                datetime(2025, 3, 14, 9, 0),
                sleep=FakeSleep(cancel.set),
            )
            outcome = await scheduler.schedule_for_session(7, 1, cancel_event=cancel)
            return outcome, training, await scheduler.center.list_scheduled()

        outcome, training, scheduled = asyncio.run(main())
        assert outcome.status is ScheduleStatus.CANCELLED
        assert outcome.message is None
        assert scheduled == []
        training.get_recommendations.assert_not_awaited()

    def test_one_failure_does_not_stop_the_rest(self):
        raw = [
            {"product_name": "Gel", "consumption_timing": "before"},
            {"product_name": "Drink", "consumption_timing": "during"},
            {"product_name": "Shake", "consumption_timing": "after"},
        ]
        center = MagicMock()
        center.schedule = AsyncMock(side_effect=["id-1", RuntimeError("quota"), "id-3"])
        scheduler, _ = make_scheduler(raw, datetime(2025, 3, 14, 9, 0), center=center)

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.SCHEDULED
        assert outcome.notification_ids == ["id-1", "id-3"]
        assert center.schedule.await_count == 3

    def test_permission_denied_schedules_zero(self):
        now = datetime(2025, 3, 14, 9, 0)
        raw = [{"product_name": "Gel", "consumption_timing": "before"}]
        center = LocalNotificationCenter(permission_granted=False, clock=lambda: now)
        scheduler, _ = make_scheduler(raw, now, center=center)

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.status is ScheduleStatus.SCHEDULED
        assert outcome.scheduled_count == 0
        assert outcome.message is None

    def test_unknown_timings_skipped(self):
        raw = [
            {"product_name": "Gel", "consumption_timing": "sometime"},
            {"name": "Creatine", "consumption_timing": "diario"},
        ]
        scheduler, _ = make_scheduler(raw, datetime(2025, 3, 14, 9, 0))

        outcome = asyncio.run(scheduler.schedule_for_session(7, 1))
        assert outcome.scheduled_count == 1
        scheduled = asyncio.run(scheduler.center.list_scheduled())
        assert scheduled[0].trigger == DailyTrigger(hour=9, minute=0)


class TestTrainingAlert:
    """Tests for the daily training alert."""

    def test_schedules_daily_alert(self):
        scheduler, _ = make_scheduler([], datetime(2025, 3, 14, 9, 0))

        notification_id = asyncio.run(scheduler.schedule_training_alert("07:30"))
        scheduled = asyncio.run(scheduler.center.list_scheduled())
        assert scheduled[0].id == notification_id
        assert scheduled[0].trigger == DailyTrigger(hour=7, minute=30)
        assert scheduled[0].content.title == TRAINING_ALERT_TITLE

    def test_invalid_time(self):
        scheduler, _ = make_scheduler([], datetime(2025, 3, 14, 9, 0))
        with pytest.raises(ValueError):
            asyncio.run(scheduler.schedule_training_alert("25:99"))

    def test_permission_denied_returns_none(self):
        center = LocalNotificationCenter(permission_granted=False)
        scheduler, _ = make_scheduler([], datetime(2025, 3, 14, 9, 0), center=center)
        assert asyncio.run(scheduler.schedule_training_alert("07:30")) is None


class TestCancel:
    """Tests for dropping scheduled reminders."""

    def test_cancel_for_session_keeps_others(self):
        now = datetime(2025, 3, 14, 9, 0)
        scheduler, _ = make_scheduler([], now)

        async def main():
            center = scheduler.center
            await center.schedule(DelayTrigger(60), NotificationContent("t", "a", data={"session_id": 7}))
            await center.schedule(DelayTrigger(90), NotificationContent("t", "b", data={"session_id": 7}))
            other = await center.schedule(DelayTrigger(60), NotificationContent("t", "c", data={"session_id": 8}))
            alert = await scheduler.schedule_training_alert("07:30")

            cancelled = await scheduler.cancel_for_session(7)
            remaining = {n.id for n in await center.list_scheduled()}
            return cancelled, remaining, {other, alert}

        cancelled, remaining, expected = asyncio.run(main())
        assert cancelled == 2
        assert remaining == expected

    def test_cancel_for_unknown_session(self):
        scheduler, _ = make_scheduler([], datetime(2025, 3, 14, 9, 0))
        assert asyncio.run(scheduler.cancel_for_session(99)) == 0

    def test_cancel_all(self):
        scheduler, _ = make_scheduler([], datetime(2025, 3, 14, 9, 0))

        async def main():
            await scheduler.schedule_training_alert("07:30")
            await scheduler.cancel_all()
            return await scheduler.center.list_scheduled()

        assert asyncio.run(main()) == []

    def test_cancel_all_error_is_logged(self):
        center = MagicMock()
        center.cancel_all = AsyncMock(side_effect=RuntimeError("center unavailable"))
        scheduler, _ = make_scheduler([], datetime(2025, 3, 14, 9, 0), center=center)

        asyncio.run(scheduler.cancel_all())
        center.cancel_all.assert_awaited_once()
