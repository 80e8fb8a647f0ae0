"""Client services."""

from fuelcoach.services.accounts import AccountService, ActionResult
from fuelcoach.services.clients import APIClient, APIError
from fuelcoach.services.local_notifications import LocalNotificationCenter
from fuelcoach.services.reminders import (
    ConsumptionReminderScheduler,
    ReminderConfig,
    RetryPolicy,
    ScheduleOutcome,
    ScheduleStatus,
)
from fuelcoach.services.session_gate import SessionGate
from fuelcoach.services.storage import MemoryKeyValueStore, SessionStorage, SQLiteKeyValueStore
from fuelcoach.services.training import TrainingLogResult, TrainingService

__all__ = [
    "AccountService",
    "ActionResult",
    "APIClient",
    "APIError",
    "ConsumptionReminderScheduler",
    "LocalNotificationCenter",
    "MemoryKeyValueStore",
    "ReminderConfig",
    "RetryPolicy",
    "ScheduleOutcome",
    "ScheduleStatus",
    "SessionGate",
    "SessionStorage",
    "SQLiteKeyValueStore",
    "TrainingLogResult",
    "TrainingService",
]
