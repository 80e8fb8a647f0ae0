"""
Application root.

Builds every collaborator once and wires them together explicitly.
"""

from dataclasses import dataclass
from typing import Optional

from fuelcoach.config import Settings, settings as default_settings
from fuelcoach.services.accounts import AccountService
from fuelcoach.services.clients import APIClient
from fuelcoach.services.local_notifications import LocalNotificationCenter, NotificationCenter
from fuelcoach.services.reminders import ConsumptionReminderScheduler, ReminderConfig, RetryPolicy
from fuelcoach.services.session_gate import Navigator, SessionGate
from fuelcoach.services.storage import KeyValueStore, SessionStorage, SQLiteKeyValueStore
from fuelcoach.services.training import TrainingService
from fuelcoach.states.gate import Route


@dataclass
class App:
    """Wired application services."""

    settings: Settings
    api: APIClient
    store: KeyValueStore
    gate: SessionGate
    accounts: AccountService
    training: TrainingService
    reminders: ConsumptionReminderScheduler
    notifications: NotificationCenter

    async def start(self):
        """Restore the persisted session."""
        await self.gate.restore()

    async def close(self):
        await self.api.close()
        close_store = getattr(self.store, "close", None)
        if close_store is not None:
            await close_store()


def build_app(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    notifications: Optional[NotificationCenter] = None,
    navigator: Optional[Navigator] = None,
    api: Optional[APIClient] = None,
    initial_route: Optional[str] = Route.HOME,
) -> App:
    """
    Create the API client, storage, gate and services for one process.

    `initial_route` is the route the gate guards while the session is
    restored; None leaves navigation alone until a route is opened.
    """
    settings = settings or default_settings
    api = api or APIClient(
        settings.backend_url,
        timeout=settings.request_timeout,
        user_agent=settings.user_agent,
    )
    store = store or SQLiteKeyValueStore(settings.database_url)
    gate = SessionGate(
        SessionStorage(store), api.profiles, navigator=navigator, initial_route=initial_route
    )

    # Every request carries the gate's token; a 401 anywhere ends the session
    api.set_auth_hooks(lambda: gate.token, gate.handle_auth_failure)

    notifications = notifications or LocalNotificationCenter()
    reminders = ConsumptionReminderScheduler(
        api.training,
        api.notifications,
        notifications,
        policy=RetryPolicy(
            max_attempts=settings.recommendation_poll_attempts,
            delay_seconds=settings.recommendation_poll_delay,
        ),
        config=ReminderConfig.from_settings(settings),
    )

    return App(
        settings=settings,
        api=api,
        store=store,
        gate=gate,
        accounts=AccountService(api, gate, reminders),
        training=TrainingService(api, gate, reminders),
        reminders=reminders,
        notifications=notifications,
    )
