"""
Training Service

Logs a training session and schedules its consumption reminders.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from fuelcoach.models.training import TrainingSession
from fuelcoach.schemas import TrainingSessionCreate
from fuelcoach.services.accounts import NOT_SIGNED_IN, describe_api_error
from fuelcoach.services.clients import APIClient, APIError
from fuelcoach.services.reminders import ConsumptionReminderScheduler, ScheduleOutcome
from fuelcoach.services.session_gate import SessionGate
from fuelcoach.utils.formatters import format_validation_error

logger = logging.getLogger(__name__)


@dataclass
class TrainingLogResult:
    ok: bool
    message: Optional[str] = None
    session: Optional[TrainingSession] = None
    reminders: Optional[ScheduleOutcome] = None


class TrainingService:
    """Training log actions for the signed-in user."""

    def __init__(self, api: APIClient, gate: SessionGate, scheduler: ConsumptionReminderScheduler):
        self.api = api
        self.gate = gate
        self.scheduler = scheduler

    async def log_session(
        self,
        data: dict,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> TrainingLogResult:
        """
        Create a session, fetch it back and schedule reminders for it.

        Reminder scheduling never fails the whole action; its outcome is
        reported alongside the created session.
        """
        session = self.gate.session
        if session is None:
            return TrainingLogResult(False, NOT_SIGNED_IN)

        try:
            entry = TrainingSessionCreate.model_validate(data)
        except ValidationError as e:
            return TrainingLogResult(False, format_validation_error(e))

        try:
            session_id = await self.api.training.create(entry.to_api(session.user_id))
            created = await self.api.training.get(session_id)
        except APIError as e:
            logger.error(f"Error adding training session: {e}")
            return TrainingLogResult(False, describe_api_error(e, "Could not add the training session"))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed training session response: {e}")
            return TrainingLogResult(False, "Could not add the training session")

        outcome = await self.scheduler.schedule_for_session(
            created.session_id, session.user_id, cancel_event
        )
        return TrainingLogResult(True, outcome.message, created, outcome)

    async def list_sessions(self) -> list[dict]:
        session = self.gate.session
        if session is None:
            return []
        try:
            return await self.api.training.list_for_user(session.user_id)
        except APIError as e:
            logger.error(f"Error fetching training sessions: {e}")
            return []

    async def delete_session(self, session_id: int) -> bool:
        """Delete a session and cancel its pending reminders."""
        try:
            await self.api.training.delete(session_id)
        except APIError as e:
            logger.error(f"Error deleting training session: {e}")
            return False
        await self.scheduler.cancel_for_session(session_id)
        return True
