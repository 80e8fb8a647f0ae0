"""
Account Service

Sign-in, sign-up, sign-out and profile save on top of the API and the gate.
Collaborator errors become user-facing messages here.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import ValidationError

from fuelcoach.schemas import Credentials, ProfileData, Registration
from fuelcoach.services.clients import APIClient, APIError, AuthenticationError, TransportError
from fuelcoach.services.reminders import ConsumptionReminderScheduler
from fuelcoach.services.session_gate import SessionGate
from fuelcoach.states.gate import ProfileStatus
from fuelcoach.utils.formatters import format_validation_error

logger = logging.getLogger(__name__)

MISSING_FIELDS = "Please fill in all fields"
INVALID_CREDENTIALS = "Invalid email or password"
NOT_SIGNED_IN = "You must be signed in to do this"


@dataclass
class ActionResult:
    """Outcome of a user action."""

    ok: bool
    message: Optional[str] = None
    profile_status: Optional[ProfileStatus] = None


def describe_api_error(error: APIError, fallback: str) -> str:
    if isinstance(error, TransportError):
        return error.detail
    return error.detail or fallback


class AccountService:
    """User-facing account actions."""

    def __init__(
        self,
        api: APIClient,
        gate: SessionGate,
        reminders: Optional[ConsumptionReminderScheduler] = None,
    ):
        self.api = api
        self.gate = gate
        self.reminders = reminders

    async def sign_in(self, email: str, password: str) -> ActionResult:
        """
        Log in and start a session.

        Returns:
            ActionResult with the resolved profile status on success
        """
        try:
            credentials = Credentials(email=email, password=password)
        except ValidationError as e:
            if not email or not password:
                return ActionResult(False, MISSING_FIELDS)
            return ActionResult(False, format_validation_error(e))

        try:
            result = await self.api.auth.login(credentials.email, credentials.password)
        except AuthenticationError:
            return ActionResult(False, INVALID_CREDENTIALS)
        except APIError as e:
            logger.error(f"Login failed: {e}")
            return ActionResult(False, describe_api_error(e, "Unexpected error while signing in"))

        status = await self.gate.login(result.user, result.token)
        return ActionResult(True, profile_status=status)

    async def sign_up(self, username: str, email: str, password: str) -> ActionResult:
        """Register, then sign in with the same credentials."""
        try:
            registration = Registration(username=username, email=email, password=password)
        except ValidationError as e:
            if not username or not email or not password:
                return ActionResult(False, MISSING_FIELDS)
            return ActionResult(False, format_validation_error(e))

        try:
            response = await self.api.auth.register(
                registration.username, registration.email, registration.password
            )
        except APIError as e:
            logger.error(f"Registration failed: {e}")
            return ActionResult(False, describe_api_error(e, "Registration could not be completed"))

        if response.get("success") is False:
            return ActionResult(False, response.get("message") or "Registration could not be completed")

        return await self.sign_in(registration.email, registration.password)

    async def sign_out(self) -> ActionResult:
        """End the session; pending reminders belong to it and go too."""
        await self.gate.logout()
        if self.reminders is not None:
            await self.reminders.cancel_all()
        return ActionResult(True)

    async def save_profile(self, data: dict) -> ActionResult:
        """Validate and save the profile, then mark it present on the gate."""
        session = self.gate.session
        if session is None:
            return ActionResult(False, NOT_SIGNED_IN)

        try:
            profile = ProfileData.model_validate(data)
        except ValidationError as e:
            return ActionResult(False, format_validation_error(e))

        try:
            response = await self.api.profiles.save(session.user_id, profile)
        except APIError as e:
            logger.error(f"Error saving profile: {e}")
            return ActionResult(False, describe_api_error(e, "Could not save the profile"))

        if not response["success"]:
            return ActionResult(False, response.get("message") or "Could not save the profile")

        await self.gate.mark_profile_saved()
        return ActionResult(True, profile_status=ProfileStatus.PRESENT)
