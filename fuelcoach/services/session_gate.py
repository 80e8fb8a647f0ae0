"""
Session/Profile Gate

Owns the authenticated session, the profile check and route guarding.
Created once by the application root and passed to whatever consumes it.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Protocol

from fuelcoach.models.session import Session, User
from fuelcoach.services.storage import SessionStorage
from fuelcoach.states.gate import (
    GateSnapshot,
    GateState,
    ProfileStatus,
    Route,
    redirect_for,
)

logger = logging.getLogger(__name__)

# Stored when the auth API returns no token
DEFAULT_TOKEN = "default-token"

Listener = Callable[[GateSnapshot, GateSnapshot], None]
Navigator = Callable[[str], Awaitable[None]]


class ProfileChecker(Protocol):
    """Answers whether a user has a profile."""

    async def fetch_status(self, user_id: int) -> ProfileStatus: ...


class SessionGate:
    """
    State machine over GateState.

    Every transition replaces the whole GateSnapshot in one assignment, then
    notifies subscribers and re-runs the navigation guard against the current
    route, if there is one. Profile check results are applied only if nothing
    else changed the snapshot while the check was in flight.
    """

    def __init__(
        self,
        storage: SessionStorage,
        profiles: ProfileChecker,
        navigator: Optional[Navigator] = None,
        initial_route: Optional[str] = Route.HOME,
    ):
        self.storage = storage
        self.profiles = profiles
        self.navigator = navigator
        self._snapshot = GateSnapshot(GateState.LOADING_SESSION)
        self._route = initial_route
        self._listeners: list[Listener] = []
        self._lock = asyncio.Lock()

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def snapshot(self) -> GateSnapshot:
        return self._snapshot

    @property
    def state(self) -> GateState:
        return self._snapshot.state

    @property
    def session(self) -> Optional[Session]:
        return self._snapshot.session

    @property
    def token(self) -> Optional[str]:
        return self._snapshot.session.token if self._snapshot.session else None

    @property
    def current_route(self) -> Optional[str]:
        return self._route

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a transition listener called with (old, new) snapshots.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =========================================================================
    # Events
    # =========================================================================

    async def restore(self) -> GateState:
        """Load the persisted session. Only acts while LOADING_SESSION."""
        if self.state is not GateState.LOADING_SESSION:
            return self.state

        session = await self.storage.load()
        if self.state is not GateState.LOADING_SESSION:
            # A login or logout won the race while storage was read
            return self.state

        if session is None:
            self._commit(GateSnapshot(GateState.UNAUTHENTICATED))
            await self._guard()
            return self.state

        self._commit(GateSnapshot(GateState.AUTHENTICATED_PROFILE_UNKNOWN, session))
        await self._guard()
        await self._check_profile(session)
        return self.state

    async def login(self, user: User, token: Optional[str] = None) -> ProfileStatus:
        """
        Start a session for `user` and resolve its profile status.

        Returns:
            Profile status found for the new session
        """
        session = Session(user=user, token=token or DEFAULT_TOKEN)
        async with self._lock:
            try:
                await self.storage.save(session)
            except Exception as e:
                logger.error(f"Error saving session: {e}")
            self._commit(GateSnapshot(GateState.AUTHENTICATED_PROFILE_UNKNOWN, session))

        await self._guard()
        return await self._check_profile(session)

    async def logout(self):
        """End the session; storage is cleared before the state changes."""
        async with self._lock:
            try:
                await self.storage.clear()
            except Exception as e:
                logger.error(f"Error during logout: {e}")
            self._commit(GateSnapshot(GateState.UNAUTHENTICATED))
        await self._guard()

    async def handle_auth_failure(self):
        """The API rejected our token: drop the session."""
        if self.state.is_authenticated:
            logger.warning("Token rejected by API, logging out")
            await self.logout()
        else:
            try:
                await self.storage.clear()
            except Exception as e:
                logger.error(f"Error clearing rejected session: {e}")

    async def mark_profile_saved(self):
        """Profile was saved: trust it without asking the API again."""
        session = self.session
        if session is None:
            logger.warning("Profile saved without an active session, ignoring")
            return
        if self.state is not GateState.AUTHENTICATED_WITH_PROFILE:
            self._commit(GateSnapshot(GateState.AUTHENTICATED_WITH_PROFILE, session))
            await self._guard()

    async def check_profile(self) -> ProfileStatus:
        """Re-run the profile check for the current session."""
        session = self.session
        if session is None:
            return ProfileStatus.UNKNOWN
        return await self._check_profile(session)

    async def on_route_change(self, route: str) -> Optional[str]:
        """
        Record the new route and guard it.

        Returns:
            Redirect target, or None when the route is allowed
        """
        self._route = route
        return await self._guard()

    # =========================================================================
    # Internals
    # =========================================================================

    async def _check_profile(self, session: Session) -> ProfileStatus:
        if self._snapshot.session is not session:
            return self._snapshot.profile_status

        if self.state is GateState.AUTHENTICATED_PROFILE_UNKNOWN:
            self._commit(GateSnapshot(GateState.AUTHENTICATED_PROFILE_CHECKING, session))
        started = self._snapshot

        try:
            status = await self.profiles.fetch_status(session.user_id)
        except Exception as e:
            logger.error(f"Error checking profile for user {session.user_id}: {e}")
            status = ProfileStatus.ABSENT

        if status is not ProfileStatus.PRESENT:
            status = ProfileStatus.ABSENT
        logger.info(f"Profile check for user {session.user_id}: {status.value}")

        if self._snapshot is not started:
            logger.debug("Gate changed during profile check, discarding result")
            return status

        new_state = (
            GateState.AUTHENTICATED_WITH_PROFILE
            if status is ProfileStatus.PRESENT
            else GateState.AUTHENTICATED_NO_PROFILE
        )
        if new_state is not self.state:
            self._commit(GateSnapshot(new_state, session))
            await self._guard()
        return status

    def _commit(self, snapshot: GateSnapshot):
        old = self._snapshot
        self._snapshot = snapshot
        logger.debug(f"Gate: {old.state.value} -> {snapshot.state.value}")
        for listener in list(self._listeners):
            try:
                listener(old, snapshot)
            except Exception as e:
                logger.error(f"Gate listener failed: {e}")

    async def _guard(self) -> Optional[str]:
        if self._route is None:
            return None
        target = redirect_for(self.state, self._route)
        if target is None:
            return None

        logger.info(f"Redirecting {self._route} -> {target} ({self.state.value})")
        self._route = target
        if self.navigator is not None:
            await self.navigator(target)
        return target
