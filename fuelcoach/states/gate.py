"""
Session/Profile Gate States

Single tagged union for authentication + profile knowledge, and the pure
navigation decision made from it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from fuelcoach.models.session import Session


class ProfileStatus(str, Enum):
    """What we know about the user's nutrition/training profile."""

    UNKNOWN = "unknown"
    ABSENT = "absent"
    PRESENT = "present"


class GateState(str, Enum):
    """Reachable combinations of (session, profile status)."""

    # Durable storage still being read
    LOADING_SESSION = "loading_session"

    # No valid session; only public routes allowed
    UNAUTHENTICATED = "unauthenticated"

    # Session present, profile not checked yet
    AUTHENTICATED_PROFILE_UNKNOWN = "authenticated_profile_unknown"

    # Profile check request in flight
    AUTHENTICATED_PROFILE_CHECKING = "authenticated_profile_checking"

    # Checked: no profile, only profile creation allowed
    AUTHENTICATED_NO_PROFILE = "authenticated_no_profile"

    # Checked: profile exists
    AUTHENTICATED_WITH_PROFILE = "authenticated_with_profile"

    @property
    def is_authenticated(self) -> bool:
        return self in AUTHENTICATED_STATES

    @property
    def is_indeterminate(self) -> bool:
        """No redirect may fire while in these states."""
        return self in INDETERMINATE_STATES

    @property
    def profile_status(self) -> ProfileStatus:
        if self is GateState.AUTHENTICATED_WITH_PROFILE:
            return ProfileStatus.PRESENT
        if self is GateState.AUTHENTICATED_NO_PROFILE:
            return ProfileStatus.ABSENT
        return ProfileStatus.UNKNOWN


AUTHENTICATED_STATES = frozenset({
    GateState.AUTHENTICATED_PROFILE_UNKNOWN,
    GateState.AUTHENTICATED_PROFILE_CHECKING,
    GateState.AUTHENTICATED_NO_PROFILE,
    GateState.AUTHENTICATED_WITH_PROFILE,
})

INDETERMINATE_STATES = frozenset({
    GateState.LOADING_SESSION,
    GateState.AUTHENTICATED_PROFILE_UNKNOWN,
    GateState.AUTHENTICATED_PROFILE_CHECKING,
})


class Route:
    """Route paths known to the gate."""

    HOME = "/"
    LOGIN = "/login"
    REGISTER = "/register"
    CREATE_PROFILE = "/create-profile"
    PROFILE = "/profile"
    PRODUCTS = "/products"
    TRAINING = "/training"
    RECOMMENDATIONS = "/recommendations"


PUBLIC_SEGMENTS = frozenset({"login", "register"})
PROFILE_CREATION_SEGMENT = "create-profile"


@dataclass(frozen=True)
class GateSnapshot:
    """
    Consistent view of the gate.

    The session is set exactly when the state is authenticated, and the
    profile status is derived from the state, so the navigation guard can
    never see a session paired with another session's profile status.
    """

    state: GateState
    session: Optional[Session] = None

    def __post_init__(self):
        if self.state.is_authenticated != (self.session is not None):
            raise ValueError(f"Session must be set iff authenticated (state={self.state.value})")

    @property
    def profile_status(self) -> ProfileStatus:
        return self.state.profile_status

    @property
    def user_id(self) -> Optional[int]:
        return self.session.user_id if self.session else None


def first_segment(route: str) -> str:
    """
    First path segment of a route, ignoring query string and route groups.

    >>> first_segment("/products/12?tab=info")
    'products'
    >>> first_segment("/(tabs)/training")
    'training'
    """
    path = route.split("?", 1)[0].split("#", 1)[0]
    for segment in path.split("/"):
        if not segment:
            continue
        # Route groups like "(tabs)" don't change the screen
        if segment.startswith("(") and segment.endswith(")"):
            continue
        return segment
    return ""


def is_public_route(route: str) -> bool:
    return first_segment(route) in PUBLIC_SEGMENTS


def is_profile_creation_route(route: str) -> bool:
    return first_segment(route) == PROFILE_CREATION_SEGMENT


def redirect_for(state: GateState, route: str) -> Optional[str]:
    """
    Decide whether the current route is allowed in the given state.

    Returns the route to redirect to, or None when no redirect is needed.
    For any redirect R -> R', redirect_for(state, R') is None.
    """
    if state.is_indeterminate:
        return None

    if state is GateState.UNAUTHENTICATED:
        return None if is_public_route(route) else Route.LOGIN

    if state is GateState.AUTHENTICATED_WITH_PROFILE:
        if is_public_route(route) or is_profile_creation_route(route):
            return Route.HOME
        return None

    if state is GateState.AUTHENTICATED_NO_PROFILE:
        return None if is_profile_creation_route(route) else Route.CREATE_PROFILE

    return None
