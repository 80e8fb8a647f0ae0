"""Input schemas validated before any API call."""

from .auth import Credentials, Registration
from .profile import ProfileData
from .training import TrainingSessionCreate

__all__ = ["Credentials", "ProfileData", "Registration", "TrainingSessionCreate"]
