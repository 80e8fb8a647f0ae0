"""Client states."""

from fuelcoach.states.gate import (
    GateSnapshot,
    GateState,
    ProfileStatus,
    Route,
    redirect_for,
)

__all__ = ["GateSnapshot", "GateState", "ProfileStatus", "Route", "redirect_for"]
