"""Data models for fuelcoach."""

from .session import Session, User
from .training import ConsumptionTiming, Recommendation, TrainingSession

__all__ = [
    "ConsumptionTiming",
    "Recommendation",
    "Session",
    "TrainingSession",
    "User",
]
