"""Training session and recommendation records consumed by the reminder scheduler."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from fuelcoach.utils.timeparse import parse_date, parse_time

logger = logging.getLogger(__name__)


class ConsumptionTiming(str, Enum):
    """When a recommended product should be consumed relative to training."""

    BEFORE = "before"
    DURING = "during"
    AFTER = "after"
    DAILY = "daily"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ConsumptionTiming"]:
        """Parse a timing value, accepting the server's Spanish aliases."""
        if not value:
            return None
        key = value.strip().lower()
        key = TIMING_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            logger.debug(f"Unknown consumption timing: {value}")
            return None


TIMING_ALIASES: dict[str, str] = {
    "antes": "before",
    "durante": "during",
    "despues": "after",
    "después": "after",
    "diario": "daily",
}


@dataclass
class Recommendation:
    """One recommended product for a training session."""

    product_name: Optional[str]
    consumption_timing: Optional[ConsumptionTiming]
    timing_minutes: Optional[int] = None
    product_id: Optional[int] = None

    @property
    def is_schedulable(self) -> bool:
        return bool(self.product_name) and self.consumption_timing is not None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Recommendation":
        minutes = data.get("timing_minutes")
        try:
            minutes = int(minutes) if minutes is not None else None
        except (TypeError, ValueError):
            minutes = None
        return cls(
            product_name=data.get("product_name") or data.get("name"),
            consumption_timing=ConsumptionTiming.parse(data.get("consumption_timing")),
            timing_minutes=minutes,
            product_id=data.get("product_id"),
        )


@dataclass
class TrainingSession:
    """A logged workout. Full CRUD lives server-side."""

    session_id: int
    session_date: date
    start_time: Optional[time] = None
    duration_min: Optional[int] = None
    intensity: Optional[str] = None
    type: Optional[str] = None
    recommendations: list[Recommendation] = field(default_factory=list)

    def starts_at(self, fallback: time) -> datetime:
        """Local wall-clock start of the session."""
        return datetime.combine(self.session_date, self.start_time or fallback)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "TrainingSession":
        """
        Build from the API payload.

        Raises:
            KeyError / ValueError if session_id or session_date is missing or malformed
        """
        start = data.get("start_time")
        return cls(
            session_id=int(data["session_id"]),
            session_date=parse_date(data["session_date"]),
            start_time=parse_time(start) if start else None,
            duration_min=data.get("duration_min"),
            intensity=data.get("intensity"),
            type=data.get("type"),
            recommendations=[
                Recommendation.from_api(r) for r in data.get("recommendations") or []
            ],
        )
