"""Training session input schema."""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field

from fuelcoach.utils.timeparse import format_time


class TrainingSessionCreate(BaseModel):
    """New training session as entered by the user."""

    session_date: date
    start_time: time = time(18, 0)
    duration_min: int = Field(gt=0)
    intensity: str = "media"
    type: str = "cardio"
    sport_type: Optional[str] = None
    weather: Optional[str] = None
    notes: Optional[str] = None

    def to_api(self, user_id: int) -> dict:
        """Payload for POST /training."""
        payload = {
            "userId": user_id,
            "session_date": self.session_date.isoformat(),
            "start_time": format_time(self.start_time),
            "duration_min": self.duration_min,
            "intensity": self.intensity,
            "type": self.type,
        }
        for key in ("sport_type", "weather", "notes"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload
