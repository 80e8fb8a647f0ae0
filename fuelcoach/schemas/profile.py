"""
Profile schemas.

Pydantic models for the nutrition/training profile form.
Validated locally before anything is sent to the API.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Gender(str, Enum):
    """Short codes keep the backend column narrow."""
    MALE = "M"
    FEMALE = "F"
    OTHER = "O"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    MODERATE = "moderate"
    ACTIVE = "active"
    VERY_ACTIVE = "very_active"


class TrainingFrequency(str, Enum):
    LOW = "1-2"
    MEDIUM = "3-4"
    HIGH = "5+"


class PrimaryGoal(str, Enum):
    MUSCLE_GAIN = "muscle_gain"
    WEIGHT_LOSS = "weight_loss"
    PERFORMANCE = "performance"
    GENERAL_HEALTH = "general_health"


class SweatLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class CaffeineTolerance(str, Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def split_restrictions(value) -> list[str]:
    """Backend stores restrictions as a comma-joined string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value)


class ProfileData(BaseModel):
    """Nutrition/training profile."""

    age: int = Field(gt=0, lt=120)
    weight: int = Field(gt=0, lt=400, description="kg")
    height: int = Field(gt=0, lt=260, description="cm")
    gender: Gender
    activity_level: ActivityLevel
    training_frequency: TrainingFrequency
    primary_goal: PrimaryGoal
    sweat_level: SweatLevel
    caffeine_tolerance: CaffeineTolerance
    dietary_restrictions: list[str] = Field(default_factory=list)
    allergies: Optional[list[str]] = None
    preferred_supplements: Optional[list[str]] = None

    @field_validator("dietary_restrictions", mode="before")
    @classmethod
    def parse_restrictions(cls, v):
        return split_restrictions(v)

    def to_api(self) -> dict:
        """Payload for POST /profile/{user_id}/profile."""
        data = self.model_dump(mode="json", exclude_none=True)
        data["dietary_restrictions"] = ",".join(self.dietary_restrictions)
        return data
