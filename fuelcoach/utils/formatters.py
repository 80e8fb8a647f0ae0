"""Reminder texts and CLI display helpers."""

from datetime import datetime
from typing import Optional

from fuelcoach.models.training import ConsumptionTiming

REMINDER_TITLE = "Consumption reminder"
TRAINING_ALERT_TITLE = "Time to train"


def format_consumption_reminder(
    product_name: str,
    timing: ConsumptionTiming,
    minutes: int,
    immediate: bool = False,
) -> str:
    """
    Body text for a consumption reminder.

    Args:
        product_name: Recommended product
        timing: Consumption timing category
        minutes: Offset used for before/after reminders
        immediate: True when the reminder fires right away because its
            planned time already passed
    """
    if timing is ConsumptionTiming.BEFORE:
        if immediate:
            return f"Remember to take {product_name} before training"
        return f"Take {product_name} now, {minutes} minutes before your training"
    if timing is ConsumptionTiming.DURING:
        return f"During training, take {product_name} to keep your energy up"
    if timing is ConsumptionTiming.AFTER:
        return f"Time to take {product_name} to recover"
    return f"Remember your daily dose of {product_name}"


def format_training_alert() -> str:
    return "It's time for your training session! Keep your routine going."


def format_fire_time(fire_at: Optional[datetime]) -> str:
    """'YYYY-MM-DD HH:MM', or "-" if the notification will not fire again."""
    if fire_at is None:
        return "-"
    return fire_at.strftime("%Y-%m-%d %H:%M")


def format_validation_error(error) -> str:
    """First problem of a pydantic ValidationError as one short line."""
    errors = error.errors()
    if not errors:
        return "Invalid input"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message
