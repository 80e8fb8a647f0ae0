"""Parsing of the API's date and wall-clock time strings."""

from datetime import date, time


def parse_date(value: str) -> date:
    """
    Parse 'YYYY-MM-DD', also accepting a full ISO timestamp.

    >>> parse_date("2025-03-14T00:00:00.000Z")
    datetime.date(2025, 3, 14)
    """
    return date.fromisoformat(value.split("T")[0].strip())


def parse_time(value: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' into a naive time."""
    parts = [int(p) for p in value.strip().split(":")]
    if len(parts) < 2 or len(parts) > 3:
        raise ValueError(f"Invalid time: {value}")
    hour, minute = parts[0], parts[1]
    second = parts[2] if len(parts) == 3 else 0
    return time(hour, minute, second)


def format_time(value: time) -> str:
    """Format as 'HH:MM:SS', the shape the API stores."""
    return value.strftime("%H:%M:%S")
