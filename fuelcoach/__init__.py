"""fuelcoach: sports-nutrition companion client."""

__version__ = "0.1.0"
