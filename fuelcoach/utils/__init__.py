"""Client utilities."""
from .timeparse import format_time, parse_date, parse_time

__all__ = ["format_time", "parse_date", "parse_time"]
