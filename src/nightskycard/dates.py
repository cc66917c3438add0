"""Calendar-day helpers for the date slider. All dates are ISO strings in UTC."""

from datetime import date, datetime, timedelta

from nightskycard.models import Location


def parse_iso(value: str) -> date:
    return datetime.strptime(value, "%Y-%m-%d").date()


def to_iso(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def days_between(start: str, end: str) -> int:
    """Whole days from start to end (negative when end precedes start)."""
    return (parse_iso(end) - parse_iso(start)).days


def add_days(start: str, days: int) -> str:
    return to_iso(parse_iso(start) + timedelta(days=days))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def pretty(value: str) -> str:
    """Human-readable date, e.g. "April 20, 1990"."""
    d = parse_iso(value)
    return f"{d.strftime('%B')} {d.day}, {d.year}"


def format_coordinates(location: Location) -> str:
    """Format a location as "36.6002° N, 121.8947° W"."""
    ns = "N" if location.latitude >= 0 else "S"
    ew = "E" if location.longitude >= 0 else "W"
    return (
        f"{abs(location.latitude):.4f}° {ns}, "
        f"{abs(location.longitude):.4f}° {ew}"
    )
