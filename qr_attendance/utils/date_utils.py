"""Date and time utility functions."""
from datetime import datetime, time

TIME_FORMAT = "%H:%M:%S"
GENERATION_DATE_FORMAT = "%d-%m-%Y"


def parse_time(time_str: str) -> time:
    """
    Parse time string in HH:MM:SS format.

    Args:
        time_str: Time string (e.g., "08:30:00")

    Returns:
        datetime.time object

    Raises:
        ValueError: If time format or value is invalid
    """
    try:
        return datetime.strptime(time_str, TIME_FORMAT).time()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid time format: {time_str}") from e


def format_generation_date(now: datetime) -> str:
    """Format a timestamp as DD-MM-YYYY."""
    return now.strftime(GENERATION_DATE_FORMAT)


def format_generation_time(now: datetime) -> str:
    """Format a timestamp as HH:MM:SS."""
    return now.strftime(TIME_FORMAT)


def is_before(end_str: str, start_str: str) -> bool:
    """
    Check if one HH:MM:SS time is strictly earlier than another.

    Both times are compared on the same day; there is no handling of
    ranges that cross midnight.
    """
    return parse_time(end_str) < parse_time(start_str)
