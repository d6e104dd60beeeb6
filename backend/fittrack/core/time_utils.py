from datetime import datetime, timezone

from fittrack.core.constants import DATE_FORMAT


def seconds_to_hhmmss(total_seconds: int) -> str:
    """
    Convert total seconds (int) -> 'HH:MM:SS'.
    Example: 2732 -> '00:45:32'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration(total_seconds: int) -> str:
    """
    Convert total seconds -> '1h 2m 3s', dropping the hours when zero.
    Example: 125 -> '2m 5s'
    """
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    prefix = f"{hours}h " if hours > 0 else ""
    return f"{prefix}{minutes}m {seconds}s"


def compute_pace(duration_seconds: int, distance_km: float) -> str:
    """
    Compute pace per kilometre as 'M:SS/km' or 'MM:SS/km'.
    Example: duration=1500 sec, distance=5.0 -> '5:00/km'
    """
    if distance_km <= 0:
        return "0:00/km"

    pace_sec = int(duration_seconds / distance_km)

    minutes = pace_sec // 60
    seconds = pace_sec % 60
    return f"{minutes}:{seconds:02d}/km"


def to_utc_second(dt: datetime) -> datetime:
    """Normalize to an aware UTC datetime truncated to the second.

    Naive datetimes are assumed to already be UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).replace(microsecond=0)


def format_activity_date(dt: datetime) -> str:
    """Serialize an activity date for storage; sorts lexicographically."""
    return to_utc_second(dt).strftime(DATE_FORMAT)


def parse_activity_date(value: str) -> datetime:
    return to_utc_second(datetime.fromisoformat(value.replace("Z", "+00:00")))


def default_activity_name(when: datetime) -> str:
    """Name given to an activity the user did not name, in local time."""
    local = to_utc_second(when).astimezone()
    return f"Activity on {local:%Y-%m-%d} at {local:%H:%M:%S}"
