"""Integer percentage and duration helpers shared by the derivation modules."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return int(math.floor(value + 0.5))


def clamp_percent(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def percent(part: float, whole: float) -> int:
    """100 * part / whole as a clamped integer; 0 when whole is 0."""
    if whole <= 0:
        return 0
    return clamp_percent(100.0 * part / whole)


def format_time_spent(seconds: int) -> str:
    """
    Display form of a duration: "0m", "45m", "2h", "1h 5m".

    Presentation only. Aggregation always works on integer seconds.
    """
    seconds = max(0, int(seconds or 0))
    if seconds < 60:
        return "0m"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    if hours > 0:
        return f"{hours}h {minutes}m" if minutes > 0 else f"{hours}h"
    return f"{minutes}m"
