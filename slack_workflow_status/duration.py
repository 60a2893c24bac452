from __future__ import annotations

from datetime import datetime, timezone


def compute_duration(start: datetime, end: datetime) -> str:
    """Format the time between two instants as e.g. ``1d 2h 3m 4s``.

    Days, hours and minutes are hidden when they are not positive; seconds
    are always shown. A negative interval keeps its sign on the seconds
    component only (``-5s``).
    """
    delta = end - start
    milliseconds = (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)
    total = milliseconds // 1000

    sign = -1 if total < 0 else 1
    remaining = abs(total)
    days, remaining = divmod(remaining, 86_400)
    hours, remaining = divmod(remaining, 3600)
    minutes, seconds = divmod(remaining, 60)

    parts = [
        _format_unit(sign * days, "d", hide_on_zero=True),
        _format_unit(sign * hours, "h", hide_on_zero=True),
        _format_unit(sign * minutes, "m", hide_on_zero=True),
        _format_unit(sign * seconds, "s", hide_on_zero=False),
    ]
    return "".join(parts).strip()


def _format_unit(value: int, suffix: str, hide_on_zero: bool) -> str:
    if value <= 0 and hide_on_zero:
        return ""
    return f"{value}{suffix} "


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
