"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone

DISPLAY_DATE_FORMAT = "%d/%m/%Y"


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime."""
    return datetime.now(tz=timezone.utc)


def format_display_date(value: datetime) -> str:
    """Render a date the way document headers show it (dd/mm/yyyy)."""
    return value.strftime(DISPLAY_DATE_FORMAT)
