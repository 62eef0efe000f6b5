"""Timestamp utilities for records and log payloads."""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


def iso_timestamp(value: Optional[datetime] = None) -> str:
    """ISO-8601 timestamp with microseconds, 'Z' suffix for UTC."""
    value = value or utc_now()
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    """Inverse of iso_timestamp; None passes through."""
    if text is None:
        return None
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def default_stencil_name(created_at: datetime) -> str:
    """Display name for a stencil created without one, e.g. 'Stencil 19/10'."""
    return f"Stencil {created_at.day}/{created_at.month}"
