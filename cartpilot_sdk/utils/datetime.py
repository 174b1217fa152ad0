"""Clock helpers. All timestamps in CartPilot are timezone-aware UTC."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def elapsed_ms(since: datetime | None, until: datetime | None = None) -> int:
    """Milliseconds between two instants (0 when ``since`` is unknown)."""
    if since is None:
        return 0
    end = until or utc_now()
    return max(0, int((end - since).total_seconds() * 1000))
