"""UTC datetime helpers. Every timestamp in docflow is timezone-aware UTC."""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Normalise a datetime read back from storage to aware UTC.

    Naive values are taken to be UTC (job payloads, older rows); aware values
    are converted. None passes through.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)
