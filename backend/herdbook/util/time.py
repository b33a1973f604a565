from datetime import UTC, datetime


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the form SQLite hands back."""
    return datetime.now(UTC).replace(tzinfo=None)


def as_utc(dt: datetime) -> datetime:
    """Attach the UTC offset to a stored naive timestamp for the wire."""
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)
