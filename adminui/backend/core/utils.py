"""Small helpers shared by the backend and the bot."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Current time in UTC, without tzinfo.

    SQLite stores naive datetimes; every timestamp in the database and
    in API responses is UTC by convention.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def truncate(text: str | None, limit: int) -> str:
    """Keep the first ``limit`` characters of command output, noting how much was cut."""
    if not text:
        return ""
    overflow = len(text) - limit
    if overflow <= 0:
        return text
    return f"{text[:limit]}\n... [truncated {overflow} chars]"
