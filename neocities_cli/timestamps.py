from __future__ import annotations

from datetime import datetime, timezone
from email.utils import format_datetime, parsedate_to_datetime

from neocities_cli.errors import TimestampParseError


def format_timestamp(epoch_seconds: float) -> str:
    """Format a POSIX mtime the way the Neocities API reports `updated_at` (RFC 2822, UTC)."""
    try:
        moment = datetime.fromtimestamp(int(epoch_seconds), tz=timezone.utc)
    except (OverflowError, ValueError, OSError) as exc:
        raise TimestampParseError(f"timestamp out of range: {epoch_seconds!r}") from exc
    return format_datetime(moment)


def parse_timestamp(value: str) -> datetime:
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError) as exc:
        raise TimestampParseError(f"cannot parse timestamp: {value!r}") from exc
    # `-0000` parses to a naive datetime; RFC 2822 defines it as UTC.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
