from datetime import datetime, timezone
from dateutil import parser


def utcnow():
    return datetime.now(timezone.utc)


def parse_datetime(value):
    """Parse an ISO string into an aware UTC datetime; None passes through."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parser.isoparse(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def iso(dt):
    if dt is None:
        return None
    # SQLite hands back naive values; everything is stored as UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")
