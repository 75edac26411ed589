from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC datetime, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)
