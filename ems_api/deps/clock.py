from datetime import datetime, timezone


def get_now() -> datetime:
    """Request clock; tests override this dependency to pin "now"."""
    return datetime.now(timezone.utc)
