import uuid
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time in UTC, used for every created/updated timestamp"""
    return datetime.now(timezone.utc)


def generate_id(prefix: str | None = None) -> str:
    """Generate a globally unique string id, optionally prefixed (e.g. team_ab12...)"""
    value = uuid.uuid4().hex
    return f"{prefix}_{value}" if prefix else value
