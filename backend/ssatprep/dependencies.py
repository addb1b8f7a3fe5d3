from datetime import datetime, timezone

from fastapi import Query

from ssatprep.config import settings


def get_now() -> datetime:
    """Request-scoped clock; tests override it through app.dependency_overrides."""
    return datetime.now(timezone.utc)


def get_user_id(user_id: str | None = Query(default=None)) -> str:
    # No auth layer: an absent user id means the configured demo user
    return user_id or settings.default_user_id
