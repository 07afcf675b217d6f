"""Shared slowapi limiter, used by app.main and the per-route limits in auth routes."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config.settings import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit],
    storage_uri="memory://",
    enabled=settings.rate_limit_enabled,
)
