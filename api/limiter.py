"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (middleware + 429 handler) and by
api/routes/v1/auth.py (per-route @limiter.limit on login). A single shared
instance keeps one in-memory counter store for the whole process.

RATE_LIMIT_ENABLED=false turns every limit into a no-op (the test suite does
this so repeated logins from one client address are never throttled).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)
