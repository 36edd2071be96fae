"""
api/context.py -- Explicitly constructed per-application service context.

Replaces module-level DB handles: the lifespan in api/main.py opens one
ServiceContext at startup, parks it on app.state.context and closes it on
shutdown. Route handlers reach it through the get_context() dependency, so
tests can swap in a context built on an in-memory store.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from auth.service import AuthService
from auth.store import StudentStore
from core.config import Settings


@dataclass
class ServiceContext:
    store: StudentStore
    auth: AuthService

    @classmethod
    def open(cls, settings: Settings, store: StudentStore | None = None) -> "ServiceContext":
        """Build the store (unless one is supplied) and the service on top of it."""
        store = store or StudentStore(settings.database_url)
        return cls(store=store, auth=AuthService(store))

    def close(self) -> None:
        self.store.close()


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context
