"""Store wiring shared by the routers.

The application owns one :class:`KeyValueStore` on ``app.state.store``;
repositories are built around it per request.
"""
from datetime import timedelta

from fastapi import Request

from .config import settings
from .repositories import ResumeRepository, ResumeVersionRepository
from .sessions import SessionRepository
from .store import KeyValueStore


def get_store(request: Request) -> KeyValueStore:
    return request.app.state.store


def build_repositories(store: KeyValueStore) -> ResumeRepository:
    return ResumeRepository(store, ResumeVersionRepository(store))


def get_resumes(request: Request) -> ResumeRepository:
    return build_repositories(get_store(request))


def get_versions(request: Request) -> ResumeVersionRepository:
    return ResumeVersionRepository(get_store(request))


def get_sessions(request: Request) -> SessionRepository:
    return SessionRepository(get_store(request), ttl=timedelta(hours=settings.SESSION_TTL_HOURS))
