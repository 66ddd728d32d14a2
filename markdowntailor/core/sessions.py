from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Optional

from .errors import ValidationError
from .models.resume import new_id, next_timestamp, utcnow
from .models.session import Session
from .store import KeyValueStore

logger = logging.getLogger(__name__)

SESSIONS = "sessions"
_MUTABLE_FIELDS = {"ai_model_provider", "ai_model_name", "ai_model_token"}


class SessionRepository:
    """Per-browser session records with a fixed lifetime."""

    def __init__(self, store: KeyValueStore, ttl: timedelta = timedelta(days=1)):
        self.store = store
        self.ttl = ttl

    async def create(self) -> str:
        now = utcnow()
        session = Session(id=new_id(), created_at=now, expires_at=now + self.ttl, updated_at=now)
        await self.store.put(SESSIONS, session.id, session.model_dump(mode="json"))
        return session.id

    async def find_by_id(self, id: str) -> Optional[Session]:
        raw = await self.store.get(SESSIONS, id)
        if raw is None:
            return None
        session = Session.model_validate(raw)
        if session.is_expired(utcnow()):
            logger.debug("Session %s expired at %s", id, session.expires_at)
            await self.delete(id)
            return None
        return session

    async def update(self, id: str, **fields: Any) -> Optional[Session]:
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown session fields: {', '.join(sorted(unknown))}")
        existing = await self.find_by_id(id)
        if existing is None:
            return None
        updated = existing.model_copy(update={**fields, "updated_at": next_timestamp(existing.updated_at)})
        await self.store.put(SESSIONS, id, updated.model_dump(mode="json"))
        return updated

    async def delete(self, id: str) -> None:
        await self.store.delete(SESSIONS, id)
