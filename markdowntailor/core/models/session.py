from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class Session(BaseModel):
    id: str
    ai_model_provider: Optional[str] = None
    ai_model_name: Optional[str] = None
    ai_model_token: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    updated_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
