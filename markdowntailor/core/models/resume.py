from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# Content fields shared by a resume and each of its version snapshots
CONTENT_FIELDS = ("title", "markdown", "css", "styles")

# Upper bounds on stored content, in characters
MAX_LENGTHS = {"markdown": 50000, "css": 20000}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_timestamp(previous: Optional[datetime] = None) -> datetime:
    """Current time, nudged forward so it is strictly after ``previous``."""
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def new_id() -> str:
    return str(uuid4())


class Resume(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    markdown: str = ""
    css: str = ""
    styles: str = "{}"  # JSON encoded ResumeStyles
    created_at: datetime
    updated_at: datetime


class ResumeVersion(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    resume_id: str
    version: int = Field(ge=1)
    title: str
    markdown: str = ""
    css: str = ""
    styles: str = "{}"
    created_at: datetime
    updated_at: datetime
