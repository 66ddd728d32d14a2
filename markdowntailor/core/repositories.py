"""Resume and resume-version persistence on top of a :class:`KeyValueStore`.

Each call is an independent read or write; nothing here spans keys
atomically. A failure between a resume update and its version snapshot, or
between a resume delete and its version cascade, leaves the store partly
written and the error is propagated to the caller.

Version numbers are computed by the caller as ``latest + 1`` with a separate
read, so two writers saving the same resume at once can both pick the same
number. Within one :class:`~markdowntailor.core.autosave.AutosaveSession`
saves are serialized and numbers stay contiguous.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, List, Optional

from .errors import ValidationError
from .models.resume import CONTENT_FIELDS, MAX_LENGTHS, Resume, ResumeVersion, next_timestamp, utcnow
from .store import KeyValueStore
from .templates import ResumeStyles, Template

logger = logging.getLogger(__name__)

RESUMES = "resumes"
RESUME_VERSIONS = "resumeVersions"


def _check_title(title: Optional[str]) -> str:
    if not (title or "").strip():
        raise ValidationError("Resume title must not be empty")
    return title


def check_content(fields: dict) -> None:
    """Reject unknown, non-string or oversized content fields. Does no I/O."""
    unknown = sorted(set(fields) - set(CONTENT_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown resume fields: {', '.join(unknown)}")
    for name, value in fields.items():
        if not isinstance(value, str):
            raise ValidationError(f"Resume field {name!r} must be a string")
        limit = MAX_LENGTHS.get(name)
        if limit is not None and len(value) > limit:
            raise ValidationError(f"{name.capitalize()} too large: {len(value)} characters, limit {limit}")


class ResumeVersionRepository:
    def __init__(self, store: KeyValueStore):
        self.store = store

    async def create(
        self,
        resume_id: str,
        version: int,
        title: str,
        markdown: str = "",
        css: str = "",
        styles: str = "{}",
        created_at: Optional[datetime] = None,
    ) -> ResumeVersion:
        """Persist a new snapshot. Uniqueness of ``version`` is not checked."""
        now = created_at or utcnow()
        record = ResumeVersion(
            resume_id=resume_id,
            version=version,
            title=title,
            markdown=markdown,
            css=css,
            styles=styles,
            created_at=now,
            updated_at=now,
        )
        await self.store.put(RESUME_VERSIONS, record.id, record.model_dump(mode="json"))
        return record

    async def find_by_id(self, id: str) -> Optional[ResumeVersion]:
        raw = await self.store.get(RESUME_VERSIONS, id)
        return ResumeVersion.model_validate(raw) if raw is not None else None

    async def find_all_by_resume_id(self, resume_id: str) -> List[ResumeVersion]:
        """All versions of a resume, newest first."""
        versions = [
            ResumeVersion.model_validate(raw)
            for raw in await self.store.list_all(RESUME_VERSIONS)
            if raw.get("resume_id") == resume_id
        ]
        versions.sort(key=lambda v: v.version, reverse=True)
        return versions

    async def get_latest_version(self, resume_id: str) -> int:
        versions = await self.find_all_by_resume_id(resume_id)
        return max((v.version for v in versions), default=0)

    async def delete_all_by_resume_id(self, resume_id: str) -> None:
        versions = await self.find_all_by_resume_id(resume_id)
        for version in versions:
            await self.store.delete(RESUME_VERSIONS, version.id)
        if versions:
            logger.info("Deleted %d versions of resume %s", len(versions), resume_id)


class ResumeRepository:
    def __init__(self, store: KeyValueStore, versions: ResumeVersionRepository):
        self.store = store
        self.versions = versions

    async def _put(self, resume: Resume) -> Resume:
        await self.store.put(RESUMES, resume.id, resume.model_dump(mode="json"))
        return resume

    async def create(self, title: str, markdown: str = "", css: str = "", styles: str = "{}") -> Resume:
        _check_title(title)
        check_content({"title": title, "markdown": markdown, "css": css, "styles": styles})
        now = utcnow()
        resume = Resume(title=title, markdown=markdown, css=css, styles=styles, created_at=now, updated_at=now)
        await self._put(resume)
        logger.debug("Created resume %s", resume.id)
        return resume

    async def find_by_id(self, id: str) -> Optional[Resume]:
        raw = await self.store.get(RESUMES, id)
        return Resume.model_validate(raw) if raw is not None else None

    async def find_all(self) -> List[Resume]:
        resumes = [Resume.model_validate(raw) for raw in await self.store.list_all(RESUMES)]
        resumes.sort(key=lambda r: r.updated_at, reverse=True)
        return resumes

    async def update(self, id: str, **fields: Any) -> Optional[Resume]:
        """Merge content fields into a resume. Returns ``None`` if it does not exist."""
        check_content(fields)
        existing = await self.find_by_id(id)
        if existing is None:
            return None
        updated = Resume.model_validate(
            {**existing.model_dump(), **fields, "updated_at": next_timestamp(existing.updated_at)}
        )
        return await self._put(updated)

    async def delete(self, id: str) -> None:
        await self.store.delete(RESUMES, id)
        await self.versions.delete_all_by_resume_id(id)
        logger.info("Deleted resume %s", id)

    async def create_from_template(self, template: Template) -> Resume:
        return await self.create(
            title=f"{template.name} (Copy)",
            markdown=template.markdown,
            css=template.css,
            styles=template.styles.model_dump_json(),
        )

    async def create_from_resume(self, resume: Resume) -> Resume:
        return await self.create(
            title=f"{resume.title} (Copy)",
            markdown=resume.markdown,
            css=resume.css,
            styles=resume.styles or ResumeStyles().model_dump_json(),
        )

    async def duplicate(self, id: str) -> Optional[Resume]:
        existing = await self.find_by_id(id)
        if existing is None:
            return None
        return await self.create_from_resume(existing)

    async def save_and_version(self, id: str, **fields: Any) -> Optional[Resume]:
        """Update a resume and snapshot the result as version ``latest + 1``."""
        updated = await self.update(id, **fields)
        if updated is None:
            return None
        await self._snapshot(updated)
        return updated

    async def restore_from_version(self, version_id: str) -> Optional[Resume]:
        """Copy a version's content back onto its resume, recorded as a new version."""
        source = await self.versions.find_by_id(version_id)
        if source is None:
            return None
        restored = await self.update(source.resume_id, **{f: getattr(source, f) for f in CONTENT_FIELDS})
        if restored is None:
            return None
        await self._snapshot(restored)
        logger.info("Restored resume %s from version %d", restored.id, source.version)
        return restored

    async def _snapshot(self, resume: Resume) -> ResumeVersion:
        latest = await self.versions.get_latest_version(resume.id)
        version = await self.versions.create(
            resume_id=resume.id,
            version=latest + 1,
            title=resume.title,
            markdown=resume.markdown,
            css=resume.css,
            styles=resume.styles,
            # keeps resume.updated_at >= created_at of its newest version
            created_at=resume.updated_at,
        )
        logger.info("Saved resume %s as version %d", resume.id, version.version)
        return version
