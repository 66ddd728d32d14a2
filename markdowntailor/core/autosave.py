"""Save tracking for one resume editing session.

A session keeps the values being edited next to a *baseline*, the values as
of the session start or the last successful save. Comparing the two decides
whether there is unsaved work::

    CLEAN --edit--> DIRTY --save()--> SAVING --ok--> CLEAN
                                        |
                                        +--failure--> ERROR --> DIRTY

Only one save runs at a time per session; calling ``save()`` while one is in
flight does nothing. Sessions do not coordinate with each other, so two
sessions on the same resume may race for the next version number.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple, Union

from .config import settings
from .errors import ResumeNotFound, ValidationError
from .models.resume import CONTENT_FIELDS, Resume, utcnow
from .repositories import ResumeRepository, check_content

logger = logging.getLogger(__name__)

TRACKED_FIELDS: Tuple[str, ...] = CONTENT_FIELDS

Callback = Callable[..., Union[None, Awaitable[None]]]


class SaveState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"
    ERROR = "error"


async def _fire(callback: Optional[Callback], *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


class AutosaveSession:
    def __init__(
        self,
        resume: Resume,
        repository: ResumeRepository,
        tracked_fields: Iterable[str] = TRACKED_FIELDS,
        delay: Optional[float] = None,
        on_saved: Optional[Callback] = None,
        on_error: Optional[Callback] = None,
    ):
        fields = tuple(tracked_fields)
        if not fields:
            raise ValidationError("At least one tracked field is required")
        unknown = [f for f in fields if f not in CONTENT_FIELDS]
        if unknown:
            raise ValidationError(f"Cannot track non-content fields: {', '.join(unknown)}")

        self.resume_id = resume.id
        self.repository = repository
        self.tracked_fields = fields
        self.delay = settings.AUTOSAVE_DELAY_SECONDS if delay is None else delay
        self.on_saved = on_saved
        self.on_error = on_error
        self.autosave_enabled = True
        self.last_saved: Optional[datetime] = None

        self._values: Dict[str, str] = {f: getattr(resume, f) for f in CONTENT_FIELDS}
        self._baseline: Dict[str, str] = {f: self._values[f] for f in fields}
        self._state = SaveState.CLEAN
        self._timer: Optional[asyncio.Task] = None
        # schedule() was called while a save was in flight
        self._reschedule = False

    @property
    def state(self) -> SaveState:
        return self._state

    @property
    def values(self) -> Dict[str, str]:
        return dict(self._values)

    @property
    def baseline(self) -> Dict[str, str]:
        return dict(self._baseline)

    @property
    def is_dirty(self) -> bool:
        return any(self._values[f] != self._baseline[f] for f in self.tracked_fields)

    @property
    def is_saving(self) -> bool:
        return self._state is SaveState.SAVING

    def _refresh_state(self) -> None:
        self._state = SaveState.DIRTY if self.is_dirty else SaveState.CLEAN

    def edit(self, **fields: Any) -> SaveState:
        check_content(fields)
        self._values.update(fields)
        if not self.is_saving:
            self._refresh_state()
        return self._state

    async def save(self) -> Optional[Resume]:
        """Write the current values and snapshot them as a new version.

        Returns ``None`` without doing anything when a save is already in
        flight. Failures are reported to ``on_error`` and re-raised.
        """
        if self.is_saving:
            logger.debug("Save already in progress for resume %s", self.resume_id)
            return None
        self._cancel_timer()

        submitted = dict(self._values)
        self._state = SaveState.SAVING
        try:
            result = await self.repository.save_and_version(self.resume_id, **submitted)
            if result is None:
                raise ResumeNotFound(self.resume_id)
        except asyncio.CancelledError:
            self._refresh_state()
            raise
        except Exception as exc:
            self._state = SaveState.ERROR
            logger.error("Failed to save resume %s: %s", self.resume_id, exc)
            try:
                await _fire(self.on_error, exc)
            finally:
                self._refresh_state()
                self._resume_autosave()
            raise

        self._baseline = {f: getattr(result, f) for f in self.tracked_fields}
        self.last_saved = utcnow()
        self._refresh_state()
        self._resume_autosave()
        await _fire(self.on_saved, result)
        return result

    def enable_autosave(self) -> None:
        self.autosave_enabled = True

    def disable_autosave(self) -> None:
        self.autosave_enabled = False
        self._reschedule = False
        self._cancel_timer()

    def schedule(self) -> bool:
        """(Re)start the autosave countdown. Returns True if a save was scheduled."""
        self._cancel_timer()
        if self.is_saving:
            self._reschedule = self.autosave_enabled
            return False
        if not self.autosave_enabled or not self.is_dirty:
            return False
        self._timer = asyncio.get_running_loop().create_task(self._save_after_delay())
        return True

    def _resume_autosave(self) -> None:
        """Re-arm the countdown for edits that arrived during the last save."""
        pending, self._reschedule = self._reschedule, False
        if pending and self.autosave_enabled and self.is_dirty:
            self.schedule()

    async def _save_after_delay(self) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        if not self.is_dirty or self.is_saving:
            return
        try:
            await self.save()
        except Exception:
            # already reported through on_error
            logger.debug("Autosave of resume %s failed", self.resume_id)

    def _cancel_timer(self) -> None:
        timer = self._timer
        if timer is not None and not timer.done() and timer is not asyncio.current_task():
            timer.cancel()
        self._timer = None

    def close(self) -> None:
        self._cancel_timer()
