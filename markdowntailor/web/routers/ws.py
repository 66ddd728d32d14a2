import json
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from markdowntailor.core.autosave import AutosaveSession
from markdowntailor.core.db import build_repositories
from markdowntailor.core.errors import TailorError, ValidationError
from markdowntailor.core.models.resume import Resume

router = APIRouter()
logger = logging.getLogger(__name__)


async def _send(websocket: WebSocket, payload: dict) -> None:
    try:
        await websocket.send_text(json.dumps(payload))
    except (WebSocketDisconnect, RuntimeError):
        # Socket already closed; the editor stopped listening
        pass


def _state_event(session: AutosaveSession) -> dict:
    return {
        "type": "state",
        "state": session.state.value,
        "dirty": session.is_dirty,
        "autosave": session.autosave_enabled,
        "last_saved": session.last_saved.isoformat() if session.last_saved else None,
    }


@router.websocket("/ws/resumes/{resume_id}/edit")
async def resume_editor_ws(websocket: WebSocket, resume_id: str):
    await websocket.accept()
    repository = build_repositories(websocket.app.state.store)
    try:
        resume = await repository.find_by_id(resume_id)
    except TailorError as exc:
        await _send(websocket, {"type": "error", "error": str(exc), "code": "storage"})
        await websocket.close(code=1011)
        return
    if resume is None:
        await _send(websocket, {"type": "error", "error": f"Resume {resume_id} not found", "code": "not_found"})
        await websocket.close(code=4404)
        return

    async def on_saved(saved: Resume) -> None:
        await _send(websocket, {"type": "saved", "resume": saved.model_dump(mode="json")})
        await _send(websocket, _state_event(session))

    async def on_error(exc: Exception) -> None:
        await _send(websocket, {"type": "error", "error": str(exc) or "Failed to save resume", "code": "save_failed"})

    session = AutosaveSession(resume, repository, on_saved=on_saved, on_error=on_error)
    await _send(websocket, {"type": "loaded", "resume": resume.model_dump(mode="json")})
    await _send(websocket, _state_event(session))

    try:
        while True:
            text = await websocket.receive_text()
            try:
                payload: Any = json.loads(text)
                kind = payload.get("type")
            except (ValueError, AttributeError):
                await _send(websocket, {"type": "error", "error": "Messages must be JSON objects.", "code": "bad_message"})
                continue

            if kind == "edit":
                fields = payload.get("fields") or {}
                try:
                    session.edit(**fields)
                except (ValidationError, TypeError) as exc:
                    await _send(websocket, {"type": "error", "error": str(exc), "code": "invalid_edit"})
                    continue
                session.schedule()
                await _send(websocket, _state_event(session))
            elif kind == "save":
                try:
                    result = await session.save()
                except TailorError:
                    # on_error already told the client
                    await _send(websocket, _state_event(session))
                    continue
                if result is None:
                    await _send(websocket, _state_event(session))
            elif kind == "autosave":
                if payload.get("enabled", True):
                    session.enable_autosave()
                    session.schedule()
                else:
                    session.disable_autosave()
                await _send(websocket, _state_event(session))
            else:
                await _send(websocket, {"type": "error", "error": f"Unknown message type: {kind!r}", "code": "bad_message"})
    except WebSocketDisconnect:
        logger.debug("Editor for resume %s disconnected", resume_id)
    finally:
        if session.is_dirty:
            logger.info("Editor for resume %s closed with unsaved changes", resume_id)
        session.close()
