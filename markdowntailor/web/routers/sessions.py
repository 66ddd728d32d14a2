from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from markdowntailor.core.db import get_sessions
from markdowntailor.core.models.session import Session
from markdowntailor.core.sessions import SessionRepository

router = APIRouter()


class SessionPatch(BaseModel):
    ai_model_provider: Optional[str] = None
    ai_model_name: Optional[str] = None
    ai_model_token: Optional[str] = None


class SessionOut(BaseModel):
    id: str
    ai_model_provider: Optional[str] = None
    ai_model_name: Optional[str] = None
    has_token: bool = False

    @classmethod
    def from_session(cls, session: Session) -> "SessionOut":
        # the token never leaves the server
        return cls(
            id=session.id,
            ai_model_provider=session.ai_model_provider,
            ai_model_name=session.ai_model_name,
            has_token=bool(session.ai_model_token),
        )


@router.post("/api/sessions", status_code=201)
async def create_session(sessions: SessionRepository = Depends(get_sessions)):
    return {"id": await sessions.create()}


@router.get("/api/sessions/{session_id}", response_model=SessionOut)
async def get_session(session_id: str, sessions: SessionRepository = Depends(get_sessions)):
    session = await sessions.find_by_id(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return SessionOut.from_session(session)


@router.patch("/api/sessions/{session_id}", response_model=SessionOut)
async def update_session(session_id: str, payload: SessionPatch, sessions: SessionRepository = Depends(get_sessions)):
    session = await sessions.update(session_id, **payload.model_dump(exclude_unset=True))
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return SessionOut.from_session(session)


@router.delete("/api/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str, sessions: SessionRepository = Depends(get_sessions)):
    await sessions.delete(session_id)
    return Response(status_code=204)
