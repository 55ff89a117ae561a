from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...state import get_controller
from ...schemas.session import (
    CreateSessionRequest,
    ListSessionsResponse,
    RenameSessionRequest,
    Session as SessionSchema,
    SessionSummary,
)
from chatcore.core.controller import ChatController
from chatcore.core.state import Session
from chatcore.errors import LastSessionError, SessionNotFound


router = APIRouter()


def _to_schema(s: Session) -> SessionSchema:
    return SessionSchema(
        id=s.id,
        name=s.name,
        created_at=s.created_at,
        messages=[{"role": m.role.value, "content": m.content} for m in s.messages],
    )


@router.post("/", response_model=SessionSchema)
@router.post("", response_model=SessionSchema)
async def create_session(
    payload: CreateSessionRequest | None = None,
    ctrl: ChatController = Depends(get_controller),
) -> SessionSchema:
    s = ctrl.new_session(name=(payload.name if payload else None))
    return _to_schema(s)


@router.get("/", response_model=ListSessionsResponse)
@router.get("", response_model=ListSessionsResponse)
async def list_sessions(ctrl: ChatController = Depends(get_controller)) -> ListSessionsResponse:
    active_id = ctrl.store.active_session_id
    items = [
        SessionSummary(
            id=s.id,
            name=s.name,
            created_at=s.created_at,
            message_count=len(s.messages),
            active=s.id == active_id,
        )
        for s in ctrl.store.list_sessions()
    ]
    return ListSessionsResponse(items=items, active_session_id=active_id)


@router.get("/{session_id}", response_model=SessionSchema)
async def get_session(session_id: int, ctrl: ChatController = Depends(get_controller)) -> SessionSchema:
    s = ctrl.store.get_session(session_id)
    if not s:
        raise HTTPException(status_code=404, detail="Session not found")
    return _to_schema(s)


@router.patch("/{session_id}", response_model=SessionSchema)
async def rename_session(
    session_id: int,
    payload: RenameSessionRequest,
    ctrl: ChatController = Depends(get_controller),
) -> SessionSchema:
    s = ctrl.rename_session(session_id, payload.name)
    if not s:
        raise HTTPException(status_code=404, detail="Session not found")
    return _to_schema(s)


@router.delete("/{session_id}")
async def delete_session(session_id: int, ctrl: ChatController = Depends(get_controller)) -> dict:
    try:
        ctrl.delete_session(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    except LastSessionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"ok": True, "active_session_id": ctrl.store.active_session_id}


@router.post("/{session_id}/activate", response_model=SessionSchema)
async def activate_session(session_id: int, ctrl: ChatController = Depends(get_controller)) -> SessionSchema:
    try:
        s = ctrl.switch_to(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    return _to_schema(s)


@router.post("/{session_id}/clear", response_model=SessionSchema)
async def clear_session(session_id: int, ctrl: ChatController = Depends(get_controller)) -> SessionSchema:
    try:
        s = ctrl.clear_session(session_id)
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")
    return _to_schema(s)
