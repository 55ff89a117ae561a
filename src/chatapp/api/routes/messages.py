from __future__ import annotations

import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ...state import get_controller
from ...schemas.message import MessagesPage, PostChatRequest, RecallResponse, TurnResultResponse
from ...schemas.session import Message as MessageSchema
from chatcore.core.controller import ChatController
from chatcore.core.state import ChatOptions, TurnResult, TurnStatus
from chatcore.errors import TransportError


router = APIRouter()
logger = logging.getLogger("chatapp.messages")


def _result_body(result: TurnResult) -> dict:
    return TurnResultResponse(
        status=result.status.value,
        session_id=result.session_id,
        content=result.content,
        error=result.error,
        error_kind=result.error_kind,
        hints=result.hints,
    ).model_dump()


@router.get("/sessions/{session_id}/messages", response_model=MessagesPage)
async def list_messages(
    session_id: int,
    cursor: int | None = None,
    limit: int = 50,
    ctrl: ChatController = Depends(get_controller),
) -> MessagesPage:
    s = ctrl.store.get_session(session_id)
    if not s:
        raise HTTPException(status_code=404, detail="Session not found")
    start = max(0, int(cursor or 0))
    end = min(start + max(1, limit), len(s.messages))
    items = [MessageSchema(**m.to_dict()).model_dump() for m in s.messages[start:end]]
    next_cursor = end if end < len(s.messages) else None
    return MessagesPage(items=items, next_cursor=next_cursor)


@router.post("/chat", response_model=TurnResultResponse)
async def post_chat(payload: PostChatRequest, ctrl: ChatController = Depends(get_controller)):
    # First submit after startup may arrive before the model list was fetched
    if payload.model is None and not ctrl.models.loaded:
        try:
            await asyncio.get_running_loop().run_in_executor(None, ctrl.load_models)
        except TransportError as e:
            logger.warning("Model list unavailable before submit: %s", e)

    base = ctrl.turns.options
    options = ChatOptions(
        temperature=base.temperature if payload.temperature is None else payload.temperature,
        max_tokens=base.max_tokens if payload.max_tokens is None else payload.max_tokens,
    )
    result = await ctrl.submit(payload.content, model=payload.model, options=options)
    if result.status is TurnStatus.REJECTED:
        code = 409 if result.error_kind == "validation:busy" else 422
        return JSONResponse(status_code=code, content=_result_body(result))
    return _result_body(result)


@router.post("/recall/previous", response_model=RecallResponse)
async def recall_previous(ctrl: ChatController = Depends(get_controller)) -> RecallResponse:
    text = ctrl.recall_previous()
    return RecallResponse(text=text, cursor=ctrl.recall.cursor)


@router.post("/recall/next", response_model=RecallResponse)
async def recall_next(ctrl: ChatController = Depends(get_controller)) -> RecallResponse:
    text = ctrl.recall_next()
    return RecallResponse(text=text, cursor=ctrl.recall.cursor)


@router.post("/recall/reset", response_model=RecallResponse)
async def recall_reset(ctrl: ChatController = Depends(get_controller)) -> RecallResponse:
    ctrl.recall.reset()
    return RecallResponse(text=None, cursor=None)
