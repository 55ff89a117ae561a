from __future__ import annotations

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import json
import logging

from .manager import WSManager
from chatcore.core.controller import ChatController


router = APIRouter()
logger = logging.getLogger("chatapp.ws")


def _snapshot(ctrl: ChatController) -> dict:
    """Active transcript for a view that just (re)connected."""
    s = ctrl.store.active()
    return {
        "type": "snapshot",
        "session_id": s.id if s else None,
        "name": s.name if s else None,
        "messages": s.transcript() if s else [],
        "pending": ctrl.turns.busy,
        "model": ctrl.models.selected,
    }


def _handle(ctrl: ChatController, data: dict) -> dict | None:
    typ = data.get("type")
    if typ == "ping":
        return {"type": "pong"}
    if typ == "sync":
        return _snapshot(ctrl)
    if typ == "recall":
        # Arrow-key recall straight from the input box
        text = ctrl.recall_next() if data.get("direction") == "next" else ctrl.recall_previous()
        return {"type": "recall", "text": text}
    # Prompts go through POST /chat; anything else is ignored
    return None


@router.websocket("/ws/chat")
async def chat_ws(ws: WebSocket):
    manager: WSManager = ws.app.state.ws
    ctrl: ChatController = ws.app.state.chat
    await manager.connect(ws)
    try:
        await ws.send_json(_snapshot(ctrl))
        while True:
            try:
                raw = await ws.receive_text()
            except WebSocketDisconnect as e:
                logger.info("Chat view disconnected (code=%s)", getattr(e, "code", None))
                break
            try:
                data = json.loads(raw) if raw else {}
            except json.JSONDecodeError:
                logger.debug("Ignoring non-JSON frame")
                continue
            reply = _handle(ctrl, data) if isinstance(data, dict) else None
            if reply is not None:
                await ws.send_json(reply)
    except RuntimeError as e:
        # Starlette raises RuntimeError once the socket is no longer CONNECTED
        logger.info("Chat view socket closed: %s", e)
    finally:
        await manager.disconnect(ws)
