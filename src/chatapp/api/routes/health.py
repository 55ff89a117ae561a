from __future__ import annotations

from fastapi import APIRouter, Depends

from ...state import get_controller
from chatcore.core.controller import ChatController

router = APIRouter(tags=["meta"])


@router.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@router.get("/meta")
async def meta(ctrl: ChatController = Depends(get_controller)) -> dict:
    return {
        "app": "Ollama WebChat API",
        "version": "0.1.0",
        "host": getattr(ctrl.transport, "host", None),
        "selected_model": ctrl.models.selected,
        "busy": ctrl.turns.busy,
    }
