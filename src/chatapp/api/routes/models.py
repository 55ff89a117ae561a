from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ...state import get_controller
from ...schemas.model import ModelInfo, ModelsResponse, SelectModelRequest
from chatcore.core.controller import ChatController
from chatcore.errors import TransportError, ValidationError


router = APIRouter()


def _listing(ctrl: ChatController) -> ModelsResponse:
    return ModelsResponse(
        items=[ModelInfo(**m) for m in ctrl.models.models],
        selected=ctrl.models.selected,
        enabled=ctrl.models.enabled,
    )


# Plain defs: the listing is a blocking HTTP call, so these run in the threadpool
@router.get("", response_model=ModelsResponse)
def list_models(ctrl: ChatController = Depends(get_controller)) -> ModelsResponse:
    try:
        ctrl.load_models()
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _listing(ctrl)


@router.post("/refresh", response_model=ModelsResponse)
def refresh_models(ctrl: ChatController = Depends(get_controller)) -> ModelsResponse:
    try:
        ctrl.load_models(refresh=True)
    except TransportError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _listing(ctrl)


@router.put("/selected", response_model=ModelsResponse)
def select_model(payload: SelectModelRequest, ctrl: ChatController = Depends(get_controller)) -> ModelsResponse:
    try:
        ctrl.select_model(payload.name)
    except ValidationError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return _listing(ctrl)


@router.get("/{name:path}")
def show_model(name: str, ctrl: ChatController = Depends(get_controller)) -> dict:
    show = getattr(ctrl.transport, "show", None)
    if show is None:
        raise HTTPException(status_code=501, detail="Model details not supported by this transport")
    try:
        return show(name)
    except TransportError as e:
        code = 404 if e.status == 404 else 502
        raise HTTPException(status_code=code, detail=str(e))
