from __future__ import annotations

from fastapi import Request

from chatcore.core.controller import ChatController


def get_controller(request: Request) -> ChatController:
    """The app-scoped controller built in create_app()."""
    return request.app.state.chat
