from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routes.health import router as health_router
from .api.routes.sessions import router as sessions_router
from .api.routes.messages import router as messages_router
from .api.routes.models import router as models_router
from .sockets.ws import router as ws_router
from .sockets.manager import WSManager
from chatcore.core.config import load_config
from chatcore.core.controller import ChatController
from chatcore.core.state import Config
from chatcore.core.turns import ChatTransport
from chatcore.errors import TransportError
from chatcore.store.persistence import Persistence


def create_app(
    config: Optional[Config] = None,
    *,
    transport: Optional[ChatTransport] = None,
    persistence: Optional[Persistence] = None,
) -> FastAPI:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("chatapp")

    cfg = config or load_config(os.getenv("CHAT_PROFILE", "default"))
    app = FastAPI(title="Ollama WebChat API", version=os.getenv("APP_VERSION", "0.1.0"))

    # CORS for local dev and typical frontend origins
    web_origin = os.getenv("WEB_ORIGIN", "http://localhost:5173")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[web_origin, "http://localhost:3000", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.ws = WSManager()
    app.state.chat = ChatController.from_config(
        cfg,
        transport=transport,
        persistence=persistence,
        renderer=app.state.ws,
    )

    app.include_router(health_router)
    app.include_router(sessions_router, prefix="/sessions", tags=["sessions"])
    app.include_router(messages_router, tags=["messages"])
    app.include_router(models_router, prefix="/models", tags=["models"])
    app.include_router(ws_router)

    @app.on_event("startup")
    async def _load_models() -> None:
        # An unreachable server must not stop the UI from starting
        try:
            await asyncio.get_running_loop().run_in_executor(None, app.state.chat.load_models)
        except TransportError as e:
            logger.warning("Ollama not reachable at startup (%s): %s", cfg.host, e)

    return app
