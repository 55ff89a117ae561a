from __future__ import annotations

import logging
from typing import List, Optional

from chatcore.core.config import default_options
from chatcore.core.diagnostics import describe_failure
from chatcore.core.models import ModelDirectory
from chatcore.core.recall import InputRecall
from chatcore.core.renderer import NullRenderer, Renderer
from chatcore.core.state import ChatOptions, Config, Role, Session, TurnResult
from chatcore.core.turns import ChatTransport, TurnOrchestrator
from chatcore.errors import TransportError
from chatcore.llm.client import OllamaClient
from chatcore.store.persistence import JsonFilePersistence, Persistence
from chatcore.store.sessions import SessionStore

logger = logging.getLogger("chatcore.controller")

CLEARED_NOTICE = "Conversation cleared. Pick a model and start a new conversation."


class ChatController:
    """Owns the session store and everything that reads from it.

    UI handlers call into this object; it keeps the recall cursor and the
    rendered transcript in step with session changes.
    """

    def __init__(
        self,
        store: SessionStore,
        transport: ChatTransport,
        renderer: Optional[Renderer] = None,
        *,
        default_model: Optional[str] = None,
        options: Optional[ChatOptions] = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.renderer: Renderer = renderer or NullRenderer()
        self.recall = InputRecall(store)
        self.models = ModelDirectory(transport, default=default_model)
        self.turns = TurnOrchestrator(store, transport, self.renderer, self.recall, self.models, options)

    @classmethod
    def from_config(
        cls,
        cfg: Config,
        *,
        transport: Optional[ChatTransport] = None,
        persistence: Optional[Persistence] = None,
        renderer: Optional[Renderer] = None,
    ) -> "ChatController":
        transport = transport or OllamaClient(host=cfg.host, timeout=cfg.timeout, retries=cfg.retries)
        store = SessionStore(persistence or JsonFilePersistence(cfg.store_path))
        return cls(store, transport, renderer, default_model=cfg.model, options=default_options(cfg))

    # --- Rendering -------------------------------------------------------------
    def render_active(self) -> None:
        """Redraw the active session's transcript from scratch."""
        self.renderer.clear()
        s = self.store.active()
        if not s:
            return
        last = len(s.messages) - 1
        for i, m in enumerate(s.messages):
            self.renderer.render(m.role.value, m.content, i == last)

    # --- Sessions --------------------------------------------------------------
    def new_session(self, name: Optional[str] = None) -> Session:
        s = self.store.create_session(name)
        self.recall.reset()
        self.render_active()
        return s

    def switch_to(self, sid: int) -> Session:
        s = self.store.switch_to(sid)
        self.recall.reset()
        self.render_active()
        return s

    def delete_session(self, sid: int) -> Session:
        was_active = self.store.active_session_id == sid
        s = self.store.delete(sid)
        if was_active:
            self.recall.reset()
            self.render_active()
        return s

    def rename_session(self, sid: int, name: str) -> Optional[Session]:
        return self.store.rename(sid, name.strip() or name)

    def clear_session(self, sid: Optional[int] = None) -> Session:
        target = self.store.active_session_id if sid is None else sid
        s = self.store.clear(target)
        if target == self.store.active_session_id:
            self.recall.reset()
            self.renderer.clear()
            self.renderer.render(Role.SYSTEM.value, CLEARED_NOTICE, True)
        return s

    # --- Turns -----------------------------------------------------------------
    async def submit(
        self,
        text: str,
        *,
        model: Optional[str] = None,
        options: Optional[ChatOptions] = None,
    ) -> TurnResult:
        return await self.turns.submit(text, model=model, options=options)

    def recall_previous(self) -> Optional[str]:
        return self.recall.recall_previous()

    def recall_next(self) -> Optional[str]:
        return self.recall.recall_next()

    # --- Models ----------------------------------------------------------------
    def load_models(self, *, refresh: bool = False) -> List[dict]:
        try:
            return self.models.refresh() if refresh else self.models.ensure_loaded()
        except TransportError as e:
            self.renderer.render(Role.SYSTEM.value, f"Failed to load the model list. {describe_failure(e)}", True)
            raise

    def select_model(self, name: str) -> str:
        return self.models.select(name)
