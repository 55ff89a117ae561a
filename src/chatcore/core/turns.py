from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, Sequence

from chatcore.core.diagnostics import classify, describe_failure, hints_for
from chatcore.core.models import ModelDirectory
from chatcore.core.recall import InputRecall
from chatcore.core.renderer import Renderer
from chatcore.core.state import ChatOptions, Role, TurnResult, TurnState, TurnStatus
from chatcore.errors import SessionNotFound, ValidationError
from chatcore.store.sessions import SessionStore

logger = logging.getLogger("chatcore.turns")


class ChatTransport(Protocol):
    def list_models(self) -> list[dict]: ...

    def chat(self, model: str, messages: Sequence[dict], options: Optional[ChatOptions] = None) -> str: ...


class TurnOrchestrator:
    """Drives one request/response exchange against the chat endpoint.

    IDLE -> SENDING -> (COMPLETED | FAILED) -> IDLE. The only suspension point
    is the transport call, which runs on the default executor.
    """

    def __init__(
        self,
        store: SessionStore,
        transport: ChatTransport,
        renderer: Renderer,
        recall: InputRecall,
        models: ModelDirectory,
        options: Optional[ChatOptions] = None,
    ) -> None:
        self.store = store
        self.transport = transport
        self.renderer = renderer
        self.recall = recall
        self.models = models
        self.options = options or ChatOptions()
        self.state = TurnState.IDLE

    @property
    def busy(self) -> bool:
        return self.state is TurnState.SENDING

    def _reject(self, err: ValidationError) -> TurnResult:
        # Notice is displayed only; nothing is appended or sent
        self.renderer.render(Role.SYSTEM.value, str(err), True)
        logger.info("Submit rejected: %s", err)
        return TurnResult(status=TurnStatus.REJECTED, error=str(err), error_kind=f"validation:{err.field}")

    def _check(self, content: str, model: Optional[str]) -> Optional[ValidationError]:
        if self.state is not TurnState.IDLE:
            return ValidationError("Still waiting for the previous reply.", field="busy")
        if not content:
            return ValidationError("Please enter a message.", field="input")
        if not model:
            return ValidationError("Please select a model first.", field="model")
        return None

    async def submit(
        self,
        text: str,
        *,
        model: Optional[str] = None,
        options: Optional[ChatOptions] = None,
    ) -> TurnResult:
        content = (text or "").strip()
        model = model or self.models.selected
        err = self._check(content, model)
        if err is not None:
            return self._reject(err)

        session = self.store.active()
        if session is None:
            return self._reject(ValidationError("No active session.", field="session"))
        # Completion is attributed to this id even if the user switches away
        sid = session.id
        opts = options or self.options

        self.state = TurnState.SENDING
        logger.info("Turn started (session=%s, model=%s)", sid, model)
        try:
            self.store.append_message(sid, Role.USER, content)
            self.recall.reset()
            self.renderer.render(Role.USER.value, content, True)
            self.renderer.set_pending(True)
            transcript = self.store.require(sid).transcript()

            loop = asyncio.get_running_loop()
            try:
                reply = await loop.run_in_executor(
                    None, lambda: self.transport.chat(model, transcript, opts)
                )
            except Exception as e:
                self.renderer.set_pending(False)
                self.state = TurnState.FAILED
                return self._failed(sid, e)

            self.renderer.set_pending(False)
            try:
                self.store.append_message(sid, Role.ASSISTANT, reply)
            except SessionNotFound:
                logger.warning("Reply dropped: session %s was deleted while waiting", sid)
                self.state = TurnState.COMPLETED
                return TurnResult(status=TurnStatus.ORPHANED, session_id=sid, content=reply)

            if self._is_active(sid):
                self.renderer.render(Role.ASSISTANT.value, reply, True)
            self.state = TurnState.COMPLETED
            logger.info("Turn completed (session=%s, %d chars)", sid, len(reply))
            return TurnResult(status=TurnStatus.COMPLETED, session_id=sid, content=reply)
        finally:
            self.state = TurnState.IDLE

    def _failed(self, sid: int, exc: Exception) -> TurnResult:
        kind = classify(exc)
        logger.warning("Turn failed (session=%s, kind=%s): %s", sid, kind, exc)
        # Diagnostic is shown, never persisted
        if self._is_active(sid):
            self.renderer.render(Role.SYSTEM.value, describe_failure(exc), True)
        return TurnResult(
            status=TurnStatus.FAILED,
            session_id=sid,
            error=str(exc),
            error_kind=kind,
            hints=hints_for(exc),
        )

    def _is_active(self, sid: int) -> bool:
        return self.store.active_session_id == sid
