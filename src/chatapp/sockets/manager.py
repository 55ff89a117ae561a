from __future__ import annotations

import asyncio
import logging
from typing import Optional, Set
from fastapi import WebSocket

logger = logging.getLogger("chatapp.ws")


class WSManager:
    """Connected chat views plus the Renderer the chat core draws into.

    Render calls are synchronous; payloads are broadcast on the event loop,
    scheduled thread-safely when the call comes from a worker thread.
    """

    def __init__(self) -> None:
        self._conns: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: Set[asyncio.Task] = set()

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self._loop = asyncio.get_running_loop()
        async with self._lock:
            self._conns.add(ws)
            await ws.send_json({"type": "connected"})

    async def disconnect(self, ws: WebSocket) -> None:
        async with self._lock:
            self._conns.discard(ws)

    async def _broadcast(self, payload: dict) -> None:
        async with self._lock:
            conns = list(self._conns)
        for c in conns:
            try:
                await c.send_json(payload)
            except Exception:
                # Drop broken connections lazily
                await self.disconnect(c)

    async def has_connections(self) -> bool:
        async with self._lock:
            return bool(self._conns)

    def _dispatch(self, payload: dict) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            task = loop.create_task(self._broadcast(payload))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif self._loop is not None and self._loop.is_running():
            asyncio.run_coroutine_threadsafe(self._broadcast(payload), self._loop)
        else:
            logger.debug("No viewer connected; dropped %s event", payload.get("type"))

    # --- Renderer ---------------------------------------------------------------
    def render(self, role: str, content: str, autoscroll: bool = True) -> None:
        self._dispatch({"type": "message", "role": role, "content": content, "autoscroll": autoscroll})

    def clear(self) -> None:
        self._dispatch({"type": "clear"})

    def set_pending(self, pending: bool) -> None:
        self._dispatch({"type": "pending", "pending": pending})
