from __future__ import annotations

import json
import logging
import socket
import time
from dataclasses import dataclass
from typing import Any, Optional, Sequence
from urllib import request, error

from chatcore.core.state import ChatOptions, Message
from chatcore.errors import TransportError

logger = logging.getLogger("chatcore.llm")


@dataclass
class OllamaClient:
    """
    Minimal client for a local Ollama server (non-streaming).

    Every failure surfaces as TransportError with a kind the UI can turn into
    a remediation hint.
    """

    host: str = "http://localhost:11434"
    timeout: float = 120.0
    retries: int = 0
    backoff: float = 1.5

    # --- Public API ---------------------------------------------------------
    def list_models(self) -> list[dict]:
        obj = self._request("GET", "/api/tags")
        models = obj.get("models") if isinstance(obj, dict) else None
        if not isinstance(models, list):
            return []
        return [m for m in models if isinstance(m, dict) and m.get("name")]

    def chat(self, model: str, messages: Sequence[Message | dict], options: Optional[ChatOptions] = None) -> str:
        opts = options or ChatOptions()
        payload = {
            "model": model,
            "messages": [m.to_dict() if isinstance(m, Message) else dict(m) for m in messages],
            "stream": False,
            "options": opts.to_ollama(),
        }
        obj = self._request("POST", "/api/chat", payload)
        msg = obj.get("message") if isinstance(obj, dict) else None
        if not isinstance(msg, dict) or "content" not in msg:
            raise TransportError("Ollama: response has no message content", kind="protocol")
        return str(msg.get("content") or "")

    def show(self, model: str) -> dict:
        obj = self._request("POST", "/api/show", {"name": model})
        return obj if isinstance(obj, dict) else {}

    # --- Transport ----------------------------------------------------------
    def _request(self, method: str, path: str, payload: Optional[dict] = None) -> Any:
        url = self.host.rstrip("/") + path
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        headers = {"Content-Type": "application/json"} if data is not None else {}
        req = request.Request(url, data=data, headers=headers, method=method)

        for attempt in range(self.retries + 1):
            try:
                with request.urlopen(req, timeout=self.timeout) as resp:
                    raw = resp.read().decode("utf-8")
                try:
                    return json.loads(raw) if raw else {}
                except json.JSONDecodeError as e:
                    raise TransportError(f"Ollama: invalid JSON from {path}: {e}", kind="protocol")
            except error.HTTPError as e:
                try:
                    body = e.read().decode("utf-8")
                except Exception:
                    body = str(e)
                if e.code in (429, 503) and attempt < self.retries:
                    time.sleep(self.backoff * (2 ** attempt))
                    continue
                # Ollama answers disallowed browser origins with a bare 403
                kind = "cors" if e.code == 403 else "http_status"
                logger.warning("Ollama %s %s -> HTTP %s", method, path, e.code)
                raise TransportError(f"HTTP error! status: {e.code}, details: {body}", kind=kind, status=e.code) from e
            except error.URLError as e:
                if attempt < self.retries:
                    time.sleep(self.backoff * (2 ** attempt))
                    continue
                reason = getattr(e, "reason", e)
                if isinstance(reason, ConnectionRefusedError):
                    kind, text = "connection_refused", f"Connection refused ({self.host})"
                elif isinstance(reason, (socket.timeout, TimeoutError)):
                    kind, text = "network", f"Network error: request to {self.host} timed out"
                else:
                    kind, text = "network", f"Network error: {reason} ({self.host})"
                logger.warning("Ollama %s %s failed: %s", method, path, reason)
                raise TransportError(text, kind=kind) from e
            except (socket.timeout, TimeoutError) as e:
                if attempt < self.retries:
                    time.sleep(self.backoff * (2 ** attempt))
                    continue
                logger.warning("Ollama %s %s timed out", method, path)
                raise TransportError(f"Network error: request to {self.host} timed out", kind="network") from e
            except ConnectionError as e:
                if attempt < self.retries:
                    time.sleep(self.backoff * (2 ** attempt))
                    continue
                kind = "connection_refused" if isinstance(e, ConnectionRefusedError) else "network"
                raise TransportError(f"Network error: {e} ({self.host})", kind=kind) from e

        # Should not reach here
        raise TransportError("Ollama: retries exhausted", kind="network")
