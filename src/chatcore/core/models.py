from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from chatcore.errors import TransportError, ValidationError

logger = logging.getLogger("chatcore.models")


class ModelLister(Protocol):
    def list_models(self) -> List[dict]: ...


class ModelDirectory:
    """Cached list of installed models plus the current selection.

    A failed load keeps whatever list was there before; with no list at all the
    directory is disabled (``selected`` is None).
    """

    def __init__(self, transport: ModelLister, default: Optional[str] = None) -> None:
        self.transport = transport
        self.default = default
        self.models: List[dict] = []
        self.selected: Optional[str] = None
        self.loaded = False

    @property
    def names(self) -> List[str]:
        return [str(m.get("name")) for m in self.models]

    @property
    def enabled(self) -> bool:
        return bool(self.models)

    def load(self) -> List[dict]:
        try:
            fresh = self.transport.list_models()
        except TransportError:
            logger.warning("Model list unavailable; keeping %d cached entries", len(self.models))
            raise
        self.models = [m for m in fresh if isinstance(m, dict) and m.get("name")]
        self.loaded = True
        self.selected = self._pick(self.selected)
        logger.info("Loaded %d models (selected=%s)", len(self.models), self.selected)
        return list(self.models)

    def refresh(self) -> List[dict]:
        return self.load()

    def ensure_loaded(self) -> List[dict]:
        if not self.loaded:
            return self.load()
        return list(self.models)

    def select(self, name: str) -> str:
        if name not in self.names:
            raise ValidationError(f"Model not available: {name}", field="model")
        self.selected = name
        return name

    def _pick(self, previous: Optional[str]) -> Optional[str]:
        names = self.names
        if previous and previous in names:
            return previous
        if self.default and self.default in names:
            return self.default
        return names[0] if names else None
