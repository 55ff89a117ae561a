from __future__ import annotations

from typing import Protocol


class Renderer(Protocol):
    """Presentation sink. The core never reads anything back from it."""

    def render(self, role: str, content: str, autoscroll: bool = True) -> None: ...

    def clear(self) -> None: ...

    def set_pending(self, pending: bool) -> None: ...


class NullRenderer:
    def render(self, role: str, content: str, autoscroll: bool = True) -> None:
        return None

    def clear(self) -> None:
        return None

    def set_pending(self, pending: bool) -> None:
        return None
