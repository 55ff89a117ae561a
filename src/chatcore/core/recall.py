from __future__ import annotations

from typing import List, Optional

from chatcore.store.sessions import SessionStore


class InputRecall:
    """Up/down recall over the active session's previously sent user messages.

    Entries are read from the live transcript on every call; only the cursor is
    kept here. ``None`` means past the end (no selection).
    """

    def __init__(self, store: SessionStore) -> None:
        self.store = store
        self.cursor: Optional[int] = None

    def _entries(self) -> List[str]:
        s = self.store.active()
        return s.user_inputs() if s else []

    def recall_previous(self) -> Optional[str]:
        entries = self._entries()
        if not entries:
            self.cursor = None
            return None
        if self.cursor is None or self.cursor >= len(entries):
            self.cursor = len(entries) - 1
        elif self.cursor > 0:
            self.cursor -= 1
        return entries[self.cursor]

    def recall_next(self) -> Optional[str]:
        entries = self._entries()
        if not entries or self.cursor is None:
            self.cursor = None
            return None
        self.cursor += 1
        if self.cursor >= len(entries):
            # Past the newest entry: caller clears the input field
            self.cursor = None
            return ""
        return entries[self.cursor]

    def reset(self) -> None:
        self.cursor = None
