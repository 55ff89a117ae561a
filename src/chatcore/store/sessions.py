from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional

from chatcore.core.state import Message, Role, Session
from chatcore.errors import LastSessionError, SessionNotFound
from chatcore.store.persistence import Persistence

logger = logging.getLogger("chatcore.store")


def default_session_name(session_id: int) -> str:
    return f"Chat {session_id}"


class SessionStore:
    """Ordered set of sessions plus the active-session pointer.

    Every mutating call writes the whole set through the persistence adapter
    before returning. The store always holds at least one session.
    """

    def __init__(self, persistence: Persistence) -> None:
        self._lock = threading.RLock()
        self._persistence = persistence
        self.sessions: List[Session] = []
        self.active_session_id: Optional[int] = None
        self.next_id = 1
        self._restore()

    def _restore(self) -> None:
        loaded = self._persistence.load() or []
        meta = self._persistence.load_meta() or {}
        # First occurrence wins if a hand-edited file repeats an id
        seen: set[int] = set()
        for s in loaded:
            if s.id in seen:
                continue
            seen.add(s.id)
            self.sessions.append(s)

        highest = max((s.id for s in self.sessions), default=0)
        try:
            persisted_next = int(meta.get("next_id") or 0)
        except (TypeError, ValueError):
            persisted_next = 0
        self.next_id = max(highest + 1, persisted_next, 1)

        if not self.sessions:
            self.create_session()
            return
        active = meta.get("active_session_id")
        self.active_session_id = active if self._find(active) is not None else self.sessions[0].id
        logger.info("Restored %d sessions (active=%s)", len(self.sessions), self.active_session_id)

    # --- Queries ---------------------------------------------------------------
    def _find(self, sid: object) -> Optional[Session]:
        for s in self.sessions:
            if s.id == sid:
                return s
        return None

    def get_session(self, sid: int) -> Optional[Session]:
        with self._lock:
            return self._find(sid)

    def require(self, sid: int) -> Session:
        s = self.get_session(sid)
        if s is None:
            raise SessionNotFound(sid)
        return s

    def list_sessions(self) -> List[Session]:
        with self._lock:
            return list(self.sessions)

    def active(self) -> Optional[Session]:
        with self._lock:
            return self._find(self.active_session_id)

    # --- Mutations -------------------------------------------------------------
    def _persist(self) -> None:
        self._persistence.save(self.sessions, next_id=self.next_id, active_id=self.active_session_id)

    def create_session(self, name: Optional[str] = None) -> Session:
        with self._lock:
            sid = self.next_id
            self.next_id += 1
            s = Session(id=sid, name=(name or "").strip() or default_session_name(sid), created_at=time.time())
            self.sessions.append(s)
            self.active_session_id = sid
            self._persist()
            logger.info("Created session %s", sid)
            return s

    def switch_to(self, sid: int) -> Session:
        with self._lock:
            s = self._find(sid)
            if s is None:
                raise SessionNotFound(sid)
            self.active_session_id = sid
            # Active pointer is remembered across restarts
            self._persist()
            return s

    def delete(self, sid: int) -> Session:
        with self._lock:
            s = self._find(sid)
            if s is None:
                raise SessionNotFound(sid)
            if len(self.sessions) == 1:
                raise LastSessionError(sid)
            self.sessions.remove(s)
            if self.active_session_id == sid:
                self.active_session_id = self.sessions[0].id
            self._persist()
            logger.info("Deleted session %s (active=%s)", sid, self.active_session_id)
            return s

    def rename(self, sid: int, name: str) -> Optional[Session]:
        with self._lock:
            s = self._find(sid)
            if s is None:
                return None
            s.name = name
            self._persist()
            return s

    def append_message(self, sid: int, role: Role | str, content: str) -> Message:
        with self._lock:
            s = self._find(sid)
            if s is None:
                raise SessionNotFound(sid)
            m = Message(role=role, content=content)
            s.messages.append(m)
            self._persist()
            return m

    def clear(self, sid: int) -> Session:
        with self._lock:
            s = self._find(sid)
            if s is None:
                raise SessionNotFound(sid)
            s.messages = []
            self._persist()
            return s
