from __future__ import annotations

import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from chatcore.core.state import Session
from chatcore.errors import ChatError

logger = logging.getLogger("chatcore.store")

FORMAT_VERSION = 1


class Persistence(Protocol):
    def load(self) -> Optional[List[Session]]: ...

    def load_meta(self) -> Dict[str, Any]: ...

    def save(self, sessions: List[Session], *, next_id: int | None = None, active_id: int | None = None) -> None: ...


def _serialize(sessions: List[Session], next_id: int | None, active_id: int | None) -> Dict[str, Any]:
    return {
        "version": FORMAT_VERSION,
        "next_id": next_id,
        "active_session_id": active_id,
        # Keyed by id; JSON objects keep insertion order so display order survives
        "sessions": {str(s.id): s.to_dict() for s in sessions},
    }


def _deserialize(data: Any) -> Optional[List[Session]]:
    if not isinstance(data, dict):
        return None
    raw = data.get("sessions")
    if isinstance(raw, dict):
        records = list(raw.values())
    elif isinstance(raw, list):
        records = raw
    else:
        return None
    out: List[Session] = []
    for rec in records:
        if not isinstance(rec, dict) or "id" not in rec:
            continue
        try:
            out.append(Session.from_dict(rec))
        except (ValueError, TypeError, ChatError) as e:
            # One damaged record must not cost the rest of the history
            logger.warning("Skipping unreadable session record %r: %s", rec.get("id"), e)
    return out


class JsonFilePersistence:
    """Whole-set JSON document on disk, rewritten atomically on every save."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self) -> Any:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.warning("Session file unreadable, starting fresh: %s", self.path)
            return None

    def load(self) -> Optional[List[Session]]:
        return _deserialize(self._read())

    def load_meta(self) -> Dict[str, Any]:
        data = self._read()
        if not isinstance(data, dict):
            return {}
        return {k: data.get(k) for k in ("next_id", "active_session_id") if data.get(k) is not None}

    def save(self, sessions: List[Session], *, next_id: int | None = None, active_id: int | None = None) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = _serialize(sessions, next_id, active_id)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, self.path)
        logger.debug("Saved %d sessions to %s", len(sessions), self.path)


class MemoryPersistence:
    """Process-local adapter; keeps a deep copy so callers cannot mutate the saved set."""

    def __init__(self, sessions: Optional[List[Session]] = None, meta: Optional[Dict[str, Any]] = None) -> None:
        self._sessions: Optional[List[Session]] = copy.deepcopy(sessions) if sessions is not None else None
        self._meta: Dict[str, Any] = dict(meta or {})
        self.saves = 0

    def load(self) -> Optional[List[Session]]:
        return copy.deepcopy(self._sessions) if self._sessions is not None else None

    def load_meta(self) -> Dict[str, Any]:
        return dict(self._meta)

    def save(self, sessions: List[Session], *, next_id: int | None = None, active_id: int | None = None) -> None:
        self._sessions = copy.deepcopy(sessions)
        self._meta = {k: v for k, v in (("next_id", next_id), ("active_session_id", active_id)) if v is not None}
        self.saves += 1
