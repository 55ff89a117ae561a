# core/state.py

from __future__ import annotations
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from chatcore.errors import ValidationError


# ---------- Config ----------
@dataclass
class Config:
    profile: str
    host: str
    model: str | None
    temperature: float
    max_tokens: int
    store_path: Path = Path("runtime") / "sessions.json"
    timeout: float = 120.0
    retries: int = 0


# ---------- Messages ----------
class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


@dataclass
class Message:
    role: Role
    content: str

    def __post_init__(self) -> None:
        try:
            self.role = Role(self.role)
        except ValueError:
            raise ValidationError(f"Unknown message role: {self.role!r}", field="role")
        if not isinstance(self.content, str):
            raise ValidationError("Message content must be a string", field="content")

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


# ---------- Sessions ----------
@dataclass
class Session:
    id: int
    name: str
    messages: list[Message] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)

    def transcript(self) -> list[dict[str, str]]:
        """Messages in the shape the chat endpoint expects."""
        return [m.to_dict() for m in self.messages]

    def user_inputs(self) -> list[str]:
        return [m.content for m in self.messages if m.role is Role.USER]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created_at": self.created_at,
            "messages": self.transcript(),
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Session":
        return cls(
            id=int(raw["id"]),
            name=str(raw.get("name") or f"Chat {raw['id']}"),
            messages=[Message(role=m.get("role"), content=str(m.get("content", ""))) for m in raw.get("messages") or []],
            created_at=float(raw.get("created_at") or time.time()),
        )


# ---------- Sampling options ----------
@dataclass(frozen=True)
class ChatOptions:
    temperature: float = 0.7
    max_tokens: int = 2048

    def __post_init__(self) -> None:
        try:
            temperature = float(self.temperature)
            max_tokens = float(self.max_tokens)
        except (TypeError, ValueError):
            raise ValidationError("temperature and max_tokens must be numbers", field="options")
        if not 0.0 <= temperature <= 2.0:
            raise ValidationError("temperature must be between 0.0 and 2.0", field="temperature")
        if isinstance(self.max_tokens, (bool, str)) or not max_tokens.is_integer() or max_tokens < 1:
            raise ValidationError("max_tokens must be a positive integer", field="max_tokens")

    def to_ollama(self) -> dict[str, Any]:
        return {"temperature": float(self.temperature), "num_predict": int(self.max_tokens)}


# ---------- Turn state ----------
class TurnState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    COMPLETED = "completed"
    FAILED = "failed"


class TurnStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    REJECTED = "rejected"   # guard violated, nothing sent
    ORPHANED = "orphaned"   # reply arrived after its session was deleted


@dataclass
class TurnResult:
    status: TurnStatus
    session_id: int | None = None
    content: str | None = None
    error: str | None = None
    error_kind: str | None = None
    hints: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is TurnStatus.COMPLETED
