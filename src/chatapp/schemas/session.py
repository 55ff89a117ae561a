from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class Message(BaseModel):
    role: str = Field(pattern=r"^(user|assistant|system)$")
    content: str


class Session(BaseModel):
    id: int
    name: str
    created_at: float
    messages: List[Message] = []


class SessionSummary(BaseModel):
    id: int
    name: str
    created_at: float
    message_count: int
    active: bool = False


class CreateSessionRequest(BaseModel):
    name: Optional[str] = None


class RenameSessionRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)


class ListSessionsResponse(BaseModel):
    items: List[SessionSummary]
    active_session_id: Optional[int] = None
