from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field


class PostChatRequest(BaseModel):
    content: str
    # Falls back to the model directory's selection
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, ge=1)


class TurnResultResponse(BaseModel):
    status: str
    session_id: Optional[int] = None
    content: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    hints: List[str] = []


class MessagesPage(BaseModel):
    items: List[dict]
    next_cursor: Optional[int] = None


class RecallResponse(BaseModel):
    text: Optional[str] = None
    cursor: Optional[int] = None
