from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class ModelInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    size: Optional[int] = None
    modified_at: Optional[str] = None


class ModelsResponse(BaseModel):
    items: List[ModelInfo]
    selected: Optional[str] = None
    enabled: bool = False


class SelectModelRequest(BaseModel):
    name: str
