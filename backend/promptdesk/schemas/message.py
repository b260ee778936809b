from datetime import datetime
from typing import List, Literal

from pydantic import BaseModel


class HistoryEntry(BaseModel):
    id: int
    role: Literal["system", "user", "assistant"]
    content: str
    created_at: datetime


class HistoryResponse(BaseModel):
    messages: List[HistoryEntry]
