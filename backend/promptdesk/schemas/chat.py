from pydantic import BaseModel
from typing import Literal, Optional


class ChatRequest(BaseModel):
    message: Optional[str] = None


class ChatReply(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str
