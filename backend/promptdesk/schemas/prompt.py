from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class CreatePromptRequest(BaseModel):
    project_id: Optional[int] = None
    name: Optional[str] = None
    content: Optional[str] = None


class UpdatePromptRequest(BaseModel):
    name: Optional[str] = None
    content: Optional[str] = None


class PromptOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    project_id: int
    name: str
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class PromptList(BaseModel):
    prompts: List[PromptOut]
