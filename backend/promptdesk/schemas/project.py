from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ProjectRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProjectList(BaseModel):
    projects: List[ProjectOut]
