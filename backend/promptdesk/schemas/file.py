from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ProjectFileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_id: str
    file_name: str
    file_size: Optional[int] = None
    uploaded_at: datetime


class FileList(BaseModel):
    files: List[ProjectFileOut]
