from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmployeeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    pin: str = Field(..., min_length=4)
    email: Optional[str] = None
    department: Optional[str] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str]
    department: Optional[str]
    is_active: bool
    created_at: datetime
