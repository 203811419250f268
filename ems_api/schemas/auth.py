from typing import Optional

from pydantic import BaseModel, Field, model_validator


class HrLoginRequest(BaseModel):
    name: str
    pin: str


class EmployeeLoginRequest(BaseModel):
    id: Optional[int] = None
    email: Optional[str] = None
    pin: str

    @model_validator(mode="after")
    def require_id_or_email(self):
        if self.id is None and not (self.email or "").strip():
            raise ValueError("id or email is required")
        return self


class HrUserCreate(BaseModel):
    name: str = Field(..., min_length=1)
    pin: str = Field(..., min_length=4)


class HrUserOut(BaseModel):
    id: int
    name: str
