from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class GlobalRole(str, Enum):
    STANDARD = "standard"
    ADMINISTRATOR = "administrator"


class UserResponse(BaseModel):
    id: int
    external_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    global_role: GlobalRole = GlobalRole.STANDARD
    is_active: bool = True
    created_at: datetime
    updated_at: Optional[datetime] = None
    last_signed_in: Optional[datetime] = None

    @property
    def is_administrator(self) -> bool:
        return self.global_role == GlobalRole.ADMINISTRATOR

    class Config:
        from_attributes = True


class GlobalRoleUpdate(BaseModel):
    global_role: GlobalRole


class ActiveUpdate(BaseModel):
    is_active: bool
