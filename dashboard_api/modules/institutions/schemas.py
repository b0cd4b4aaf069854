from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class InstitutionStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    PENDING = "Pending"


class InstitutionCreate(BaseModel):
    code: str
    name: str
    category: str
    owner: str
    status: InstitutionStatus = InstitutionStatus.ACTIVE


class InstitutionUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    owner: Optional[str] = None
    status: Optional[InstitutionStatus] = None


class InstitutionResponse(BaseModel):
    id: int
    code: str
    name: str
    category: str
    owner: str
    status: InstitutionStatus = InstitutionStatus.ACTIVE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
