from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from dashboard_api.modules.institutions.schemas import InstitutionResponse
from dashboard_api.modules.roles.schemas import RoleResponse


class AssignmentCreate(BaseModel):
    user_id: int
    institution_id: int
    role_id: int


class AssignmentResponse(BaseModel):
    id: int
    user_id: int
    institution_id: int
    role_id: int
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignmentDetailResponse(BaseModel):
    id: int
    user_id: int
    institution: InstitutionResponse
    role: RoleResponse
    created_at: Optional[datetime] = None


class RemoveAssignmentResponse(BaseModel):
    success: bool
    message: str
