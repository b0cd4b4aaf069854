from pydantic import BaseModel


class InstitutionAccessResponse(BaseModel):
    institution_id: int
    can_access: bool


class PermissionCheckResponse(BaseModel):
    permission: str
    allowed: bool
