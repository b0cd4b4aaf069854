from pydantic import BaseModel, EmailStr
from typing import List, Optional

from dashboard_api.modules.users.schemas import GlobalRole, UserResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    email: str
    global_role: GlobalRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: int
    email: str
    message: str


class MeResponse(UserResponse):
    permissions: List[str] = []
