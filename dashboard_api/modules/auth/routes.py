from fastapi import APIRouter, Depends
from dashboard_api.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, MeResponse
)
from dashboard_api.modules.auth.service import AuthService
from dashboard_api.modules.rbac.service import AuthorizationService
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.core.dependencies import (
    get_auth_service, get_authorization_service, get_current_token, get_current_user
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Get current authenticated user and their effective permissions (for frontend UI)."""
    permissions = sorted(authz.get_user_permissions(current_user.id))
    return MeResponse(**current_user.model_dump(), permissions=permissions)
