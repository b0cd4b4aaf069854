from fastapi import APIRouter, Depends
from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.users.schemas import UserResponse, GlobalRoleUpdate, ActiveUpdate
from dashboard_api.modules.users.service import UserService
from dashboard_api.core.dependencies import require_admin, get_audit_service
from supabase import Client
from typing import List

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("", response_model=List[UserResponse])
async def list_users(
    limit: int = 50,
    offset: int = 0,
    admin: UserResponse = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """List all users (administrators only)"""
    return service.list_users(limit=limit, offset=offset)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    admin: UserResponse = Depends(require_admin),
    service: UserService = Depends(get_user_service)
):
    """Get user by ID (administrators only)"""
    return service.get_user_by_id(user_id)


@router.put("/{user_id}/global-role", response_model=UserResponse)
async def set_global_role(
    user_id: int,
    body: GlobalRoleUpdate,
    admin: UserResponse = Depends(require_admin),
    service: UserService = Depends(get_user_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Promote or demote a user's global role"""
    before = service.get_user_by_id(user_id)
    user = service.set_global_role(user_id, body.global_role, actor_id=admin.id)
    audit.record(
        admin.id, "user.set_global_role", "user", user_id,
        old_value={"global_role": before.global_role.value},
        new_value={"global_role": user.global_role.value}
    )
    return user


@router.put("/{user_id}/active", response_model=UserResponse)
async def set_active(
    user_id: int,
    body: ActiveUpdate,
    admin: UserResponse = Depends(require_admin),
    service: UserService = Depends(get_user_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Soft-(de)activate a user"""
    user = service.set_active(user_id, body.is_active, actor_id=admin.id)
    audit.record(
        admin.id, "user.activate" if body.is_active else "user.deactivate", "user", user_id,
        new_value={"is_active": user.is_active}
    )
    return user
