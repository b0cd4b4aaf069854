from fastapi import APIRouter, Depends
from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.modules.assignments.schemas import AssignmentDetailResponse
from dashboard_api.modules.assignments.service import AssignmentService
from dashboard_api.modules.institutions.schemas import InstitutionResponse
from dashboard_api.modules.rbac.schemas import InstitutionAccessResponse, PermissionCheckResponse
from dashboard_api.modules.rbac.service import AuthorizationService
from dashboard_api.modules.roles.schemas import RoleResponse
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.core.dependencies import get_current_user, get_authorization_service, require_admin
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/rbac", tags=["rbac"])


@router.get("/my-institutions", response_model=List[InstitutionResponse])
async def get_my_institutions(
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Institutions accessible to the current user"""
    return authz.get_user_institutions(current_user.id)


@router.get("/my-assignments", response_model=List[AssignmentDetailResponse])
async def get_my_assignments(
    current_user: UserResponse = Depends(get_current_user),
    supabase: Client = Depends(get_supabase)
):
    """Active institution/role bindings of the current user"""
    return AssignmentService(supabase).list_for_user(current_user.id)


@router.get("/can-access/{institution_id}", response_model=InstitutionAccessResponse)
async def can_access_institution(
    institution_id: int,
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Check if the current user can access an institution"""
    return InstitutionAccessResponse(
        institution_id=institution_id,
        can_access=authz.can_access_institution(current_user.id, institution_id)
    )


@router.get("/has-permission/{permission_code}", response_model=PermissionCheckResponse)
async def has_permission(
    permission_code: str,
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Check if the current user holds a capability"""
    return PermissionCheckResponse(
        permission=permission_code,
        allowed=authz.has_permission(current_user.id, permission_code)
    )


@router.get("/role-for-institution/{institution_id}", response_model=Optional[RoleResponse])
async def get_role_for_institution(
    institution_id: int,
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Role the current user holds at an institution, or null"""
    return authz.get_user_role_for_institution(current_user.id, institution_id)


@router.get("/users/{user_id}/institutions", response_model=List[InstitutionResponse])
async def get_user_institutions(
    user_id: int,
    admin: UserResponse = Depends(require_admin),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Institutions accessible to any user (administrators only)"""
    return authz.get_user_institutions(user_id)
