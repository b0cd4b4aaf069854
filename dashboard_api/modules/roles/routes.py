from fastapi import APIRouter, Depends
from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.roles.schemas import (
    PermissionResponse, RoleCreate, RoleUpdate, RoleWithPermissionsResponse, SeedRolesResponse
)
from dashboard_api.modules.roles.service import RoleService, PermissionService
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.core.dependencies import require_admin, get_audit_service
from supabase import Client
from typing import List, Optional

router = APIRouter(prefix="/roles", tags=["roles"])


def get_role_service(supabase: Client = Depends(get_supabase)) -> RoleService:
    return RoleService(supabase)


def get_permission_service(supabase: Client = Depends(get_supabase)) -> PermissionService:
    return PermissionService(supabase)


# Permission endpoints
@router.get("/permissions", response_model=List[PermissionResponse])
async def list_permissions(
    category: Optional[str] = None,
    admin: UserResponse = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service)
):
    """List the permission catalog"""
    return service.list_permissions(category=category)


@router.post("/permissions/seed", status_code=200)
async def seed_permissions(
    admin: UserResponse = Depends(require_admin),
    service: PermissionService = Depends(get_permission_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Insert the default permission catalog (idempotent)"""
    processed = service.seed_permissions()
    audit.record(admin.id, "permission.seed", "permission", new_value={"processed": processed})
    return {"processed": processed, "message": "Permission catalog seeded"}


# Role endpoints
@router.post("/seed", response_model=SeedRolesResponse)
async def seed_default_roles(
    admin: UserResponse = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Seed default roles (idempotent: skipped when any role exists)"""
    result = service.seed_default_roles()
    if not result.skipped:
        audit.record(admin.id, "role.seed", "role", new_value={"created": result.created_count})
    return result


@router.post("", response_model=RoleWithPermissionsResponse, status_code=201)
async def create_role(
    role_data: RoleCreate,
    admin: UserResponse = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Create a new role with an optional permission set"""
    role = service.create_role(role_data)
    created = service.get_role(role.id)
    audit.record(
        admin.id, "role.create", "role", role.id,
        new_value={"name": created.name, "permissions": [p.code for p in created.permissions]}
    )
    return created


@router.get("", response_model=List[RoleWithPermissionsResponse])
async def list_roles(
    admin: UserResponse = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """List all roles with their permissions"""
    return service.list_roles_with_permissions()


@router.get("/{role_id}", response_model=RoleWithPermissionsResponse)
async def get_role(
    role_id: int,
    admin: UserResponse = Depends(require_admin),
    service: RoleService = Depends(get_role_service)
):
    """Get role with all associated permissions"""
    return service.get_role(role_id)


@router.put("/{role_id}", response_model=RoleWithPermissionsResponse)
async def update_role(
    role_id: int,
    role_data: RoleUpdate,
    admin: UserResponse = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Update role fields; permission_ids, when present, replaces the whole permission set"""
    before = service.get_role(role_id)
    updated = service.update_role(role_id, role_data)
    audit.record(
        admin.id, "role.update", "role", role_id,
        old_value={"name": before.name, "permissions": [p.code for p in before.permissions]},
        new_value={"name": updated.name, "permissions": [p.code for p in updated.permissions]}
    )
    return updated


@router.delete("/{role_id}", status_code=204)
async def delete_role(
    role_id: int,
    admin: UserResponse = Depends(require_admin),
    service: RoleService = Depends(get_role_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Delete role (409 while any assignment references it)"""
    if service.delete_role(role_id):
        audit.record(admin.id, "role.delete", "role", role_id)
    return None
