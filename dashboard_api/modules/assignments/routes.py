from fastapi import APIRouter, Depends
from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.modules.assignments.schemas import (
    AssignmentCreate, AssignmentResponse, AssignmentDetailResponse, RemoveAssignmentResponse
)
from dashboard_api.modules.assignments.service import AssignmentService
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.core.dependencies import require_admin, get_audit_service
from supabase import Client
from typing import List

router = APIRouter(prefix="/assignments", tags=["assignments"])


def get_assignment_service(supabase: Client = Depends(get_supabase)) -> AssignmentService:
    return AssignmentService(supabase)


@router.post("", response_model=AssignmentResponse, status_code=201)
async def assign_user_to_institution(
    assignment_data: AssignmentCreate,
    admin: UserResponse = Depends(require_admin),
    service: AssignmentService = Depends(get_assignment_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Assign user to institution with role (supersedes an existing active assignment)"""
    assignment = service.assign(
        assignment_data.user_id,
        assignment_data.institution_id,
        assignment_data.role_id
    )
    audit.record(admin.id, "assignment.assign", "assignment", assignment.id,
                 new_value=assignment_data.model_dump())
    return assignment


@router.delete("/users/{user_id}/institutions/{institution_id}", response_model=RemoveAssignmentResponse)
async def remove_user_from_institution(
    user_id: int,
    institution_id: int,
    admin: UserResponse = Depends(require_admin),
    service: AssignmentService = Depends(get_assignment_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Deactivate the user's assignment at the institution; the row is kept for audit"""
    removed = service.remove(user_id, institution_id)
    if removed:
        audit.record(admin.id, "assignment.remove", "assignment",
                     old_value={"user_id": user_id, "institution_id": institution_id})
    return RemoveAssignmentResponse(
        success=removed,
        message="User removed successfully" if removed else "No active assignment found"
    )


@router.get("/users/{user_id}", response_model=List[AssignmentDetailResponse])
async def list_user_assignments(
    user_id: int,
    admin: UserResponse = Depends(require_admin),
    service: AssignmentService = Depends(get_assignment_service)
):
    """Active assignments of a user"""
    return service.list_for_user(user_id)


@router.get("/institutions/{institution_id}", response_model=List[AssignmentDetailResponse])
async def list_institution_assignments(
    institution_id: int,
    admin: UserResponse = Depends(require_admin),
    service: AssignmentService = Depends(get_assignment_service)
):
    """Active assignments at an institution"""
    return service.list_for_institution(institution_id)
