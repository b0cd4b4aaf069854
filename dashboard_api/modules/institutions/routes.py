from fastapi import APIRouter, Depends
from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.institutions.schemas import (
    InstitutionCreate, InstitutionUpdate, InstitutionResponse
)
from dashboard_api.modules.institutions.service import InstitutionService
from dashboard_api.modules.rbac.service import AuthorizationService
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.core.dependencies import (
    get_current_user, get_authorization_service, get_audit_service,
    require_admin, require_institution_access
)
from supabase import Client
from typing import List

router = APIRouter(prefix="/institutions", tags=["institutions"])


def get_institution_service(supabase: Client = Depends(get_supabase)) -> InstitutionService:
    return InstitutionService(supabase)


@router.get("", response_model=List[InstitutionResponse])
async def list_institutions(
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
):
    """Institutions visible to the caller (all for administrators)"""
    return authz.get_user_institutions(current_user.id)


@router.get("/{institution_id}", response_model=InstitutionResponse)
async def get_institution(
    institution_id: int,
    current_user: UserResponse = Depends(require_institution_access),
    service: InstitutionService = Depends(get_institution_service)
):
    """Get institution by ID (requires an active assignment or administrator)"""
    return service.get_institution(institution_id)


@router.post("", response_model=InstitutionResponse, status_code=201)
async def create_institution(
    institution_data: InstitutionCreate,
    admin: UserResponse = Depends(require_admin),
    service: InstitutionService = Depends(get_institution_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Create a new institution"""
    institution = service.create_institution(institution_data)
    audit.record(admin.id, "institution.create", "institution", institution.id,
                 new_value=institution.model_dump(mode="json"))
    return institution


@router.put("/{institution_id}", response_model=InstitutionResponse)
async def update_institution(
    institution_id: int,
    institution_data: InstitutionUpdate,
    admin: UserResponse = Depends(require_admin),
    service: InstitutionService = Depends(get_institution_service),
    audit: AuditService = Depends(get_audit_service)
):
    """Update institution"""
    institution = service.update_institution(institution_id, institution_data)
    audit.record(admin.id, "institution.update", "institution", institution_id,
                 new_value=institution_data.model_dump(mode="json", exclude_none=True))
    return institution
