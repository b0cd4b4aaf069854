from fastapi import APIRouter, Depends
from dashboard_api.modules.audit.schemas import AuditEntryResponse
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.core.dependencies import require_permission, get_audit_service
from typing import List, Optional

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=List[AuditEntryResponse])
async def list_audit_entries(
    entity_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    user: UserResponse = Depends(require_permission("view_audit_log")),
    service: AuditService = Depends(get_audit_service)
):
    """Recent administrative changes (requires view_audit_log)"""
    return service.list_entries(entity_type=entity_type, limit=limit, offset=offset)
