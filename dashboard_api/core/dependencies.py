"""
Core dependencies for route protection and permission checking
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from dashboard_api.core.exceptions import ForbiddenError
from dashboard_api.database.supabase_client import get_supabase
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.auth.service import AuthService
from dashboard_api.modules.rbac.service import AuthorizationService
from dashboard_api.modules.users.schemas import UserResponse
from supabase import Client
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_authorization_service(supabase: Client = Depends(get_supabase)) -> AuthorizationService:
    return AuthorizationService(supabase)


def get_audit_service(supabase: Client = Depends(get_supabase)) -> AuditService:
    return AuditService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    """Authenticated local profile for the bearer token. Requests without one never reach the engine."""
    return auth_service.get_current_user(token)


def require_admin(current_user: UserResponse = Depends(get_current_user)) -> UserResponse:
    """Boundary gate for administrative mutations"""
    if not current_user.is_administrator:
        logger.info(f"User {current_user.id} denied administrator-only operation")
        raise ForbiddenError("Administrator privilege required")
    return current_user


def require_permission(required_permission: str):
    """Factory function to create an engine-backed permission check dependency"""
    def check_permission(
        current_user: UserResponse = Depends(get_current_user),
        authz: AuthorizationService = Depends(get_authorization_service)
    ) -> UserResponse:
        if not authz.has_permission(current_user.id, required_permission):
            raise ForbiddenError(f"Insufficient permissions. Required: {required_permission}")
        return current_user
    return check_permission


def require_institution_access(
    institution_id: int,
    current_user: UserResponse = Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service)
) -> UserResponse:
    """Allow if administrator or the user holds an active assignment to the institution"""
    if not authz.can_access_institution(current_user.id, institution_id):
        raise ForbiddenError("You do not have access to this institution")
    return current_user
