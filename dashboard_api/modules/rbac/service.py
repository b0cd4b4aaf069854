"""
Authorization engine.

Read-and-decide layer over user_profiles, user_institution_assignments, roles,
role_permissions and permissions. Owns no state. Every decision fails closed:
if storage cannot prove access, the answer is deny / empty / None.
"""

import logging
from supabase import Client
from dashboard_api.modules.institutions.schemas import InstitutionResponse
from dashboard_api.modules.roles.schemas import RoleResponse
from dashboard_api.modules.users.schemas import GlobalRole
from typing import List, Optional, Set

logger = logging.getLogger(__name__)


class AuthorizationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def has_permission(self, user_id: int, permission_code: str) -> bool:
        """True if the user is an administrator or holds the code through an active assignment's role"""
        try:
            user = self._get_user(user_id)
            if user is None:
                return False
            if user["global_role"] == GlobalRole.ADMINISTRATOR.value:
                return True
            return permission_code in self._assigned_permission_codes(user_id)
        except Exception as e:
            logger.error(f"Error checking permission {permission_code} for user {user_id}: {e}")
            return False

    def get_user_permissions(self, user_id: int) -> Set[str]:
        """Effective permission codes: the whole catalog for administrators, else the union across active assignments"""
        try:
            user = self._get_user(user_id)
            if user is None:
                return set()
            if user["global_role"] == GlobalRole.ADMINISTRATOR.value:
                result = self.supabase.table("permissions").select("code").execute()
                return {p["code"] for p in result.data}
            return self._assigned_permission_codes(user_id)
        except Exception as e:
            logger.error(f"Error getting permissions for user {user_id}: {e}")
            return set()

    def can_access_institution(self, user_id: int, institution_id: int) -> bool:
        """Administrators always; otherwise any active assignment to an existing institution"""
        try:
            user = self._get_user(user_id)
            if user is None:
                return False
            if user["global_role"] == GlobalRole.ADMINISTRATOR.value:
                return True

            assignment = self.supabase.table("user_institution_assignments")\
                .select("id")\
                .eq("user_id", user_id)\
                .eq("institution_id", institution_id)\
                .eq("is_active", True)\
                .limit(1)\
                .execute()
            if not assignment.data:
                return False

            institution = self.supabase.table("institutions")\
                .select("id")\
                .eq("id", institution_id)\
                .limit(1)\
                .execute()
            return bool(institution.data)
        except Exception as e:
            logger.error(f"Error checking access to institution {institution_id} for user {user_id}: {e}")
            return False

    def get_user_role_for_institution(self, user_id: int, institution_id: int) -> Optional[RoleResponse]:
        """Role of the active assignment for the pair; the most recently created active row wins"""
        try:
            if self._get_user(user_id) is None:
                return None

            assignment = self.supabase.table("user_institution_assignments")\
                .select("role_id")\
                .eq("user_id", user_id)\
                .eq("institution_id", institution_id)\
                .eq("is_active", True)\
                .order("created_at", desc=True)\
                .order("id", desc=True)\
                .limit(1)\
                .execute()
            if not assignment.data:
                return None

            role = self.supabase.table("roles")\
                .select("*")\
                .eq("id", assignment.data[0]["role_id"])\
                .limit(1)\
                .execute()
            return RoleResponse(**role.data[0]) if role.data else None
        except Exception as e:
            logger.error(f"Error getting role at institution {institution_id} for user {user_id}: {e}")
            return None

    def get_user_institutions(self, user_id: int) -> List[InstitutionResponse]:
        """All institutions for administrators; otherwise the distinct institutions of active assignments"""
        try:
            user = self._get_user(user_id)
            if user is None:
                return []

            query = self.supabase.table("institutions").select("*")
            if user["global_role"] != GlobalRole.ADMINISTRATOR.value:
                assignments = self.supabase.table("user_institution_assignments")\
                    .select("institution_id")\
                    .eq("user_id", user_id)\
                    .eq("is_active", True)\
                    .execute()
                institution_ids = list({a["institution_id"] for a in assignments.data})
                if not institution_ids:
                    return []
                query = query.in_("id", institution_ids)

            result = query.order("name").execute()
            return [InstitutionResponse(**institution) for institution in result.data]
        except Exception as e:
            logger.error(f"Error getting institutions for user {user_id}: {e}")
            return []

    def _get_user(self, user_id: int) -> Optional[dict]:
        """Active user row or None; deactivated users are indistinguishable from unknown ones"""
        result = self.supabase.table("user_profiles")\
            .select("id, global_role, is_active")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data or not result.data[0].get("is_active", False):
            return None
        return result.data[0]

    def _assigned_permission_codes(self, user_id: int) -> Set[str]:
        """Union of permission codes reachable via active assignment -> role -> role_permissions -> permissions"""
        assignments = self.supabase.table("user_institution_assignments")\
            .select("role_id")\
            .eq("user_id", user_id)\
            .eq("is_active", True)\
            .execute()
        role_ids = list({a["role_id"] for a in assignments.data})
        if not role_ids:
            return set()

        bindings = self.supabase.table("role_permissions")\
            .select("permission_id")\
            .in_("role_id", role_ids)\
            .execute()
        permission_ids = list({b["permission_id"] for b in bindings.data})
        if not permission_ids:
            return set()

        permissions = self.supabase.table("permissions")\
            .select("code")\
            .in_("id", permission_ids)\
            .execute()
        return {p["code"] for p in permissions.data}
