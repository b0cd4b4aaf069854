import logging
from datetime import datetime, timezone
from postgrest.exceptions import APIError
from supabase import Client
from dashboard_api.core.exceptions import ServiceError, NotFoundError, ConflictError, StorageUnavailable
from dashboard_api.modules.assignments.schemas import AssignmentResponse, AssignmentDetailResponse
from dashboard_api.modules.institutions.schemas import InstitutionResponse
from dashboard_api.modules.roles.schemas import RoleResponse
from typing import List

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class AssignmentService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def assign(self, user_id: int, institution_id: int, role_id: int) -> AssignmentResponse:
        """Bind a user to an institution under a role, superseding any active binding for the pair"""
        try:
            self._require_row("user_profiles", user_id, "User not found")
            self._require_row("institutions", institution_id, "Institution not found")
            self._require_row("roles", role_id, "Role not found")

            superseded = self.supabase.table("user_institution_assignments")\
                .update({"is_active": False, "updated_at": _now()})\
                .eq("user_id", user_id)\
                .eq("institution_id", institution_id)\
                .eq("is_active", True)\
                .execute()
            superseded_ids = [row["id"] for row in superseded.data]

            try:
                result = self.supabase.table("user_institution_assignments").insert({
                    "user_id": user_id,
                    "institution_id": institution_id,
                    "role_id": role_id,
                    "is_active": True
                }).execute()
            except Exception as e:
                if superseded_ids:
                    self.supabase.table("user_institution_assignments")\
                        .update({"is_active": True})\
                        .in_("id", superseded_ids)\
                        .execute()
                if isinstance(e, APIError) and e.code == UNIQUE_VIOLATION:
                    raise ConflictError("User already has an active assignment for this institution") from e
                raise

            if not result.data:
                raise StorageUnavailable("Failed to assign user")

            if superseded_ids:
                logger.info(f"Superseded assignment(s) {superseded_ids} for user {user_id} at institution {institution_id}")
            logger.info(f"Assigned user {user_id} to institution {institution_id} with role {role_id}")
            return AssignmentResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def remove(self, user_id: int, institution_id: int) -> bool:
        """Soft-delete: deactivate every active assignment for the pair"""
        try:
            result = self.supabase.table("user_institution_assignments")\
                .update({"is_active": False, "updated_at": _now()})\
                .eq("user_id", user_id)\
                .eq("institution_id", institution_id)\
                .eq("is_active", True)\
                .execute()
            removed = len(result.data) > 0
            if removed:
                logger.info(f"Removed user {user_id} from institution {institution_id}")
            return removed
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def list_for_user(self, user_id: int) -> List[AssignmentDetailResponse]:
        """Active assignments of a user with institution and role resolved"""
        return self._list_active("user_id", user_id)

    def list_for_institution(self, institution_id: int) -> List[AssignmentDetailResponse]:
        """Active assignments at an institution with institution and role resolved"""
        return self._list_active("institution_id", institution_id)

    def _list_active(self, column: str, value: int) -> List[AssignmentDetailResponse]:
        try:
            rows = self.supabase.table("user_institution_assignments")\
                .select("*")\
                .eq(column, value)\
                .eq("is_active", True)\
                .order("created_at")\
                .execute()
            if not rows.data:
                return []

            institutions_result = self.supabase.table("institutions")\
                .select("*")\
                .in_("id", list({r["institution_id"] for r in rows.data}))\
                .execute()
            roles_result = self.supabase.table("roles")\
                .select("*")\
                .in_("id", list({r["role_id"] for r in rows.data}))\
                .execute()
            institutions = {i["id"]: InstitutionResponse(**i) for i in institutions_result.data}
            roles = {r["id"]: RoleResponse(**r) for r in roles_result.data}

            details = []
            for row in rows.data:
                institution = institutions.get(row["institution_id"])
                role = roles.get(row["role_id"])
                if institution is None or role is None:
                    logger.warning(f"Assignment {row['id']} references a missing institution or role")
                    continue
                details.append(AssignmentDetailResponse(
                    id=row["id"],
                    user_id=row["user_id"],
                    institution=institution,
                    role=role,
                    created_at=row.get("created_at")
                ))
            return details
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def _require_row(self, table: str, row_id: int, message: str) -> None:
        result = self.supabase.table(table).select("id").eq("id", row_id).limit(1).execute()
        if not result.data:
            raise NotFoundError(message)
