import logging
from datetime import datetime, timezone
from supabase import Client
from dashboard_api.config.settings import settings
from dashboard_api.core.exceptions import ServiceError, NotFoundError, ValidationError, StorageUnavailable
from dashboard_api.modules.users.schemas import UserResponse, GlobalRole
from typing import List, Optional

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: int) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise NotFoundError("User not found")

            return UserResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def get_user_by_external_id(self, external_id: str) -> Optional[UserResponse]:
        """Get user profile by Supabase Auth id"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .eq("external_id", external_id)\
                .limit(1)\
                .execute()

            if not result.data:
                return None

            return UserResponse(**result.data[0])
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def upsert_on_sign_in(
        self,
        external_id: str,
        email: Optional[str] = None,
        full_name: Optional[str] = None
    ) -> UserResponse:
        """Create the profile on first successful authentication, otherwise refresh it"""
        try:
            existing = self.get_user_by_external_id(external_id)
            now = _now()
            if existing is None:
                global_role = GlobalRole.STANDARD
                if settings.owner_external_id and external_id == settings.owner_external_id:
                    global_role = GlobalRole.ADMINISTRATOR
                result = self.supabase.table("user_profiles").insert({
                    "external_id": external_id,
                    "email": email,
                    "full_name": full_name,
                    "global_role": global_role.value,
                    "is_active": True,
                    "last_signed_in": now
                }).execute()
                if not result.data:
                    raise StorageUnavailable("Failed to create user profile")
                logger.info(f"Created user profile for {external_id} as {global_role.value}")
                return UserResponse(**result.data[0])

            update_data = {"last_signed_in": now, "updated_at": now}
            if email is not None:
                update_data["email"] = email
            if full_name is not None:
                update_data["full_name"] = full_name
            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", existing.id)\
                .execute()
            if not result.data:
                return existing
            return UserResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def list_users(self, limit: int = 50, offset: int = 0) -> List[UserResponse]:
        """List all user profiles, newest first"""
        try:
            result = self.supabase.table("user_profiles")\
                .select("*")\
                .order("created_at", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [UserResponse(**user) for user in result.data]
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def set_global_role(self, user_id: int, global_role: GlobalRole, actor_id: Optional[int] = None) -> UserResponse:
        """Change a user's coarse global role"""
        if actor_id is not None and actor_id == user_id and global_role != GlobalRole.ADMINISTRATOR:
            raise ValidationError("Administrators cannot demote themselves")
        return self._update(user_id, {"global_role": global_role.value})

    def set_active(self, user_id: int, is_active: bool, actor_id: Optional[int] = None) -> UserResponse:
        """Soft-(de)activate a user; profiles are never hard-deleted"""
        if actor_id is not None and actor_id == user_id and not is_active:
            raise ValidationError("Administrators cannot deactivate themselves")
        return self._update(user_id, {"is_active": is_active})

    def _update(self, user_id: int, update_data: dict) -> UserResponse:
        try:
            update_data["updated_at"] = _now()
            result = self.supabase.table("user_profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise NotFoundError("User not found")

            return UserResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e
