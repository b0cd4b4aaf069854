import logging
from datetime import datetime, timezone
from postgrest.exceptions import APIError
from supabase import Client
from dashboard_api.config.permissions_config import PERMISSION_CATALOG, DEFAULT_ROLES
from dashboard_api.core.exceptions import (
    ServiceError, NotFoundError, ValidationError, ConflictError, StorageUnavailable
)
from dashboard_api.modules.roles.schemas import (
    PermissionResponse, RoleCreate, RoleUpdate, RoleResponse,
    RoleWithPermissionsResponse, SeedRolesResponse
)
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"


def _is_unique_violation(error: Exception) -> bool:
    return isinstance(error, APIError) and error.code == UNIQUE_VIOLATION


class PermissionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_permissions(self, category: Optional[str] = None) -> List[PermissionResponse]:
        """List the permission catalog, optionally filtered by category"""
        try:
            query = self.supabase.table("permissions").select("*")
            if category:
                query = query.eq("category", category)
            result = query.order("category").order("code").execute()
            return [PermissionResponse(**permission) for permission in result.data]
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def get_permissions_by_ids(self, permission_ids: List[int]) -> List[PermissionResponse]:
        """Resolve permission ids; unknown ids are simply absent from the result"""
        if not permission_ids:
            return []
        try:
            result = self.supabase.table("permissions")\
                .select("*")\
                .in_("id", list(set(permission_ids)))\
                .execute()
            return [PermissionResponse(**permission) for permission in result.data]
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def seed_permissions(self) -> int:
        """Insert the default catalog, skipping codes that already exist"""
        try:
            self.supabase.table("permissions")\
                .upsert(PERMISSION_CATALOG, on_conflict="code", ignore_duplicates=True)\
                .execute()
            logger.info(f"Permission catalog seeded: {len(PERMISSION_CATALOG)} entries processed")
            return len(PERMISSION_CATALOG)
        except Exception as e:
            raise StorageUnavailable(str(e)) from e


class RoleService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_role(self, role_data: RoleCreate) -> RoleResponse:
        """
        Create a role and bind the given permissions; unknown permission ids are skipped.

        The name is stored and compared exactly as sent (case and surrounding
        whitespace included); a blank name is rejected.
        """
        name = role_data.name or ""
        if not name.strip():
            raise ValidationError("Role name is required")
        try:
            if self._find_role_by_name(name) is not None:
                raise ValidationError(f"Role '{name}' already exists")

            permission_ids = self._resolve_permission_ids(role_data.permission_ids or [], name)

            try:
                result = self.supabase.table("roles").insert({
                    "name": name,
                    "description": role_data.description
                }).execute()
            except APIError as e:
                if _is_unique_violation(e):
                    raise ValidationError(f"Role '{name}' already exists") from e
                raise

            if not result.data:
                raise StorageUnavailable("Failed to create role")

            role = RoleResponse(**result.data[0])
            try:
                self._insert_bindings(role.id, permission_ids)
            except Exception:
                logger.error(f"Binding permissions to new role {role.id} failed; removing role")
                self.supabase.table("roles").delete().eq("id", role.id).execute()
                raise

            logger.info(f"Created role '{name}' ({role.id}) with {len(permission_ids)} permissions")
            return role
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def get_role_by_id(self, role_id: int) -> RoleResponse:
        """Get role by ID"""
        try:
            result = self.supabase.table("roles")\
                .select("*")\
                .eq("id", role_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise NotFoundError("Role not found")

            return RoleResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def get_role(self, role_id: int) -> RoleWithPermissionsResponse:
        """Get role with all associated permissions"""
        role = self.get_role_by_id(role_id)
        return RoleWithPermissionsResponse(
            **role.model_dump(),
            permissions=self.get_role_permissions(role_id)
        )

    def get_role_permissions(self, role_id: int) -> List[PermissionResponse]:
        """Get all permissions bound to a role"""
        try:
            bindings = self.supabase.table("role_permissions")\
                .select("permission_id")\
                .eq("role_id", role_id)\
                .execute()
            permission_ids = [b["permission_id"] for b in bindings.data]
            permissions = PermissionService(self.supabase).get_permissions_by_ids(permission_ids)
            return sorted(permissions, key=lambda p: (p.category, p.code))
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def update_role(self, role_id: int, role_data: RoleUpdate) -> RoleWithPermissionsResponse:
        """
        Partially update a role; an explicit permission_ids list replaces the whole binding set.

        Bindings are replaced before the field update. If the field update then
        fails, the previous binding set is put back so nothing is half-applied.
        """
        try:
            role = self.get_role_by_id(role_id)

            update_data = {}
            if role_data.name is not None:
                name = role_data.name
                if not name.strip():
                    raise ValidationError("Role name cannot be empty")
                if name != role.name:
                    clash = self._find_role_by_name(name)
                    if clash is not None and clash["id"] != role_id:
                        raise ValidationError(f"Role '{name}' already exists")
                update_data["name"] = name
            if role_data.description is not None:
                update_data["description"] = role_data.description

            previous_ids = None
            if role_data.permission_ids is not None:
                previous_ids = self._replace_bindings(
                    role_id, role_data.permission_ids, update_data.get("name", role.name)
                )

            if update_data:
                update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
                try:
                    self.supabase.table("roles")\
                        .update(update_data)\
                        .eq("id", role_id)\
                        .execute()
                except Exception as e:
                    if previous_ids is not None:
                        logger.error(f"Updating role {role_id} failed; restoring previous permission set")
                        self._restore_bindings(role_id, previous_ids)
                    if _is_unique_violation(e):
                        raise ValidationError(f"Role '{update_data.get('name', role.name)}' already exists") from e
                    raise

            return self.get_role(role_id)
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def delete_role(self, role_id: int) -> bool:
        """
        Delete role and its bindings.

        Refused while any assignment row references the role, active or not:
        assignment rows are kept as history and their role_id is a restricting
        foreign key.
        """
        try:
            referencing = self.supabase.table("user_institution_assignments")\
                .select("id, is_active")\
                .eq("role_id", role_id)\
                .execute()
            if referencing.data:
                active_count = sum(1 for row in referencing.data if row["is_active"])
                raise ConflictError(
                    f"Role is referenced by {len(referencing.data)} assignment(s) "
                    f"({active_count} active); it cannot be deleted"
                )

            previous = self.supabase.table("role_permissions")\
                .select("permission_id")\
                .eq("role_id", role_id)\
                .execute()
            previous_ids = [p["permission_id"] for p in previous.data]

            # Remove role_permissions first
            self.supabase.table("role_permissions")\
                .delete()\
                .eq("role_id", role_id)\
                .execute()

            try:
                result = self.supabase.table("roles")\
                    .delete()\
                    .eq("id", role_id)\
                    .execute()
            except Exception:
                logger.error(f"Deleting role {role_id} failed; restoring its permissions")
                self._restore_bindings(role_id, previous_ids)
                raise

            deleted = len(result.data) > 0
            if deleted:
                logger.info(f"Deleted role {role_id}")
            return deleted
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def list_roles(self) -> List[RoleResponse]:
        """List all roles by name"""
        try:
            result = self.supabase.table("roles").select("*").order("name").execute()
            return [RoleResponse(**role) for role in result.data]
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def list_roles_with_permissions(self) -> List[RoleWithPermissionsResponse]:
        """Denormalized role list for the admin UI"""
        try:
            roles = self.list_roles()
            if not roles:
                return []
            bindings = self.supabase.table("role_permissions")\
                .select("role_id, permission_id")\
                .in_("role_id", [r.id for r in roles])\
                .execute()
            permissions = PermissionService(self.supabase).get_permissions_by_ids(
                [b["permission_id"] for b in bindings.data]
            )
            by_id = {p.id: p for p in permissions}
            grouped: Dict[int, List[PermissionResponse]] = {r.id: [] for r in roles}
            for binding in bindings.data:
                permission = by_id.get(binding["permission_id"])
                if permission is not None:
                    grouped[binding["role_id"]].append(permission)
            return [
                RoleWithPermissionsResponse(
                    **role.model_dump(),
                    permissions=sorted(grouped[role.id], key=lambda p: (p.category, p.code))
                )
                for role in roles
            ]
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def seed_default_roles(self) -> SeedRolesResponse:
        """Create the default role set once. A no-op when any role already exists."""
        try:
            existing = self.supabase.table("roles").select("id").limit(1).execute()
            if existing.data:
                return SeedRolesResponse(skipped=True, message="Roles already seeded")

            permissions = self.supabase.table("permissions").select("id, code").execute()
            code_to_id = {p["code"]: p["id"] for p in permissions.data}

            created_ids: List[int] = []
            try:
                for role in DEFAULT_ROLES:
                    result = self.supabase.table("roles").insert({
                        "name": role["name"],
                        "description": role["description"]
                    }).execute()
                    role_id = result.data[0]["id"]
                    created_ids.append(role_id)

                    permission_ids = []
                    for code in role["permissions"]:
                        if code in code_to_id:
                            permission_ids.append(code_to_id[code])
                        else:
                            logger.warning(f"Permission '{code}' not in catalog; skipped for role {role['name']}")
                    self._insert_bindings(role_id, permission_ids)
            except Exception:
                logger.error("Seeding default roles failed; rolling back created roles")
                if created_ids:
                    self.supabase.table("role_permissions").delete().in_("role_id", created_ids).execute()
                    self.supabase.table("roles").delete().in_("id", created_ids).execute()
                raise

            logger.info(f"Seeded {len(created_ids)} default roles")
            return SeedRolesResponse(
                skipped=False,
                created_count=len(created_ids),
                message="Default roles seeded successfully"
            )
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def _find_role_by_name(self, name: str) -> Optional[dict]:
        result = self.supabase.table("roles")\
            .select("id, name")\
            .eq("name", name)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def _resolve_permission_ids(self, permission_ids: List[int], role_name: str) -> List[int]:
        """Keep known ids in request order, dropping duplicates and unknown ids"""
        if not permission_ids:
            return []
        known = {p.id for p in PermissionService(self.supabase).get_permissions_by_ids(permission_ids)}
        resolved = []
        for pid in permission_ids:
            if pid not in known:
                logger.warning(f"Unknown permission id {pid} skipped for role '{role_name}'")
            elif pid not in resolved:
                resolved.append(pid)
        return resolved

    def _insert_bindings(self, role_id: int, permission_ids: List[int]) -> None:
        if not permission_ids:
            return
        self.supabase.table("role_permissions").insert([
            {"role_id": role_id, "permission_id": pid}
            for pid in permission_ids
        ]).execute()

    def _restore_bindings(self, role_id: int, permission_ids: List[int]) -> None:
        self.supabase.table("role_permissions")\
            .delete()\
            .eq("role_id", role_id)\
            .execute()
        self._insert_bindings(role_id, permission_ids)

    def _replace_bindings(self, role_id: int, permission_ids: List[int], role_name: str) -> List[int]:
        """Swap in the new binding set and return the previous permission ids"""
        resolved = self._resolve_permission_ids(permission_ids, role_name)
        previous = self.supabase.table("role_permissions")\
            .select("permission_id")\
            .eq("role_id", role_id)\
            .execute()
        previous_ids = [p["permission_id"] for p in previous.data]

        # Remove all existing permissions for this role
        self.supabase.table("role_permissions")\
            .delete()\
            .eq("role_id", role_id)\
            .execute()
        try:
            self._insert_bindings(role_id, resolved)
        except Exception:
            logger.error(f"Replacing permissions for role {role_id} failed; restoring previous set")
            self._insert_bindings(role_id, previous_ids)
            raise
        logger.info(f"Role {role_id} now bound to {len(resolved)} permissions")
        return previous_ids
