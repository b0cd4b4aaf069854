import logging
from supabase import Client
from dashboard_api.core.exceptions import StorageUnavailable
from dashboard_api.modules.audit.schemas import AuditEntryResponse
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def record(
        self,
        actor_id: Optional[int],
        action: str,
        entity_type: str,
        entity_id: Optional[int] = None,
        old_value: Any = None,
        new_value: Any = None
    ) -> None:
        """Append an audit entry. The mutation already happened, so a failed write is logged, not raised."""
        try:
            self.supabase.table("audit_log").insert({
                "actor_id": actor_id,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "old_value": old_value,
                "new_value": new_value
            }).execute()
        except Exception as e:
            logger.error(f"Failed to write audit entry {action} for {entity_type} {entity_id}: {e}")

    def list_entries(
        self,
        entity_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[AuditEntryResponse]:
        """Most recent audit entries first"""
        try:
            query = self.supabase.table("audit_log").select("*")
            if entity_type:
                query = query.eq("entity_type", entity_type)
            result = query.order("created_at", desc=True)\
                .order("id", desc=True)\
                .limit(limit)\
                .offset(offset)\
                .execute()
            return [AuditEntryResponse(**entry) for entry in result.data]
        except Exception as e:
            raise StorageUnavailable(str(e)) from e
