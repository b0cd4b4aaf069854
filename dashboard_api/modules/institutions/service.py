import logging
from datetime import datetime, timezone
from supabase import Client
from dashboard_api.core.exceptions import ServiceError, NotFoundError, ValidationError, StorageUnavailable
from dashboard_api.modules.institutions.schemas import (
    InstitutionCreate, InstitutionUpdate, InstitutionResponse
)
from typing import List

logger = logging.getLogger(__name__)


class InstitutionService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_institutions(self) -> List[InstitutionResponse]:
        """List every institution by name"""
        try:
            result = self.supabase.table("institutions").select("*").order("name").execute()
            return [InstitutionResponse(**institution) for institution in result.data]
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def get_institution(self, institution_id: int) -> InstitutionResponse:
        """Get institution by ID"""
        try:
            result = self.supabase.table("institutions")\
                .select("*")\
                .eq("id", institution_id)\
                .limit(1)\
                .execute()

            if not result.data:
                raise NotFoundError("Institution not found")

            return InstitutionResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def create_institution(self, institution_data: InstitutionCreate) -> InstitutionResponse:
        """Create a new institution"""
        try:
            existing = self.supabase.table("institutions")\
                .select("id")\
                .eq("code", institution_data.code)\
                .execute()
            if existing.data:
                raise ValidationError(f"Institution '{institution_data.code}' already exists")

            result = self.supabase.table("institutions").insert({
                "code": institution_data.code,
                "name": institution_data.name,
                "category": institution_data.category,
                "owner": institution_data.owner,
                "status": institution_data.status.value
            }).execute()

            if not result.data:
                raise StorageUnavailable("Failed to create institution")

            return InstitutionResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e

    def update_institution(self, institution_id: int, institution_data: InstitutionUpdate) -> InstitutionResponse:
        """Update institution"""
        try:
            update_data = {}
            if institution_data.name:
                update_data["name"] = institution_data.name
            if institution_data.category:
                update_data["category"] = institution_data.category
            if institution_data.owner:
                update_data["owner"] = institution_data.owner
            if institution_data.status is not None:
                update_data["status"] = institution_data.status.value

            if not update_data:
                return self.get_institution(institution_id)

            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("institutions")\
                .update(update_data)\
                .eq("id", institution_id)\
                .execute()

            if not result.data:
                raise NotFoundError("Institution not found")

            return InstitutionResponse(**result.data[0])
        except ServiceError:
            raise
        except Exception as e:
            raise StorageUnavailable(str(e)) from e
