from pydantic import BaseModel
from typing import Any, Optional
from datetime import datetime


class AuditEntryResponse(BaseModel):
    id: int
    actor_id: Optional[int] = None
    action: str
    entity_type: str
    entity_id: Optional[int] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
