import logging
from typing import Optional

from fastapi import Request
from supabase import create_client, Client

from dashboard_api.config.settings import Settings
from dashboard_api.core.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)


def create_supabase(settings: Settings) -> Optional[Client]:
    """Build the Supabase client once at startup. Prefers the service_role key (bypasses RLS)."""
    if not settings.supabase_configured:
        logger.warning("Supabase is not configured; storage-backed routes will return 503")
        return None
    key = settings.supabase_service_role_key or settings.supabase_key
    return create_client(settings.supabase_url, key)


def get_supabase(request: Request) -> Client:
    """Dependency returning the client constructed at startup and held on app.state."""
    client = getattr(request.app.state, "supabase", None)
    if client is None:
        raise StorageUnavailable("Database connection is not available")
    return client
