"""
Seed Permissions and Roles Script
This script populates the permission catalog and the default roles using the config.
Safe to re-run: existing permission codes are skipped and roles are only seeded into an empty table.

Usage: python -m dashboard_api.scripts.seed_permissions_roles
"""

import sys
import logging

from dashboard_api.config.settings import settings
from dashboard_api.database.supabase_client import create_supabase
from dashboard_api.modules.audit.service import AuditService
from dashboard_api.modules.roles.service import PermissionService, RoleService
from supabase import Client

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def seed(supabase: Client) -> int:
    """Seed permissions first, then roles (which depend on permissions). Returns roles created."""
    logger.info("Seeding permissions...")
    perm_count = PermissionService(supabase).seed_permissions()

    logger.info("Seeding roles...")
    result = RoleService(supabase).seed_default_roles()
    if result.skipped:
        logger.info("Roles already present; default roles not re-seeded")
    else:
        AuditService(supabase).record(None, "role.seed", "role", new_value={"created": result.created_count})

    logger.info(f"Total: {perm_count} permissions processed, {result.created_count} roles created")
    return result.created_count


def main():
    """Main function to seed permissions and roles"""
    supabase = create_supabase(settings)
    if supabase is None:
        logger.error("SUPABASE_URL and a Supabase key must be set")
        sys.exit(1)
    try:
        logger.info("Starting permissions and roles seeding...")
        seed(supabase)
        logger.info("Seeding completed successfully!")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
