# Supabase table: audit_log
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

audit_log:
- id: bigint (primary key, generated always as identity)
- actor_id: bigint (nullable) - user_profiles.id of the administrator; null for scripts
- action: text (not null) - e.g., "role.create", "assignment.remove"
- entity_type: text (not null) - e.g., "role", "assignment", "user"
- entity_id: bigint (nullable)
- old_value: jsonb (nullable)
- new_value: jsonb (nullable)
- created_at: timestamp (default: now())
"""
