# Supabase table: user_institution_assignments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

user_institution_assignments:
- id: bigint (primary key, generated always as identity)
- user_id: bigint (foreign key to user_profiles.id, not null)
- institution_id: bigint (foreign key to institutions.id, not null)
- role_id: bigint (foreign key to roles.id, not null, on delete restrict) - a role cannot be deleted while any row, active or not, references it
- is_active: boolean (not null, default: true) - removal flips this to false; rows are kept for audit
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- partial unique index on (user_id, institution_id) where is_active
"""
