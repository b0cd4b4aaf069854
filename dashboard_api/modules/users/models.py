# Supabase table: user_profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Credentials live in Supabase Auth (auth.users); this table is the local identity store

"""
Expected Supabase table structure:

user_profiles:
- id: bigint (primary key, generated always as identity)
- external_id: text (unique, not null) - Supabase Auth user id (auth.users.id)
- email: text (nullable)
- full_name: text (nullable)
- global_role: text (not null, default: 'standard') - values: standard, administrator
- is_active: boolean (not null, default: true) - users are soft-deactivated, never deleted
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
- last_signed_in: timestamp (nullable)
"""
