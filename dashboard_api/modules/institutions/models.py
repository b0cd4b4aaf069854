# Supabase table: institutions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

institutions:
- id: bigint (primary key, generated always as identity)
- code: text (not null, unique) - short institution key, e.g., "MCC-LONGVIEW"
- name: text (not null)
- category: text (not null) - e.g., "Campus", "Center", "District Office"
- owner: text (not null) - owning contact
- status: text (not null, default: 'Active') - values: Active, Inactive, Pending
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
