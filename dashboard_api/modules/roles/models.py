# Supabase tables: permissions, roles, role_permissions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

permissions:
- id: bigint (primary key, generated always as identity)
- code: text (not null, unique) - e.g., "view_dashboard", "export_reports"
- name: text (not null) - human label, e.g., "Export Reports"
- description: text (nullable)
- category: text (not null) - free-form grouping: "view", "export", "edit", "admin"
- created_at: timestamp (default: now())

roles:
- id: bigint (primary key, generated always as identity)
- name: text (not null, unique) - e.g., "Executive", "Data Analyst"
- description: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

role_permissions:
- id: bigint (primary key, generated always as identity)
- role_id: bigint (foreign key to roles.id, not null)
- permission_id: bigint (foreign key to permissions.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (role_id, permission_id)
"""
