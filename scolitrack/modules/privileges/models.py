# Supabase table: privileges
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

privileges:
- id: uuid (primary key, default gen_random_uuid())
- name: text (not null, unique) - one of config.privileges_config.PrivilegeName
- description: text (nullable)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

Rows are seeded from the registry by scripts/seed_privileges_roles.py.
"""
