# Supabase tables: commissions, commission_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

commissions:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- speciality: text (nullable)
- color_code: text (nullable)
- logo_url: text (nullable)
- logo_file_id: text (nullable)
- establishment_id: uuid (foreign key to establishments.id, on delete cascade)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

commission_members:
- id: uuid (primary key)
- commission_id: uuid (foreign key to commissions.id, on delete cascade)
- user_id: uuid (foreign key to users.id, on delete cascade)
- role: text (not null) - e.g. "Président", "Membre"
- created_at: timestamptz (default: now())
- unique constraint on (commission_id, user_id)
"""

MEMBER_COLUMNS = "*, user:users(id, email, name, role_name)"
