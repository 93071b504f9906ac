# Supabase tables: establishments, education_levels
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

establishments (one row per installation):
- id: uuid (primary key)
- name: text (not null)
- address: text (not null)
- postal_code: text (not null)
- city: text (not null)
- email: text (nullable)
- phone: text (nullable)
- website: text (nullable)
- description: text (nullable)
- logo_url: text (nullable)
- logo_file_id: text (nullable)
- admin_id: uuid (foreign key to users.id, not null) - head of the establishment
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

education_levels:
- id: uuid (primary key)
- name: text (not null)
- code: text (not null) - ^[A-Z0-9_]{2,10}$
- establishment_id: uuid (foreign key to establishments.id, on delete cascade)
- created_at: timestamptz (default: now())
- unique constraint on (establishment_id, code)
"""

# Embeds the head of the establishment; users.name is decrypted on read
ESTABLISHMENT_COLUMNS = "*, admin:users(id, email, name, role_name)"
