# Supabase table: users
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, default gen_random_uuid())
- email: text (not null, unique)
- name: text (nullable) - stored encrypted ("ENC:" + base64 AES-GCM), see core.encryption
- first_name: text (nullable)
- password: text (nullable) - bcrypt hash, null until the account is activated
- role_name: text (not null, default 'USER', foreign key to roles.name)
- email_verified: timestamptz (nullable) - set on activation
- reset_token: text (nullable) - activation or password reset token
- reset_token_expiry: timestamptz (nullable)
- gender: text (nullable) - 'M', 'F' or 'N'
- phone_number: text (nullable)
- address: text (nullable)
- postal_code: text (nullable)
- city: text (nullable)
- birth_date: date (nullable)
- profession: text (nullable)
- bio: text (nullable)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

Indexes:
- unique (email)
- partial unique index users_single_super_admin, see modules/roles/models.py
"""

# Columns safe to return to clients (never password or reset tokens)
PUBLIC_COLUMNS = (
    "id, email, name, first_name, role_name, email_verified, gender, phone_number, "
    "address, postal_code, city, birth_date, profession, bio, created_at, updated_at"
)
