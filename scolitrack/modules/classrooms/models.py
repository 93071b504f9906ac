# Supabase tables: class_rooms, class_room_education_levels, class_room_personnel
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

class_rooms:
- id: uuid (primary key)
- name: text (not null)
- capacity: integer (nullable)
- color_code: text (nullable)
- logo_url: text (nullable)
- logo_file_id: text (nullable)
- establishment_id: uuid (foreign key to establishments.id, on delete cascade)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

class_room_education_levels:
- id: uuid (primary key)
- class_room_id: uuid (foreign key to class_rooms.id, on delete cascade)
- education_level_id: uuid (foreign key to education_levels.id, on delete cascade)
- unique constraint on (class_room_id, education_level_id)

class_room_personnel:
- id: uuid (primary key)
- class_room_id: uuid (foreign key to class_rooms.id, on delete cascade)
- user_id: uuid (foreign key to users.id, on delete cascade)
- role_in_class: text (nullable) - e.g. "Enseignant", "ATSEM"
- created_at: timestamptz (default: now())
- unique constraint on (class_room_id, user_id)
"""

PERSONNEL_COLUMNS = "*, user:users(id, email, name, role_name)"
