# Supabase tables: roles, role_privileges (privileges lives in the privileges module)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

roles:
- id: uuid (primary key, default gen_random_uuid())
- name: text (not null, unique) - canonical form, e.g. "SUPER_ADMIN", "TEACHER"
- description: text (nullable)
- is_permanent: boolean (not null, default false) - SUPER_ADMIN, ADMIN and USER
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

role_privileges:
- id: uuid (primary key)
- role_id: uuid (foreign key to roles.id, on delete cascade, not null)
- privilege_id: uuid (foreign key to privileges.id, on delete cascade, not null)
- created_at: timestamptz (default: now())
- unique constraint on (role_id, privilege_id)

users.role_name references roles.name (on update cascade, on delete restrict).

At most one SUPER_ADMIN holder, enforced by the store:
    create unique index users_single_super_admin
        on users ((role_name)) where role_name = 'SUPER_ADMIN';

Atomic replacement of a role's privilege set (single transaction):
    create or replace function replace_role_privileges(p_role_id uuid, p_privilege_ids uuid[])
    returns setof role_privileges
    language plpgsql as $$
    begin
        delete from role_privileges where role_id = p_role_id;
        return query
            insert into role_privileges (role_id, privilege_id)
            select p_role_id, unnest(p_privilege_ids)
            returning *;
    end;
    $$;
"""
