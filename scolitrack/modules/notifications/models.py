# Supabase table: push_subscriptions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

push_subscriptions:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id, on delete cascade)
- endpoint: text (not null, unique) - browser push endpoint
- p256dh: text (not null)
- auth: text (not null)
- created_at: timestamptz (default: now())
- updated_at: timestamptz (nullable)

Delivery is done by a separate web-push worker from the payloads prepared here.
"""

DEFAULT_ICON = "/icons/PWA/android/android-launchericon-144-144.png"
DEFAULT_BADGE = "/icons/PWA/android/android-launchericon-48-48.png"
DEFAULT_VIBRATE_PATTERN = [400, 100, 200]
DEFAULT_ACTIONS = [
    {"action": "open", "title": "Ouvrir"},
    {"action": "close", "title": "Fermer"},
]
