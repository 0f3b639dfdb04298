# Supabase tables: device_tokens, notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

device_tokens:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id ON DELETE CASCADE, not null)
- tenant_id: uuid (foreign key to tenants.id ON DELETE CASCADE, not null)
- token: text (not null) - Expo push token
- platform: text (not null) - values: ios, android
- last_used_at: timestamp (default: now())
- created_at: timestamp (default: now())
- unique constraint on (tenant_id, token)

notifications:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id ON DELETE CASCADE, not null)
- tenant_id: uuid (foreign key to tenants.id ON DELETE CASCADE, not null)
- notification_type: text (not null) - values: new_message, mention, prayer_answered, pastoral_journal_*
- payload: jsonb
- sent_at: timestamp (default: now())

Both are leaves owned by the user; one row per tenant.
"""
