# Supabase tables: attachments
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

attachments:
- id: uuid (primary key)
- tenant_id: uuid (foreign key to tenants.id, not null)
- message_id: uuid (foreign key to messages.id ON DELETE CASCADE, nullable)
- prayer_card_id: uuid (foreign key to prayer_cards.id ON DELETE CASCADE, nullable)
- url: text (not null)
- file_name: text (not null)
- file_type: text (not null) - MIME type; the gallery reads "image/%"
- file_size: integer (not null) - bytes
- created_at: timestamp (default: now())
- exactly one of message_id / prayer_card_id is set
"""
