# Supabase tables: messages, event_chat_exclusions, mentions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

messages:
- id: uuid (primary key)
- tenant_id: uuid (foreign key to tenants.id, not null)
- conversation_id: uuid (foreign key to conversations.id ON DELETE CASCADE, not null)
- sender_id: uuid (foreign key to memberships.id ON DELETE SET NULL)
- parent_id: uuid (foreign key to messages.id, nullable) - thread parent, one level only
- quoted_message_id: uuid (foreign key to messages.id ON DELETE SET NULL, nullable)
- content: text - plain text, or "filename|url" for image/video/file
- content_type: text (not null, default: 'text') - values: text, image, video, file, prayer_card, system
- is_event_chat: boolean (not null, default: false) - true iff exclusion rows exist
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
- deleted_at: timestamp (nullable) - soft delete
- index on (conversation_id, created_at desc)

event_chat_exclusions:
- id: uuid (primary key)
- message_id: uuid (foreign key to messages.id ON DELETE CASCADE, not null)
- excluded_membership_id: uuid (foreign key to memberships.id ON DELETE CASCADE, not null)
- tenant_id: uuid (foreign key to tenants.id, not null)
- created_at: timestamp (default: now())
- unique constraint on (message_id, excluded_membership_id)
- index on (excluded_membership_id, message_id) for the per-reader lookup

Replies carry no exclusion rows of their own; a reply is hidden from whoever
is excluded from its parent.

mentions:
- id: uuid (primary key)
- message_id: uuid (foreign key to messages.id ON DELETE CASCADE, not null)
- membership_id: uuid (foreign key to memberships.id ON DELETE CASCADE, not null)
- tenant_id: uuid (foreign key to tenants.id, not null)
- created_at: timestamp (default: now())
"""
