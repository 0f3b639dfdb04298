# Supabase tables: conversations, conversation_participants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

conversations:
- id: uuid (primary key)
- tenant_id: uuid (foreign key to tenants.id, not null)
- type: text (not null) - values: direct, small_group, ministry, church_wide
- name: text (nullable)
- small_group_id: uuid (foreign key to small_groups.id, nullable) - set for small_group
- ministry_id: uuid (foreign key to ministries.id, nullable) - set for ministry
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now()) - bumped on every new message
- index on (tenant_id, updated_at desc)

conversation_participants:
- id: uuid (primary key)
- conversation_id: uuid (foreign key to conversations.id ON DELETE CASCADE)
- membership_id: uuid (foreign key to memberships.id ON DELETE CASCADE)
- last_read_at: timestamp (nullable)
- unique constraint on (conversation_id, membership_id)
"""
