# Supabase tables: memberships, ministry_memberships
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

memberships:
- id: uuid (primary key)
- user_id: uuid (foreign key to users.id ON DELETE CASCADE, not null)
- tenant_id: uuid (foreign key to tenants.id ON DELETE CASCADE, not null)
- role: text (not null, default: 'member') - values: member, small_group_leader, zone_leader, pastor, admin
- status: text (not null, default: 'active') - values: invited, active, suspended, removed
- small_group_id: uuid (foreign key to small_groups.id ON DELETE SET NULL, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())
- unique constraint on (user_id, tenant_id)

Deleting a membership cascades to conversation_participants,
event_chat_exclusions, mentions, ministry_memberships, prayer_card_recipients and
pastoral_journal_comments; authored messages, prayer cards and journals keep
their rows with the author reference set to NULL.

ministry_memberships:
- id: uuid (primary key)
- membership_id: uuid (foreign key to memberships.id ON DELETE CASCADE)
- ministry_id: uuid (foreign key to ministries.id ON DELETE CASCADE)
- unique constraint on (membership_id, ministry_id)
"""
