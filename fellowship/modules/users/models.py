# Supabase tables: users, auth.users; storage bucket: profile-photos
# This file documents the expected database schema
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

users:
- id: uuid (primary key, references auth.users.id ON DELETE CASCADE)
- display_name: text (nullable)
- photo_url: text (nullable)
- locale: text (not null, default: 'en') - values: en, ko
- created_at: timestamp (default: now())
- updated_at: timestamp (default: now())

Storage bucket "profile-photos": objects keyed "<user_id>/<file name>".
"""
