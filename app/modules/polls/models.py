# Supabase tables: polls, poll_votes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

polls:
- id: uuid (primary key)
- room_id: uuid (foreign key to rooms.id, not null)
- created_by: uuid (foreign key to profiles.id, not null)
- question: text (not null)
- options: jsonb (not null) - ordered list of option strings
- is_closed: boolean (default: false)
- created_at: timestamp (default: now())

poll_votes:
- id: uuid (primary key)
- poll_id: uuid (foreign key to polls.id, not null)
- profile_id: uuid (foreign key to profiles.id, not null) - users and guests vote alike
- option_index: integer (not null) - index into polls.options
- created_at: timestamp (default: now())

Unique constraint: (poll_id, profile_id) - a second vote fails with 23505
"""
