# Supabase table: room_participants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- room_id: uuid (foreign key to rooms.id, not null)
- profile_id: uuid (foreign key to profiles.id, not null)
- user_id: uuid (nullable) - set for registered users
- guest_id: uuid (nullable) - set for guests; exactly one of user_id / guest_id is set
- is_moderator: boolean (default: false)
- is_speaker: boolean (default: false)
- is_muted: boolean (default: true)
- has_raised_hand: boolean (default: false)
- is_active: boolean (default: true) - false after leaving; the row is reused on rejoin
- status: text (nullable) - video presence: online | offline
- joined_at: timestamp (default: now())
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Unique constraints: (room_id, user_id), (room_id, guest_id)
"""
