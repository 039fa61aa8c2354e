# Supabase table: notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- profile_id: uuid (foreign key to profiles.id, not null) - users and guests alike
- title: text (not null)
- body: text (not null)
- type: text (not null, default: 'general') - e.g. promoted_to_speaker, removed_from_room, room_invite
- data: jsonb (nullable) - e.g. {"room_id": "..."}
- read: boolean (default: false)
- created_at: timestamp (default: now())
"""
