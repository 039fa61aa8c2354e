# Supabase tables: rooms, room_analytics
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

rooms:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- is_private: boolean (default: false) - private rooms are hidden from the directory
- has_camera: boolean (default: false)
- topics: text[] (default: '{}')
- theme: jsonb (nullable) - {background, color, preset}; background is a color or an image URL
- created_by: uuid (foreign key to profiles.id, not null) - users or guests
- is_active: boolean (default: true) - false once the room has ended
- last_active_at: timestamp (nullable) - bumped on join and on every message
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

room_analytics (one row per room, unique on room_id):
- id: uuid (primary key)
- room_id: uuid (foreign key to rooms.id on delete cascade, unique)
- total_messages: integer
- total_participants: integer
- active_participants: integer
- last_message_at: timestamp (nullable)
- last_participant_joined_at: timestamp (nullable)
- last_active_at: timestamp (nullable)
- is_trending: boolean
- trending_score: float
- updated_at: timestamp
"""
