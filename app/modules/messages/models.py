# Supabase table: room_messages
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- room_id: uuid (foreign key to rooms.id, not null)
- user_id: uuid (nullable) - author when a registered user
- guest_id: uuid (nullable) - author when a guest
- content: text (not null)
- created_at: timestamp (default: now())

Realtime: INSERT and DELETE are published to the room's change feed.
"""
