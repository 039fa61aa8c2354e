# Supabase table: activity_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- room_id: uuid (foreign key to rooms.id, nullable) - null for system-wide entries such as cleanup runs
- user_id: uuid (foreign key to profiles.id, nullable)
- guest_id: uuid (foreign key to profiles.id, nullable)
- action: text (not null) - e.g. room_created, joined, left, raised_hand, promoted, kicked, poll_created, file_uploaded
- details: jsonb (nullable)
- created_at: timestamp (default: now())
"""
