# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key) - auth.users.id for registered users, random uuid4 for guests
- username: text (unique, nullable)
- name: text (nullable)
- display_name: text (nullable)
- avatar_url: text (nullable)
- bio: text (nullable)
- email: text (nullable, null for guests)
- is_guest: boolean (default: false)
- theme_color: text (nullable)
- onboarding_completed: boolean (default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
