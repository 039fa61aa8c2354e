# Supabase table: files
# Object storage: Supabase Storage bucket "room-files" (or S3 when storage_backend=s3)
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- room_id: uuid (foreign key to rooms.id, not null)
- user_id: uuid (foreign key to profiles.id, not null) - uploader; guests cannot upload
- file_path: text (not null) - object key: {room_id}/{random}_{epoch_ms}.{ext}
- file_name: text (not null) - original filename
- file_size: bigint (not null) - bytes
- mime_type: text (nullable)
- public_url: text (not null)
- created_at: timestamp (default: now())
"""
