# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure (camelCase column names):

profiles:
- id: uuid (primary key, references auth.users.id)
- role: text (not null) - values: guest, practitioner
- displayName: text (not null)
- country: text (nullable)
- bio: text (nullable)
- avatarUrl: text (nullable)
- galleryUrls: text[] (default: empty array)
- videoUrl: text (nullable)
- specialties: text[] (default: empty array)
- createdAt: timestamptz (default: now())
- updatedAt: timestamptz (default: now())

A profile is created by signup and is required for login.
"""
