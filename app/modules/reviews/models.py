# Supabase table: reviews
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure (camelCase column names):

reviews:
- id: uuid (primary key, default: gen_random_uuid())
- sessionId: uuid (foreign key to sessions.id on delete cascade, not null, unique)
- guestId: uuid (foreign key to profiles.id, not null)
- practitionerId: uuid (foreign key to profiles.id, not null)
- rating: integer (1..5)
- comment: text (nullable)
- createdAt: timestamptz (default: now())

unique (sessionId) backs the one-review-per-session rule; a second insert fails
with 23505 and is answered with 409.

practitioners.rating / reviewCount are recomputed from this table on every new review.
"""
