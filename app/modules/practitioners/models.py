# Supabase table: practitioners
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure (camelCase column names):

practitioners:
- userId: uuid (primary key, references profiles.id on delete cascade)
- isOnline: boolean (not null, default: false) - presence, set by the practitioner
- inService: boolean (not null, default: false) - owned by the session state machine
- rating: numeric(2,1) (default: '0.0')
- reviewCount: integer (default: 0)
- createdAt: timestamptz (default: now())
- updatedAt: timestamptz (default: now())

inService flips false -> true only through a conditional update
(... where inService = false), which is what serialises concurrent accepts.
"""
