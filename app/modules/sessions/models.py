# Supabase table: sessions
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure (camelCase column names):

sessions:
- id: uuid (primary key, generated by the backend so the channel can derive from it)
- practitionerId: uuid (foreign key to profiles.id, not null)
- guestId: uuid (foreign key to profiles.id, not null)
- isGroup: boolean (not null, default: false)
- phase: text (not null, default: 'waiting') - values: waiting, live, ended
  ('waiting_room' and 'room_timer' may appear on old rows; read as waiting)
- waitingSeconds: integer (not null, default: 60)
- liveSeconds: integer (not null, default: 900)
- waitingStartedAt: timestamptz (nullable)
- liveStartedAt: timestamptz (nullable)
- endedAt: timestamptz (nullable)
- acknowledgedPractitioner: boolean (not null, default: false)
- readyPractitioner: boolean (not null, default: false)
- readyGuest: boolean (not null, default: false)
- agoraChannel: text (nullable) - 'sess_' + first 8 chars of id
- agoraUidGuest: text (nullable) - 'g_' + guestId
- agoraUidPractitioner: text (nullable) - 'p_' + practitionerId
- createdAt: timestamptz (default: now())
- updatedAt: timestamptz (default: now())
"""
