# Supabase Auth
# Accounts live in Supabase's auth.users; this backend owns no credential table.
# The identity a request carries is the auth user id, which is also the
# primary key of public.profiles (and public.practitioners.userId).

"""
Calls made against Supabase Auth:
- auth.sign_up() - signup, on a fresh anon client; fullName goes into user metadata
- auth.sign_in_with_password() - login, on a fresh anon client
- auth.get_user(jwt=...) - bearer validation for every protected route
- auth.admin.sign_out() - logout; revokes refresh tokens, access tokens run to expiry
- auth.admin.list_users() / update_user_by_id() - operator CLI only

An auth user without a profile row is treated as not signed up: login answers 401.
"""
