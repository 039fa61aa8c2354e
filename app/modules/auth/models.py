# Supabase Auth + guest profiles
# Registered users live in Supabase's auth.users table; every visitor, registered
# or guest, has a row in public.profiles (see app/modules/profiles/models.py).

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

Guests never touch Supabase Auth. A guest is a profiles row with is_guest = true
whose uuid the client keeps (browser localStorage) and sends back in the
X-Guest-Id header. Both kinds of visitor are resolved by
app.core.dependencies.get_current_actor into the same actor dict:

- id: profile id (auth user id for users, guest uuid for guests)
- user_id: auth user id or None
- guest_id: guest uuid or None
- is_guest: bool
- email: str or None
- app_metadata: dict (server-side flags, e.g. {"type": "super_user"})
- profile: the profiles row
"""
