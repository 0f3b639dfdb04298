# Supabase Auth
# This module uses Supabase's built-in authentication system
# Supabase Auth handles:
# - User registration (auth.users table)
# - User login and session management
# - JWT token generation and validation
# - Admin deletion of the identity record (service role only)

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users
- auth.admin.delete_user() - Remove the identity record

public.users (id references auth.users.id ON DELETE CASCADE) holds the
profile; it is created from the display_name/locale user_metadata passed at
sign-up.
"""
