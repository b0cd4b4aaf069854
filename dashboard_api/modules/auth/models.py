# Supabase Auth
# This module uses Supabase's built-in authentication system as the credential store
# Supabase Auth handles:
# - User registration (auth.users table)
# - User login and session management
# - JWT token generation and validation
# - Password hashing and security

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

The auth user id is stored as user_profiles.external_id; the profile row is
created on the first successful authentication (see users.service.UserService).
"""
