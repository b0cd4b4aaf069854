import logging
from supabase import Client
from dashboard_api.core.exceptions import ServiceError, ForbiddenError, ValidationError, StorageUnavailable
from dashboard_api.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from dashboard_api.modules.users.schemas import UserResponse
from dashboard_api.modules.users.service import UserService
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.users = UserService(supabase)

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth and create the local profile"""
        try:
            user_metadata = {}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise ValidationError("Failed to register user")

            profile = self.users.upsert_on_sign_in(
                external_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                full_name=register_data.full_name
            )
            return RegisterResponse(
                user_id=profile.id,
                email=profile.email or register_data.email,
                message="User registered successfully"
            )
        except ServiceError:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise ValidationError("User already exists")
            raise StorageUnavailable(f"Registration failed: {error_message}") from e

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            profile = self.users.upsert_on_sign_in(
                external_id=auth_response.user.id,
                email=auth_response.user.email or login_data.email
            )
            if not profile.is_active:
                raise ForbiddenError("Account is deactivated")

            return TokenResponse(
                access_token=auth_response.session.access_token,
                token_type="bearer",
                user_id=profile.id,
                email=profile.email or login_data.email,
                global_role=profile.global_role
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            raise StorageUnavailable(f"Login failed: {error_message}") from e

    def get_current_user(self, token: str) -> UserResponse:
        """
        Resolve the bearer token to the local profile.

        The profile is only created here when missing; sign-in timestamps are
        refreshed by login and register, not by every request.
        """
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            profile = self.users.get_user_by_external_id(user.id)
            if profile is None:
                metadata = user.user_metadata or {}
                profile = self.users.upsert_on_sign_in(
                    external_id=user.id,
                    email=user.email,
                    full_name=metadata.get("full_name")
                )
            if not profile.is_active:
                raise ForbiddenError("Account is deactivated")
            return profile
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {e}")
            return False
