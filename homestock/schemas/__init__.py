"""Request / response schemas"""
from homestock.schemas.auth_schemas import (
    UserResponse,
    LoginRequest,
    GoogleLoginRequest,
    LoginResponse,
    ForgotPasswordRequest,
    VerifyOtpRequest,
    ResetPasswordRequest,
    RegisterRequest,
    RegisterResponse,
    AdminUpdateRequest,
    MessageResponse,
    TokenData,
)

__all__ = [
    "UserResponse",
    "LoginRequest",
    "GoogleLoginRequest",
    "LoginResponse",
    "ForgotPasswordRequest",
    "VerifyOtpRequest",
    "ResetPasswordRequest",
    "RegisterRequest",
    "RegisterResponse",
    "AdminUpdateRequest",
    "MessageResponse",
    "TokenData",
]
