"""Authentication and user schemas"""
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    """Sanitized account projection; never carries the password hash"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    full_name: Optional[str] = Field(None, serialization_alias="fullName")
    email: str
    is_admin: bool = Field(False, serialization_alias="isAdmin")
    last_login: Optional[datetime] = Field(None, serialization_alias="lastLogin")
    profile_pic: str = Field("", serialization_alias="profilePic")
    is_google_user: bool = Field(False, serialization_alias="isGoogleUser")


class LoginRequest(BaseModel):
    """Schema for password login"""
    email: EmailStr
    password: str = Field(..., min_length=1)


class GoogleLoginRequest(BaseModel):
    """Schema for Google Sign-In via ID token from frontend"""
    credential: str = Field(..., min_length=1, description="Google ID token obtained from frontend Google Sign-In")


class LoginResponse(BaseModel):
    """Token response schema"""
    token: str
    message: str
    user: UserResponse


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class VerifyOtpRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12)


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    new_password: str = Field(..., alias="newPassword", min_length=6, max_length=100)


class RegisterRequest(BaseModel):
    """Schema for creating a new password account"""
    model_config = ConfigDict(populate_by_name=True)

    full_name: str = Field(..., alias="fullName", min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=100)


class RegisterResponse(BaseModel):
    id: str
    full_name: Optional[str] = Field(None, serialization_alias="fullName")
    email: str
    token: str


class AdminUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_admin: bool = Field(..., alias="isAdmin")


class MessageResponse(BaseModel):
    message: str


class TokenData(BaseModel):
    """Token data schema for JWT payload"""
    user_id: str
    email: Optional[str] = None
    is_admin: bool = False
