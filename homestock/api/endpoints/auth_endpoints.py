"""Authentication endpoints"""
import asyncio
import logging

from fastapi import APIRouter, Depends, status

from homestock.core.dependencies import get_auth_service
from homestock.middleware.auth import get_current_user
from homestock.models.user import User
from homestock.schemas.auth_schemas import (
    ForgotPasswordRequest,
    GoogleLoginRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ResetPasswordRequest,
    UserResponse,
    VerifyOtpRequest,
)
from homestock.services.auth_service import AuthService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(body: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    """
    ## Login with email and password

    **Role:** Public — no authentication required.

    ### Required fields (JSON body)
    | Field    | Type   | Description      |
    |----------|--------|------------------|
    | email    | string | Account email    |
    | password | string | Account password |

    ### Response
    ```json
    { "token": "<JWT>", "message": "Login successful!", "user": { ...UserResponse } }
    ```

    ### Errors
    - HTTP 404 → no account with this email.
    - HTTP 400 → account was created with Google, or the password is wrong.

    The token is valid for one hour. Send it as `Authorization: Bearer <token>`.
    """
    result = await asyncio.to_thread(auth.login_with_password, body.email, body.password)
    return LoginResponse(
        token=result.token,
        message="Login successful!",
        user=UserResponse.model_validate(result.user),
    )


@router.post("/google-login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def google_login(body: GoogleLoginRequest, auth: AuthService = Depends(get_auth_service)):
    """
    ## Sign in / sign up via Google

    **Role:** Public — no authentication required.

    Accepts the Google **ID token** delivered to the frontend by the Google
    Sign-In button (`credential` in the `google.accounts.id` callback). The
    token is verified server-side; the matching Google account is logged in,
    or created on first use.

    ### Errors
    - HTTP 401 → the credential could not be verified.
    - HTTP 400 → the email belongs to a password account, the token carries
      no email, or Google Sign-In is not configured.
    """
    result = await asyncio.to_thread(auth.login_with_identity_provider, body.credential)
    return LoginResponse(
        token=result.token,
        message="Google login successful!",
        user=UserResponse.model_validate(result.user),
    )


@router.post("/forgot-password", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def forgot_password(body: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """
    ## Request a password-reset OTP (Step 1 of 3)

    Emails a 6-digit code valid for 5 minutes. Requesting again replaces the
    previous code.

    ### Errors
    - HTTP 404 → no account with this email.
    - HTTP 400 → Google accounts have no password to reset.
    - HTTP 500 → the email could not be sent; request again.
    """
    await asyncio.to_thread(auth.request_password_recovery, body.email)
    return MessageResponse(message="OTP sent successfully!")


@router.post("/verify-otp", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def verify_otp(body: VerifyOtpRequest, auth: AuthService = Depends(get_auth_service)):
    """
    ## Verify the password-reset OTP (Step 2 of 3)

    ### Errors
    - HTTP 400 → "Invalid OTP!" or "OTP has expired!" (request a new one).
    """
    await asyncio.to_thread(auth.verify_otp, body.email, body.otp)
    return MessageResponse(message="OTP verified successfully!")


@router.post("/reset-password", response_model=MessageResponse, status_code=status.HTTP_200_OK)
async def reset_password(body: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    """
    ## Set a new password (Step 3 of 3)

    Requires a verified OTP for the same email. The OTP is single-use; no
    token is returned, so the client logs in with the new password afterwards.

    ### Errors
    - HTTP 404 → no account with this email.
    - HTTP 400 → Google account, or no verified OTP.
    """
    await asyncio.to_thread(auth.reset_password, body.email, body.new_password)
    return MessageResponse(message="Password reset successfully!")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """
    ## Get the currently authenticated user's profile

    **Auth:** `Authorization: Bearer <token>` header required.

    - HTTP 401 → token missing, invalid or expired.
    """
    return UserResponse.model_validate(current_user)
