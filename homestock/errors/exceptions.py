"""Custom exceptions for error handling"""
from typing import Optional

from fastapi import status


class AppException(Exception):
    """Base exception class for all application errors.

    Subclasses only override ``status_code`` and the default ``message``;
    the HTTP rendering lives in ``homestock.errors.handlers``.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"
    headers: Optional[dict] = None

    def __init__(self, message: str = None, error: str = None):
        self.message = message or self.message
        self.error = error
        super().__init__(self.message)


class BadRequestException(AppException):
    """400 Bad Request"""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Bad request"


class UnauthorizedException(AppException):
    """401 Unauthorized"""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Not authenticated"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenException(AppException):
    """403 Forbidden"""
    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden: Insufficient permissions"


class NotFoundException(AppException):
    """404 Not Found"""
    status_code = status.HTTP_404_NOT_FOUND
    message = "Resource not found"


class InternalServerException(AppException):
    """500 Internal Server Error"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    message = "Internal server error"


# ── authentication failures ───────────────────────────────────────────────────

class AccountNotFoundException(NotFoundException):
    message = "User not found!"


class AccountAlreadyExistsException(BadRequestException):
    message = "User already exists"


class WrongAuthMethodException(BadRequestException):
    message = "This account uses a different sign-in method."


class InvalidCredentialException(BadRequestException):
    message = "Incorrect password!"


class IdentityVerificationFailedException(UnauthorizedException):
    message = "Google login failed. Please try again."


class MissingEmailClaimException(BadRequestException):
    message = "Email is missing from Google response"


class RecoveryNotSupportedException(BadRequestException):
    message = "Google-authenticated users cannot reset password via OTP"


class InvalidOtpException(BadRequestException):
    message = "Invalid OTP!"


class OtpExpiredException(BadRequestException):
    message = "OTP has expired!"


class OtpNotVerifiedException(BadRequestException):
    message = "OTP not verified!"


class NotificationDeliveryFailedException(InternalServerException):
    message = "Error sending OTP"


class InternalFailureException(InternalServerException):
    message = "An unexpected error occurred. Please try again later."
