"""Error handling module"""
from homestock.errors.exceptions import (
    AppException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    InternalServerException,
    AccountNotFoundException,
    AccountAlreadyExistsException,
    WrongAuthMethodException,
    InvalidCredentialException,
    IdentityVerificationFailedException,
    MissingEmailClaimException,
    RecoveryNotSupportedException,
    InvalidOtpException,
    OtpExpiredException,
    OtpNotVerifiedException,
    NotificationDeliveryFailedException,
    InternalFailureException,
)

__all__ = [
    "AppException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "InternalServerException",
    "AccountNotFoundException",
    "AccountAlreadyExistsException",
    "WrongAuthMethodException",
    "InvalidCredentialException",
    "IdentityVerificationFailedException",
    "MissingEmailClaimException",
    "RecoveryNotSupportedException",
    "InvalidOtpException",
    "OtpExpiredException",
    "OtpNotVerifiedException",
    "NotificationDeliveryFailedException",
    "InternalFailureException",
]
