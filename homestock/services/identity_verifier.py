"""Google ID-token verification"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import requests
from google.auth.exceptions import GoogleAuthError
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from homestock.errors.exceptions import BadRequestException, IdentityVerificationFailedException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdentityClaims:
    subject: str
    email: Optional[str]
    name: Optional[str] = None
    picture: Optional[str] = None


class IdentityVerifier(Protocol):
    def verify(self, credential: str) -> IdentityClaims:
        """Return verified claims, or raise IdentityVerificationFailedException."""
        ...


class _TimeoutRequest(google_requests.Request):
    """google-auth transport that applies a default timeout to every call."""

    def __init__(self, timeout: float, session: Optional[requests.Session] = None):
        super().__init__(session=session)
        self._default_timeout = timeout

    def __call__(self, url, method="GET", body=None, headers=None, timeout=None, **kwargs):
        return super().__call__(
            url,
            method=method,
            body=body,
            headers=headers,
            timeout=timeout or self._default_timeout,
            **kwargs,
        )


def _full_name(info: dict) -> Optional[str]:
    name = info.get("name")
    if name:
        return name
    joined = f"{info.get('given_name') or ''} {info.get('family_name') or ''}".strip()
    return joined or None


class GoogleIdentityVerifier:
    """Verifies Google Sign-In ID tokens against the configured client id."""

    def __init__(self, client_id: str, timeout_seconds: float = 10.0):
        self.client_id = client_id
        self._request = _TimeoutRequest(timeout_seconds)

    def verify(self, credential: str) -> IdentityClaims:
        if not self.client_id:
            raise BadRequestException("Google Sign-In is not configured on this server.")
        try:
            idinfo = google_id_token.verify_oauth2_token(
                credential,
                self._request,
                self.client_id,
            )
        except (ValueError, GoogleAuthError) as exc:
            logger.info(f"[GoogleLogin] ID token rejected: {exc}")
            raise IdentityVerificationFailedException(error=str(exc)) from exc

        if idinfo.get("email_verified") is False:
            raise IdentityVerificationFailedException(error="Google account email is not verified.")

        subject = idinfo.get("sub")
        if not subject:
            raise IdentityVerificationFailedException(error="Google ID token has no subject.")

        return IdentityClaims(
            subject=str(subject),
            email=idinfo.get("email"),
            name=_full_name(idinfo),
            picture=idinfo.get("picture"),
        )
