"""Authentication service: password hashing, logins, and OTP password recovery"""
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
import logging

from passlib.context import CryptContext

from homestock.core.config import settings
from homestock.core.locks import KeyedLocks, LockTimeoutError
from homestock.errors.exceptions import (
    AccountAlreadyExistsException,
    AccountNotFoundException,
    AppException,
    InternalFailureException,
    InvalidCredentialException,
    MissingEmailClaimException,
    NotificationDeliveryFailedException,
    OtpNotVerifiedException,
    RecoveryNotSupportedException,
    WrongAuthMethodException,
)
from homestock.models.user import User, normalize_email
from homestock.services.account_store import AccountStore
from homestock.services.identity_verifier import IdentityVerifier
from homestock.services.otp_ledger import OtpLedger
from homestock.services.session_issuer import SessionIssuer
from homestock.utils.email import Mailer
from homestock.utils.logger import log_auth_event

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a hashed password"""
    if not hashed_password:
        return False  # Google-only users have no password
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using salted bcrypt"""
    return pwd_context.hash(password)


@dataclass
class LoginResult:
    token: str
    user: User
    created: bool = False


class AuthService:
    """
    Orchestrates password login, Google login, registration and the
    OTP-based password recovery flow.

    Account reads/writes and OTP ledger transitions for one email are
    serialized through ``locks``. Calls to the identity verifier and the
    mail transport happen outside that lock.
    """

    def __init__(
        self,
        store: AccountStore,
        ledger: OtpLedger,
        locks: KeyedLocks,
        verifier: IdentityVerifier,
        mailer: Mailer,
        login_issuer: SessionIssuer,
        registration_issuer: SessionIssuer,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.ledger = ledger
        self.locks = locks
        self.verifier = verifier
        self.mailer = mailer
        self.login_issuer = login_issuer
        self.registration_issuer = registration_issuer
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @contextmanager
    def _account_lock(self, email: str):
        try:
            with self.locks.hold(email):
                yield
        except LockTimeoutError as exc:
            logger.error(f"Lock timeout for {email}: {exc}")
            raise InternalFailureException(error="Account is busy, please retry") from exc

    def _find_password_account(self, email: str, wrong_method: AppException) -> User:
        user = self.store.find_by_email(email)
        if user is None:
            raise AccountNotFoundException()
        if not user.uses_password:
            raise wrong_method
        return user

    # ── password login ────────────────────────────────────────

    def login_with_password(self, email: str, password: str) -> LoginResult:
        email = normalize_email(email)
        try:
            with self._account_lock(email):
                user = self._find_password_account(
                    email,
                    WrongAuthMethodException("Please login using Google authentication"),
                )
                if not verify_password(password, user.hashed_password):
                    raise InvalidCredentialException()

                user.mark_login(self._clock())
                self.store.save(user)
        except AppException as exc:
            log_auth_event("PASSWORD_LOGIN", user_email=email, error=type(exc).__name__)
            raise

        token = self.login_issuer.issue(user)
        log_auth_event("PASSWORD_LOGIN", user_email=user.email, user_id=user.id)
        return LoginResult(token=token, user=user)

    # ── Google login ──────────────────────────────────────────

    def login_with_identity_provider(self, credential: str) -> LoginResult:
        """
        Log in, or sign up on first use, with a Google ID token.

        The per-email lock is taken on the email from the token claims. An
        account found by its Google subject under a different stored email is
        therefore not locked under its own key; Google accounts have no
        password or OTP state for a concurrent flow to race on.
        """
        try:
            claims = self.verifier.verify(credential)
            email = normalize_email(claims.email)
            if not email:
                raise MissingEmailClaimException()
        except AppException as exc:
            log_auth_event("GOOGLE_LOGIN", error=type(exc).__name__)
            raise

        created = False
        try:
            with self._account_lock(email):
                user = self.store.find_by_email_or_google_id(email, claims.subject)
                if user is None:
                    user = User.new_google_account(
                        email=email,
                        google_id=claims.subject,
                        full_name=claims.name,
                        profile_pic=claims.picture,
                    )
                    user.mark_login(self._clock())
                    user = self.store.create(user)
                    created = True
                elif not user.is_google_user:
                    raise WrongAuthMethodException(
                        "This email is registered with password authentication. "
                        "Please login with your password."
                    )
                else:
                    user.refresh_profile_pic(claims.picture)
                    user.mark_login(self._clock())
                    self.store.save(user)
        except AppException as exc:
            log_auth_event("GOOGLE_LOGIN", user_email=email, error=type(exc).__name__)
            raise

        token = self.login_issuer.issue(user)
        log_auth_event("GOOGLE_SIGNUP" if created else "GOOGLE_LOGIN", user_email=user.email, user_id=user.id)
        return LoginResult(token=token, user=user, created=created)

    # ── registration ──────────────────────────────────────────

    def register(self, full_name: str, email: str, password: str) -> LoginResult:
        email = normalize_email(email)
        with self._account_lock(email):
            if self.store.find_by_email(email) is not None:
                log_auth_event("REGISTER", user_email=email, error="AccountAlreadyExistsException")
                raise AccountAlreadyExistsException()
            user = User.new_password_account(
                email=email,
                full_name=full_name.strip(),
                hashed_password=get_password_hash(password),
            )
            user = self.store.create(user)

        token = self.registration_issuer.issue(user)
        log_auth_event("REGISTER", user_email=user.email, user_id=user.id)
        return LoginResult(token=token, user=user, created=True)

    # ── password recovery ─────────────────────────────────────

    def request_password_recovery(self, email: str) -> None:
        """
        Issue a fresh OTP for *email* and mail it.

        The challenge is recorded before dispatch and stays recorded if
        dispatch fails; the account itself is never touched.
        """
        email = normalize_email(email)
        try:
            with self._account_lock(email):
                user = self._find_password_account(email, RecoveryNotSupportedException())
                challenge = self.ledger.issue(email)
        except AppException as exc:
            log_auth_event("OTP_REQUEST", user_email=email, error=type(exc).__name__)
            raise

        expires_minutes = max(1, int(self.ledger.ttl.total_seconds() // 60))
        if not self.mailer.send_password_reset_otp(user.email, challenge.code, expires_minutes):
            log_auth_event("OTP_REQUEST", user_email=email, user_id=user.id, error="mail dispatch failed")
            raise NotificationDeliveryFailedException(error="The OTP email could not be delivered")

        log_auth_event("OTP_REQUEST", user_email=email, user_id=user.id)

    def verify_otp(self, email: str, code: str) -> None:
        email = normalize_email(email)
        try:
            with self._account_lock(email):
                self.ledger.verify(email, code)
        except AppException as exc:
            log_auth_event("OTP_VERIFY", user_email=email, error=type(exc).__name__)
            raise
        log_auth_event("OTP_VERIFY", user_email=email)

    def reset_password(self, email: str, new_password: str) -> None:
        """
        Replace the password hash, then consume the verified challenge.
        No token is issued; the caller logs in afterwards.
        """
        email = normalize_email(email)
        try:
            with self._account_lock(email):
                user = self._find_password_account(
                    email,
                    RecoveryNotSupportedException("Google-authenticated users cannot reset password"),
                )
                if not self.ledger.is_verified(email):
                    raise OtpNotVerifiedException()

                user.hashed_password = get_password_hash(new_password)
                self.store.save(user)
                self.ledger.consume(email)
        except AppException as exc:
            log_auth_event("PASSWORD_RESET", user_email=email, error=type(exc).__name__)
            raise

        log_auth_event("PASSWORD_RESET", user_email=email, user_id=user.id)
