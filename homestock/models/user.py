"""User model with auth-origin invariants"""
import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum
from sqlalchemy.orm import validates
from sqlalchemy.sql import func

from homestock.db.base import Base

GOOGLE_FALLBACK_NAME = "Google User"


class AuthOrigin(str, Enum):
    """Which login method an account may use"""
    PASSWORD = "local"
    GOOGLE = "google"


def normalize_email(email: Optional[str]) -> str:
    """Emails are stored and looked up stripped and lower-cased"""
    return (email or "").strip().lower()


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """
    Durable account record.

    Exactly one of ``hashed_password`` / ``google_id`` is meaningful, chosen
    by ``auth_provider``, and ``auth_provider`` never changes after creation.
    Both rules are enforced by the validators below, so any code path that
    tries to convert a password account into a Google one (or the reverse)
    fails before it reaches the database.
    """
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=True)  # password accounts only

    # OAuth fields
    google_id = Column(String(255), unique=True, nullable=True, index=True)
    auth_provider = Column(SQLEnum(AuthOrigin), nullable=False, default=AuthOrigin.PASSWORD)
    profile_pic = Column(String(1024), nullable=False, default="")

    is_admin = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<User(id={self.id!r}, email={self.email!r}, auth_provider={self.auth_provider})>"

    # ── factories ──────────────────────────────────────────────

    @classmethod
    def new_password_account(cls, email: str, full_name: str, hashed_password: str) -> "User":
        user = cls(id=_new_user_id(), auth_provider=AuthOrigin.PASSWORD)
        user.email = email
        user.full_name = full_name
        user.hashed_password = hashed_password
        user.profile_pic = ""
        user.is_admin = False
        return user

    @classmethod
    def new_google_account(
        cls,
        email: str,
        google_id: str,
        full_name: Optional[str] = None,
        profile_pic: Optional[str] = None,
    ) -> "User":
        user = cls(id=_new_user_id(), auth_provider=AuthOrigin.GOOGLE)
        user.email = email
        user.google_id = google_id
        user.full_name = (full_name or "").strip() or GOOGLE_FALLBACK_NAME
        user.profile_pic = profile_pic or ""
        user.is_admin = False
        return user

    # ── invariants ─────────────────────────────────────────────

    @validates("email")
    def _validate_email(self, key, value):
        value = normalize_email(value)
        if not value:
            raise ValueError("email is required")
        return value

    @validates("auth_provider")
    def _validate_auth_provider(self, key, value):
        value = AuthOrigin(value)
        current = self.auth_provider
        if current is not None and AuthOrigin(current) != value:
            raise ValueError("auth_provider is immutable once set")
        if value == AuthOrigin.GOOGLE and self.hashed_password:
            raise ValueError("Google accounts cannot hold a password hash")
        if value == AuthOrigin.PASSWORD and self.google_id:
            raise ValueError("password accounts cannot hold a google_id")
        return value

    @validates("hashed_password")
    def _validate_hashed_password(self, key, value):
        if value and self.auth_provider == AuthOrigin.GOOGLE:
            raise ValueError("Google accounts cannot hold a password hash")
        return value

    @validates("google_id")
    def _validate_google_id(self, key, value):
        if value and self.auth_provider == AuthOrigin.PASSWORD:
            raise ValueError("password accounts cannot hold a google_id")
        return value

    # ── helpers ────────────────────────────────────────────────

    @property
    def is_google_user(self) -> bool:
        return self.auth_provider == AuthOrigin.GOOGLE

    @property
    def uses_password(self) -> bool:
        return self.auth_provider == AuthOrigin.PASSWORD

    def mark_login(self, when: datetime) -> None:
        self.last_login = when

    def refresh_profile_pic(self, url: Optional[str]) -> bool:
        """Adopt the provider's current avatar; returns True if it changed"""
        if url and self.profile_pic != url:
            self.profile_pic = url
            return True
        return False
