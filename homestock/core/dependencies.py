"""FastAPI dependencies"""
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from homestock.core.locks import KeyedLocks
from homestock.db.session import SessionLocal
from homestock.services.account_store import AccountStore
from homestock.services.auth_service import AuthService
from homestock.services.identity_verifier import IdentityVerifier
from homestock.services.otp_ledger import OtpLedger
from homestock.services.session_issuer import SessionIssuer
from homestock.utils.email import Mailer, SmtpMailer


def get_db() -> Generator:
    """
    Database session dependency
    Yields a database session and ensures it's closed after use
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_account_store(db: Session = Depends(get_db)) -> AccountStore:
    return AccountStore(db)


def get_otp_ledger(request: Request) -> OtpLedger:
    return request.app.state.otp_ledger


def get_account_locks(request: Request) -> KeyedLocks:
    return request.app.state.account_locks


def get_login_issuer(request: Request) -> SessionIssuer:
    return request.app.state.login_issuer


def get_registration_issuer(request: Request) -> SessionIssuer:
    return request.app.state.registration_issuer


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_mailer() -> Mailer:
    return SmtpMailer()


def get_auth_service(
    store: AccountStore = Depends(get_account_store),
    ledger: OtpLedger = Depends(get_otp_ledger),
    locks: KeyedLocks = Depends(get_account_locks),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
    mailer: Mailer = Depends(get_mailer),
    login_issuer: SessionIssuer = Depends(get_login_issuer),
    registration_issuer: SessionIssuer = Depends(get_registration_issuer),
) -> AuthService:
    return AuthService(
        store=store,
        ledger=ledger,
        locks=locks,
        verifier=verifier,
        mailer=mailer,
        login_issuer=login_issuer,
        registration_issuer=registration_issuer,
    )
