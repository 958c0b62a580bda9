"""Main FastAPI application"""
from datetime import timedelta
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError

from homestock.core.config import settings
from homestock.core.locks import KeyedLocks
from homestock.utils.logger import setup_file_logging
from homestock.api.api import api_router
from homestock.db.init_db import init_db, create_initial_data
from homestock.errors.exceptions import AppException
from homestock.errors.handlers import (
    app_exception_handler,
    validation_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler
)
from homestock.services.identity_verifier import GoogleIdentityVerifier
from homestock.services.otp_ledger import OtpLedger
from homestock.services.session_issuer import login_session_issuer, registration_session_issuer

setup_file_logging(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="HomeStock authentication: password and Google login, OTP password recovery, session tokens",
    version=settings.PROJECT_VERSION,
    debug=settings.DEBUG,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.on_event("startup")
async def startup_event():
    """Build app-scoped auth state, initialize database, log startup"""
    # Fails fast when JWT_SECRET is missing
    app.state.login_issuer = login_session_issuer()
    app.state.registration_issuer = registration_session_issuer()

    app.state.account_locks = KeyedLocks(timeout_seconds=settings.ACCOUNT_LOCK_TIMEOUT_SECONDS)
    app.state.identity_verifier = GoogleIdentityVerifier(
        settings.GOOGLE_CLIENT_ID,
        timeout_seconds=settings.GOOGLE_VERIFY_TIMEOUT_SECONDS,
    )
    app.state.otp_ledger = OtpLedger(
        ttl=timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        code_length=settings.OTP_LENGTH,
    )
    app.state.otp_ledger.start_sweeper(settings.OTP_SWEEP_INTERVAL_SECONDS)

    try:
        init_db()
        create_initial_data()
        logger.warning(f"{settings.PROJECT_NAME} STARTED ({settings.ENVIRONMENT}) - Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        logger.warning(f"{settings.PROJECT_NAME} STARTED - Database initialization failed, but API is running")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background work and log application shutdown"""
    ledger = getattr(app.state, "otp_ledger", None)
    if ledger is not None:
        ledger.stop_sweeper()
    logger.warning(f"{settings.PROJECT_NAME} SHUTDOWN")
