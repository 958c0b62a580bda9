"""In-memory ledger of outstanding password-recovery OTP challenges"""
from __future__ import annotations

import hmac
import logging
import secrets
import string
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from homestock.errors.exceptions import InternalFailureException, InvalidOtpException, OtpExpiredException

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

# Attempts at drawing a code that no other outstanding challenge holds
MAX_CODE_ATTEMPTS = 100


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp(length: int = 6) -> str:
    """Return a random numeric OTP drawn from the ``secrets`` CSPRNG."""
    return "".join(secrets.choice(string.digits) for _ in range(length))


@dataclass
class OtpChallenge:
    email: str
    code: str
    issued_at: datetime
    expires_at: datetime
    verified: bool = False

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


class OtpLedger:
    """
    Maps a normalized email to its single outstanding OTP challenge.

    Lifecycle
    ---------
    1. ``issue``   -> new unverified challenge, replacing any previous one.
    2. ``verify``  -> challenge marked verified when the code matches in time.
    3. ``consume`` -> challenge removed after a successful password reset.
    Expired challenges are dropped whenever they are read, and by the
    background sweeper started with ``start_sweeper``.

    Nothing here is persisted; the ledger lives as long as the app that owns it.
    """

    def __init__(
        self,
        ttl: timedelta = timedelta(minutes=5),
        code_length: int = 6,
        clock: Optional[Clock] = None,
    ):
        self.ttl = ttl
        self.code_length = code_length
        self._clock = clock or utcnow
        self._challenges: Dict[str, OtpChallenge] = {}
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._sweeper: Optional[threading.Thread] = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    def now(self) -> datetime:
        return self._clock()

    # ── lifecycle operations ──────────────────────────────────────────────────

    def issue(self, email: str) -> OtpChallenge:
        """Create a fresh challenge for *email*, discarding any earlier one."""
        with self._lock:
            outstanding = {c.code for c in self._challenges.values()}
            code = self._unique_code(outstanding)

            issued_at = self._clock()
            challenge = OtpChallenge(
                email=email,
                code=code,
                issued_at=issued_at,
                expires_at=issued_at + self.ttl,
            )
            self._challenges[email] = challenge
            return challenge

    def _unique_code(self, outstanding) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_otp(self.code_length)
            if code not in outstanding:
                return code
        logger.error(
            "No free %d-digit OTP after %d attempts (%d outstanding)",
            self.code_length, MAX_CODE_ATTEMPTS, len(outstanding),
        )
        raise InternalFailureException(error="Could not issue a unique OTP, please retry")

    def verify(self, email: str, code: str) -> OtpChallenge:
        """
        Mark the challenge for *email* verified if *code* matches exactly.

        Raises OtpExpiredException (and drops the challenge) once the
        challenge is past its expiry, InvalidOtpException when there is no
        challenge or the code does not match.
        """
        presented = code or ""
        with self._lock:
            challenge = self._challenges.get(email)
            if challenge is None:
                raise InvalidOtpException()

            if challenge.is_expired(self._clock()):
                del self._challenges[email]
                raise OtpExpiredException()

            if not hmac.compare_digest(challenge.code.encode(), presented.encode()):
                raise InvalidOtpException()

            challenge.verified = True
            return challenge

    def is_verified(self, email: str) -> bool:
        """True only for an unexpired, verified challenge."""
        with self._lock:
            challenge = self._get_live(email)
            return challenge is not None and challenge.verified

    def get(self, email: str) -> Optional[OtpChallenge]:
        with self._lock:
            return self._get_live(email)

    def consume(self, email: str) -> bool:
        with self._lock:
            return self._challenges.pop(email, None) is not None

    def _get_live(self, email: str) -> Optional[OtpChallenge]:
        # Caller holds self._lock
        challenge = self._challenges.get(email)
        if challenge is not None and challenge.is_expired(self._clock()):
            del self._challenges[email]
            return None
        return challenge

    # ── expiry sweep ──────────────────────────────────────────────────────────

    def sweep_expired(self) -> int:
        """Drop every expired challenge; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [email for email, c in self._challenges.items() if c.is_expired(now)]
            for email in expired:
                del self._challenges[email]
        if expired:
            logger.debug("Swept %d expired OTP challenge(s)", len(expired))
        return len(expired)

    def start_sweeper(self, interval_seconds: float = 60.0) -> None:
        if self._sweeper is not None and self._sweeper.is_alive():
            return
        self._stop_event.clear()

        def _run():
            while not self._stop_event.wait(interval_seconds):
                try:
                    self.sweep_expired()
                except Exception:
                    logger.exception("OTP sweep failed")

        self._sweeper = threading.Thread(target=_run, name="otp-ledger-sweeper", daemon=True)
        self._sweeper.start()

    def stop_sweeper(self, timeout: float = 5.0) -> None:
        self._stop_event.set()
        if self._sweeper is not None:
            self._sweeper.join(timeout)
            self._sweeper = None
