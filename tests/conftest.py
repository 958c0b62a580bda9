import os
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Configure the app before anything imports homestock.core.config
_test_tmp_dir = tempfile.mkdtemp(prefix="homestock_test_")
os.environ["DATABASE_URL"] = f"sqlite:///{_test_tmp_dir}/test.db"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only-do-not-use-in-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["LOG_FILE"] = f"{_test_tmp_dir}/logs.txt"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["OTP_SWEEP_INTERVAL_SECONDS"] = "3600"
os.environ["SUPER_ADMIN_EMAIL"] = ""
os.environ["SUPER_ADMIN_PASSWORD"] = ""

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402

from homestock.core.locks import KeyedLocks  # noqa: E402
from homestock.db.base import Base  # noqa: E402
from homestock.db.session import SessionLocal, engine  # noqa: E402
from homestock.errors.exceptions import IdentityVerificationFailedException  # noqa: E402
from homestock.models.user import User  # noqa: E402
from homestock.services.account_store import AccountStore  # noqa: E402
from homestock.services.auth_service import AuthService, get_password_hash  # noqa: E402
from homestock.services.identity_verifier import IdentityClaims  # noqa: E402
from homestock.services.otp_ledger import OtpLedger  # noqa: E402
from homestock.services.session_issuer import SessionIssuer  # noqa: E402

TEST_SECRET = os.environ["JWT_SECRET"]


class FakeClock:
    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeVerifier:
    """Maps credential strings to claims; anything else fails verification."""

    def __init__(self):
        self.claims = {}
        self.calls = []

    def add(self, credential: str, **claims) -> None:
        self.claims[credential] = IdentityClaims(**claims)

    def verify(self, credential: str) -> IdentityClaims:
        self.calls.append(credential)
        if credential not in self.claims:
            raise IdentityVerificationFailedException(error="unknown credential")
        return self.claims[credential]


class FakeMailer:
    def __init__(self):
        self.sent = []
        self.fail = False

    def send_password_reset_otp(self, to: str, otp: str, expires_minutes: int) -> bool:
        if self.fail:
            return False
        self.sent.append((to, otp, expires_minutes))
        return True

    @property
    def last_code(self) -> str:
        return self.sent[-1][1]


@pytest.fixture(autouse=True)
def fresh_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session):
    return AccountStore(db_session)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ledger(clock):
    return OtpLedger(ttl=timedelta(minutes=5), code_length=6, clock=clock)


@pytest.fixture
def verifier():
    return FakeVerifier()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def login_issuer():
    return SessionIssuer(TEST_SECRET, timedelta(hours=1))


@pytest.fixture
def registration_issuer():
    return SessionIssuer(TEST_SECRET, timedelta(days=7))


@pytest.fixture
def auth_service(store, ledger, verifier, mailer, login_issuer, registration_issuer, clock):
    return AuthService(
        store=store,
        ledger=ledger,
        locks=KeyedLocks(timeout_seconds=5),
        verifier=verifier,
        mailer=mailer,
        login_issuer=login_issuer,
        registration_issuer=registration_issuer,
        clock=clock,
    )


@pytest.fixture
def make_password_user(store):
    def _make(email="a@x.com", password="secret-pw", full_name="Alice", is_admin=False) -> User:
        user = User.new_password_account(email, full_name, get_password_hash(password))
        user.is_admin = is_admin
        return store.create(user)
    return _make


@pytest.fixture
def make_google_user(store):
    def _make(email="g@x.com", google_id="g-123", full_name="Gina", profile_pic="https://img/old.png") -> User:
        return store.create(User.new_google_account(email, google_id, full_name, profile_pic))
    return _make
