"""Unit tests for the authentication flows"""
import os
import threading

import pytest
from jose import jwt

from homestock.errors.exceptions import (
    AccountAlreadyExistsException,
    AccountNotFoundException,
    IdentityVerificationFailedException,
    InvalidCredentialException,
    InvalidOtpException,
    MissingEmailClaimException,
    NotificationDeliveryFailedException,
    OtpExpiredException,
    OtpNotVerifiedException,
    RecoveryNotSupportedException,
    WrongAuthMethodException,
)
from homestock.models.user import AuthOrigin, GOOGLE_FALLBACK_NAME
from homestock.services import auth_service as auth_service_module
from homestock.services.auth_service import verify_password


def _claims(token: str) -> dict:
    return jwt.decode(token, os.environ["JWT_SECRET"], algorithms=["HS256"])


class TestPasswordLogin:

    def test_login_success_issues_token_and_marks_login(self, auth_service, make_password_user, clock):
        user = make_password_user(email="a@x.com", password="p")
        assert user.last_login is None

        result = auth_service.login_with_password("a@x.com", "p")

        claims = _claims(result.token)
        assert claims["id"] == user.id
        assert claims["email"] == "a@x.com"
        assert claims["isAdmin"] is False
        assert claims["exp"] - claims["iat"] == 3600
        assert result.user.last_login is not None

    def test_wrong_password(self, auth_service, make_password_user):
        make_password_user(email="a@x.com", password="p")
        with pytest.raises(InvalidCredentialException):
            auth_service.login_with_password("a@x.com", "not-p")

    def test_unknown_account(self, auth_service):
        with pytest.raises(AccountNotFoundException):
            auth_service.login_with_password("ghost@x.com", "p")

    def test_email_lookup_is_case_insensitive(self, auth_service, make_password_user):
        make_password_user(email="Mixed@Example.com", password="p")
        result = auth_service.login_with_password("  mixed@EXAMPLE.com ", "p")
        assert result.user.email == "mixed@example.com"

    def test_google_account_never_reaches_hash_comparison(self, auth_service, make_google_user, monkeypatch):
        make_google_user(email="g@x.com")

        def _boom(*args, **kwargs):
            raise AssertionError("hash comparison must not run")

        monkeypatch.setattr(auth_service_module, "verify_password", _boom)
        with pytest.raises(WrongAuthMethodException):
            auth_service.login_with_password("g@x.com", "whatever")


class TestGoogleLogin:

    def test_creates_google_account_on_first_login(self, auth_service, verifier, store):
        verifier.add("cred-new", subject="g1", email="new@x.com", name=None, picture="https://img/1.png")

        result = auth_service.login_with_identity_provider("cred-new")

        assert result.created is True
        user = store.find_by_email("new@x.com")
        assert user.id == result.user.id
        assert user.auth_provider == AuthOrigin.GOOGLE
        assert user.google_id == "g1"
        assert user.hashed_password is None
        assert user.full_name == GOOGLE_FALLBACK_NAME
        assert user.profile_pic == "https://img/1.png"
        assert user.is_admin is False
        assert user.last_login is not None
        assert _claims(result.token)["id"] == user.id

    def test_password_account_is_never_converted(self, auth_service, verifier, make_password_user, store):
        user = make_password_user(email="a@x.com", password="p")
        verifier.add("cred-a", subject="g-a", email="a@x.com", name="Alice")

        with pytest.raises(WrongAuthMethodException):
            auth_service.login_with_identity_provider("cred-a")

        assert store.count() == 1
        reloaded = store.find_by_email("a@x.com")
        assert reloaded.id == user.id
        assert reloaded.auth_provider == AuthOrigin.PASSWORD
        assert reloaded.google_id is None

    def test_existing_account_found_by_subject_after_email_change(self, auth_service, verifier, make_google_user, store):
        user = make_google_user(email="old@x.com", google_id="g-7")
        verifier.add("cred", subject="g-7", email="renamed@x.com", name="Gina")

        result = auth_service.login_with_identity_provider("cred")

        assert result.created is False
        assert result.user.id == user.id
        assert result.user.email == "old@x.com"
        assert store.count() == 1

    def test_avatar_refreshed_only_when_provided_and_different(self, auth_service, verifier, make_google_user):
        make_google_user(email="g@x.com", google_id="g-1", profile_pic="https://img/old.png")

        verifier.add("same", subject="g-1", email="g@x.com", picture="https://img/old.png")
        verifier.add("empty", subject="g-1", email="g@x.com", picture="")
        verifier.add("new", subject="g-1", email="g@x.com", picture="https://img/new.png")

        assert auth_service.login_with_identity_provider("same").user.profile_pic == "https://img/old.png"
        assert auth_service.login_with_identity_provider("empty").user.profile_pic == "https://img/old.png"
        assert auth_service.login_with_identity_provider("new").user.profile_pic == "https://img/new.png"

    def test_missing_email_claim(self, auth_service, verifier, store):
        verifier.add("no-email", subject="g-9", email=None)
        with pytest.raises(MissingEmailClaimException):
            auth_service.login_with_identity_provider("no-email")
        assert store.count() == 0

    def test_blank_email_claim_counts_as_missing(self, auth_service, verifier, store):
        verifier.add("blank", subject="g-10", email="   ")
        with pytest.raises(MissingEmailClaimException):
            auth_service.login_with_identity_provider("blank")
        assert store.count() == 0

    def test_verification_failure_creates_nothing(self, auth_service, store):
        with pytest.raises(IdentityVerificationFailedException):
            auth_service.login_with_identity_provider("forged")
        assert store.count() == 0


class TestRegistration:

    def test_register_issues_seven_day_token(self, auth_service, store):
        result = auth_service.register("Bob", "Bob@X.com", "pw123456")

        claims = _claims(result.token)
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600
        user = store.find_by_email("bob@x.com")
        assert user.auth_provider == AuthOrigin.PASSWORD
        assert user.is_admin is False
        assert verify_password("pw123456", user.hashed_password)

    def test_duplicate_email(self, auth_service, make_password_user):
        make_password_user(email="a@x.com")
        with pytest.raises(AccountAlreadyExistsException):
            auth_service.register("Other", "A@x.com", "pw123456")


class TestPasswordRecovery:

    def test_full_round_trip_succeeds_exactly_once(self, auth_service, make_password_user, mailer, ledger):
        make_password_user(email="a@x.com", password="old-pw")

        auth_service.request_password_recovery("a@x.com")
        assert mailer.sent[-1][0] == "a@x.com"
        assert mailer.sent[-1][2] == 5

        auth_service.verify_otp("a@x.com", mailer.last_code)
        auth_service.reset_password("a@x.com", "new-pw")

        assert ledger.get("a@x.com") is None
        assert auth_service.login_with_password("a@x.com", "new-pw").token
        with pytest.raises(InvalidCredentialException):
            auth_service.login_with_password("a@x.com", "old-pw")

        with pytest.raises(OtpNotVerifiedException):
            auth_service.reset_password("a@x.com", "third-pw")

    def test_reset_requires_verification(self, auth_service, make_password_user):
        make_password_user(email="a@x.com")
        auth_service.request_password_recovery("a@x.com")
        with pytest.raises(OtpNotVerifiedException):
            auth_service.reset_password("a@x.com", "new-pw")

    def test_wrong_code_does_not_unlock_reset(self, auth_service, make_password_user, mailer):
        make_password_user(email="a@x.com")
        auth_service.request_password_recovery("a@x.com")
        wrong = "000000" if mailer.last_code != "000000" else "999999"

        with pytest.raises(InvalidOtpException):
            auth_service.verify_otp("a@x.com", wrong)
        with pytest.raises(OtpNotVerifiedException):
            auth_service.reset_password("a@x.com", "new-pw")

    def test_new_request_discards_verified_challenge(self, auth_service, make_password_user, mailer):
        make_password_user(email="a@x.com")
        auth_service.request_password_recovery("a@x.com")
        first = mailer.last_code
        auth_service.verify_otp("a@x.com", first)

        auth_service.request_password_recovery("a@x.com")
        with pytest.raises(OtpNotVerifiedException):
            auth_service.reset_password("a@x.com", "new-pw")
        with pytest.raises(InvalidOtpException):
            auth_service.verify_otp("a@x.com", first)

    def test_expired_otp(self, auth_service, make_password_user, mailer, clock, ledger):
        make_password_user(email="a@x.com")
        auth_service.request_password_recovery("a@x.com")
        clock.advance(minutes=5, seconds=1)

        with pytest.raises(OtpExpiredException):
            auth_service.verify_otp("a@x.com", mailer.last_code)
        assert ledger.get("a@x.com") is None

    def test_verified_challenge_expires_before_reset(self, auth_service, make_password_user, mailer, clock):
        make_password_user(email="a@x.com")
        auth_service.request_password_recovery("a@x.com")
        auth_service.verify_otp("a@x.com", mailer.last_code)

        clock.advance(minutes=6)
        with pytest.raises(OtpNotVerifiedException):
            auth_service.reset_password("a@x.com", "new-pw")

    def test_google_accounts_cannot_recover(self, auth_service, make_google_user, mailer, ledger):
        make_google_user(email="g@x.com")
        with pytest.raises(RecoveryNotSupportedException):
            auth_service.request_password_recovery("g@x.com")
        with pytest.raises(RecoveryNotSupportedException):
            auth_service.reset_password("g@x.com", "new-pw")
        assert mailer.sent == []
        assert len(ledger) == 0

    def test_unknown_account(self, auth_service):
        with pytest.raises(AccountNotFoundException):
            auth_service.request_password_recovery("ghost@x.com")
        with pytest.raises(AccountNotFoundException):
            auth_service.reset_password("ghost@x.com", "new-pw")

    def test_mail_failure_keeps_challenge_and_account(self, auth_service, make_password_user, mailer, ledger, store):
        user = make_password_user(email="a@x.com", password="p")
        original_hash = user.hashed_password
        mailer.fail = True

        with pytest.raises(NotificationDeliveryFailedException):
            auth_service.request_password_recovery("a@x.com")

        assert ledger.get("a@x.com") is not None
        assert store.find_by_email("a@x.com").hashed_password == original_hash

    def test_challenge_is_keyed_by_normalized_email(self, auth_service, make_password_user, mailer):
        make_password_user(email="a@x.com", password="p")
        auth_service.request_password_recovery("A@X.COM")
        auth_service.verify_otp("a@x.com", mailer.last_code)
        auth_service.reset_password(" a@x.com", "new-pw")
        assert auth_service.login_with_password("a@x.com", "new-pw").token

    def test_recovery_request_waits_for_in_flight_reset(self, auth_service, make_password_user, mailer, ledger, store, monkeypatch):
        make_password_user(email="a@x.com", password="old-pw")
        auth_service.request_password_recovery("a@x.com")
        auth_service.verify_otp("a@x.com", mailer.last_code)

        original_save = store.save
        seen = {}

        def save_while_request_arrives(user):
            racer = threading.Thread(target=auth_service.request_password_recovery, args=("a@x.com",))
            racer.start()
            racer.join(0.2)
            seen["racer"] = racer
            seen["request_blocked"] = racer.is_alive()
            seen["still_verified"] = ledger.is_verified("a@x.com")
            return original_save(user)

        monkeypatch.setattr(store, "save", save_while_request_arrives)
        auth_service.reset_password("a@x.com", "new-pw")
        seen["racer"].join(5)

        assert seen["request_blocked"] is True
        assert seen["still_verified"] is True
        # the fresh challenge survives the reset that finished before it
        challenge = ledger.get("a@x.com")
        assert challenge is not None
        assert challenge.verified is False
        assert len(mailer.sent) == 2
        assert verify_password("new-pw", store.find_by_email("a@x.com").hashed_password)
