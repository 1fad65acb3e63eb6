"""End-to-end tests for registration, OTP verification, PIN setup and login."""

from datetime import timedelta

import pytest

from api.v1.models.verification import RegistrationState
from api.v1.services.auth import AuthService
from api.v1.utils.config import Settings
from api.v1.utils.database import SessionLocal
from api.v1.utils.exceptions import PinAlreadySetError
from api.v1.utils.helpers import utcnow
from conftest import API, bearer, fetch_user, register_and_activate


def register(client, full_name="Alice", email="alice@x.com"):
    return client.post(f"{API}/auth/register", json={"fullName": full_name, "email": email})


def verify(client, email, otp):
    return client.post(f"{API}/auth/verify-otp", json={"email": email, "otp": otp})


def set_pin(client, email, pin="1234", confirm_pin=None):
    return client.post(
        f"{API}/auth/set-pin",
        json={"email": email, "pin": pin, "confirmPin": confirm_pin or pin},
    )


def login(client, email, pin):
    return client.post(f"{API}/auth/login", json={"email": email, "pin": pin})


class TestRegistrationFlow:
    def test_full_sign_up_then_login(self, client, mailer):
        response = register(client)
        assert response.status_code == 201
        assert response.json()["success"] is True
        assert response.json()["step"] == "verify_otp"

        otp = mailer.last_otp("alice@x.com")
        assert otp is not None

        response = verify(client, "alice@x.com", otp)
        assert response.status_code == 200
        assert response.json()["step"] == "create_pin"

        response = set_pin(client, "alice@x.com")
        body = response.json()
        assert response.status_code == 200
        assert body["token"]
        assert set(body["user"]) == {"id", "fullName", "email", "createdAt"}
        assert body["user"]["fullName"] == "Alice"
        assert mailer.welcomes == ["alice@x.com"]

        response = login(client, "alice@x.com", "1234")
        assert response.status_code == 200
        assert response.json()["token"]
        assert response.json()["user"]["email"] == "alice@x.com"

    def test_pin_is_never_stored_in_clear(self, client, mailer):
        register_and_activate(client, mailer, pin="1234")

        user = fetch_user("alice@x.com")
        assert user.pin_hash != "1234"
        assert user.pin_hash.startswith("$argon2")

    def test_pending_user_has_no_credential(self, client):
        register(client)

        user = fetch_user("alice@x.com")
        assert user.pin_hash is None
        assert user.registration_state == RegistrationState.PENDING_VERIFICATION

    def test_email_is_case_insensitive(self, client, mailer):
        register_and_activate(client, mailer, email="Alice@X.com")

        assert login(client, "alice@x.com", "1234").status_code == 200
        assert login(client, "ALICE@x.com", "1234").status_code == 200

    def test_reregistering_pending_email_reissues_otp(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", "000000")
        assert fetch_user("alice@x.com").otp_attempts == 1

        response = register(client)

        assert response.status_code == 200
        assert response.json()["step"] == "verify_otp"
        assert len(mailer.otps) == 2
        user = fetch_user("alice@x.com")
        assert user.otp_attempts == 0
        assert user.otp_code == mailer.last_otp("alice@x.com")

    def test_reregistering_active_email_conflicts(self, client, mailer):
        register_and_activate(client, mailer)

        response = register(client)

        assert response.status_code == 409
        assert response.json()["success"] is False

    def test_otp_delivery_failure_removes_new_user(self, client, mailer):
        mailer.fail_otp = True

        response = register(client)

        assert response.status_code == 502
        assert response.json()["success"] is False
        assert fetch_user("alice@x.com") is None

    def test_otp_delivery_failure_keeps_existing_pending_user(self, client, mailer):
        register(client)
        mailer.fail_otp = True

        response = register(client)

        assert response.status_code == 502
        assert fetch_user("alice@x.com") is not None

    def test_invalid_registration_payload(self, client):
        response = client.post(
            f"{API}/auth/register", json={"fullName": "A", "email": "not-an-email"}
        )

        assert response.status_code == 422
        fields = {error["field"] for error in response.json()["errors"]}
        assert {"fullName", "email"} <= fields


class TestVerifyOtp:
    def test_wrong_code_is_counted(self, client, mailer):
        register(client)

        response = verify(client, "alice@x.com", "000000")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid OTP"
        assert fetch_user("alice@x.com").otp_attempts == 1

    def test_locked_after_three_misses(self, client, mailer):
        register(client)
        otp = mailer.last_otp("alice@x.com")
        wrong = "000000" if otp != "000000" else "111111"
        for _ in range(3):
            verify(client, "alice@x.com", wrong)

        response = verify(client, "alice@x.com", otp)

        assert response.status_code == 401
        assert response.json()["message"] == "Too many failed attempts"

    def test_expired_code(self, client, mailer):
        register(client)
        with SessionLocal() as session:
            user = session.merge(fetch_user("alice@x.com"))
            user.otp_expires_at = utcnow() - timedelta(seconds=1)
            session.commit()

        response = verify(client, "alice@x.com", mailer.last_otp("alice@x.com"))

        assert response.status_code == 401
        assert response.json()["message"] == "OTP has expired"

    def test_code_cannot_be_reused(self, client, mailer):
        register(client)
        otp = mailer.last_otp("alice@x.com")
        assert verify(client, "alice@x.com", otp).status_code == 200

        response = verify(client, "alice@x.com", otp)

        assert response.status_code == 404
        assert response.json()["message"] == "No OTP found"

    def test_unknown_email(self, client):
        response = verify(client, "ghost@x.com", "123456")

        assert response.status_code == 404
        assert response.json()["message"] == "No OTP found"

    def test_code_must_be_six_digits(self, client):
        response = verify(client, "alice@x.com", "12ab")

        assert response.status_code == 422

    def test_non_ascii_digits_are_rejected(self, client, mailer):
        register(client)

        response = verify(client, "alice@x.com", "\u0661\u0662\u0663\u0664\u0665\u0666")

        assert response.status_code == 422
        assert fetch_user("alice@x.com").otp_attempts == 0

    def test_resend_issues_fresh_code(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", "000000")

        response = client.post(f"{API}/auth/resend-otp", json={"email": "alice@x.com"})

        assert response.status_code == 200
        assert len(mailer.otps) == 2
        assert fetch_user("alice@x.com").otp_attempts == 0

    def test_resend_for_verified_user_conflicts(self, client, mailer):
        register_and_activate(client, mailer)

        response = client.post(f"{API}/auth/resend-otp", json={"email": "alice@x.com"})

        assert response.status_code == 409

    def test_resend_for_unknown_user(self, client):
        response = client.post(f"{API}/auth/resend-otp", json={"email": "ghost@x.com"})

        assert response.status_code == 404


class TestSetPin:
    def test_pins_must_match(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", mailer.last_otp("alice@x.com"))

        response = set_pin(client, "alice@x.com", "1234", "4321")

        assert response.status_code == 422
        assert response.json()["message"] == "PINs do not match"
        assert response.json()["errors"][0]["field"] == "confirmPin"

    def test_requires_verified_email(self, client):
        register(client)

        response = set_pin(client, "alice@x.com")

        assert response.status_code == 401
        assert response.json()["message"] == "Please verify your email first"

    def test_unknown_email_looks_unverified(self, client):
        response = set_pin(client, "ghost@x.com")

        assert response.status_code == 401
        assert response.json()["message"] == "Please verify your email first"

    def test_cannot_overwrite_existing_pin(self, client, mailer):
        register_and_activate(client, mailer, pin="1234")

        response = set_pin(client, "alice@x.com", "9999")

        assert response.status_code == 409
        assert login(client, "alice@x.com", "1234").status_code == 200
        assert login(client, "alice@x.com", "9999").status_code == 401

    def test_pin_must_be_four_digits(self, client):
        response = set_pin(client, "alice@x.com", "12a4")

        assert response.status_code == 422

    def test_pin_must_use_ascii_digits(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", mailer.last_otp("alice@x.com"))

        response = set_pin(client, "alice@x.com", "\u0661\u0662\u0663\u0664")

        assert response.status_code == 422
        assert fetch_user("alice@x.com").pin_hash is None

    def test_welcome_email_failure_is_not_fatal(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", mailer.last_otp("alice@x.com"))
        mailer.fail_welcome = True

        response = set_pin(client, "alice@x.com")

        assert response.status_code == 200
        assert response.json()["token"]

    def test_losing_a_concurrent_set_pin_is_rejected(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", mailer.last_otp("alice@x.com"))
        auth_service = AuthService(Settings(), mailer)

        slow = SessionLocal()
        try:
            # loads the user while it still has no PIN
            stale = auth_service.get_user_by_email("alice@x.com", slow)
            assert stale.pin_hash is None

            assert set_pin(client, "alice@x.com", "1111").status_code == 200

            with pytest.raises(PinAlreadySetError):
                auth_service.set_pin("alice@x.com", "2222", "2222", slow)
        finally:
            slow.close()

        assert login(client, "alice@x.com", "1111").status_code == 200
        assert login(client, "alice@x.com", "2222").status_code == 401


class TestLogin:
    def test_wrong_pin_and_unknown_email_look_the_same(self, client, mailer):
        register_and_activate(client, mailer)

        wrong_pin = login(client, "alice@x.com", "9999")
        unknown = login(client, "nobody@x.com", "1234")

        assert wrong_pin.status_code == unknown.status_code == 401
        assert wrong_pin.json() == unknown.json()
        assert wrong_pin.json()["message"] == "Invalid email or PIN"

    def test_pending_user_cannot_log_in(self, client, mailer):
        register(client)

        response = login(client, "alice@x.com", "1234")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or PIN"

    def test_verified_user_without_pin_cannot_log_in(self, client, mailer):
        register(client)
        verify(client, "alice@x.com", mailer.last_otp("alice@x.com"))

        response = login(client, "alice@x.com", "0000")

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid email or PIN"


class TestSession:
    def test_me_returns_current_user(self, client, alice):
        response = client.get(f"{API}/auth/me", headers=alice)

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["email"] == "alice@x.com"
        assert user["preferences"]["currency"] == "USD"
        assert user["linkedAccounts"] == []

    def test_missing_token(self, client):
        response = client.get(f"{API}/auth/me")

        assert response.status_code == 401
        assert response.json() == {
            "success": False,
            "status_code": 401,
            "message": "Unauthorized",
        }

    def test_garbage_token(self, client):
        response = client.get(f"{API}/auth/me", headers=bearer("not.a.token"))

        assert response.status_code == 401

    def test_expired_token(self, client, mailer, alice):
        user = fetch_user("alice@x.com")
        token = AuthService(Settings(), mailer).create_access_token(
            {"sub": user.id}, expires_delta=timedelta(seconds=-5)
        )

        response = client.get(f"{API}/auth/me", headers=bearer(token))

        assert response.status_code == 401

    def test_token_signed_with_other_key(self, client, mailer, alice):
        user = fetch_user("alice@x.com")
        settings = Settings(JWT_SECRET_KEY="another-secret-key-of-sufficient-length")
        token = AuthService(settings, mailer).create_access_token({"sub": user.id})

        response = client.get(f"{API}/auth/me", headers=bearer(token))

        assert response.status_code == 401

    def test_logout_revokes_token(self, client, alice):
        assert client.post(f"{API}/auth/logout", headers=alice).status_code == 200

        response = client.get(f"{API}/auth/me", headers=alice)

        assert response.status_code == 401
