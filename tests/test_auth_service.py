"""Unit tests for auth/service.py -- the session rules, without HTTP.

Covers:
- register: success, stored hash != plaintext, duplicate email / student id,
  missing fields, out-of-range year / gpa, over-long password
- login: success rotates the stored refresh token; unknown email and wrong
  password fail with the same message
- refresh: success; superseded, foreign and access tokens rejected
- logout: clears the token; unknown token is a ValidationError; refresh after
  logout fails
- store faults surface as UnexpectedError carrying the driver message
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from auth.models import Address
from auth.service import AuthService
from auth.tokens import create_refresh_token, decode_access_token, decode_refresh_token
from core.errors import AuthenticationError, ConflictError, UnexpectedError, ValidationError


def _register(service: AuthService, email: str = "a@x.com", student_id: str = "S1", **kwargs):
    return service.register("A", email, "pw123", student_id, "CS", 2, **kwargs)


# ---------------------------------------------------------------------------
# Register
# ---------------------------------------------------------------------------


class TestRegister:
    def test_success_issues_tokens_and_stores_refresh(self, service, store) -> None:
        pair = _register(service)
        student = store.get_by_email("a@x.com")
        assert student is not None
        assert student.refresh_token == pair.refresh_token
        claims = decode_access_token(pair.access_token)
        assert claims["id"] == student.id
        assert claims["email"] == "a@x.com"
        assert claims["role"] == "student"

    def test_password_is_hashed(self, service, store) -> None:
        _register(service)
        assert store.get_by_email("a@x.com").password_hash != "pw123"

    def test_email_lowercased(self, service, store) -> None:
        _register(service, email="  A@X.COM ")
        assert store.get_by_email("a@x.com") is not None

    def test_optional_profile_persisted(self, service, store) -> None:
        _register(service, gpa=9.1, phone="555", address=Address(city="Pune"))
        student = store.get_by_email("a@x.com")
        assert student.gpa == 9.1
        assert student.address.city == "Pune"

    def test_duplicate_email(self, service) -> None:
        _register(service)
        with pytest.raises(ConflictError, match="Email already in use") as excinfo:
            _register(service, email="A@x.com", student_id="S2")
        assert excinfo.value.status_code == 400

    def test_duplicate_student_id(self, service) -> None:
        _register(service)
        with pytest.raises(ConflictError, match="Student ID already exists"):
            _register(service, email="b@x.com", student_id="S1")

    @pytest.mark.parametrize(
        "args",
        [
            (None, "a@x.com", "pw123", "S1", "CS", 2),
            ("A", "", "pw123", "S1", "CS", 2),
            ("A", "a@x.com", None, "S1", "CS", 2),
            ("A", "a@x.com", "pw123", "   ", "CS", 2),
            ("A", "a@x.com", "pw123", "S1", None, 2),
            ("A", "a@x.com", "pw123", "S1", "CS", None),
        ],
    )
    def test_missing_fields(self, service, args) -> None:
        with pytest.raises(ValidationError, match="All fields are required"):
            service.register(*args)

    @pytest.mark.parametrize("year", [0, 6])
    def test_year_out_of_range(self, service, year: int) -> None:
        with pytest.raises(ValidationError):
            service.register("A", "a@x.com", "pw123", "S1", "CS", year)

    def test_gpa_out_of_range(self, service) -> None:
        with pytest.raises(ValidationError):
            _register(service, gpa=11)

    def test_password_over_bcrypt_limit(self, service) -> None:
        with pytest.raises(ValidationError, match="72 bytes"):
            service.register("A", "a@x.com", "x" * 73, "S1", "CS", 2)

    def test_race_on_insert_becomes_conflict(self, store) -> None:
        """If the pre-checks pass but the insert hits UNIQUE, the caller still gets ConflictError."""
        service = AuthService(store)
        _register(service)
        racing = MagicMock(wraps=store)
        racing.email_exists.return_value = False
        racing.student_id_exists.return_value = False
        with pytest.raises(ConflictError):
            _register(AuthService(racing))


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class TestLogin:
    def test_success_overwrites_refresh_token(self, service, store) -> None:
        first = _register(service)
        second = service.login("a@x.com", "pw123")
        assert second.refresh_token != first.refresh_token
        assert store.get_by_email("a@x.com").refresh_token == second.refresh_token

    def test_email_case_insensitive(self, service) -> None:
        _register(service)
        assert service.login("A@X.com", "pw123").access_token

    def test_unknown_email_and_wrong_password_look_identical(self, service) -> None:
        _register(service)
        with pytest.raises(AuthenticationError) as unknown:
            service.login("nobody@x.com", "pw123")
        with pytest.raises(AuthenticationError) as wrong:
            service.login("a@x.com", "wrong")
        assert unknown.value.message == wrong.value.message == "invalid credentials"
        assert unknown.value.status_code == wrong.value.status_code == 401

    @pytest.mark.parametrize("email, password", [(None, "pw123"), ("a@x.com", ""), ("", "")])
    def test_missing_fields(self, service, email, password) -> None:
        with pytest.raises(ValidationError, match="Email and password are required"):
            service.login(email, password)


# ---------------------------------------------------------------------------
# Refresh
# ---------------------------------------------------------------------------


class TestRefresh:
    def test_success_returns_new_access_token_only(self, service, store) -> None:
        pair = _register(service)
        access = service.refresh_access_token(pair.refresh_token)
        claims = decode_access_token(access)
        assert claims["email"] == "a@x.com"
        # refresh token is not rotated
        assert store.get_by_email("a@x.com").refresh_token == pair.refresh_token

    def test_superseded_token_rejected(self, service) -> None:
        old = _register(service)
        service.login("a@x.com", "pw123")
        with pytest.raises(AuthenticationError, match="Invalid refresh token"):
            service.refresh_access_token(old.refresh_token)

    def test_valid_signature_unknown_account_rejected(self, service) -> None:
        with pytest.raises(AuthenticationError):
            service.refresh_access_token(create_refresh_token("0" * 32))

    def test_access_token_rejected(self, service) -> None:
        pair = _register(service)
        with pytest.raises(AuthenticationError):
            service.refresh_access_token(pair.access_token)

    def test_garbage_rejected(self, service) -> None:
        with pytest.raises(AuthenticationError):
            service.refresh_access_token("garbage")

    def test_missing(self, service) -> None:
        with pytest.raises(ValidationError, match="Refresh token is required"):
            service.refresh_access_token(None)

    def test_forged_refresh_for_real_account_rejected(self, service, store) -> None:
        """A validly signed refresh token that was never stored does not match."""
        _register(service)
        student = store.get_by_email("a@x.com")
        forged = create_refresh_token(student.id)
        assert decode_refresh_token(forged)["id"] == student.id
        with pytest.raises(AuthenticationError):
            service.refresh_access_token(forged)


# ---------------------------------------------------------------------------
# Logout
# ---------------------------------------------------------------------------


class TestLogout:
    def test_clears_token(self, service, store) -> None:
        pair = _register(service)
        service.logout(pair.refresh_token)
        assert store.get_by_email("a@x.com").refresh_token is None

    def test_refresh_after_logout_fails(self, service) -> None:
        pair = _register(service)
        service.logout(pair.refresh_token)
        with pytest.raises(AuthenticationError):
            service.refresh_access_token(pair.refresh_token)

    def test_unknown_token(self, service) -> None:
        with pytest.raises(ValidationError, match="Invalid refresh token"):
            service.logout("not-stored")

    def test_second_logout_fails(self, service) -> None:
        pair = _register(service)
        service.logout(pair.refresh_token)
        with pytest.raises(ValidationError):
            service.logout(pair.refresh_token)

    def test_missing(self, service) -> None:
        with pytest.raises(ValidationError, match="Refresh token is required"):
            service.logout("")

    def test_relogin_after_logout(self, service) -> None:
        pair = _register(service)
        service.logout(pair.refresh_token)
        again = service.login("a@x.com", "pw123")
        assert decode_access_token(service.refresh_access_token(again.refresh_token))["email"] == "a@x.com"

    def test_access_token_survives_logout(self, service) -> None:
        """Access tokens are short-lived and not revoked by logout."""
        pair = _register(service)
        service.logout(pair.refresh_token)
        assert decode_access_token(pair.access_token)["email"] == "a@x.com"


# ---------------------------------------------------------------------------
# Store faults
# ---------------------------------------------------------------------------


class TestStoreFaults:
    def test_store_error_becomes_unexpected(self) -> None:
        broken = MagicMock()
        broken.email_exists.side_effect = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        service = AuthService(broken)
        with pytest.raises(UnexpectedError) as excinfo:
            service.register("A", "a@x.com", "pw123", "S1", "CS", 2)
        assert excinfo.value.status_code == 500
        assert excinfo.value.message == "Server Error"
        assert "disk I/O error" in excinfo.value.detail

    def test_login_store_error_becomes_unexpected(self) -> None:
        broken = MagicMock()
        broken.get_by_email.side_effect = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with pytest.raises(UnexpectedError):
            AuthService(broken).login("a@x.com", "pw123")
