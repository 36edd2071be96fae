"""
auth/service.py -- Register / login / refresh / logout orchestration.

AuthService owns the session rules; StudentStore owns persistence and
auth/tokens.py owns cryptography. Every failure leaves here as a
core.errors type, never as an HTTPException or a raw SQLAlchemy error.

Session model: one refresh token per account, stored on the student row.
  register / login  -> new pair issued, stored refresh token overwritten
  refresh           -> new access token only, stored token untouched
  logout            -> stored token cleared

Overwriting on login is what invalidates an older session's refresh token;
access tokens already handed out stay valid until they expire.
"""

from __future__ import annotations

import hmac
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import Address, EmergencyContact, Student
from auth.store import StudentStore
from auth.tokens import (
    MAX_PASSWORD_BYTES,
    authenticate_student,
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    hash_password,
)
from core.errors import AuthenticationError, ConflictError, UnexpectedError, ValidationError

logger = logging.getLogger("studentauth.auth")

_INVALID_CREDENTIALS = "invalid credentials"
_INVALID_REFRESH = "Invalid refresh token"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@contextmanager
def _store_errors() -> Iterator[None]:
    """Re-raise store faults as UnexpectedError, keeping the driver message."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.exception("Student store failure")
        raise UnexpectedError(detail=str(exc)) from exc


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class AuthService:
    def __init__(self, store: StudentStore) -> None:
        self.store = store

    def register(
        self,
        name: str | None,
        email: str | None,
        password: str | None,
        student_id: str | None,
        course: str | None,
        year: int | None,
        *,
        gpa: float | None = None,
        phone: str | None = None,
        address: Address | None = None,
        emergency_contact: EmergencyContact | None = None,
    ) -> TokenPair:
        """Create an account and open its first session.

        Raises ValidationError for missing fields or out-of-range values and
        ConflictError if the email or student id is taken.
        """
        if any(_blank(v) for v in (name, email, password, student_id, course, year)):
            raise ValidationError("All fields are required")
        if not 1 <= year <= 5:
            raise ValidationError("Year must be between 1 and 5")
        if gpa is not None and not 0 <= gpa <= 10:
            raise ValidationError("GPA must be between 0 and 10")
        if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        email = email.strip().lower()
        student_id = student_id.strip()

        with _store_errors():
            if self.store.email_exists(email):
                raise ConflictError("Email already in use")
            if self.store.student_id_exists(student_id):
                raise ConflictError("Student ID already exists")

            student = Student(
                name=name.strip(),
                email=email,
                password_hash=hash_password(password),
                student_id=student_id,
                course=course.strip(),
                year=year,
                gpa=gpa,
                phone=phone,
                address=address,
                emergency_contact=emergency_contact,
            )
            try:
                student.id = self.store.create_student(student)
            except IntegrityError as exc:
                # Lost a race with a concurrent registration for the same email/id.
                raise ConflictError("Email or Student ID already exists") from exc

            pair = self._open_session(student)

        logger.info("Registered student %s", student.id)
        return pair

    def login(self, email: str | None, password: str | None) -> TokenPair:
        """Authenticate and open a new session, superseding any previous one.

        Unknown email and wrong password raise the same AuthenticationError
        so callers cannot tell which check failed.
        """
        if _blank(email) or _blank(password):
            raise ValidationError("Email and password are required")

        with _store_errors():
            student = authenticate_student(self.store, email, password)
            if student is None:
                logger.info("Login failed")
                raise AuthenticationError(_INVALID_CREDENTIALS)
            pair = self._open_session(student)

        logger.info("Login succeeded for student %s", student.id)
        return pair

    def refresh_access_token(self, refresh_token: str | None) -> str:
        """Mint a new access token from the account's current refresh token."""
        if _blank(refresh_token):
            raise ValidationError("Refresh token is required")

        claims = decode_refresh_token(refresh_token)
        with _store_errors():
            student = self.store.get_by_id(claims["id"])
        if (
            student is None
            or student.refresh_token is None
            or not hmac.compare_digest(student.refresh_token, refresh_token)
        ):
            logger.warning("Refresh rejected: token is not the one stored for its account")
            raise AuthenticationError(_INVALID_REFRESH)

        return create_access_token(student.id, student.email, student.role)

    def logout(self, refresh_token: str | None) -> None:
        """Clear the stored refresh token so it can no longer be refreshed."""
        if _blank(refresh_token):
            raise ValidationError("Refresh token is required")

        with _store_errors():
            student = self.store.get_by_refresh_token(refresh_token)
            if student is None or not self.store.clear_refresh_token(refresh_token):
                raise ValidationError(_INVALID_REFRESH)

        logger.info("Logged out student %s", student.id)

    def _open_session(self, student: Student) -> TokenPair:
        access_token = create_access_token(student.id, student.email, student.role)
        refresh_token = create_refresh_token(student.id)
        self.store.set_refresh_token(student.id, refresh_token)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)
