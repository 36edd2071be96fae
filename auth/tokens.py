"""
auth/tokens.py -- Password hashing plus access/refresh JWT issue and verify.

Security design decisions:
  JWT: python-jose with HS256. Two kinds of token, two secrets:
       access  -- {id, email, role}, short-lived (JWT_ACCESS_EXPIRES_IN, 15m)
       refresh -- {id}, fixed 7 days, only ever accepted by the refresh flow
       Each token also carries a "type" claim and a random "jti" so two tokens
       issued in the same second for the same student are still distinct.
       Verification raises AuthenticationError with the decoder's reason in
       detail -- the API layer turns that into a 401.

  Passwords: bcrypt used directly. The _DUMMY_HASH constant enables timing
       equalization in authenticate_student() so response time does not reveal
       whether an email is registered.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings
from core.errors import AuthenticationError

if TYPE_CHECKING:
    from auth.models import Student
    from auth.store import StudentStore

logger = logging.getLogger("studentauth.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"
_REFRESH_TOKEN_TTL = timedelta(days=7)

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"  # noqa: S105 # nosec B105 -- claim value, not a password

# bcrypt only looks at the first 72 bytes; newer releases reject longer input.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password."""
    salt = bcrypt.gensalt(rounds=_settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


# Timing equalization dummy hash. Computed once at module load.
_DUMMY_HASH: str = hash_password("studentauth_timing_dummy")


def authenticate_student(store: StudentStore, email: str, password: str) -> Student | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash

    Returns the Student on success, None on any failure. Inactive accounts
    fail the same way as bad passwords.
    """
    student = store.get_by_email(email)
    if student is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, student.password_hash):
        return None
    if not student.is_active:
        return None
    return student


# ---------------------------------------------------------------------------
# JWT encode
# ---------------------------------------------------------------------------


def _encode(claims: dict, secret: str, ttl: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "jti": secrets.token_hex(16), "iat": now, "exp": now + ttl}
    return jwt.encode(payload, secret, algorithm=_ALGORITHM)


def create_access_token(
    student_pk: str,
    email: str,
    role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a short-lived access token carrying the student's identity.

    Args:
        student_pk:    Store-assigned Student.id (not the institution student_id).
        email:         Normalized email at issue time.
        role:          "student" or "admin".
        expires_delta: Override the configured JWT_ACCESS_EXPIRES_IN. Tests
                       pass a negative delta to mint an already-expired token.
    """
    ttl = expires_delta if expires_delta is not None else _settings.access_token_ttl
    claims = {"id": student_pk, "email": email, "role": role, "type": ACCESS_TOKEN_TYPE}
    return _encode(claims, _settings.jwt_access_secret, ttl)


def create_refresh_token(student_pk: str, expires_delta: timedelta | None = None) -> str:
    """Sign a refresh token. Lifetime is fixed at 7 days unless overridden."""
    ttl = expires_delta if expires_delta is not None else _REFRESH_TOKEN_TTL
    claims = {"id": student_pk, "type": REFRESH_TOKEN_TYPE}
    return _encode(claims, _settings.jwt_refresh_secret, ttl)


# ---------------------------------------------------------------------------
# JWT decode
# ---------------------------------------------------------------------------


def _decode(token: str, secret: str, token_type: str, message: str) -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise AuthenticationError(message, detail=str(exc)) from exc
    if payload.get("type") != token_type or not payload.get("id"):
        raise AuthenticationError(message, detail=f"Not a {token_type} token.")
    return payload


def decode_access_token(token: str) -> dict:
    """Verify signature, expiry and type of an access token; return its claims."""
    return _decode(token, _settings.jwt_access_secret, ACCESS_TOKEN_TYPE, "Unauthorized")


def decode_refresh_token(token: str) -> dict:
    """Verify signature, expiry and type of a refresh token; return its claims."""
    return _decode(token, _settings.jwt_refresh_secret, REFRESH_TOKEN_TYPE, "Invalid refresh token")
