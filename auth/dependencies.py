"""
auth/dependencies.py -- FastAPI Depends() helper guarding protected routes.

get_current_student() accepts exactly one credential: an
"Authorization: Bearer <access token>" header. On success the resolved
Student is attached to request.state.student (for middleware and handlers
that only hold the Request) and also returned (for Depends()).

Failures raise core.errors.AuthenticationError; api/main.py renders it as a
401 with WWW-Authenticate: Bearer.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import Student
from auth.tokens import decode_access_token
from core.errors import AuthenticationError

_BEARER_PREFIX = "Bearer "


def _bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith(_BEARER_PREFIX):
        raise AuthenticationError("Unauthorized, no token provided")
    token = auth_header[len(_BEARER_PREFIX) :].strip()
    if not token or " " in token:
        raise AuthenticationError("Unauthorized, no token provided")
    return token


def get_current_student(request: Request) -> Student:
    """Require a valid access token. Raises AuthenticationError otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(student: Student = Depends(get_current_student)): ...
    """
    claims = decode_access_token(_bearer_token(request))
    store = request.app.state.context.store
    student = store.get_by_id(claims["id"])
    if student is None or not student.is_active:
        raise AuthenticationError("Unauthorized", detail="Account not found or inactive.")
    request.state.student = student
    return student
