"""
core/errors.py -- Error taxonomy shared by the auth service and the API layer.

The service raises these; api/main.py turns each one into the JSON error
envelope with the class-level status code. Nothing below knows about HTTP
frameworks -- status_code is plain data so auth/ stays framework-free.

  ValidationError      400  missing or malformed input
  ConflictError        400  duplicate email / student id
  AuthenticationError  401  bad credentials, invalid/expired/mismatched token
  UnexpectedError      500  store or hashing fault, carries the underlying detail
"""

from __future__ import annotations

from typing import Optional


class StudentAuthError(Exception):
    """Base class. Subclasses set status_code, code and default_message."""

    status_code: int = 500
    code: str = "error"
    default_message: str = "Server Error"

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None) -> None:
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class ValidationError(StudentAuthError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request."


class ConflictError(StudentAuthError):
    status_code = 400
    code = "conflict"
    default_message = "Resource already exists."


class AuthenticationError(StudentAuthError):
    status_code = 401
    code = "unauthorized"
    default_message = "Unauthorized"


class UnexpectedError(StudentAuthError):
    status_code = 500
    code = "internal_error"
    default_message = "Server Error"
