"""
auth/models.py -- Domain dataclasses for the student credential store.

Pattern: Data class (pure data container, zero logic). The store maps rows to
these; the service and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Address:
    door_no: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


@dataclass
class EmergencyContact:
    name: str | None = None
    phone: str | None = None
    relation: str | None = None


@dataclass
class Student:
    """A registered student account.

    id is the opaque system identifier (uuid4 hex), assigned by the store on
    insert. student_id is the institution's own identifier -- both are unique
    but only id appears in token claims.

    email is always stored lowercased. password_hash is a bcrypt hash and must
    never leave the process in a response body.

    refresh_token holds the single currently-valid refresh token; None means
    the account has no live session (never logged in, or logged out).
    """

    name: str
    email: str
    password_hash: str
    student_id: str
    course: str
    year: int
    id: str | None = None
    enrollment_date: str | None = None  # ISO 8601, defaults to creation time
    gpa: float | None = None
    phone: str | None = None
    address: Address | None = None
    emergency_contact: EmergencyContact | None = None
    role: str = "student"  # "student" | "admin"
    is_active: bool = True
    refresh_token: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
