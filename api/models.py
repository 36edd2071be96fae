"""
API request and response models for the student auth REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are kept
separate from the dataclasses in auth/models.py, which own the internal
domain representation. Route handlers map between the two.

Wire names are camelCase (studentId, refreshToken, emergencyContact) via an
alias generator; Python attributes stay snake_case. The login/register
response key "accesstoken" is all lowercase -- existing clients read that
exact key, so it is pinned with an explicit alias.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import Address, EmergencyContact, Student

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)
_CAMEL_OUT = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


# ---------------------------------------------------------------------------
# Shared sub-records
# ---------------------------------------------------------------------------


class AddressModel(BaseModel):
    model_config = _CAMEL

    door_no: Optional[str] = Field(default=None, max_length=64)
    street: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=128)
    state: Optional[str] = Field(default=None, max_length=128)
    zip: Optional[str] = Field(default=None, max_length=32)

    def to_domain(self) -> Address:
        return Address(**self.model_dump())


class EmergencyContactModel(BaseModel):
    model_config = _CAMEL

    name: Optional[str] = Field(default=None, max_length=255)
    phone: Optional[str] = Field(default=None, max_length=32)
    relation: Optional[str] = Field(default=None, max_length=64)

    def to_domain(self) -> EmergencyContact:
        return EmergencyContact(**self.model_dump())


# ---------------------------------------------------------------------------
# Request models
#
# Required fields are Optional here on purpose: "missing" is a service-level
# ValidationError ("All fields are required"), and empty strings count as
# missing. Pydantic still rejects wrong types and out-of-range numbers.
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    model_config = _CAMEL

    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)
    student_id: Optional[str] = Field(default=None, max_length=64)
    course: Optional[str] = Field(default=None, max_length=255)
    year: Optional[int] = Field(default=None, ge=1, le=5)
    gpa: Optional[float] = Field(default=None, ge=0, le=10)
    phone: Optional[str] = Field(default=None, max_length=32)
    address: Optional[AddressModel] = None
    emergency_contact: Optional[EmergencyContactModel] = None


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    model_config = _CAMEL

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, max_length=128)


class RefreshTokenRequest(BaseModel):
    """Request body for POST /api/v1/auth/refresh and /logout."""

    model_config = _CAMEL

    refresh_token: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class TokenPairResponse(BaseModel):
    """Response for register (201) and login (200)."""

    model_config = _CAMEL_OUT

    message: str
    access_token: str = Field(alias="accesstoken")
    refresh_token: str


class AccessTokenResponse(BaseModel):
    """Response for POST /refresh."""

    model_config = _CAMEL_OUT

    access_token: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class StudentResponse(BaseModel):
    """Public projection of a Student. Never includes password_hash or refresh_token."""

    model_config = _CAMEL_OUT

    id: str
    name: str
    email: str
    student_id: str
    course: str
    year: int
    enrollment_date: Optional[str] = None
    gpa: Optional[float] = None
    phone: Optional[str] = None
    address: Optional[AddressModel] = None
    emergency_contact: Optional[EmergencyContactModel] = None
    role: str
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_student(cls, student: Student) -> "StudentResponse":
        """Build the public projection from a domain Student."""
        return cls(
            id=student.id,
            name=student.name,
            email=student.email,
            student_id=student.student_id,
            course=student.course,
            year=student.year,
            enrollment_date=student.enrollment_date,
            gpa=student.gpa,
            phone=student.phone,
            address=AddressModel(**vars(student.address)) if student.address else None,
            emergency_contact=(
                EmergencyContactModel(**vars(student.emergency_contact)) if student.emergency_contact else None
            ),
            role=student.role,
            is_active=student.is_active,
            created_at=student.created_at,
            updated_at=student.updated_at,
        )


class ProtectedResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    student: StudentResponse


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    message: str
    code: str
    detail: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
