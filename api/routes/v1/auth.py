"""
api/routes/v1/auth.py -- Student authentication REST endpoints.

Routes (mounted under /api/v1):
  POST /auth/register   -- create account; 201 with access + refresh token
  POST /auth/login      -- password login; 200 with access + refresh token
  POST /auth/refresh    -- new access token from the stored refresh token
  POST /auth/logout     -- clear the stored refresh token
  GET|POST /protected   -- bearer-guarded; echoes the authenticated student

Handlers are thin: they unpack the body, call AuthService and wrap the result.
Every failure is a core.errors exception rendered by api/main.py.

Security:
  POST /auth/login is rate-limited per client IP (LOGIN_RATE_LIMIT).
  Cache-Control: no-store on every response that carries a token.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.context import ServiceContext, get_context
from api.limiter import limiter
from api.models import (
    AccessTokenResponse,
    LoginRequest,
    MessageResponse,
    ProtectedResponse,
    RefreshTokenRequest,
    RegisterRequest,
    StudentResponse,
    TokenPairResponse,
)
from auth.dependencies import get_current_student
from auth.models import Student
from core.config import get_settings

# Auth policy:
# - POST /auth/register, /auth/login, /auth/refresh, /auth/logout: public
# - GET|POST /protected: requires a Bearer access token (get_current_student)
router = APIRouter()


def _token_response(payload, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(status_code=status_code, content=payload.model_dump(by_alias=True))
    resp.headers["Cache-Control"] = "no-store"
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=TokenPairResponse, status_code=201)
def register(body: RegisterRequest, ctx: ServiceContext = Depends(get_context)) -> JSONResponse:
    """Create a student account and open its first session."""
    pair = ctx.auth.register(
        body.name,
        body.email,
        body.password,
        body.student_id,
        body.course,
        body.year,
        gpa=body.gpa,
        phone=body.phone,
        address=body.address.to_domain() if body.address else None,
        emergency_contact=body.emergency_contact.to_domain() if body.emergency_contact else None,
    )
    return _token_response(
        TokenPairResponse(
            message="Student registered successfully",
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        ),
        status_code=201,
    )


@router.post("/auth/login", response_model=TokenPairResponse)
@limiter.limit(get_settings().login_rate_limit)
def login(request: Request, body: LoginRequest, ctx: ServiceContext = Depends(get_context)) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password return the same 401 "invalid credentials"
    so the endpoint cannot be used to discover registered addresses.
    """
    pair = ctx.auth.login(body.email, body.password)
    return _token_response(
        TokenPairResponse(
            message="Login successful",
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
        )
    )


@router.post("/auth/refresh", response_model=AccessTokenResponse)
def refresh(body: RefreshTokenRequest, ctx: ServiceContext = Depends(get_context)) -> JSONResponse:
    """Issue a new access token. The refresh token itself is not rotated."""
    access_token = ctx.auth.refresh_access_token(body.refresh_token)
    return _token_response(AccessTokenResponse(access_token=access_token))


@router.post("/auth/logout", response_model=MessageResponse)
def logout(body: RefreshTokenRequest, ctx: ServiceContext = Depends(get_context)) -> MessageResponse:
    """End the session. Access tokens already issued remain valid until expiry."""
    ctx.auth.logout(body.refresh_token)
    return MessageResponse(message="Logged out successfully")


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.api_route("/protected", methods=["GET", "POST"], response_model=ProtectedResponse)
def protected(student: Student = Depends(get_current_student)) -> JSONResponse:
    """Example guarded route: returns the caller's profile, minus credentials."""
    return JSONResponse(
        content=ProtectedResponse(
            message="This is a protected route",
            student=StudentResponse.from_student(student),
        ).model_dump(by_alias=True)
    )
