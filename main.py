#!/usr/bin/env python3
"""
Student Auth -- registration, login and JWT session service.

Usage:
  python main.py
  python main.py --port 8080
  python main.py --host 127.0.0.1 --reload

Environment variables (or .env):
  JWT_ACCESS_SECRET      Signing key for access tokens (>= 32 chars).
  JWT_REFRESH_SECRET     Signing key for refresh tokens (>= 32 chars, different).
  JWT_ACCESS_EXPIRES_IN  Access token lifetime, e.g. 15m (default), 1h.
  DATABASE_URL           SQLAlchemy URL. Default sqlite:///./students.db
  PORT                   Listen port. Default 5000.
  DEBUG                  true to auto-generate secrets for local development.
"""

import argparse

import uvicorn

from core.config import get_settings


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(
        description="Run the student auth API server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind address (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Listen port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    args = parser.parse_args()

    print(f"Server running on port {args.port}")
    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
