"""
asgi.py -- ASGI target for the student auth service.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from api.main import app

__all__ = ["app"]
