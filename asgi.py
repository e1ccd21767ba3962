"""
asgi.py -- ASGI entry point for the identity service.

Run with:  uvicorn asgi:app --reload

Settings are read from the environment (or .env) when api.main is imported,
so SECRET_KEY (or DEBUG=true for local development) must be set first.
"""

from api.main import app

__all__ = ["app"]
