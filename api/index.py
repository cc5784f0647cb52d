"""
Vercel entry point for the invite-user function

Vercel serves every file under api/ as a function; this one exposes the
FastAPI app from api/main.py so /api/invite-user and /api/health resolve.
"""

from api.main import app

__all__ = ["app"]
