"""
Preschool enrollment API package.

Provides the FastAPI application for accounts, children, applications and payments.
"""

from .app import app, create_app

__all__ = ["app", "create_app"]
