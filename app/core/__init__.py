"""Core plumbing: settings, database access, routing and the auth gate."""
from app.core.auth_gate import AuthGate
from app.core.config import Settings
from app.core.database import Database
from app.core.http import ApiError
from app.core.router import Router

__all__ = ['AuthGate', 'Settings', 'Database', 'ApiError', 'Router']
