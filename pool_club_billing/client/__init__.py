"""
Client for the remote session store.

Provides programmatic access to the club's table session API.
"""

from .session_api import SessionApiClient, SessionApiError, StaffIdentity

__all__ = ["SessionApiClient", "SessionApiError", "StaffIdentity"]
