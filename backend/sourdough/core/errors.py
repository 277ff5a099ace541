"""
Error types shared across services and API routers

Public lookups return None / typed failure results instead of raising.
These exceptions are for operations whose callers must stop on failure
(admin writes, status execution, checkout).
"""
from typing import Optional


class SourdoughError(Exception):
    """Base class for application errors"""
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(SourdoughError):
    """Missing row"""
    status_code = 404


class ValidationError(SourdoughError):
    """Business rule violation with a user-facing message"""
    status_code = 400


class UnauthorizedError(SourdoughError):
    """Auth or ownership check failed"""
    status_code = 403


class UpstreamError(SourdoughError):
    """A remote call (Supabase, Stripe, Resend) failed"""
    status_code = 502


class RepositoryError(UpstreamError):
    """A Supabase write or admin read failed"""


class ConflictError(SourdoughError):
    """Unique value already taken (e.g. a duplicate discount code)"""
    status_code = 409
