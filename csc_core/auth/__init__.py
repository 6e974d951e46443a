"""
Authentication module for the CSC ERP core.
"""

from .authentication import (
    AuthGate,
    SessionPointer,
    hash_password,
    hash_user_password,
    verify_password,
    is_password_hash,
    has_privilege,
)

__all__ = [
    "AuthGate",
    "SessionPointer",
    "hash_password",
    "hash_user_password",
    "verify_password",
    "is_password_hash",
    "has_privilege",
]
