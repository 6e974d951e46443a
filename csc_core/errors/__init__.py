# =============================================================================
# csc_core/errors/__init__.py
# Centralized Error Handling for the CSC ERP core
# =============================================================================

from .exceptions import (
    CscError,
    DataValidationError,
    ImportFormatError,
    LocalStoreError,
    AuthenticationError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    safe_execute,
)

__all__ = [
    # Exceptions
    "CscError",
    "DataValidationError",
    "ImportFormatError",
    "LocalStoreError",
    "AuthenticationError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "safe_execute",
]
