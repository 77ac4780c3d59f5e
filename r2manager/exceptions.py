"""Exception hierarchy for r2manager.

Only local failures get their own types. Errors reported by the storage
service or the transport are botocore exceptions and reach callers unchanged.
"""

from __future__ import annotations


class R2ManagerError(Exception):
    """Base exception for all r2manager-specific errors."""
    
    def __init__(self, message: str, details: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(R2ManagerError):
    """Raised when configuration is invalid or missing."""
    pass
