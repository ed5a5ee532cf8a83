"""
Exception classes for the crisis allowlist engine.

All exceptions inherit from CrisisAllowlistError and carry a machine-readable
code, a human-readable message and optional details. None of them ever
reaches a caller of ProtectionOracle.is_url_protected; they are caught at the
oracle and sync-client boundaries.
"""

from typing import Optional


class CrisisAllowlistError(Exception):
    """Base exception for all crisis allowlist errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"

    def to_dict(self) -> dict:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(CrisisAllowlistError):
    """Raised when an index or configuration value fails validation."""

    pass


class NetworkError(CrisisAllowlistError):
    """Raised when the allowlist endpoint cannot be reached."""

    pass


class ProtocolError(CrisisAllowlistError):
    """Raised when the allowlist endpoint answers with an unusable response."""

    pass


class PersistenceError(CrisisAllowlistError):
    """Raised when snapshot persistence fails (file I/O, malformed JSON)."""

    pass


class TamperingError(PersistenceError):
    """Raised when HMAC validation of a persisted snapshot fails."""

    pass

