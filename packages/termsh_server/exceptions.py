"""Custom exceptions for termsh server."""


class TermshError(Exception):
    """Base exception for termsh server."""
    pass


class SecurityViolation(TermshError):
    """Raised when a filename resolves outside the working directory."""

    def __init__(self, name: str, message: str = ""):
        super().__init__(message or f"Access denied: '{name}' is outside the working directory")
        self.name = name


class SessionLimitReached(TermshError):
    """Raised when a connection arrives while all session slots are taken."""

    def __init__(self, limit: int):
        super().__init__(f"Session limit reached ({limit})")
        self.limit = limit


class ConfigurationError(TermshError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, missing_key: str = ""):
        super().__init__(message)
        self.missing_key = missing_key
