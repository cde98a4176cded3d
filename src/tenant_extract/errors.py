"""Error taxonomy for configuration resolution and prompt handling.

Format problems are not errors: the format validator returns them as
``FormatWarning`` data (see ``tenant_extract.validation``).
"""

from typing import Optional


class TenantConfigError(Exception):
    """Base exception for tenant configuration errors."""

    pass


class ValidationError(TenantConfigError):
    """Malformed client record or override payload. Never persisted."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "field": self.field,
        }


class NotFoundError(TenantConfigError):
    """Unknown client id or override section."""

    pass


class NoClientConfigurationError(NotFoundError):
    """Neither a clients directory nor a legacy clients document exists."""

    pass


class ConflictError(TenantConfigError):
    """Client id already exists."""

    pass


class ParseError(TenantConfigError):
    """Model response could not be parsed. Fatal for that document."""

    def __init__(self, message: str, raw_excerpt: str = ""):
        self.message = message
        self.raw_excerpt = raw_excerpt
        super().__init__(message)


class MissingApiKeyError(TenantConfigError):
    """No API key available for a client."""

    pass


class StoreNotFoundError(Exception):
    """Raised by a config store when a document or directory does not exist."""

    pass
