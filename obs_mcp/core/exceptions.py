"""Custom exception hierarchy for the obs-mcp server."""


class ObsMCPError(Exception):
    """Base exception for obs-mcp issues."""


class ConfigurationError(ObsMCPError):
    """Raised when configuration is invalid or missing."""


class InvalidFormatError(ObsMCPError, ValueError):
    """Raised when a duration or timestamp string cannot be parsed."""


class UsageError(ObsMCPError, ValueError):
    """Raised when tool arguments conflict or are incomplete."""


class BackendError(ObsMCPError):
    """Raised when the metrics backend cannot serve a request."""


class BackendUnavailable(BackendError):
    """Raised when the metrics backend cannot be reached."""


class BackendQueryFailed(BackendError):
    """Raised when the metrics backend responds with an error."""


class TransportError(ObsMCPError):
    """Raised when the HTTP listener fails."""
