"""Custom exceptions for creator cap."""


class CreatorCapError(Exception):
    """Base exception for all creator cap errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TokenNotFoundError(CreatorCapError):
    """Raised when a token cannot be resolved from any source."""

    def __init__(self, token_identifier: str, sources_checked: list[str] | None = None):
        message = f"Token not found: {token_identifier}"
        if sources_checked:
            message += f" (checked: {', '.join(sources_checked)})"
        super().__init__(message, {"token": token_identifier, "sources": sources_checked})
        self.token_identifier = token_identifier
        self.sources_checked = sources_checked or []


class SourceUnavailableError(CreatorCapError):
    """Raised when an upstream source fails (network, timeout, non-2xx)."""

    def __init__(
        self,
        source: str,
        message: str,
        endpoint: str | None = None,
        status_code: int | None = None,
    ):
        full_message = f"[{source}] {message}"
        super().__init__(
            full_message,
            {
                "source": source,
                "endpoint": endpoint,
                "status_code": status_code,
            },
        )
        self.source = source
        self.endpoint = endpoint
        self.status_code = status_code


class RateLimitError(SourceUnavailableError):
    """Raised when an upstream rate limit is hit."""

    def __init__(
        self,
        source: str,
        retry_after_seconds: int | None = None,
        endpoint: str | None = None,
    ):
        message = "Rate limit exceeded"
        if retry_after_seconds:
            message += f", retry after {retry_after_seconds}s"
        super().__init__(source, message, endpoint=endpoint, status_code=429)
        self.retry_after_seconds = retry_after_seconds


class SchemaMismatchError(CreatorCapError):
    """Raised when a source answers with data in an unexpected shape."""

    def __init__(self, source: str, reason: str):
        message = f"[{source}] Unexpected payload: {reason}"
        super().__init__(message, {"source": source, "reason": reason})
        self.source = source
        self.reason = reason


class InvalidIdentifierError(CreatorCapError):
    """Raised when an identifier is structurally invalid or unresolvable."""

    def __init__(self, identifier: str, reason: str):
        message = f"Invalid identifier '{identifier}': {reason}"
        super().__init__(message, {"identifier": identifier, "reason": reason})
        self.identifier = identifier
        self.reason = reason


class ConfigurationError(CreatorCapError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key
