"""Error taxonomy for link handling and calendar anonymization.

Every error carries the HTTP status it maps to and a ``public_message`` that
is safe to return to callers. The exception's own message holds the internal
detail and is only ever logged.
"""

GENERIC_MESSAGE = "Could not process request."


class BusyCalError(Exception):
    """Base class for all service errors."""

    status_code: int = 500
    public_message: str = GENERIC_MESSAGE

    def __init__(self, detail: str = "", *, public_message: str | None = None) -> None:
        super().__init__(detail or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ConfigurationError(BusyCalError):
    """The encryption secret is not configured."""

    public_message = "Service is not configured correctly."


class InvalidInput(BusyCalError):
    """A required parameter is missing or malformed."""

    status_code = 400
    public_message = "Invalid URL provided."


class TokenError(BusyCalError):
    """A token could not be turned back into a source URL."""


class MalformedToken(TokenError):
    """The token is not valid URL-safe base64 or is too short."""


class DecryptionFailed(TokenError):
    """Authentication failed: wrong key, truncated or tampered token."""


class UpstreamFetchError(BusyCalError):
    """The source calendar could not be fetched or parsed."""


class ProcessingError(BusyCalError):
    """Catch-all for unexpected failures."""
