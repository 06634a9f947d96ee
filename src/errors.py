"""Error types for the Donald King serverless functions."""


class DonaldKingError(Exception):
    """Base exception for handler and pipeline errors."""

    pass


class ConfigurationError(DonaldKingError):
    """Required server configuration is missing."""

    pass


class MethodNotAllowedError(DonaldKingError):
    """The handler was invoked with an unsupported HTTP method."""

    def __init__(self, method: str, allowed: str):
        self.method = method
        self.allowed = allowed
        super().__init__(f"Method {method} not allowed, expected {allowed}")


class InvalidRequestError(DonaldKingError):
    """The request body could not be parsed."""

    pass


class FeedFetchError(DonaldKingError):
    """The RSS feed answered with a non-success status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"RSS fetch failed: {status} {body}")


class GenerationError(DonaldKingError):
    """The text-generation service answered with a non-success status."""

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"Generation request failed: {status} {body}")


class EmptyGenerationError(DonaldKingError):
    """The text-generation service returned no message content."""

    def __init__(self, message: str = "Empty response from generation service"):
        super().__init__(message)
