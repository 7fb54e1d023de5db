"""Exception types shared across the feed, store and Gemini clients."""


class KeywordNewsError(Exception):
    pass


class ConfigError(KeywordNewsError):
    """Initialization config could not be parsed. Startup stops here."""


class FetchError(KeywordNewsError):
    """The sheet returned nothing usable for this fetch cycle."""


class RemoteCallError(KeywordNewsError):
    """An upstream service answered with an error status."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status
        self.message = message


class RateLimitedError(RemoteCallError):
    def __init__(self, message: str = "Rate limited (too many requests)", status: int | None = 429):
        super().__init__(message, status)


class RetryExhaustedError(RemoteCallError):
    """Every attempt failed with a retryable error."""
