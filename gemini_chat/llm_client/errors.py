from typing import Optional


class GeminiClientError(Exception):
    """Base class for failures talking to the generation API."""


class InvalidURL(GeminiClientError):
    """The configured host cannot be turned into a request URL."""


class NetworkError(GeminiClientError):
    """Connection, timeout or transport failure."""


class BadServerResponse(GeminiClientError):
    def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None):
        self.status_code = status_code
        super().__init__(message or f"Bad server response (status {status_code})")


class DecodeError(GeminiClientError):
    """A response body did not match the expected structure."""
