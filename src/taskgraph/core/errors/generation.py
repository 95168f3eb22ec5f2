"""Content generator error classes."""

from typing import Optional


class GenerationError(RuntimeError):
    """Base exception for content generator failures."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class GenerationTimeoutError(GenerationError):
    """Raised when the generator did not answer within the timeout.

    Attributes:
        timeout: Configured timeout value in seconds
        attempts: Number of attempts made before giving up
    """

    def __init__(
        self,
        message: str,
        *,
        timeout: Optional[float] = None,
        attempts: Optional[int] = None,
    ):
        super().__init__(message)
        self.timeout = timeout
        self.attempts = attempts


class InvalidGeneratorOutput(GenerationError):
    """Raised when the generator reply holds no parseable JSON payload."""
