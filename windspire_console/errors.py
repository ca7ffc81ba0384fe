# windspire_console/errors.py
"""
Exception types shared across the console.

Only PreconditionError is allowed to escape a generation batch; service
errors are absorbed by the orchestrator and resolver and recorded per item.
"""


class ConsoleError(Exception):
    """Base class for all windspire-console errors."""


class PreconditionError(ConsoleError, ValueError):
    """Invalid input rejected before any state is created."""


class ServiceError(ConsoleError):
    """
    Error response from a remote collaborator.

    Attributes:
        status_code: HTTP status (0 for transport failures)
        message: Server-provided or synthesized error message
        retry_after: Server-suggested wait in seconds, if any
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.retry_after = retry_after


class RateLimitError(ServiceError):
    """HTTP 429 from the generation service. The only retryable condition."""

    def __init__(self, message: str = "Too many requests", retry_after: float | None = None) -> None:
        super().__init__(429, message, retry_after)


def describe_error(error: Exception) -> str:
    """Message recorded against a failed item."""
    if isinstance(error, ServiceError):
        return error.message
    return f"{type(error).__name__}: {error}"
