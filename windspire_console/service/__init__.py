# windspire_console/service/__init__.py
"""Remote service integration: HTTP clients and backoff policy."""

from .client import ApiClient, GenerationServiceClient, HttpContentStore
from .retry import BackoffPolicy, is_retryable

__all__ = [
    "ApiClient",
    "GenerationServiceClient",
    "HttpContentStore",
    "BackoffPolicy",
    "is_retryable",
]
