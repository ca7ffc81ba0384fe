# windspire_console/service/client.py
"""
HTTP clients for the catalog backend.

GenerationServiceClient wraps the generate/rewrite/category endpoints;
HttpContentStore implements the ContentStore protocol over the same API.
Both translate every non-2xx response into ServiceError.
"""

import logging
from typing import Any

import httpx

from windspire_console.errors import RateLimitError, ServiceError
from windspire_console.models.content import Category, ContentItem, Difficulty
from windspire_console.models.store import ContentStore

logger = logging.getLogger(__name__)


def _parse_retry_after(value: str | None) -> float | None:
    """Seconds from a Retry-After header; HTTP-date values are ignored."""
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _error_from_response(response: httpx.Response) -> ServiceError:
    """Build a ServiceError from an error response, preferring the server's message."""
    message = response.reason_phrase or "request failed"
    try:
        body = response.json()
        if isinstance(body, dict) and body.get("message"):
            message = str(body["message"])
    except ValueError:
        if response.text:
            message = response.text[:200]

    if response.status_code == 429:
        return RateLimitError(message, _parse_retry_after(response.headers.get("Retry-After")))
    return ServiceError(response.status_code, message)


class ApiClient:
    """
    Thin async JSON client with bearer auth and envelope unwrapping.

    The backend answers `{"status": "success", "data": {...}}`; `request`
    returns the inner `data` dict.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None = None,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize API client.

        Args:
            base_url: Backend API root (e.g., "http://localhost:3000/api")
            api_token: Bearer token (None = unauthenticated)
            timeout: Request timeout in seconds (generation calls are slow)
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        headers = {"Accept": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"
        self.base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """
        Send a request and return the unwrapped `data` payload.

        Raises:
            RateLimitError: On HTTP 429
            ServiceError: On any other error status or transport failure
        """
        try:
            response = await self._http.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise ServiceError(0, f"{type(e).__name__}: {e}") from e

        if response.is_error:
            raise _error_from_response(response)

        if response.status_code == 204 or not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            logger.warning(
                f"{method} {path} returned a non-JSON body "
                f"(HTTP {response.status_code}); treating it as empty"
            )
            return {}
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            return body["data"]
        return body if isinstance(body, dict) else {}

    async def close(self) -> None:
        await self._http.aclose()


class GenerationServiceClient:
    """Generation, rewrite, and category lookups against the backend."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def generate(
        self,
        category_id: str,
        content_type: str | None = None,
        count: int = 1,
        difficulty: Difficulty = Difficulty.BEGINNER,
        model: str | None = None,
    ) -> list[ContentItem]:
        """
        Ask the backend to generate `count` items for a category.

        Returns:
            Generated items (possibly empty)

        Raises:
            RateLimitError: When the service is throttling us
            ServiceError: Any other failure
        """
        payload: dict[str, Any] = {
            "categoryId": category_id,
            "count": count,
            "difficulty": difficulty.value,
        }
        if content_type:
            payload["contentType"] = content_type
        if model:
            payload["model"] = model

        logger.info(f"Generating {count} item(s) for category {category_id} (model={model})")
        data = await self._api.request("POST", "/content/generate-multiple", json=payload)
        return [ContentItem.model_validate(raw) for raw in data.get("content") or []]

    async def rewrite(self, item_id: str, model: str | None = None) -> ContentItem:
        """
        Produce a reworded, information-preserving variant of an item.

        Raises:
            ServiceError: If the rewrite fails or returns no content
        """
        payload = {"model": model} if model else {}
        data = await self._api.request("POST", f"/content/{item_id}/rewrite", json=payload)
        raw = data.get("content")
        if not raw:
            raise ServiceError(502, f"Rewrite of {item_id} returned no content")
        return ContentItem.model_validate(raw)

    async def list_categories(self) -> list[Category]:
        data = await self._api.request("GET", "/categories")
        return [Category.model_validate(raw) for raw in data.get("categories") or []]


class HttpContentStore(ContentStore):
    """ContentStore backed by the catalog REST API."""

    def __init__(self, api: ApiClient) -> None:
        self._api = api

    async def list(self, **filters: Any) -> list[ContentItem]:
        params = {k: getattr(v, "value", v) for k, v in filters.items() if v is not None}
        data = await self._api.request("GET", "/content", params=params)
        return [ContentItem.model_validate(raw) for raw in data.get("content") or []]

    async def update(self, item_id: str, patch: dict[str, Any]) -> ContentItem:
        data = await self._api.request("PATCH", f"/content/{item_id}", json=patch)
        raw = data.get("content")
        if not raw:
            raise ServiceError(502, f"Update of {item_id} returned no content")
        return ContentItem.model_validate(raw)

    async def delete(
        self,
        item_id: str,
        reason: str = "manual_delete",
        duplicate_of: str | None = None,
    ) -> None:
        params = {"reason": reason}
        if duplicate_of:
            params["duplicateOf"] = duplicate_of
        await self._api.request("DELETE", f"/content/{item_id}", params=params)
