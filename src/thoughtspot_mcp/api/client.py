"""Async HTTP client for the ThoughtSpot REST v2 and GraphQL APIs.

Only the handful of endpoints the Spotter tools need are wrapped here.
Response parsing into domain models happens in the spotter and liveboard
layers; this module deals in plain JSON and text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal

import httpx
import yaml

from thoughtspot_mcp import __version__
from thoughtspot_mcp.api.rate_limiter import RateLimiter
from thoughtspot_mcp.config import ThoughtSpotSettings, get_settings
from thoughtspot_mcp.exceptions import (
    AuthenticationError,
    MetadataNotFoundError,
    RateLimitError,
    ThoughtSpotAPIError,
)

logger = logging.getLogger(__name__)

# Retry configuration
MAX_RETRIES = 3
RETRY_BACKOFF_BASE = 2.0  # seconds
DEFAULT_RETRY_AFTER = 2.0  # seconds

_UNSAVED_ANSWER_TML_QUERY = """
mutation GetUnsavedAnswerTML($session: BachSessionIdInput!, $exportDependencies: Boolean, $formatType:  EDocFormatType, $exportPermissions: Boolean, $exportFqn: Boolean) {
  UnsavedAnswer_getTML(
    session: $session
    exportDependencies: $exportDependencies
    formatType: $formatType
    exportPermissions: $exportPermissions
    exportFqn: $exportFqn
  ) {
    zipFile
    object {
      edoc
      name
      type
      __typename
    }
    __typename
  }
}"""


def _retry_after_seconds(value: str | None) -> float:
    """Seconds to wait from a Retry-After header; HTTP-dates fall back to the default."""
    try:
        return max(0.0, float(value)) if value is not None else DEFAULT_RETRY_AFTER
    except ValueError:
        return DEFAULT_RETRY_AFTER


class ThoughtSpotClient:
    """Client for one ThoughtSpot instance and one bearer token.

    All requests go through a token-bucket rate limiter and include
    automatic retry with exponential backoff on 429, 5xx, timeouts and
    connection errors.
    """

    def __init__(
        self,
        instance_url: str | None = None,
        access_token: str | None = None,
        settings: ThoughtSpotSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        s = settings or get_settings()
        self._instance_url = (instance_url or s.ts_instance_url).rstrip("/")
        self._access_token = access_token or s.ts_access_token

        if not self._access_token:
            raise AuthenticationError("TS_ACCESS_TOKEN is required")
        if not self._instance_url:
            raise AuthenticationError("TS_INSTANCE_URL is required")

        self._rate_limiter = RateLimiter()
        self._http = httpx.AsyncClient(
            base_url=self._instance_url,
            headers={
                "Authorization": f"Bearer {self._access_token}",
                "Accept": "application/json",
                "User-Agent": f"thoughtspot-mcp/{__version__}",
            },
            timeout=httpx.Timeout(s.ts_request_timeout, connect=10.0),
            transport=transport,
        )

    @property
    def instance_url(self) -> str:
        return self._instance_url

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        params: dict | None = None,
        response_format: Literal["json", "text"] = "json",
    ) -> Any:
        """Make an authenticated, rate-limited HTTP request with retry.

        Args:
            method: HTTP method (GET, POST).
            path: API path (e.g., "/api/rest/2.0/metadata/search").
            json: Request body.
            params: Query parameters.
            response_format: Parse the body as JSON or return it as text.

        Returns:
            Parsed JSON body (None when empty), or the raw text.

        Raises:
            ThoughtSpotAPIError: On non-retryable API errors.
            RateLimitError: If rate limit is exhausted after retries.
            AuthenticationError: On 401/403 responses.
        """
        last_error: ThoughtSpotAPIError | None = None

        for attempt in range(MAX_RETRIES + 1):
            if not await self._rate_limiter.acquire(timeout=30.0):
                raise RateLimitError()

            try:
                kwargs: dict[str, Any] = {"params": params}
                if json is not None:
                    kwargs["json"] = json

                response = await self._http.request(method, path, **kwargs)

                if response.status_code in (401, 403):
                    raise AuthenticationError(response.text)

                if response.status_code == 404:
                    raise MetadataNotFoundError(path)

                if response.status_code == 429:
                    retry_after = _retry_after_seconds(response.headers.get("Retry-After"))
                    last_error = RateLimitError(retry_after=retry_after)
                    logger.warning(
                        "Rate limited (attempt %d/%d), waiting %.1fs",
                        attempt + 1,
                        MAX_RETRIES + 1,
                        retry_after,
                    )
                    await asyncio.sleep(retry_after)
                    continue

                if response.status_code >= 500 and attempt < MAX_RETRIES:
                    wait = RETRY_BACKOFF_BASE ** attempt
                    last_error = ThoughtSpotAPIError(
                        response.status_code, response.text, response.text
                    )
                    logger.warning(
                        "Server error %d on %s (attempt %d/%d), retrying in %.1fs",
                        response.status_code,
                        path,
                        attempt + 1,
                        MAX_RETRIES + 1,
                        wait,
                    )
                    await asyncio.sleep(wait)
                    continue

                if response.status_code >= 400:
                    raise ThoughtSpotAPIError(
                        response.status_code, response.text, response.text
                    )

                if response_format == "text":
                    return response.text

                if not response.text:
                    return None

                try:
                    return response.json()
                except ValueError as e:
                    raise ThoughtSpotAPIError(
                        response.status_code, f"Invalid JSON from {path}", response.text
                    ) from e

            except httpx.TimeoutException as e:
                last_error = ThoughtSpotAPIError(0, f"Request timed out: {e}")
                if attempt < MAX_RETRIES:
                    wait = RETRY_BACKOFF_BASE ** attempt
                    logger.warning("Timeout on %s (attempt %d/%d), retrying in %.1fs", path, attempt + 1, MAX_RETRIES + 1, wait)
                    await asyncio.sleep(wait)
                    continue
                raise last_error from e

            except httpx.RequestError as e:
                last_error = ThoughtSpotAPIError(0, f"Connection error: {e}")
                if attempt < MAX_RETRIES:
                    wait = RETRY_BACKOFF_BASE ** attempt
                    logger.warning("Connection error on %s (attempt %d/%d), retrying in %.1fs", path, attempt + 1, MAX_RETRIES + 1, wait)
                    await asyncio.sleep(wait)
                    continue
                raise last_error from e

        if last_error:
            raise last_error
        raise ThoughtSpotAPIError(0, "Unexpected retry exhaustion")

    # -- Metadata --

    async def search_metadata(self, body: dict[str, Any]) -> list[dict[str, Any]]:
        """POST /api/rest/2.0/metadata/search."""
        result = await self._request("POST", "/api/rest/2.0/metadata/search", json=body)
        return result if isinstance(result, list) else []

    async def import_metadata_tml(
        self,
        metadata_tmls: list[str],
        import_policy: str = "ALL_OR_NONE",
    ) -> list[dict[str, Any]]:
        """POST /api/rest/2.0/metadata/tml/import."""
        result = await self._request(
            "POST",
            "/api/rest/2.0/metadata/tml/import",
            json={"metadata_tmls": metadata_tmls, "import_policy": import_policy},
        )
        return result if isinstance(result, list) else []

    # -- Spotter (AI) --

    async def get_decomposed_query(self, body: dict[str, Any]) -> dict[str, Any]:
        """Ask Spotter to break a query into analytic sub-questions."""
        result = await self._request("POST", "/api/rest/2.0/ai/analytical-questions", json=body)
        return result if isinstance(result, dict) else {}

    async def create_answer(self, query: str, metadata_identifier: str) -> dict[str, Any]:
        """Ask Spotter for a single answer; returns the answer session handle."""
        result = await self._request(
            "POST",
            "/api/rest/2.0/ai/answer/create",
            json={"query": query, "metadata_identifier": metadata_identifier},
        )
        if not isinstance(result, dict):
            raise ThoughtSpotAPIError(0, "Empty response from answer creation")
        return result

    async def export_answer_report(
        self,
        session_identifier: str,
        generation_number: int,
        file_format: str = "CSV",
    ) -> str:
        """Export the data behind an answer session as text (CSV by default)."""
        return await self._request(
            "POST",
            "/api/rest/2.0/report/answer",
            json={
                "session_identifier": session_identifier,
                "generation_number": generation_number,
                "file_format": file_format,
            },
            response_format="text",
        )

    async def export_unsaved_answer_tml(
        self,
        session_identifier: str,
        generation_number: int,
    ) -> dict[str, Any]:
        """Export the TML of an unsaved answer via the prism GraphQL endpoint.

        There is no public REST endpoint for unsaved answers yet, so this
        issues the same GraphQL mutation the ThoughtSpot UI uses and parses
        the returned YAML edoc.
        """
        result = await self._request(
            "POST",
            "/prism/",
            params={"op": "GetUnsavedAnswerTML"},
            json={
                "operationName": "GetUnsavedAnswerTML",
                "query": _UNSAVED_ANSWER_TML_QUERY,
                "variables": {
                    "session": {
                        "sessionId": session_identifier,
                        "genNo": generation_number,
                    },
                },
            },
        )
        try:
            edoc = result["data"]["UnsavedAnswer_getTML"]["object"][0]["edoc"]
        except (KeyError, IndexError, TypeError) as e:
            raise ThoughtSpotAPIError(0, "Unexpected GetUnsavedAnswerTML response", str(result)) from e
        try:
            tml = yaml.safe_load(edoc)
        except yaml.YAMLError as e:
            raise ThoughtSpotAPIError(0, f"Unparseable answer TML: {e}") from e
        if not isinstance(tml, dict):
            raise ThoughtSpotAPIError(0, "Answer TML is not a mapping")
        return tml

    # -- Session --

    async def get_session_info(self) -> dict[str, Any]:
        """GET /api/rest/2.0/auth/session/user."""
        result = await self._request("GET", "/api/rest/2.0/auth/session/user")
        return result if isinstance(result, dict) else {}

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> ThoughtSpotClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
