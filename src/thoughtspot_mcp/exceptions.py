"""Custom exception hierarchy for thoughtspot-mcp."""

from __future__ import annotations


class ThoughtSpotMCPError(Exception):
    """Base exception for all thoughtspot-mcp errors."""


class ConfigurationError(ThoughtSpotMCPError):
    """Required settings are missing or invalid."""


class ThoughtSpotAPIError(ThoughtSpotMCPError):
    """Error returned by the ThoughtSpot REST or GraphQL API."""

    def __init__(self, status_code: int, message: str, response_body: str | None = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(f"ThoughtSpot API error {status_code}: {message}")


class RateLimitError(ThoughtSpotAPIError):
    """429 Too Many Requests from ThoughtSpot."""

    def __init__(self, retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(429, "Rate limit exceeded")


class AuthenticationError(ThoughtSpotAPIError):
    """401/403 authentication or authorization failure."""

    def __init__(self, message: str = "Invalid or expired access token"):
        super().__init__(401, message)


class MetadataNotFoundError(ThoughtSpotAPIError):
    """Requested metadata object or endpoint does not exist."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(404, f"Not found: {path}")


class LiveboardImportError(ThoughtSpotAPIError):
    """ThoughtSpot rejected an imported liveboard TML."""

    def __init__(self, message: str, response_body: str | None = None):
        super().__init__(400, f"Liveboard import failed: {message}", response_body)


class InvalidArgumentError(ThoughtSpotMCPError):
    """Malformed tool arguments or resource URI."""


class NotFoundError(ThoughtSpotMCPError):
    """A named tool or resource does not exist."""


class ResourceNotFoundError(NotFoundError):
    """No data source with the requested id in the catalog."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Datasource not found: {uri}")


class UnknownToolError(NotFoundError):
    """Tool name is not part of the tool catalog."""

    def __init__(self, tool_name: str, available: list[str] | None = None):
        self.tool_name = tool_name
        self.available = available
        msg = f"Unknown tool: {tool_name}"
        if available:
            from difflib import get_close_matches

            suggestions = get_close_matches(tool_name, available, n=3, cutoff=0.5)
            if suggestions:
                msg += f". Did you mean: {', '.join(suggestions)}?"
        super().__init__(msg)


class NoDataFoundError(ThoughtSpotMCPError):
    """A valid request produced no usable data."""
