"""Error taxonomy for the HubSpot MCP server.

Per-call errors (validation, remote API, not authorized) are caught at the
tool boundary and reported to the MCP client as tool errors. Callback errors
are rendered as failure pages. ConfigurationError aborts startup.
"""

from typing import Any, Optional


class HubSpotMCPError(Exception):
    """Base class for every error this server raises on purpose."""


class ConfigurationError(HubSpotMCPError):
    """A required environment value is missing or invalid."""

    def __init__(self, message: str):
        super().__init__(f"Configuration Error: {message}")


class ValidationError(HubSpotMCPError):
    """Tool arguments do not match the tool's declared schema."""

    def __init__(self, tool: str, fields: list[str], details: Optional[list[str]] = None):
        self.tool = tool
        self.fields = fields
        self.details = details or []
        message = f"Invalid arguments for {tool}: {', '.join(fields)}"
        if self.details:
            message += " (" + "; ".join(self.details) + ")"
        super().__init__(message)


class RemoteAPIError(HubSpotMCPError):
    """HubSpot returned a non-success response or the transport failed."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"HubSpot API Error ({status_code}): {message}")


class NotAuthorizedError(HubSpotMCPError):
    """No access token is available yet."""

    def __init__(self, message: str = "App not authorized. Please go to /install to authorize."):
        super().__init__(message)


class AuthorizationFailedError(HubSpotMCPError):
    """The authorization code could not be exchanged for a token."""

    def __init__(self, payload: Any):
        self.payload = payload
        super().__init__(f"Authorization failed: {payload}")


class SessionExpiredError(HubSpotMCPError):
    """The callback arrived without a live install session."""

    def __init__(self, message: str = "Session expired or invalid. Please try installing again."):
        super().__init__(message)


class MissingCodeError(HubSpotMCPError):
    """The callback arrived without an authorization code."""

    def __init__(self, message: str = "No authorization code provided."):
        super().__init__(message)
