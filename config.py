"""Config management for hubspot-mcp-server.

Configuration comes from the process environment, optionally seeded from a
.env file. It is read once at startup.
"""
import os
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from errors import ConfigurationError
from hubspot.objects import CRM_OBJECTS, SEARCH_OPERATORS

REQUIRED_VARS = ("HUBSPOT_CLIENT_ID", "HUBSPOT_CLIENT_SECRET", "SESSION_SECRET")

DEFAULT_PORT = 3000
DEFAULT_SEARCH_OPERATOR = "CONTAINS_TOKEN"


def load_env_file(path: Path = Path(".env")) -> bool:
    """Load a .env file into os.environ if one exists. Existing values win."""
    if path.exists():
        return load_dotenv(path)
    return False


def _is_true(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuration container."""

    def __init__(self, data: Mapping[str, str] = None):
        self.data = dict(data or {})

    def _get(self, key: str) -> Optional[str]:
        value = self.data.get(key)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @property
    def client_id(self) -> Optional[str]:
        return self._get("HUBSPOT_CLIENT_ID")

    @property
    def client_secret(self) -> Optional[str]:
        return self._get("HUBSPOT_CLIENT_SECRET")

    @property
    def session_secret(self) -> Optional[str]:
        return self._get("SESSION_SECRET")

    @property
    def access_token(self) -> Optional[str]:
        """Static token for local development; OAuth replaces it."""
        return self._get("HUBSPOT_ACCESS_TOKEN")

    @property
    def portal_id(self) -> Optional[str]:
        return self._get("HUBSPOT_PORTAL_ID")

    @property
    def host(self) -> str:
        return self._get("HOST") or "0.0.0.0"

    @property
    def port(self) -> int:
        raw = self._get("PORT")
        if raw is None:
            return DEFAULT_PORT
        try:
            return int(raw)
        except ValueError:
            raise ConfigurationError(f"PORT must be an integer, got {raw!r}")

    @property
    def redirect_uri(self) -> str:
        explicit = self._get("REDIRECT_URI")
        if explicit:
            return explicit
        hostname = self._get("RENDER_EXTERNAL_HOSTNAME")
        if hostname:
            return f"https://{hostname}/callback"
        return f"http://localhost:{self.port}/callback"

    @property
    def scopes(self) -> list[str]:
        raw = self._get("HUBSPOT_SCOPES") or ""
        return [scope for scope in raw.replace(",", " ").split() if scope]

    @property
    def search_operator(self) -> str:
        operator = (self._get("HUBSPOT_SEARCH_OPERATOR") or DEFAULT_SEARCH_OPERATOR).upper()
        if operator not in SEARCH_OPERATORS:
            raise ConfigurationError(
                f"HUBSPOT_SEARCH_OPERATOR must be one of {', '.join(SEARCH_OPERATORS)}, got {operator!r}"
            )
        return operator

    @property
    def object_types(self) -> list[str]:
        """CRM object types to expose as tools (defaults to the whole catalog)."""
        raw = self._get("HUBSPOT_OBJECTS")
        if not raw:
            return [obj.type for obj in CRM_OBJECTS]
        names = [name.strip() for name in raw.split(",") if name.strip()]
        known = {obj.type for obj in CRM_OBJECTS}
        unknown = [name for name in names if name not in known]
        if unknown:
            raise ConfigurationError(f"Unknown HUBSPOT_OBJECTS entries: {', '.join(unknown)}")
        return names

    @property
    def enable_update_tools(self) -> bool:
        return _is_true(self.data.get("HUBSPOT_ENABLE_UPDATE_TOOLS"), default=True)

    @property
    def log_format(self) -> str:
        return (self._get("LOG_FORMAT") or "plain").lower()

    @property
    def log_level(self) -> str:
        return (self._get("LOG_LEVEL") or "INFO").upper()

    def missing(self) -> list[str]:
        return [name for name in REQUIRED_VARS if not self._get(name)]

    def is_valid(self) -> bool:
        """Check if config has required fields."""
        return not self.missing()

    def validate(self) -> "Config":
        """Raise ConfigurationError unless every required value is usable."""
        missing = self.missing()
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")
        # Touch the parsed properties so bad values fail at startup.
        _ = (self.port, self.search_operator, self.object_types)
        return self


def load_config(environ: Mapping[str, str] = None) -> Config:
    """Load and validate config from the environment."""
    if environ is None:
        environ = os.environ
    return Config(environ).validate()
