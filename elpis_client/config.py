"""
Configuration for the Elpis client.

Settings can be passed explicitly or read from ELPIS_* environment variables.
"""

import os

from pydantic import BaseModel, field_validator


# Default timeout in seconds
DEFAULT_TIMEOUT = 30.0


def normalize_base_url(url: str) -> str:
    """
    Ensure a base URL ends in "/api/".

    Example:
        >>> normalize_base_url("http://0.0.0.0:5000")
        'http://0.0.0.0:5000/api/'
    """
    if not url.endswith("/"):
        url += "/"
    if not url.endswith("api/"):
        url += "api/"
    return url


class ClientConfig(BaseModel):
    """
    Settings for connecting to an Elpis server.

    Attributes:
        base_url: Server URL, e.g. http://0.0.0.0:5000/api/
        authorization: Authorization header value, or None if none is required
        verbose: Whether to log request and response summaries
        timeout: Transport timeout in seconds
    """
    base_url: str
    authorization: str | None = None
    verbose: bool = False
    timeout: float = DEFAULT_TIMEOUT

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if not value:
            raise ValueError("Elpis URL must not be empty")
        return normalize_base_url(value)

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a config from ELPIS_URL, ELPIS_AUTHORIZATION, ELPIS_VERBOSE and ELPIS_TIMEOUT."""
        url = os.environ.get("ELPIS_URL", "")
        if not url:
            raise ValueError("Elpis URL required: pass base_url= or set ELPIS_URL")
        return cls(
            base_url=url,
            authorization=os.environ.get("ELPIS_AUTHORIZATION") or None,
            verbose=os.environ.get("ELPIS_VERBOSE", "").lower() in ("1", "true", "yes", "on"),
            timeout=float(os.environ.get("ELPIS_TIMEOUT", DEFAULT_TIMEOUT)),
        )
