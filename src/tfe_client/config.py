"""Client configuration.

``ClientConfig`` is built once and never mutated by the client. It can be
constructed directly or from the environment with ``ClientConfig.from_env``.
"""

import os
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import __version__
from .exceptions import InvalidAddressError

DEFAULT_ADDRESS = "https://app.terraform.io"
DEFAULT_BASE_PATH = "/api/v2/"
DEFAULT_REGISTRY_PATH = "/api/registry/"

ADDRESS_ENV = "TFE_ADDRESS"
HOSTNAME_ENV = "TFE_HOSTNAME"
TOKEN_ENV = "TFE_TOKEN"
RETRY_SERVER_ERRORS_ENV = "TFE_RETRY_SERVER_ERRORS"

RetryLogHook = Callable[[int, Optional[httpx.Response]], None]


def _default_headers() -> Dict[str, str]:
    return {"User-Agent": f"tfe-client-python/{__version__}"}


def _normalize_path(value: str) -> str:
    value = value.strip()
    if not value.startswith("/"):
        value = "/" + value
    if not value.endswith("/"):
        value = value + "/"
    return value


class ClientConfig(BaseModel):
    """Settings for connecting to an HCP Terraform or Terraform Enterprise host."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    address: str = Field(DEFAULT_ADDRESS, description="Scheme and host of the API server")
    base_path: str = Field(DEFAULT_BASE_PATH, description="API path prefix")
    registry_base_path: str = Field(
        DEFAULT_REGISTRY_PATH, description="Private registry API path prefix"
    )
    token: Optional[str] = Field(None, description="API token sent as a bearer token")
    headers: Dict[str, str] = Field(
        default_factory=_default_headers, description="Static headers sent with every request"
    )
    retry_server_errors: bool = Field(
        False, description="Retry 5xx responses and transport failures"
    )
    retry_log_hook: Optional[RetryLogHook] = Field(
        None, description="Called with (attempt, response) before each retry"
    )

    connect_timeout: float = Field(10.0, gt=0, description="Connect timeout in seconds")
    read_timeout: float = Field(60.0, gt=0, description="Read timeout in seconds")
    write_timeout: float = Field(60.0, gt=0, description="Write timeout in seconds")
    pool_timeout: float = Field(10.0, gt=0, description="Connection pool timeout in seconds")
    max_connections: int = Field(20, gt=0, description="Connection pool size")

    max_retries: int = Field(5, ge=0, description="Retries after the first attempt")
    rate_limit_wait_min: float = Field(0.1, ge=0, description="Minimum wait after a 429")
    rate_limit_wait_max: float = Field(0.4, ge=0, description="Maximum wait after a 429")
    server_error_wait_min: float = Field(0.7, ge=0, description="Minimum per-attempt wait")
    server_error_wait_max: float = Field(0.9, ge=0, description="Maximum per-attempt wait")
    max_wait: float = Field(5.0, ge=0, description="Upper bound for any single wait")

    @field_validator("address")
    @classmethod
    def validate_address(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise InvalidAddressError(f"invalid address: {v!r}")
        if parts.path or parts.query or parts.fragment:
            raise InvalidAddressError(f"address must not contain a path: {v!r}")
        return v

    @field_validator("base_path", "registry_base_path")
    @classmethod
    def normalize_paths(cls, v: str) -> str:
        return _normalize_path(v)

    @field_validator("headers")
    @classmethod
    def ensure_user_agent(cls, v: Dict[str, str]) -> Dict[str, str]:
        headers = dict(v)
        if not any(k.lower() == "user-agent" for k in headers):
            headers.update(_default_headers())
        return headers

    @property
    def base_url(self) -> str:
        return self.address + self.base_path

    @property
    def registry_base_url(self) -> str:
        return self.address + self.registry_base_path

    @property
    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(
            connect=self.connect_timeout,
            read=self.read_timeout,
            write=self.write_timeout,
            pool=self.pool_timeout,
        )

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "ClientConfig":
        """Build a configuration from ``TFE_*`` environment variables.

        ``TFE_ADDRESS`` wins over ``TFE_HOSTNAME``; a bare hostname is given
        the https scheme. Keyword overrides win over the environment.
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        address = env.get(ADDRESS_ENV)
        if not address and env.get(HOSTNAME_ENV):
            address = f"https://{env[HOSTNAME_ENV]}"
        if address:
            values["address"] = address

        token = env.get(TOKEN_ENV)
        if token:
            values["token"] = token

        retry = env.get(RETRY_SERVER_ERRORS_ENV)
        if retry is not None:
            values["retry_server_errors"] = retry.strip().lower() in ("1", "true", "yes", "on")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
