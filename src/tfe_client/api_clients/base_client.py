"""Base Terraform API client.

Provides request construction, authentication, retries and response checking
shared by every resource client. One instance owns one ``httpx.AsyncClient``
and is safe to use from many concurrent tasks.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx
from pydantic import BaseModel, Field

from ..config import ClientConfig
from ..exceptions import InvalidRequestBodyError, MissingTokenError
from ..jsonapi import (
    CONTENT_TYPE_JSON,
    CONTENT_TYPE_JSONAPI,
    QueryOptions,
    check_response,
    encode_body,
    encode_query,
)
from .network_error_handler import NetworkErrorHandler, RetryConfig
from .rate_limiter import TokenBucket, limiter_for

logger = logging.getLogger(__name__)

PING_ENDPOINT = "ping"
MAX_REDIRECTS = 5

API_VERSION_HEADER = "TFP-API-Version"
TFE_VERSION_HEADER = "X-TFE-Version"
APP_NAME_HEADER = "TFP-AppName"
RATE_LIMIT_HEADER = "X-RateLimit-Limit"

_BODY_METHODS = frozenset({"POST", "PATCH", "PUT", "DELETE"})
_DEFAULT_PORTS = {"http": 80, "https": 443}

QueryParams = Union[QueryOptions, Sequence[Tuple[str, str]], None]


class RemoteMeta(BaseModel):
    """Server metadata captured from the ping endpoint's response headers."""

    api_version: Optional[str] = Field(None, description="Value of TFP-API-Version")
    tfe_version: Optional[str] = Field(None, description="Value of X-TFE-Version")
    app_name: Optional[str] = Field(None, description="Value of TFP-AppName")
    rate_limit: Optional[float] = Field(None, description="Requests per second allowed")

    @property
    def is_enterprise(self) -> bool:
        return bool(self.tfe_version)


def _origin(url: httpx.URL) -> Tuple[str, str, Optional[int]]:
    scheme = url.scheme.lower()
    return scheme, url.host.lower(), url.port or _DEFAULT_PORTS.get(scheme)


class BaseAPIClient:
    """Base API client with authentication and common HTTP functionality."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the base API client.

        Args:
            config: Connection settings; read from the environment when omitted
            transport: Optional httpx transport, mainly for tests and proxies

        Raises:
            MissingTokenError: If no API token is configured
        """
        self.config = config if config is not None else ClientConfig.from_env()
        if not self.config.token:
            raise MissingTokenError()

        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None
        self._network_error_handler = NetworkErrorHandler(
            RetryConfig.from_client_config(self.config)
        )
        self._origin = _origin(httpx.URL(self.config.address))
        self.remote_meta: Optional[RemoteMeta] = None
        self.rate_limiter: Optional[TokenBucket] = None

    def configure_rate_limit(self, limit: Optional[float]) -> None:
        """Throttle outgoing requests below ``limit`` requests per second.

        A missing or non-positive limit disables throttling.
        """
        self.rate_limiter = limiter_for(limit)
        if self.rate_limiter is not None:
            logger.debug(
                f"Rate limiting to {self.rate_limiter.refill_rate:.2f} req/s, "
                f"burst {self.rate_limiter.capacity}"
            )

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP session."""
        if self._session is None or self._session.is_closed:
            limits = httpx.Limits(
                max_connections=self.config.max_connections,
                max_keepalive_connections=self.config.max_connections,
                keepalive_expiry=30.0,
            )
            self._session = httpx.AsyncClient(
                timeout=self.config.timeout,
                limits=limits,
                headers=self.config.headers,
                follow_redirects=True,
                max_redirects=MAX_REDIRECTS,
                transport=self._transport,
            )
        return self._session

    def is_same_origin(self, url: Union[str, httpx.URL]) -> bool:
        """Check whether ``url`` shares scheme, host and port with the address."""
        return _origin(httpx.URL(url)) == self._origin

    def resolve_url(self, path: str, base_url: Optional[str] = None) -> str:
        """Absolute URLs are kept, ``/paths`` hang off the address, others off the base."""
        if path.startswith(("http://", "https://")):
            return path
        if path.startswith("/"):
            return self.config.address + path
        return (base_url or self.config.base_url) + path

    def new_request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: QueryParams = None,
        accept: str = CONTENT_TYPE_JSONAPI,
        headers: Optional[Dict[str, str]] = None,
        base_url: Optional[str] = None,
    ) -> httpx.Request:
        """Build a request for the API.

        Args:
            method: HTTP method
            path: Path relative to the API base, or an absolute URL
            body: Options model, list of options models, or plain dict
            query: Query options model or explicit key/value pairs
            accept: Value for the Accept header
            headers: Extra per-request headers
            base_url: Alternative base for relative paths (e.g. the registry)

        Returns:
            The unsent httpx request

        Raises:
            InvalidRequestBodyError: If the body cannot be encoded for this method
        """
        method = method.upper()
        url = self.resolve_url(path, base_url)

        params: List[Tuple[str, str]]
        if query is None:
            params = []
        elif isinstance(query, QueryOptions):
            params = encode_query(query)
        else:
            params = list(query)

        request_headers: Dict[str, str] = {"Accept": accept}
        content: Optional[bytes] = None
        if body is not None:
            if method not in _BODY_METHODS:
                raise InvalidRequestBodyError(f"{method} requests cannot carry a body")
            content = encode_body(body)
            request_headers["Content-Type"] = CONTENT_TYPE_JSONAPI

        if self.is_same_origin(url):
            request_headers["Authorization"] = f"Bearer {self.config.token}"
        if headers:
            request_headers.update(headers)

        return self.session.build_request(
            method, url, params=params or None, content=content, headers=request_headers
        )

    async def do(self, request: httpx.Request) -> httpx.Response:
        """Send a request, retrying transient failures, and check the result.

        Returns:
            The successful response

        Raises:
            APIError: Subclass matching the final non-success status
            TransportError: Subclass matching the final transport failure
        """
        handler = self._network_error_handler
        max_retries = handler.config.max_retries
        attempt = 0

        while True:
            if self.rate_limiter is not None:
                await self.rate_limiter.wait()
            logger.debug(f"{request.method} {request.url} (attempt {attempt + 1})")
            try:
                response = await self.session.send(request)
            except httpx.RequestError as e:
                if attempt < max_retries and handler.should_retry_exception(e):
                    attempt += 1
                    logger.warning(
                        f"{request.method} {request.url} failed ({e}), retry {attempt}/{max_retries}"
                    )
                    await self._wait_before_retry(attempt, None)
                    continue
                raise handler.classify_network_error(e) from e

            if attempt < max_retries and handler.should_retry_response(response):
                attempt += 1
                logger.warning(
                    f"{request.method} {request.url} returned {response.status_code}, "
                    f"retry {attempt}/{max_retries}"
                )
                await self._wait_before_retry(attempt, response)
                continue

            check_response(response)
            return response

    async def _wait_before_retry(self, attempt: int, response: Optional[httpx.Response]) -> None:
        if self.config.retry_log_hook is not None:
            self.config.retry_log_hook(attempt, response)
        await asyncio.sleep(self._network_error_handler.backoff(attempt, response))

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        query: QueryParams = None,
        accept: str = CONTENT_TYPE_JSONAPI,
        headers: Optional[Dict[str, str]] = None,
        base_url: Optional[str] = None,
    ) -> httpx.Response:
        """Build and execute a request in one step."""
        req = self.new_request(
            method, path, body=body, query=query, accept=accept, headers=headers, base_url=base_url
        )
        return await self.do(req)

    async def put_object(self, url: str, data: bytes) -> None:
        """Upload raw bytes to an object storage URL.

        The URL is usually pre-signed and hosted elsewhere; the API token is
        only attached when it points at the configured address.
        """
        headers = {"Content-Type": "application/octet-stream", "Accept": CONTENT_TYPE_JSON}
        if self.is_same_origin(url):
            headers["Authorization"] = f"Bearer {self.config.token}"
        req = self.session.build_request("PUT", url, content=data, headers=headers)
        await self.do(req)

    async def ping(self) -> RemoteMeta:
        """Fetch server metadata from the ping endpoint."""
        response = await self.request("GET", PING_ENDPOINT, accept=CONTENT_TYPE_JSON)
        rate_limit: Optional[float] = None
        raw_limit = response.headers.get(RATE_LIMIT_HEADER)
        if raw_limit:
            try:
                rate_limit = float(raw_limit)
            except ValueError:
                logger.warning(f"Ignoring malformed {RATE_LIMIT_HEADER} header: {raw_limit!r}")
        self.remote_meta = RemoteMeta(
            api_version=response.headers.get(API_VERSION_HEADER),
            tfe_version=response.headers.get(TFE_VERSION_HEADER),
            app_name=response.headers.get(APP_NAME_HEADER),
            rate_limit=rate_limit,
        )
        self.configure_rate_limit(rate_limit)
        return self.remote_meta

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.is_closed:
            await self._session.aclose()

    aclose = close

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
