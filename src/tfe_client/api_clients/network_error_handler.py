"""Network error handling for the Terraform API client.

Classifies httpx transport failures into the client's transport errors and
decides when a request is retried and for how long to wait.
"""

import logging
import random
import re
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import ClientConfig
from ..exceptions import (
    DNSResolutionError,
    NetworkConnectionError,
    NetworkTimeoutError,
    SSLCertificateError,
    TooManyRedirectsError,
    TransportError,
)

logger = logging.getLogger(__name__)

RATE_LIMIT_RESET_HEADER = "X-RateLimit-Reset"

# Statuses retried regardless of configuration.
ALWAYS_RETRY_STATUSES = frozenset({425, 429})


@dataclass
class RetryConfig:
    """Configuration for the retry loop and its backoff bounds."""

    max_retries: int = 5
    retry_server_errors: bool = False
    rate_limit_wait_min: float = 0.1
    rate_limit_wait_max: float = 0.4
    server_error_wait_min: float = 0.7
    server_error_wait_max: float = 0.9
    max_wait: float = 5.0

    @classmethod
    def from_client_config(cls, config: ClientConfig) -> "RetryConfig":
        return cls(
            max_retries=config.max_retries,
            retry_server_errors=config.retry_server_errors,
            rate_limit_wait_min=config.rate_limit_wait_min,
            rate_limit_wait_max=config.rate_limit_wait_max,
            server_error_wait_min=config.server_error_wait_min,
            server_error_wait_max=config.server_error_wait_max,
            max_wait=config.max_wait,
        )


class NetworkErrorHandler:
    """Handles network error classification and retry decisions."""

    def __init__(self, config: Optional[RetryConfig] = None):
        self.config = config or RetryConfig()
        self._dns_error_patterns = [
            r"name.*resolution.*failed",
            r"name.*or.*service.*not.*known",
            r"nodename.*nor.*servname.*provided",
            r"temporary.*failure.*in.*name.*resolution",
            r"getaddrinfo.*failed",
        ]
        self._ssl_error_patterns = [
            r"ssl.*certificate.*verification.*failed",
            r"certificate.*verify.*failed",
            r"ssl.*handshake.*failed",
            r"bad.*certificate",
        ]

    def classify_network_error(self, error: httpx.RequestError) -> TransportError:
        """Map an httpx request exception to a client transport error.

        Args:
            error: The original httpx exception

        Returns:
            The matching TransportError subclass instance; callers raise it
            ``from`` the original.
        """
        error_message = str(error).lower()

        if isinstance(error, httpx.TooManyRedirects):
            return TooManyRedirectsError(f"Redirect limit exceeded: {error}")

        if isinstance(error, httpx.TimeoutException):
            if isinstance(error, httpx.ConnectTimeout):
                return NetworkTimeoutError(f"Connection timed out: {error}")
            return NetworkTimeoutError(f"Request timed out: {error}")

        if any(re.search(pattern, error_message) for pattern in self._ssl_error_patterns):
            return SSLCertificateError(f"SSL certificate verification failed: {error}")

        if isinstance(error, httpx.ConnectError):
            if any(re.search(pattern, error_message) for pattern in self._dns_error_patterns):
                return DNSResolutionError(f"Cannot resolve server address: {error}")
            return NetworkConnectionError(f"Connection failed: {error}")

        if isinstance(error, httpx.NetworkError):
            return NetworkConnectionError(f"Network error: {error}")

        return TransportError(f"Transport error: {error}")

    def should_retry_response(self, response: httpx.Response) -> bool:
        status = response.status_code
        if status in ALWAYS_RETRY_STATUSES:
            return True
        return self.config.retry_server_errors and status >= 500

    def should_retry_exception(self, error: Exception) -> bool:
        """Transport failures are only retried when server errors are."""
        return self.config.retry_server_errors and isinstance(error, httpx.TransportError)

    def backoff(self, attempt: int, response: Optional[httpx.Response] = None) -> float:
        """Compute the wait before retry number ``attempt`` (1-based).

        Rate-limited responses wait the minimum plus jitter, raised to the
        server's ``X-RateLimit-Reset`` when that is larger. Everything else
        uses linear jitter proportional to the attempt.
        """
        cfg = self.config
        if response is not None and response.status_code == 429:
            wait = cfg.rate_limit_wait_min + random.uniform(
                0, max(cfg.rate_limit_wait_max - cfg.rate_limit_wait_min, 0)
            )
            reset = _parse_reset(response.headers.get(RATE_LIMIT_RESET_HEADER))
            if reset is not None and reset > wait:
                wait = reset
        else:
            low = min(cfg.server_error_wait_min, cfg.server_error_wait_max)
            high = max(cfg.server_error_wait_min, cfg.server_error_wait_max)
            wait = attempt * random.uniform(low, high)
        return min(wait, cfg.max_wait)


def _parse_reset(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        logger.debug(f"Ignoring malformed {RATE_LIMIT_RESET_HEADER} header: {value!r}")
        return None
