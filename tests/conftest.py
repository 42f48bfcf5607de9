"""
Shared pytest fixtures for tfe-client tests.

HTTP traffic is intercepted with pytest-httpx; every client built here uses
zero backoff so retry tests run instantly.
"""

from typing import Any, Callable, Dict

import pytest
import pytest_asyncio

from tfe_client import Client, ClientConfig


def _zero_backoff_config(**overrides: Any) -> ClientConfig:
    values: Dict[str, Any] = {
        "token": "test-token",
        "rate_limit_wait_min": 0,
        "rate_limit_wait_max": 0,
        "server_error_wait_min": 0,
        "server_error_wait_max": 0,
    }
    values.update(overrides)
    return ClientConfig(**values)


@pytest.fixture
def make_config() -> Callable[..., ClientConfig]:
    """Factory for configs with a test token and no retry delays."""
    return _zero_backoff_config


@pytest.fixture
def config() -> ClientConfig:
    return _zero_backoff_config()


@pytest_asyncio.fixture
async def client(config: ClientConfig):
    """Client pointed at app.terraform.io with a test token."""
    async with Client(config) as c:
        yield c
