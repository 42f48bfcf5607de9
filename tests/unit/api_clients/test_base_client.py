"""Tests for request construction, retries and error mapping in BaseAPIClient."""

import asyncio
import json

import httpx
import pytest

from tfe_client.api_clients.base_client import MAX_REDIRECTS, BaseAPIClient
from tfe_client.api_clients.rate_limiter import TokenBucket
from tfe_client.api_clients.workspaces_client import WorkspaceListOptions, WorkspaceUpdateOptions
from tfe_client.exceptions import (
    InvalidRequestBodyError,
    MissingTokenError,
    NetworkConnectionError,
    NetworkTimeoutError,
    RateLimitError,
    ResourceNotFoundError,
    ServerError,
    TooManyRedirectsError,
)

API_URL = "https://app.terraform.io/api/v2"


class HookRecorder:
    """Collects (attempt, status) pairs passed to the retry hook."""

    def __init__(self):
        self.calls = []

    def __call__(self, attempt, response):
        self.calls.append((attempt, response.status_code if response is not None else None))


class TestConstruction:
    def test_missing_token_raises(self, make_config):
        with pytest.raises(MissingTokenError):
            BaseAPIClient(make_config(token=None))

    def test_reads_config_from_environment(self, monkeypatch):
        monkeypatch.setenv("TFE_TOKEN", "from-env")
        monkeypatch.delenv("TFE_ADDRESS", raising=False)
        monkeypatch.delenv("TFE_HOSTNAME", raising=False)

        client = BaseAPIClient()

        assert client.config.token == "from-env"


class TestNewRequest:
    """Request building is pure and never touches the network."""

    def test_relative_path_joins_base_url(self, config):
        request = BaseAPIClient(config).new_request("GET", "organizations")

        assert str(request.url) == f"{API_URL}/organizations"
        assert request.headers["Accept"] == "application/vnd.api+json"
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["User-Agent"].startswith("tfe-client-python/")

    def test_rooted_path_joins_address(self, config):
        request = BaseAPIClient(config).new_request("GET", "/api/meta/ip-ranges")

        assert str(request.url) == "https://app.terraform.io/api/meta/ip-ranges"

    def test_alternative_base_url(self, config):
        request = BaseAPIClient(config).new_request(
            "GET", "v1/modules", base_url=config.registry_base_url
        )

        assert str(request.url) == "https://app.terraform.io/api/registry/v1/modules"

    def test_query_options_are_encoded(self, config):
        options = WorkspaceListOptions(page_number=2, search="a b")

        request = BaseAPIClient(config).new_request("GET", "things", query=options)

        assert request.url.params.multi_items() == [("page[number]", "2"), ("search[name]", "a b")]

    def test_body_sets_jsonapi_content_type(self, config):
        request = BaseAPIClient(config).new_request(
            "PATCH", "workspaces/ws-1", body=WorkspaceUpdateOptions(auto_apply=False)
        )

        assert request.headers["Content-Type"] == "application/vnd.api+json"
        assert json.loads(request.content) == {
            "data": {"type": "workspaces", "attributes": {"auto-apply": False}}
        }

    def test_get_with_body_is_rejected(self, config):
        with pytest.raises(InvalidRequestBodyError):
            BaseAPIClient(config).new_request("GET", "x", body={"a": 1})

    @pytest.mark.parametrize(
        "url",
        [
            "https://archivist.terraform.io/v1/object/abc",
            "http://app.terraform.io/api/v2/x",
            "https://app.terraform.io:8443/api/v2/x",
        ],
    )
    def test_token_is_not_sent_to_other_origins(self, config, url):
        request = BaseAPIClient(config).new_request("GET", url)

        assert "Authorization" not in request.headers

    def test_explicit_default_port_is_same_origin(self, config):
        client = BaseAPIClient(config)

        assert client.is_same_origin("https://APP.terraform.io:443/api/v2/x")


class TestRetries:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("failures", [0, 1, 4])
    async def test_rate_limit_retried_until_success(self, httpx_mock, make_config, failures):
        hook = HookRecorder()
        for _ in range(failures):
            httpx_mock.add_response(url=f"{API_URL}/ping", status_code=429)
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=204)

        async with BaseAPIClient(make_config(retry_log_hook=hook)) as client:
            await client.ping()

        assert hook.calls == [(i + 1, 429) for i in range(failures)]
        assert len(httpx_mock.get_requests()) == failures + 1

    @pytest.mark.asyncio
    async def test_rate_limit_gives_up_after_five_retries(self, httpx_mock, make_config):
        hook = HookRecorder()
        for _ in range(6):
            httpx_mock.add_response(url=f"{API_URL}/ping", status_code=429)

        async with BaseAPIClient(make_config(retry_log_hook=hook)) as client:
            with pytest.raises(RateLimitError):
                await client.ping()

        assert [attempt for attempt, _ in hook.calls] == [1, 2, 3, 4, 5]
        assert len(httpx_mock.get_requests()) == 6

    @pytest.mark.asyncio
    async def test_too_early_is_always_retried(self, httpx_mock, make_config):
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=425)
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=204)

        async with BaseAPIClient(make_config()) as client:
            await client.ping()

        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_server_errors_not_retried_by_default(self, httpx_mock, make_config):
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=502)

        async with BaseAPIClient(make_config()) as client:
            with pytest.raises(ServerError) as exc_info:
                await client.ping()

        assert exc_info.value.status_code == 502
        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_server_errors_retried_when_enabled(self, httpx_mock, make_config):
        hook = HookRecorder()
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=500)
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=503)
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=204)

        config = make_config(retry_server_errors=True, retry_log_hook=hook)
        async with BaseAPIClient(config) as client:
            await client.ping()

        assert hook.calls == [(1, 500), (2, 503)]

    @pytest.mark.asyncio
    async def test_non_retryable_status_returns_immediately(self, httpx_mock, make_config):
        hook = HookRecorder()
        httpx_mock.add_response(url=f"{API_URL}/organizations/acme", status_code=404)

        async with BaseAPIClient(make_config(retry_log_hook=hook)) as client:
            with pytest.raises(ResourceNotFoundError):
                await client.request("GET", "organizations/acme")

        assert hook.calls == []

    @pytest.mark.asyncio
    async def test_transport_error_retried_when_enabled(self, httpx_mock, make_config):
        hook = HookRecorder()
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=204)

        config = make_config(retry_server_errors=True, retry_log_hook=hook)
        async with BaseAPIClient(config) as client:
            await client.ping()

        assert hook.calls == [(1, None)]

    @pytest.mark.asyncio
    async def test_transport_error_classified_without_retry(self, httpx_mock, make_config):
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        async with BaseAPIClient(make_config()) as client:
            with pytest.raises(NetworkConnectionError) as exc_info:
                await client.ping()

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_httpx_timeout_is_network_timeout(self, httpx_mock, make_config):
        httpx_mock.add_exception(httpx.ReadTimeout("too slow"))

        async with BaseAPIClient(make_config()) as client:
            with pytest.raises(NetworkTimeoutError):
                await client.ping()

    @pytest.mark.asyncio
    async def test_cancellation_during_backoff_propagates(self, httpx_mock, make_config):
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=429)

        config = make_config(rate_limit_wait_min=10, rate_limit_wait_max=10, max_wait=10)
        async with BaseAPIClient(config) as client:
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(client.ping(), timeout=0.2)

        assert len(httpx_mock.get_requests()) == 1


class TestRedirects:
    """Redirect chains run against an in-memory transport."""

    @staticmethod
    def _redirecting_transport(seen, redirects):
        def handler(request):
            seen.append(request)
            if len(seen) <= redirects:
                return httpx.Response(302, headers={"Location": f"/api/v2/hop-{len(seen)}"})
            return httpx.Response(204)

        return httpx.MockTransport(handler)

    @pytest.mark.asyncio
    async def test_short_chain_is_followed(self, make_config):
        seen = []
        transport = self._redirecting_transport(seen, redirects=2)

        async with BaseAPIClient(make_config(), transport=transport) as client:
            response = await client.request("GET", "organizations")

        assert response.status_code == 204
        assert str(seen[-1].url) == f"{API_URL}/hop-2"

    @pytest.mark.asyncio
    async def test_endless_chain_raises_transport_error(self, make_config):
        seen = []
        transport = self._redirecting_transport(seen, redirects=100)

        async with BaseAPIClient(make_config(retry_server_errors=True), transport=transport) as client:
            with pytest.raises(TooManyRedirectsError) as exc_info:
                await client.request("GET", "organizations")

        assert isinstance(exc_info.value.__cause__, httpx.TooManyRedirects)
        assert len(seen) == MAX_REDIRECTS + 1


class TestPing:
    @pytest.mark.asyncio
    async def test_records_remote_meta(self, httpx_mock, make_config):
        httpx_mock.add_response(
            url=f"{API_URL}/ping",
            status_code=204,
            headers={
                "TFP-API-Version": "2.6",
                "X-TFE-Version": "v202401-1",
                "TFP-AppName": "Terraform Enterprise",
                "X-RateLimit-Limit": "30",
            },
        )

        async with BaseAPIClient(make_config()) as client:
            meta = await client.ping()

        assert meta.api_version == "2.6"
        assert meta.tfe_version == "v202401-1"
        assert meta.app_name == "Terraform Enterprise"
        assert meta.rate_limit == 30.0
        assert meta.is_enterprise is True
        assert client.remote_meta is meta
        assert httpx_mock.get_request().headers["Accept"] == "application/json"


class TestPutObject:
    @pytest.mark.asyncio
    async def test_uploads_without_authorization(self, httpx_mock, make_config):
        url = "https://archivist.terraform.io/v1/object/abc"
        httpx_mock.add_response(method="PUT", url=url, status_code=200)

        async with BaseAPIClient(make_config()) as client:
            await client.put_object(url, b"payload")

        request = httpx_mock.get_request()
        assert request.content == b"payload"
        assert request.headers["Content-Type"] == "application/octet-stream"
        assert "Authorization" not in request.headers

    @pytest.mark.asyncio
    async def test_same_host_upload_carries_token(self, httpx_mock, make_config):
        url = "https://app.terraform.io/_archivist/v1/object/abc"
        httpx_mock.add_response(method="PUT", url=url, status_code=200)

        async with BaseAPIClient(make_config()) as client:
            await client.put_object(url, b"payload")

        assert httpx_mock.get_request().headers["Authorization"] == "Bearer test-token"


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_ping_configures_limiter_from_header(self, httpx_mock, make_config):
        httpx_mock.add_response(
            url=f"{API_URL}/ping", status_code=204, headers={"X-RateLimit-Limit": "30"}
        )

        async with BaseAPIClient(make_config()) as client:
            await client.ping()

        assert client.rate_limiter.capacity == 9
        assert client.rate_limiter.refill_rate == pytest.approx(19.8)

    @pytest.mark.asyncio
    async def test_ping_without_header_leaves_requests_unthrottled(self, httpx_mock, make_config):
        httpx_mock.add_response(url=f"{API_URL}/ping", status_code=204)

        async with BaseAPIClient(make_config()) as client:
            await client.ping()

        assert client.rate_limiter is None

    @pytest.mark.asyncio
    async def test_requests_wait_for_a_token(self, httpx_mock, make_config):
        async with BaseAPIClient(make_config()) as client:
            client.rate_limiter = TokenBucket(capacity=1, refill_rate=0.01)
            client.rate_limiter.tokens = 0

            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(client.request("GET", "organizations"), timeout=0.1)

        assert httpx_mock.get_requests() == []

    @pytest.mark.asyncio
    async def test_tokens_are_spent_per_request(self, httpx_mock, make_config):
        httpx_mock.add_response(url=f"{API_URL}/organizations", status_code=204)
        httpx_mock.add_response(url=f"{API_URL}/organizations", status_code=204)

        async with BaseAPIClient(make_config()) as client:
            client.rate_limiter = TokenBucket(capacity=5, refill_rate=0.01)
            await client.request("GET", "organizations")
            await client.request("GET", "organizations")

            assert client.rate_limiter.tokens == pytest.approx(3, abs=0.01)
