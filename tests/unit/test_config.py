"""Tests for ClientConfig construction and environment loading."""

import httpx
import pytest
from pydantic import ValidationError as PydanticValidationError

from tfe_client import __version__
from tfe_client.config import ClientConfig
from tfe_client.exceptions import InvalidAddressError


class TestClientConfigDefaults:
    def test_defaults_point_at_hcp_terraform(self):
        config = ClientConfig()

        assert config.address == "https://app.terraform.io"
        assert config.base_url == "https://app.terraform.io/api/v2/"
        assert config.registry_base_url == "https://app.terraform.io/api/registry/"
        assert config.retry_server_errors is False
        assert config.max_retries == 5
        assert config.max_wait == 5.0

    def test_user_agent_is_always_present(self):
        config = ClientConfig(headers={"X-Extra": "1"})

        assert config.headers["X-Extra"] == "1"
        assert config.headers["User-Agent"] == f"tfe-client-python/{__version__}"

    def test_custom_user_agent_is_kept(self):
        config = ClientConfig(headers={"user-agent": "mine/1.0"})

        assert config.headers == {"user-agent": "mine/1.0"}

    def test_timeout_is_built_from_fields(self):
        timeout = ClientConfig(connect_timeout=2, read_timeout=3).timeout

        assert isinstance(timeout, httpx.Timeout)
        assert timeout.connect == 2
        assert timeout.read == 3

    def test_config_is_frozen(self):
        config = ClientConfig()

        with pytest.raises(PydanticValidationError):
            config.token = "changed"


class TestAddressAndPaths:
    def test_trailing_slash_is_stripped(self):
        assert ClientConfig(address="https://tfe.example.com/").address == "https://tfe.example.com"

    @pytest.mark.parametrize(
        "address", ["tfe.example.com", "ftp://tfe.example.com", "https://tfe.example.com/api"]
    )
    def test_invalid_addresses_are_rejected(self, address):
        with pytest.raises(InvalidAddressError):
            ClientConfig(address=address)

    def test_base_paths_are_normalized(self):
        config = ClientConfig(address="http://localhost:8080", base_path="custom/v3")

        assert config.base_path == "/custom/v3/"
        assert config.base_url == "http://localhost:8080/custom/v3/"


class TestFromEnv:
    def test_reads_address_token_and_retry_flag(self):
        config = ClientConfig.from_env(
            {
                "TFE_ADDRESS": "https://tfe.example.com",
                "TFE_TOKEN": "secret",
                "TFE_RETRY_SERVER_ERRORS": "true",
            }
        )

        assert config.address == "https://tfe.example.com"
        assert config.token == "secret"
        assert config.retry_server_errors is True

    def test_hostname_gets_https_scheme(self):
        config = ClientConfig.from_env({"TFE_HOSTNAME": "tfe.internal"})

        assert config.address == "https://tfe.internal"

    def test_address_wins_over_hostname(self):
        config = ClientConfig.from_env(
            {"TFE_ADDRESS": "http://a.example", "TFE_HOSTNAME": "b.example"}
        )

        assert config.address == "http://a.example"

    def test_overrides_win_over_environment(self):
        config = ClientConfig.from_env({"TFE_TOKEN": "env"}, token="explicit", max_retries=2)

        assert config.token == "explicit"
        assert config.max_retries == 2

    def test_empty_environment_gives_defaults(self):
        config = ClientConfig.from_env({})

        assert config.token is None
        assert config.address == "https://app.terraform.io"
