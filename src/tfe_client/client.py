"""Terraform API client facade.

``Client`` is the entry point of the library: it owns the HTTP session and
exposes one resource client per API family::

    async with Client(ClientConfig(token="...")) as client:
        workspaces = await client.workspaces.list("my-org")
"""

import logging
from typing import Optional

import httpx

from .api_clients.admin_settings_client import (
    AdminGeneralSettingsAPIClient,
    AdminSMTPSettingsAPIClient,
)
from .api_clients.base_client import BaseAPIClient
from .api_clients.configuration_versions_client import ConfigurationVersionsAPIClient
from .api_clients.ip_ranges_client import IPRangesAPIClient
from .api_clients.organizations_client import OrganizationsAPIClient
from .api_clients.projects_client import ProjectsAPIClient
from .api_clients.registry_modules_client import RegistryModulesAPIClient
from .api_clients.runs_client import RunsAPIClient
from .api_clients.teams_client import TeamsAPIClient
from .api_clients.users_client import UsersAPIClient
from .api_clients.variable_sets_client import VariableSetsAPIClient
from .api_clients.variables_client import VariablesAPIClient
from .api_clients.workspaces_client import WorkspacesAPIClient
from .config import ClientConfig

logger = logging.getLogger(__name__)


class Client(BaseAPIClient):
    """Client for the HCP Terraform and Terraform Enterprise APIs."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(config, transport)

        self.organizations = OrganizationsAPIClient(self)
        self.workspaces = WorkspacesAPIClient(self)
        self.runs = RunsAPIClient(self)
        self.projects = ProjectsAPIClient(self)
        self.teams = TeamsAPIClient(self)
        self.variables = VariablesAPIClient(self)
        self.variable_sets = VariableSetsAPIClient(self)
        self.configuration_versions = ConfigurationVersionsAPIClient(self)
        self.registry_modules = RegistryModulesAPIClient(self)
        self.admin_smtp_settings = AdminSMTPSettingsAPIClient(self)
        self.admin_general_settings = AdminGeneralSettingsAPIClient(self)
        self.ip_ranges = IPRangesAPIClient(self)
        self.users = UsersAPIClient(self)

        logger.debug(f"Client created for {self.config.address}")
