"""Resource clients for the Terraform API.

Each resource family has one client class wrapping a shared
``BaseAPIClient``, which owns the HTTP session, retries and error mapping.
"""

from .base_client import BaseAPIClient, RemoteMeta
from .network_error_handler import NetworkErrorHandler, RetryConfig
from .admin_settings_client import (
    AdminGeneralSettingsAPIClient,
    AdminGeneralSettingsUpdateOptions,
    AdminSMTPSettingsAPIClient,
    AdminSMTPSettingsUpdateOptions,
)
from .configuration_versions_client import (
    ConfigurationVersionCreateOptions,
    ConfigurationVersionListOptions,
    ConfigurationVersionReadOptions,
    ConfigurationVersionsAPIClient,
    ConfigVerIncludeOpt,
)
from .ip_ranges_client import IPRange, IPRangesAPIClient
from .organizations_client import (
    OrganizationCreateOptions,
    OrganizationListOptions,
    OrganizationsAPIClient,
    OrganizationUpdateOptions,
)
from .projects_client import (
    ProjectCreateOptions,
    ProjectListOptions,
    ProjectsAPIClient,
    ProjectUpdateOptions,
)
from .registry_modules_client import (
    RegistryModuleCreateOptions,
    RegistryModuleCreateVersionOptions,
    RegistryModuleID,
    RegistryModuleListOptions,
    RegistryModulesAPIClient,
)
from .runs_client import (
    RunActionOptions,
    RunCreateOptions,
    RunIncludeOpt,
    RunListOptions,
    RunReadOptions,
    RunsAPIClient,
)
from .teams_client import (
    OrganizationAccessOptions,
    TeamCreateOptions,
    TeamIncludeOpt,
    TeamListOptions,
    TeamsAPIClient,
    TeamUpdateOptions,
)
from .users_client import UsersAPIClient, UserUpdateOptions
from .variable_sets_client import (
    VariableSetCreateOptions,
    VariableSetIncludeOpt,
    VariableSetListOptions,
    VariableSetReadOptions,
    VariableSetsAPIClient,
    VariableSetUpdateOptions,
    VariableSetWorkspacesOptions,
)
from .variables_client import (
    VariableCreateOptions,
    VariableListOptions,
    VariablesAPIClient,
    VariableUpdateOptions,
)
from .workspaces_client import (
    VCSRepoOptions,
    WorkspaceCreateOptions,
    WorkspaceIncludeOpt,
    WorkspaceListOptions,
    WorkspaceLockOptions,
    WorkspaceReadOptions,
    WorkspacesAPIClient,
    WorkspaceUpdateOptions,
)

__all__ = [
    # Base client
    "BaseAPIClient",
    "RemoteMeta",
    "NetworkErrorHandler",
    "RetryConfig",
    # Admin settings
    "AdminGeneralSettingsAPIClient",
    "AdminGeneralSettingsUpdateOptions",
    "AdminSMTPSettingsAPIClient",
    "AdminSMTPSettingsUpdateOptions",
    # Configuration versions
    "ConfigurationVersionCreateOptions",
    "ConfigurationVersionListOptions",
    "ConfigurationVersionReadOptions",
    "ConfigurationVersionsAPIClient",
    "ConfigVerIncludeOpt",
    # IP ranges
    "IPRange",
    "IPRangesAPIClient",
    # Organizations
    "OrganizationCreateOptions",
    "OrganizationListOptions",
    "OrganizationsAPIClient",
    "OrganizationUpdateOptions",
    # Projects
    "ProjectCreateOptions",
    "ProjectListOptions",
    "ProjectsAPIClient",
    "ProjectUpdateOptions",
    # Registry modules
    "RegistryModuleCreateOptions",
    "RegistryModuleCreateVersionOptions",
    "RegistryModuleID",
    "RegistryModuleListOptions",
    "RegistryModulesAPIClient",
    # Runs
    "RunActionOptions",
    "RunCreateOptions",
    "RunIncludeOpt",
    "RunListOptions",
    "RunReadOptions",
    "RunsAPIClient",
    # Teams
    "OrganizationAccessOptions",
    "TeamCreateOptions",
    "TeamIncludeOpt",
    "TeamListOptions",
    "TeamsAPIClient",
    "TeamUpdateOptions",
    # Users
    "UsersAPIClient",
    "UserUpdateOptions",
    # Variable sets
    "VariableSetCreateOptions",
    "VariableSetIncludeOpt",
    "VariableSetListOptions",
    "VariableSetReadOptions",
    "VariableSetsAPIClient",
    "VariableSetUpdateOptions",
    "VariableSetWorkspacesOptions",
    # Variables
    "VariableCreateOptions",
    "VariableListOptions",
    "VariablesAPIClient",
    "VariableUpdateOptions",
    # Workspaces
    "VCSRepoOptions",
    "WorkspaceCreateOptions",
    "WorkspaceIncludeOpt",
    "WorkspaceListOptions",
    "WorkspaceLockOptions",
    "WorkspaceReadOptions",
    "WorkspacesAPIClient",
    "WorkspaceUpdateOptions",
]
