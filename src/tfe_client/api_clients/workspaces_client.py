"""Workspaces API client.

Workspaces are addressed either by organization and name or by their
external ID; both forms are supported for read, update and delete.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import (
    InvalidNameError,
    InvalidOrganizationError,
    InvalidWorkspaceIDError,
    InvalidWorkspaceValueError,
    RequiredAgentModeError,
    RequiredAgentPoolIDError,
    RequiredNameError,
    UnsupportedBothTriggerPatternsAndPrefixesError,
    UnsupportedOperationsError,
)
from ..jsonapi import (
    ListOptions,
    Options,
    QueryOptions,
    ResourceList,
    dasherize,
    decode_list,
    decode_one,
    relation,
    requested_includes,
)
from ..models import Project, Workspace
from ..validations import valid_string, valid_string_id
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)


class WorkspaceIncludeOpt(str, Enum):
    ORGANIZATION = "organization"
    CURRENT_CONFIG_VER = "current_configuration_version"
    CURRENT_RUN = "current_run"
    CURRENT_RUN_PLAN = "current_run.plan"
    CURRENT_RUN_CONFIG_VER = "current_run.configuration_version"
    LOCKED_BY = "locked_by"
    OUTPUTS = "outputs"
    PROJECT = "project"
    README = "readme"


class WorkspaceListOptions(ListOptions):
    """Filters for listing the workspaces of an organization."""

    search: Optional[str] = Field(None, alias="search[name]", description="Partial name match")
    tags: Optional[str] = Field(None, alias="search[tags]", description="Comma separated tags")
    exclude_tags: Optional[str] = Field(None, alias="search[exclude-tags]")
    wildcard_name: Optional[str] = Field(None, alias="search[wildcard-name]")
    project_id: Optional[str] = Field(None, alias="filter[project][id]")
    current_run_status: Optional[str] = Field(None, alias="filter[current-run][status]")
    include: Optional[List[WorkspaceIncludeOpt]] = None


class WorkspaceReadOptions(QueryOptions):
    include: Optional[List[WorkspaceIncludeOpt]] = None


class VCSRepoOptions(BaseModel):
    """VCS settings sent inside a workspace create or update payload."""

    model_config = ConfigDict(alias_generator=dasherize, populate_by_name=True, extra="forbid")

    branch: Optional[str] = None
    identifier: Optional[str] = None
    ingress_submodules: Optional[bool] = None
    oauth_token_id: Optional[str] = None
    github_app_installation_id: Optional[str] = None
    tags_regex: Optional[str] = None


class _WorkspaceSettings(Options):
    jsonapi_type = "workspaces"

    agent_pool_id: Optional[str] = None
    allow_destroy_plan: Optional[bool] = None
    assessments_enabled: Optional[bool] = None
    auto_apply: Optional[bool] = None
    description: Optional[str] = None
    execution_mode: Optional[str] = None
    file_triggers_enabled: Optional[bool] = None
    global_remote_state: Optional[bool] = None
    operations: Optional[bool] = None
    queue_all_runs: Optional[bool] = None
    source_name: Optional[str] = None
    source_url: Optional[str] = None
    speculative_enabled: Optional[bool] = None
    structured_run_output_enabled: Optional[bool] = None
    terraform_version: Optional[str] = None
    trigger_prefixes: Optional[List[str]] = None
    trigger_patterns: Optional[List[str]] = None
    vcs_repo: Optional[VCSRepoOptions] = None
    working_directory: Optional[str] = None

    project: Optional[Project] = relation()

    def _valid_settings(self) -> None:
        if self.operations is not None and self.execution_mode is not None:
            raise UnsupportedOperationsError()
        if self.agent_pool_id is not None and self.execution_mode != "agent":
            raise RequiredAgentModeError()
        if self.agent_pool_id is None and self.execution_mode == "agent":
            raise RequiredAgentPoolIDError()
        if self.trigger_prefixes and self.trigger_patterns:
            raise UnsupportedBothTriggerPatternsAndPrefixesError()


class WorkspaceCreateOptions(_WorkspaceSettings):
    """Options for creating a workspace."""

    name: str = Field(..., description="Workspace name")

    def valid(self) -> None:
        if not valid_string(self.name):
            raise RequiredNameError()
        if not valid_string_id(self.name):
            raise InvalidNameError()
        self._valid_settings()


class WorkspaceUpdateOptions(_WorkspaceSettings):
    """Options for updating a workspace; unset fields are left untouched."""

    name: Optional[str] = None

    def valid(self) -> None:
        if "name" in self.model_fields_set and not valid_string_id(self.name):
            raise InvalidNameError()
        self._valid_settings()


class WorkspaceLockOptions(BaseModel):
    reason: Optional[str] = Field(None, description="Why the workspace is locked")


def _named_path(organization: str, workspace: str, suffix: str = "") -> str:
    if not valid_string_id(organization):
        raise InvalidOrganizationError()
    if not valid_string_id(workspace):
        raise InvalidWorkspaceValueError()
    return (
        f"organizations/{quote(organization, safe='')}"
        f"/workspaces/{quote(workspace, safe='')}{suffix}"
    )


def _id_path(workspace_id: str, suffix: str = "") -> str:
    if not valid_string_id(workspace_id):
        raise InvalidWorkspaceIDError()
    return f"workspaces/{quote(workspace_id, safe='')}{suffix}"


class WorkspacesAPIClient:
    """Client for workspace operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, organization: str, options: Optional[WorkspaceListOptions] = None
    ) -> ResourceList[Workspace]:
        """List the workspaces of an organization.

        Args:
            organization: Organization name
            options: Pagination, search and include options

        Returns:
            One page of workspaces
        """
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        if options is not None:
            options.valid()
        response = await self._client.request(
            "GET", f"organizations/{quote(organization, safe='')}/workspaces", query=options
        )
        return decode_list(response.content, Workspace, requested_includes(options))

    async def create(self, organization: str, options: WorkspaceCreateOptions) -> Workspace:
        """Create a workspace in an organization.

        Raises:
            InvalidOrganizationError: If the organization name is invalid
            RequiredNameError: If the workspace name is empty
            InvalidConfigurationError: If execution settings contradict each other
        """
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        options.valid()
        response = await self._client.request(
            "POST", f"organizations/{quote(organization, safe='')}/workspaces", body=options
        )
        return decode_one(response.content, Workspace)

    async def read(
        self,
        organization: str,
        workspace: str,
        options: Optional[WorkspaceReadOptions] = None,
    ) -> Workspace:
        """Read a workspace by organization and name."""
        path = _named_path(organization, workspace)
        response = await self._client.request("GET", path, query=options)
        return decode_one(response.content, Workspace, requested_includes(options))

    async def read_by_id(
        self, workspace_id: str, options: Optional[WorkspaceReadOptions] = None
    ) -> Workspace:
        response = await self._client.request("GET", _id_path(workspace_id), query=options)
        return decode_one(response.content, Workspace, requested_includes(options))

    async def update(
        self, organization: str, workspace: str, options: WorkspaceUpdateOptions
    ) -> Workspace:
        path = _named_path(organization, workspace)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, Workspace)

    async def update_by_id(self, workspace_id: str, options: WorkspaceUpdateOptions) -> Workspace:
        path = _id_path(workspace_id)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, Workspace)

    async def delete(self, organization: str, workspace: str) -> None:
        await self._client.request("DELETE", _named_path(organization, workspace))

    async def delete_by_id(self, workspace_id: str) -> None:
        await self._client.request("DELETE", _id_path(workspace_id))

    async def safe_delete(self, organization: str, workspace: str) -> None:
        """Delete a workspace only if it manages no resources.

        Raises:
            WorkspaceNotSafeToDeleteError: If the workspace still has resources
            WorkspaceStillProcessingError: If its latest state is being processed
        """
        await self._client.request(
            "POST", _named_path(organization, workspace, "/actions/safe-delete")
        )

    async def safe_delete_by_id(self, workspace_id: str) -> None:
        await self._client.request("POST", _id_path(workspace_id, "/actions/safe-delete"))

    async def lock(
        self, workspace_id: str, options: Optional[WorkspaceLockOptions] = None
    ) -> Workspace:
        """Lock a workspace.

        Raises:
            WorkspaceLockedError: If the workspace is already locked
        """
        path = _id_path(workspace_id, "/actions/lock")
        body: Dict[str, Any] = {}
        if options is not None:
            body = options.model_dump(exclude_none=True)
        response = await self._client.request("POST", path, body=body)
        logger.debug(f"Locked workspace {workspace_id}")
        return decode_one(response.content, Workspace)

    async def unlock(self, workspace_id: str) -> Workspace:
        """Unlock a workspace.

        Raises:
            WorkspaceNotLockedError: If the workspace is not locked
            WorkspaceLockedByRunError: If a run holds the lock
        """
        response = await self._client.request("POST", _id_path(workspace_id, "/actions/unlock"))
        return decode_one(response.content, Workspace)

    async def force_unlock(self, workspace_id: str) -> Workspace:
        response = await self._client.request(
            "POST", _id_path(workspace_id, "/actions/force-unlock")
        )
        return decode_one(response.content, Workspace)
