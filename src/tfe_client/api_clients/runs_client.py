"""Runs API client."""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field

from ..exceptions import InvalidRunIDError, InvalidWorkspaceIDError, RequiredWorkspaceError
from ..jsonapi import (
    ListOptions,
    Options,
    QueryOptions,
    ResourceList,
    decode_list,
    decode_one,
    relation,
    requested_includes,
)
from ..models import ConfigurationVersion, Run, Workspace
from ..validations import valid_string_id
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)


class RunIncludeOpt(str, Enum):
    PLAN = "plan"
    APPLY = "apply"
    CREATED_BY = "created_by"
    COST_ESTIMATE = "cost_estimate"
    CONFIGURATION_VERSION = "configuration_version"
    CONFIGURATION_VERSION_INGRESS = "configuration_version.ingress_attributes"
    WORKSPACE = "workspace"


class RunListOptions(ListOptions):
    """Filters for listing the runs of a workspace."""

    user: Optional[str] = Field(None, alias="search[user]")
    commit: Optional[str] = Field(None, alias="search[commit]")
    search: Optional[str] = Field(None, alias="search[basic]")
    status: Optional[str] = Field(None, alias="filter[status]", description="Comma separated")
    source: Optional[str] = Field(None, alias="filter[source]")
    operation: Optional[str] = Field(None, alias="filter[operation]")
    include: Optional[List[RunIncludeOpt]] = None


class RunReadOptions(QueryOptions):
    include: Optional[List[RunIncludeOpt]] = None


class RunCreateOptions(Options):
    """Options for queuing a run.

    The workspace is required. When no configuration version is given the
    workspace's latest one is used.
    """

    jsonapi_type = "runs"

    allow_empty_apply: Optional[bool] = None
    auto_apply: Optional[bool] = None
    is_destroy: Optional[bool] = None
    message: Optional[str] = None
    plan_only: Optional[bool] = None
    refresh: Optional[bool] = None
    refresh_only: Optional[bool] = None
    replace_addrs: Optional[List[str]] = None
    target_addrs: Optional[List[str]] = None
    terraform_version: Optional[str] = None

    workspace: Optional[Workspace] = relation()
    configuration_version: Optional[ConfigurationVersion] = relation()

    def valid(self) -> None:
        if self.workspace is None:
            raise RequiredWorkspaceError()


class RunActionOptions(BaseModel):
    """Body for apply, cancel, force-cancel and discard actions."""

    comment: Optional[str] = Field(None, description="Optional comment recorded with the action")


def _run_path(run_id: str, suffix: str = "") -> str:
    if not valid_string_id(run_id):
        raise InvalidRunIDError()
    return f"runs/{quote(run_id, safe='')}{suffix}"


class RunsAPIClient:
    """Client for run operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, workspace_id: str, options: Optional[RunListOptions] = None
    ) -> ResourceList[Run]:
        if not valid_string_id(workspace_id):
            raise InvalidWorkspaceIDError()
        if options is not None:
            options.valid()
        response = await self._client.request(
            "GET", f"workspaces/{quote(workspace_id, safe='')}/runs", query=options
        )
        return decode_list(response.content, Run, requested_includes(options))

    async def create(self, options: RunCreateOptions) -> Run:
        """Queue a new run.

        Raises:
            RequiredWorkspaceError: If no workspace is given
        """
        options.valid()
        response = await self._client.request("POST", "runs", body=options)
        return decode_one(response.content, Run)

    async def read(self, run_id: str, options: Optional[RunReadOptions] = None) -> Run:
        """Read a run, optionally including related resources.

        Args:
            run_id: Run ID
            options: Relationships to include in the response

        Returns:
            The run with any requested relationships resolved

        Raises:
            InvalidRunIDError: If the run ID is invalid
            ResourceNotFoundError: If the run does not exist
            UnresolvedRelationshipError: If a requested include is missing
        """
        response = await self._client.request("GET", _run_path(run_id), query=options)
        return decode_one(response.content, Run, requested_includes(options))

    async def _action(self, run_id: str, action: str, options: Optional[RunActionOptions]) -> None:
        path = _run_path(run_id, f"/actions/{action}")
        body: Dict[str, Any] = {}
        if options is not None:
            body = options.model_dump(exclude_none=True)
        await self._client.request("POST", path, body=body)
        logger.debug(f"Requested {action} for run {run_id}")

    async def apply(self, run_id: str, options: Optional[RunActionOptions] = None) -> None:
        await self._action(run_id, "apply", options)

    async def cancel(self, run_id: str, options: Optional[RunActionOptions] = None) -> None:
        await self._action(run_id, "cancel", options)

    async def force_cancel(self, run_id: str, options: Optional[RunActionOptions] = None) -> None:
        """Force-cancel a run that a normal cancel did not stop."""
        await self._action(run_id, "force-cancel", options)

    async def discard(self, run_id: str, options: Optional[RunActionOptions] = None) -> None:
        await self._action(run_id, "discard", options)
