"""Variable sets API client.

A variable set groups variables that can be applied to many workspaces at
once, or to every workspace of the organization when it is global.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from pydantic import BaseModel, Field

from ..exceptions import (
    InvalidNameError,
    InvalidOrganizationError,
    InvalidVariableSetIDError,
    InvalidWorkspaceIDError,
    RequiredGlobalFlagError,
    RequiredNameError,
    RequiredWorkspacesError,
    WorkspaceMinLimitError,
)
from ..jsonapi import (
    ListOptions,
    Options,
    QueryOptions,
    ResourceList,
    decode_list,
    decode_one,
    requested_includes,
)
from ..models import VariableSet, Workspace
from ..validations import valid_string, valid_string_id
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)


class VariableSetIncludeOpt(str, Enum):
    WORKSPACES = "workspaces"
    PROJECTS = "projects"
    VARS = "vars"


class VariableSetListOptions(ListOptions):
    query: Optional[str] = Field(None, alias="q", description="Partial name match")
    include: Optional[List[VariableSetIncludeOpt]] = None


class VariableSetReadOptions(QueryOptions):
    include: Optional[List[VariableSetIncludeOpt]] = None


class VariableSetCreateOptions(Options):
    """Options for creating a variable set. Name and the global flag are required."""

    jsonapi_type = "varsets"

    name: str = Field(..., description="Variable set name")
    global_: Optional[bool] = Field(None, alias="global", description="Apply to every workspace")
    description: Optional[str] = None
    priority: Optional[bool] = None

    def valid(self) -> None:
        if not valid_string(self.name):
            raise RequiredNameError()
        if self.global_ is None:
            raise RequiredGlobalFlagError()


class VariableSetUpdateOptions(Options):
    jsonapi_type = "varsets"

    name: Optional[str] = None
    global_: Optional[bool] = Field(None, alias="global")
    description: Optional[str] = None
    priority: Optional[bool] = None

    def valid(self) -> None:
        if "name" in self.model_fields_set and not valid_string(self.name):
            raise InvalidNameError()


class VariableSetWorkspacesOptions(BaseModel):
    """Workspaces to apply a variable set to, or remove it from."""

    workspaces: Optional[List[Workspace]] = None

    def valid(self) -> None:
        if self.workspaces is None:
            raise RequiredWorkspacesError()
        if len(self.workspaces) == 0:
            raise WorkspaceMinLimitError()
        for workspace in self.workspaces:
            if not valid_string_id(workspace.id):
                raise InvalidWorkspaceIDError()

    def to_body(self) -> Dict[str, Any]:
        return {
            "data": [{"type": Workspace.jsonapi_type, "id": ws.id} for ws in self.workspaces or []]
        }


def _varset_path(variable_set_id: str, suffix: str = "") -> str:
    if not valid_string_id(variable_set_id):
        raise InvalidVariableSetIDError()
    return f"varsets/{quote(variable_set_id, safe='')}{suffix}"


class VariableSetsAPIClient:
    """Client for variable set operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, organization: str, options: Optional[VariableSetListOptions] = None
    ) -> ResourceList[VariableSet]:
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        if options is not None:
            options.valid()
        response = await self._client.request(
            "GET", f"organizations/{quote(organization, safe='')}/varsets", query=options
        )
        return decode_list(response.content, VariableSet, requested_includes(options))

    async def create(self, organization: str, options: VariableSetCreateOptions) -> VariableSet:
        """Create a variable set.

        Raises:
            InvalidOrganizationError: If the organization name is invalid
            RequiredNameError: If the name is empty
            RequiredGlobalFlagError: If the global flag was not set
        """
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        options.valid()
        response = await self._client.request(
            "POST", f"organizations/{quote(organization, safe='')}/varsets", body=options
        )
        return decode_one(response.content, VariableSet)

    async def read(
        self, variable_set_id: str, options: Optional[VariableSetReadOptions] = None
    ) -> VariableSet:
        response = await self._client.request("GET", _varset_path(variable_set_id), query=options)
        return decode_one(response.content, VariableSet, requested_includes(options))

    async def update(
        self, variable_set_id: str, options: VariableSetUpdateOptions
    ) -> VariableSet:
        path = _varset_path(variable_set_id)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, VariableSet)

    async def delete(self, variable_set_id: str) -> None:
        await self._client.request("DELETE", _varset_path(variable_set_id))

    async def apply_to_workspaces(
        self, variable_set_id: str, options: VariableSetWorkspacesOptions
    ) -> None:
        """Apply a variable set to the given workspaces."""
        path = _varset_path(variable_set_id, "/relationships/workspaces")
        options.valid()
        await self._client.request("POST", path, body=options.to_body())
        logger.debug(
            f"Applied variable set {variable_set_id} to {len(options.workspaces or [])} workspaces"
        )

    async def remove_from_workspaces(
        self, variable_set_id: str, options: VariableSetWorkspacesOptions
    ) -> None:
        path = _varset_path(variable_set_id, "/relationships/workspaces")
        options.valid()
        await self._client.request("DELETE", path, body=options.to_body())
