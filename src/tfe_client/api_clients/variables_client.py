"""Workspace variables API client."""

from typing import Optional
from urllib.parse import quote

from pydantic import Field

from ..exceptions import (
    InvalidCategoryError,
    InvalidVariableIDError,
    InvalidWorkspaceIDError,
    RequiredCategoryError,
    RequiredKeyError,
)
from ..jsonapi import ListOptions, Options, ResourceList, decode_list, decode_one
from ..models import CategoryType, Variable
from ..validations import valid_string, valid_string_id
from .base_client import BaseAPIClient

_CATEGORIES = {c.value for c in CategoryType}


def _valid_category(category: Optional[str]) -> None:
    if category is not None and getattr(category, "value", category) not in _CATEGORIES:
        raise InvalidCategoryError()


class VariableListOptions(ListOptions):
    pass


class VariableCreateOptions(Options):
    """Options for creating a workspace variable."""

    jsonapi_type = "vars"

    key: str = Field(..., description="Variable name")
    category: Optional[str] = Field(None, description="One of the CategoryType values")
    value: Optional[str] = None
    description: Optional[str] = None
    hcl: Optional[bool] = None
    sensitive: Optional[bool] = None

    def valid(self) -> None:
        if not valid_string(self.key):
            raise RequiredKeyError()
        if self.category is None:
            raise RequiredCategoryError()
        _valid_category(self.category)


class VariableUpdateOptions(Options):
    jsonapi_type = "vars"

    key: Optional[str] = None
    value: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    hcl: Optional[bool] = None
    sensitive: Optional[bool] = None

    def valid(self) -> None:
        if "key" in self.model_fields_set and not valid_string(self.key):
            raise RequiredKeyError()
        _valid_category(self.category)


def _vars_path(workspace_id: str, variable_id: Optional[str] = None) -> str:
    if not valid_string_id(workspace_id):
        raise InvalidWorkspaceIDError()
    path = f"workspaces/{quote(workspace_id, safe='')}/vars"
    if variable_id is None:
        return path
    if not valid_string_id(variable_id):
        raise InvalidVariableIDError()
    return f"{path}/{quote(variable_id, safe='')}"


class VariablesAPIClient:
    """Client for workspace variable operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, workspace_id: str, options: Optional[VariableListOptions] = None
    ) -> ResourceList[Variable]:
        path = _vars_path(workspace_id)
        if options is not None:
            options.valid()
        response = await self._client.request("GET", path, query=options)
        return decode_list(response.content, Variable)

    async def create(self, workspace_id: str, options: VariableCreateOptions) -> Variable:
        """Create a variable in a workspace.

        Raises:
            RequiredKeyError: If the key is empty
            RequiredCategoryError: If no category is given
        """
        path = _vars_path(workspace_id)
        options.valid()
        response = await self._client.request("POST", path, body=options)
        return decode_one(response.content, Variable)

    async def read(self, workspace_id: str, variable_id: str) -> Variable:
        response = await self._client.request("GET", _vars_path(workspace_id, variable_id))
        return decode_one(response.content, Variable)

    async def update(
        self, workspace_id: str, variable_id: str, options: VariableUpdateOptions
    ) -> Variable:
        path = _vars_path(workspace_id, variable_id)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, Variable)

    async def delete(self, workspace_id: str, variable_id: str) -> None:
        await self._client.request("DELETE", _vars_path(workspace_id, variable_id))
