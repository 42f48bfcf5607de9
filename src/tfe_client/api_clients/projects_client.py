"""Projects API client."""

from typing import Optional
from urllib.parse import quote

from pydantic import Field

from ..exceptions import (
    InvalidNameError,
    InvalidOrganizationError,
    InvalidProjectIDError,
    RequiredNameError,
)
from ..jsonapi import ListOptions, Options, ResourceList, decode_list, decode_one
from ..models import Project
from ..validations import valid_string, valid_string_id
from .base_client import BaseAPIClient


class ProjectListOptions(ListOptions):
    name: Optional[str] = Field(None, alias="filter[names]", description="Exact project name")
    query: Optional[str] = Field(None, alias="q", description="Partial name match")


class ProjectCreateOptions(Options):
    jsonapi_type = "projects"

    name: str = Field(..., description="Project name")
    description: Optional[str] = None

    def valid(self) -> None:
        if not valid_string(self.name):
            raise RequiredNameError()
        if not valid_string_id(self.name):
            raise InvalidNameError()


class ProjectUpdateOptions(Options):
    jsonapi_type = "projects"

    name: Optional[str] = None
    description: Optional[str] = None

    def valid(self) -> None:
        if "name" in self.model_fields_set and not valid_string_id(self.name):
            raise InvalidNameError()


def _project_path(project_id: str) -> str:
    if not valid_string_id(project_id):
        raise InvalidProjectIDError()
    return f"projects/{quote(project_id, safe='')}"


class ProjectsAPIClient:
    """Client for project operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, organization: str, options: Optional[ProjectListOptions] = None
    ) -> ResourceList[Project]:
        """List the projects of an organization.

        Raises:
            InvalidOrganizationError: If the organization name is invalid
            InvalidPaginationError: If a page number or size is below one
        """
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        if options is not None:
            options.valid()
        response = await self._client.request(
            "GET", f"organizations/{quote(organization, safe='')}/projects", query=options
        )
        return decode_list(response.content, Project)

    async def create(self, organization: str, options: ProjectCreateOptions) -> Project:
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        options.valid()
        response = await self._client.request(
            "POST", f"organizations/{quote(organization, safe='')}/projects", body=options
        )
        return decode_one(response.content, Project)

    async def read(self, project_id: str) -> Project:
        response = await self._client.request("GET", _project_path(project_id))
        return decode_one(response.content, Project)

    async def update(self, project_id: str, options: ProjectUpdateOptions) -> Project:
        path = _project_path(project_id)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, Project)

    async def delete(self, project_id: str) -> None:
        await self._client.request("DELETE", _project_path(project_id))
