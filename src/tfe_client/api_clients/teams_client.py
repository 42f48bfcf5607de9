"""Teams API client."""

from enum import Enum
from typing import List, Optional
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import (
    InvalidNameError,
    InvalidOrganizationError,
    InvalidTeamIDError,
    RequiredNameError,
)
from ..jsonapi import (
    ListOptions,
    Options,
    ResourceList,
    dasherize,
    decode_list,
    decode_one,
    requested_includes,
)
from ..models import Team
from ..validations import valid_string, valid_string_id
from .base_client import BaseAPIClient


class TeamIncludeOpt(str, Enum):
    USERS = "users"
    ORGANIZATION_MEMBERSHIPS = "organization-memberships"


class TeamListOptions(ListOptions):
    names: Optional[List[str]] = Field(None, alias="filter[names]")
    query: Optional[str] = Field(None, alias="q")
    include: Optional[List[TeamIncludeOpt]] = None


class OrganizationAccessOptions(BaseModel):
    """Organization-level permissions to grant a team."""

    model_config = ConfigDict(alias_generator=dasherize, populate_by_name=True, extra="forbid")

    manage_policies: Optional[bool] = None
    manage_policy_overrides: Optional[bool] = None
    manage_workspaces: Optional[bool] = None
    manage_vcs_settings: Optional[bool] = None
    manage_providers: Optional[bool] = None
    manage_modules: Optional[bool] = None
    manage_run_tasks: Optional[bool] = None
    manage_projects: Optional[bool] = None
    read_workspaces: Optional[bool] = None
    read_projects: Optional[bool] = None
    manage_membership: Optional[bool] = None


class TeamCreateOptions(Options):
    jsonapi_type = "teams"

    name: str = Field(..., description="Team name")
    sso_team_id: Optional[str] = None
    organization_access: Optional[OrganizationAccessOptions] = None
    visibility: Optional[str] = Field(None, description='"secret" or "organization"')
    allow_member_token_management: Optional[bool] = None

    def valid(self) -> None:
        if not valid_string(self.name):
            raise RequiredNameError()
        if not valid_string_id(self.name):
            raise InvalidNameError()


class TeamUpdateOptions(Options):
    jsonapi_type = "teams"

    name: Optional[str] = None
    sso_team_id: Optional[str] = None
    organization_access: Optional[OrganizationAccessOptions] = None
    visibility: Optional[str] = None
    allow_member_token_management: Optional[bool] = None

    def valid(self) -> None:
        if "name" in self.model_fields_set and not valid_string_id(self.name):
            raise InvalidNameError()


def _team_path(team_id: str) -> str:
    if not valid_string_id(team_id):
        raise InvalidTeamIDError()
    return f"teams/{quote(team_id, safe='')}"


class TeamsAPIClient:
    """Client for team operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, organization: str, options: Optional[TeamListOptions] = None
    ) -> ResourceList[Team]:
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        if options is not None:
            options.valid()
        response = await self._client.request(
            "GET", f"organizations/{quote(organization, safe='')}/teams", query=options
        )
        return decode_list(response.content, Team, requested_includes(options))

    async def create(self, organization: str, options: TeamCreateOptions) -> Team:
        if not valid_string_id(organization):
            raise InvalidOrganizationError()
        options.valid()
        response = await self._client.request(
            "POST", f"organizations/{quote(organization, safe='')}/teams", body=options
        )
        return decode_one(response.content, Team)

    async def read(self, team_id: str) -> Team:
        response = await self._client.request("GET", _team_path(team_id))
        return decode_one(response.content, Team)

    async def update(self, team_id: str, options: TeamUpdateOptions) -> Team:
        path = _team_path(team_id)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, Team)

    async def delete(self, team_id: str) -> None:
        await self._client.request("DELETE", _team_path(team_id))
