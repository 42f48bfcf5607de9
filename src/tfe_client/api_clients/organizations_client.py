"""Organizations API client.

Lists, creates, reads, updates and deletes organizations, and reads an
organization's run capacity and entitlements.
"""

import logging
from typing import Optional
from urllib.parse import quote

from pydantic import Field

from ..exceptions import (
    InvalidEmailError,
    InvalidNameError,
    InvalidOrganizationError,
    RequiredEmailError,
    RequiredNameError,
)
from ..jsonapi import ListOptions, Options, ResourceList, decode_list, decode_one
from ..models import Capacity, Entitlements, Organization
from ..validations import valid_email, valid_string, valid_string_id
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)


class OrganizationListOptions(ListOptions):
    query: Optional[str] = Field(None, alias="q", description="Search by name or email")
    query_name: Optional[str] = Field(None, alias="q[name]")
    query_email: Optional[str] = Field(None, alias="q[email]")


class OrganizationCreateOptions(Options):
    """Options for creating an organization."""

    jsonapi_type = "organizations"

    name: str = Field(..., description="Organization name")
    email: str = Field(..., description="Admin email address")
    session_timeout: Optional[int] = None
    session_remember: Optional[int] = None
    collaborator_auth_policy: Optional[str] = None
    cost_estimation_enabled: Optional[bool] = None
    owners_team_saml_role_id: Optional[str] = None
    default_execution_mode: Optional[str] = None
    assessments_enforced: Optional[bool] = None

    def valid(self) -> None:
        if not valid_string(self.name):
            raise RequiredNameError()
        if not valid_string_id(self.name):
            raise InvalidNameError()
        if not valid_string(self.email):
            raise RequiredEmailError()
        if not valid_email(self.email):
            raise InvalidEmailError()


class OrganizationUpdateOptions(Options):
    """Options for updating an organization; unset fields are left untouched."""

    jsonapi_type = "organizations"

    name: Optional[str] = None
    email: Optional[str] = None
    session_timeout: Optional[int] = None
    session_remember: Optional[int] = None
    collaborator_auth_policy: Optional[str] = None
    cost_estimation_enabled: Optional[bool] = None
    owners_team_saml_role_id: Optional[str] = None
    default_execution_mode: Optional[str] = None
    assessments_enforced: Optional[bool] = None

    def valid(self) -> None:
        if "name" in self.model_fields_set and not valid_string_id(self.name):
            raise InvalidNameError()
        if self.email is not None and not valid_email(self.email):
            raise InvalidEmailError()


def _org_path(organization: str, suffix: str = "") -> str:
    if not valid_string_id(organization):
        raise InvalidOrganizationError()
    return f"organizations/{quote(organization, safe='')}{suffix}"


class OrganizationsAPIClient:
    """Client for organization operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, options: Optional[OrganizationListOptions] = None
    ) -> ResourceList[Organization]:
        """List organizations visible to the current token.

        Args:
            options: Pagination and search options

        Returns:
            One page of organizations
        """
        if options is not None:
            options.valid()
        response = await self._client.request("GET", "organizations", query=options)
        return decode_list(response.content, Organization)

    async def create(self, options: OrganizationCreateOptions) -> Organization:
        """Create an organization.

        Raises:
            RequiredNameError: If the name is missing
            InvalidEmailError: If the email does not look like an address
        """
        options.valid()
        response = await self._client.request("POST", "organizations", body=options)
        return decode_one(response.content, Organization)

    async def read(self, organization: str) -> Organization:
        """Read an organization by name.

        Raises:
            InvalidOrganizationError: If the name is not a valid identifier
            ResourceNotFoundError: If the organization does not exist
        """
        response = await self._client.request("GET", _org_path(organization))
        return decode_one(response.content, Organization)

    async def update(
        self, organization: str, options: OrganizationUpdateOptions
    ) -> Organization:
        path = _org_path(organization)
        options.valid()
        response = await self._client.request("PATCH", path, body=options)
        return decode_one(response.content, Organization)

    async def delete(self, organization: str) -> None:
        path = _org_path(organization)
        await self._client.request("DELETE", path)
        logger.debug(f"Deleted organization {organization}")

    async def read_capacity(self, organization: str) -> Capacity:
        """Read the number of pending and running runs of an organization."""
        response = await self._client.request("GET", _org_path(organization, "/capacity"))
        return decode_one(response.content, Capacity)

    async def read_entitlements(self, organization: str) -> Entitlements:
        response = await self._client.request(
            "GET", _org_path(organization, "/entitlement-set")
        )
        return decode_one(response.content, Entitlements)
