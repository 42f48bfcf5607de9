"""Private registry modules API client."""

import logging
from typing import BinaryIO, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel, Field

from ..exceptions import (
    InvalidModuleIDError,
    InvalidNameError,
    InvalidOrganizationError,
    InvalidProviderError,
    InvalidRegistryNameError,
    InvalidUploadURLError,
    InvalidVersionError,
    RequiredNameError,
    RequiredNamespaceError,
    RequiredProviderError,
    RequiredVersionError,
    UnsupportedBothNamespaceAndPrivateRegistryNameError,
)
from ..jsonapi import ListOptions, Options, ResourceList, decode_list, decode_one
from ..models import RegistryModule, RegistryModuleVersion, RegistryName
from ..validations import valid_string, valid_string_id, valid_version
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)

_REGISTRY_NAMES = {r.value for r in RegistryName}


def _registry_name(value: Optional[str]) -> Optional[str]:
    return getattr(value, "value", value)


def _check_name_and_provider(name: Optional[str], provider: Optional[str]) -> None:
    if not valid_string(name):
        raise RequiredNameError()
    if not valid_string_id(name):
        raise InvalidNameError()
    if not valid_string(provider):
        raise RequiredProviderError()
    if not valid_string_id(provider):
        raise InvalidProviderError()


class RegistryModuleID(BaseModel):
    """Identifies a registry module.

    When ``id`` is given the other fields are ignored. Otherwise the module is
    addressed by organization, registry name, namespace, name and provider.
    The registry name defaults to private, in which case the namespace
    defaults to the organization.
    """

    id: Optional[str] = None
    organization: Optional[str] = None
    name: Optional[str] = None
    provider: Optional[str] = None
    namespace: Optional[str] = None
    registry_name: Optional[str] = Field(None, description='"private" or "public"')

    def valid(self) -> None:
        if valid_string(self.id) and valid_string_id(self.id):
            return
        if not valid_string_id(self.organization):
            raise InvalidOrganizationError()
        _check_name_and_provider(self.name, self.provider)
        self._valid_registry(required=False)

    def valid_for_delete(self) -> None:
        if not valid_string_id(self.organization):
            raise InvalidOrganizationError()
        if not valid_string(self.name):
            raise RequiredNameError()
        if not valid_string_id(self.name):
            raise InvalidNameError()
        self._valid_registry(required=True)

    def _valid_registry(self, required: bool) -> None:
        registry = _registry_name(self.registry_name)
        if registry is None or registry == "":
            if required:
                raise InvalidRegistryNameError()
            return
        if registry not in _REGISTRY_NAMES:
            raise InvalidRegistryNameError()
        if registry == RegistryName.PUBLIC.value and not valid_string(self.namespace):
            raise RequiredNamespaceError()

    def resolved_registry(self) -> str:
        return _registry_name(self.registry_name) or RegistryName.PRIVATE.value

    def resolved_namespace(self) -> str:
        if self.resolved_registry() == RegistryName.PRIVATE.value and not (
            self.namespace or ""
        ).strip():
            return self.organization or ""
        return self.namespace or ""


class RegistryModuleListOptions(ListOptions):
    query: Optional[str] = Field(None, alias="q")
    provider: Optional[str] = Field(None, alias="filter[provider]")
    registry_name: Optional[str] = Field(None, alias="filter[registry_name]")
    organization_name: Optional[str] = Field(None, alias="filter[organization_name]")


class RegistryModuleCreateOptions(Options):
    """Options for creating a module without a VCS connection."""

    jsonapi_type = "registry-modules"

    name: str = Field(..., description="Module name")
    provider: str = Field(..., description="Main provider, e.g. aws")
    registry_name: Optional[str] = Field(None, description='"private" (default) or "public"')
    namespace: Optional[str] = Field(None, description="Required for public modules only")
    no_code: Optional[bool] = None

    def valid(self) -> None:
        _check_name_and_provider(self.name, self.provider)
        registry = _registry_name(self.registry_name)
        if registry is None or registry == "":
            return
        if registry == RegistryName.PUBLIC.value:
            if not valid_string(self.namespace):
                raise RequiredNamespaceError()
        elif registry == RegistryName.PRIVATE.value:
            if valid_string(self.namespace):
                raise UnsupportedBothNamespaceAndPrivateRegistryNameError()
        else:
            raise InvalidRegistryNameError()


class RegistryModuleCreateVersionOptions(Options):
    jsonapi_type = "registry-module-versions"

    version: str = Field(..., description="Semantic version, e.g. 1.2.0")
    commit_sha: Optional[str] = None

    def valid(self) -> None:
        if not valid_string(self.version):
            raise RequiredVersionError()
        if not valid_version(self.version):
            raise InvalidVersionError()


def _org_modules_path(organization: Optional[str]) -> str:
    if not valid_string_id(organization):
        raise InvalidOrganizationError()
    return f"organizations/{quote(organization, safe='')}/registry-modules"


class RegistryModulesAPIClient:
    """Client for private registry module operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, organization: str, options: Optional[RegistryModuleListOptions] = None
    ) -> ResourceList[RegistryModule]:
        path = _org_modules_path(organization)
        if options is not None:
            options.valid()
        response = await self._client.request("GET", path, query=options)
        return decode_list(response.content, RegistryModule)

    async def create(
        self, organization: str, options: RegistryModuleCreateOptions
    ) -> RegistryModule:
        path = _org_modules_path(organization)
        options.valid()
        response = await self._client.request("POST", path, body=options)
        return decode_one(response.content, RegistryModule)

    async def read(self, module_id: RegistryModuleID) -> RegistryModule:
        """Read a module by ID, or by its organization, namespace, name and provider."""
        module_id.valid()
        if valid_string(module_id.id):
            path = f"registry-modules/{quote(module_id.id, safe='')}"
        else:
            if not module_id.registry_name:
                logger.warning(
                    "Reading a registry module without a registry name; assuming private"
                )
            segments = (
                module_id.resolved_registry(),
                module_id.resolved_namespace(),
                module_id.name,
                module_id.provider,
            )
            path = _org_modules_path(module_id.organization) + "".join(
                f"/{quote(s, safe='')}" for s in segments
            )
        response = await self._client.request("GET", path)
        return decode_one(response.content, RegistryModule)

    async def delete(self, module_id: RegistryModuleID) -> None:
        """Delete a module with all its providers and versions."""
        module_id.valid_for_delete()
        segments = (module_id.resolved_registry(), module_id.resolved_namespace(), module_id.name)
        path = _org_modules_path(module_id.organization) + "".join(
            f"/{quote(s, safe='')}" for s in segments
        )
        await self._client.request("DELETE", path)

    async def create_version(
        self, module_id: RegistryModuleID, options: RegistryModuleCreateVersionOptions
    ) -> RegistryModuleVersion:
        """Create a module version, returning it with its upload link.

        Raises:
            InvalidModuleIDError: If the module is addressed by ID only
            RequiredVersionError: If the version is empty
            InvalidVersionError: If the version is not a dotted version
        """
        module_id.valid()
        segments = (module_id.organization, module_id.name, module_id.provider)
        if not all(valid_string(s) for s in segments):
            raise InvalidModuleIDError()
        options.valid()
        path = "registry-modules/" + "/".join(quote(s, safe="") for s in segments)
        response = await self._client.request("POST", f"{path}/versions", body=options)
        return decode_one(response.content, RegistryModuleVersion)

    async def upload_tar_gzip(self, upload_url: str, archive: Union[bytes, BinaryIO]) -> None:
        """Upload a packed module archive to a version's upload link."""
        if not valid_string(upload_url):
            raise InvalidUploadURLError()
        data = archive if isinstance(archive, bytes) else archive.read()
        await self._client.put_object(upload_url, data)
