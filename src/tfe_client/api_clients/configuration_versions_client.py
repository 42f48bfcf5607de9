"""Configuration versions API client.

A configuration version is created empty; its Terraform configuration is
then uploaded as a slug to the version's upload URL.
"""

import asyncio
import io
import logging
from enum import Enum
from typing import BinaryIO, List, Optional, Union
from urllib.parse import quote

from pydantic import Field

from ..exceptions import (
    InvalidConfigVersionIDError,
    InvalidUploadURLError,
    InvalidWorkspaceIDError,
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
from ..models import ConfigurationVersion
from ..slug import PathLike, pack
from ..validations import valid_string, valid_string_id
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)


class ConfigVerIncludeOpt(str, Enum):
    INGRESS_ATTRIBUTES = "ingress_attributes"
    RUN = "run"


class ConfigurationVersionListOptions(ListOptions):
    include: Optional[List[ConfigVerIncludeOpt]] = None


class ConfigurationVersionReadOptions(QueryOptions):
    include: Optional[List[ConfigVerIncludeOpt]] = None


class ConfigurationVersionCreateOptions(Options):
    jsonapi_type = "configuration-versions"

    auto_queue_runs: Optional[bool] = Field(
        None, description="Queue a run as soon as the upload finishes"
    )
    speculative: Optional[bool] = Field(None, description="Only allow plan-only runs")
    provisional: Optional[bool] = None


def _check_upload_url(upload_url: str) -> None:
    if not valid_string(upload_url):
        raise InvalidUploadURLError()


class ConfigurationVersionsAPIClient:
    """Client for configuration version operations."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def list(
        self, workspace_id: str, options: Optional[ConfigurationVersionListOptions] = None
    ) -> ResourceList[ConfigurationVersion]:
        if not valid_string_id(workspace_id):
            raise InvalidWorkspaceIDError()
        if options is not None:
            options.valid()
        response = await self._client.request(
            "GET",
            f"workspaces/{quote(workspace_id, safe='')}/configuration-versions",
            query=options,
        )
        return decode_list(response.content, ConfigurationVersion, requested_includes(options))

    async def create(
        self,
        workspace_id: str,
        options: Optional[ConfigurationVersionCreateOptions] = None,
    ) -> ConfigurationVersion:
        """Create a configuration version awaiting an upload."""
        if not valid_string_id(workspace_id):
            raise InvalidWorkspaceIDError()
        response = await self._client.request(
            "POST",
            f"workspaces/{quote(workspace_id, safe='')}/configuration-versions",
            body=options or ConfigurationVersionCreateOptions(),
        )
        return decode_one(response.content, ConfigurationVersion)

    async def read(
        self, cv_id: str, options: Optional[ConfigurationVersionReadOptions] = None
    ) -> ConfigurationVersion:
        if not valid_string_id(cv_id):
            raise InvalidConfigVersionIDError()
        response = await self._client.request(
            "GET", f"configuration-versions/{quote(cv_id, safe='')}", query=options
        )
        return decode_one(response.content, ConfigurationVersion, requested_includes(options))

    async def upload(self, upload_url: str, path: PathLike) -> None:
        """Pack a directory into a slug and upload it.

        Args:
            upload_url: The configuration version's upload URL
            path: Directory holding the Terraform configuration

        Raises:
            InvalidUploadURLError: If the upload URL is empty
            SlugError: If the directory cannot be packed
        """
        _check_upload_url(upload_url)
        buffer = io.BytesIO()
        meta = await asyncio.to_thread(pack, path, buffer)
        logger.debug(f"Packed {len(meta.files)} files ({meta.size} bytes) from {path}")
        await self._client.put_object(upload_url, buffer.getvalue())

    async def upload_tar_gzip(self, upload_url: str, archive: Union[bytes, BinaryIO]) -> None:
        """Upload an already packed tar.gz archive."""
        _check_upload_url(upload_url)
        data = archive if isinstance(archive, bytes) else archive.read()
        await self._client.put_object(upload_url, data)
