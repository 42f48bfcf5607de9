"""IP ranges API client.

The ip-ranges endpoint is plain JSON (not JSON:API) and lives under
``/api/meta`` rather than the API base path.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import DecodeError
from ..jsonapi import CONTENT_TYPE_JSON, load_document
from .base_client import BaseAPIClient

logger = logging.getLogger(__name__)

IP_RANGES_PATH = "/api/meta/ip-ranges"


class IPRange(BaseModel):
    """CIDR ranges used by the service, grouped by purpose."""

    api: List[str] = Field(default_factory=list, description="Inbound API traffic")
    notifications: List[str] = Field(default_factory=list, description="Outbound notifications")
    sentinel: List[str] = Field(default_factory=list, description="Outbound Sentinel traffic")
    vcs: List[str] = Field(default_factory=list, description="VCS provider traffic")


class IPRangesAPIClient:
    """Client for the IP ranges endpoint."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def read(self, modified_since: Optional[str] = None) -> IPRange:
        """Read the current IP ranges.

        Args:
            modified_since: HTTP date; when the ranges have not changed since,
                the server answers 304 and an empty ``IPRange`` is returned

        Raises:
            DecodeError: If the response is not the expected JSON object
        """
        headers = {"If-Modified-Since": modified_since} if modified_since else None
        response = await self._client.request(
            "GET", IP_RANGES_PATH, accept=f"{CONTENT_TYPE_JSON}, */*", headers=headers
        )
        if response.status_code == 304 or not response.content:
            logger.debug("IP ranges not modified")
            return IPRange()
        try:
            return IPRange.model_validate(load_document(response.content))
        except PydanticValidationError as e:
            raise DecodeError(f"unable to decode IP ranges: {e}") from e
