"""Terraform Enterprise admin settings API clients.

These endpoints exist only on Terraform Enterprise and require a site-admin
token.
"""

from typing import Optional

from pydantic import Field

from ..exceptions import InvalidSMTPAuthError
from ..jsonapi import Options, decode_one
from ..models import AdminGeneralSetting, AdminSMTPSetting, SMTPAuthType
from ..validations import valid_string
from .base_client import BaseAPIClient

SMTP_SETTINGS_PATH = "admin/smtp-settings"
GENERAL_SETTINGS_PATH = "admin/general-settings"

_SMTP_AUTH_TYPES = {a.value for a in SMTPAuthType}


class AdminSMTPSettingsUpdateOptions(Options):
    """SMTP settings to change. ``auth`` is always required."""

    jsonapi_type = "smtp-settings"

    enabled: Optional[bool] = None
    host: Optional[str] = None
    port: Optional[int] = None
    sender: Optional[str] = None
    auth: Optional[str] = Field(None, description="One of none, plain or login")
    username: Optional[str] = None
    password: Optional[str] = None
    test_email_address: Optional[str] = None

    def valid(self) -> None:
        auth = getattr(self.auth, "value", self.auth)
        if not valid_string(auth) or auth not in _SMTP_AUTH_TYPES:
            raise InvalidSMTPAuthError()


class AdminGeneralSettingsUpdateOptions(Options):
    jsonapi_type = "general-settings"

    limit_user_organization_creation: Optional[bool] = None
    api_rate_limiting_enabled: Optional[bool] = None
    api_rate_limit: Optional[int] = None
    send_passing_statuses_for_untriggered_speculative_plans: Optional[bool] = None
    allow_speculative_plans_on_pull_requests_from_forks: Optional[bool] = None
    default_remote_state_access: Optional[bool] = None


class AdminSMTPSettingsAPIClient:
    """Client for the SMTP settings of a Terraform Enterprise installation."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def read(self) -> AdminSMTPSetting:
        response = await self._client.request("GET", SMTP_SETTINGS_PATH)
        return decode_one(response.content, AdminSMTPSetting)

    async def update(self, options: AdminSMTPSettingsUpdateOptions) -> AdminSMTPSetting:
        """Update SMTP settings.

        Raises:
            InvalidSMTPAuthError: If ``auth`` is missing or not a known type
        """
        options.valid()
        response = await self._client.request("PATCH", SMTP_SETTINGS_PATH, body=options)
        return decode_one(response.content, AdminSMTPSetting)


class AdminGeneralSettingsAPIClient:
    """Client for the general settings of a Terraform Enterprise installation."""

    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def read(self) -> AdminGeneralSetting:
        response = await self._client.request("GET", GENERAL_SETTINGS_PATH)
        return decode_one(response.content, AdminGeneralSetting)

    async def update(self, options: AdminGeneralSettingsUpdateOptions) -> AdminGeneralSetting:
        response = await self._client.request("PATCH", GENERAL_SETTINGS_PATH, body=options)
        return decode_one(response.content, AdminGeneralSetting)
