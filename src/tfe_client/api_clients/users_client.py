"""Current user API client."""

from typing import Optional

from ..exceptions import InvalidEmailError, InvalidNameError
from ..jsonapi import Options, decode_one
from ..models import User
from ..validations import valid_email, valid_string
from .base_client import BaseAPIClient


class UserUpdateOptions(Options):
    """Attributes of the current user to change.

    A new email address must be confirmed before it takes effect.
    """

    jsonapi_type = "users"

    username: Optional[str] = None
    email: Optional[str] = None

    def valid(self) -> None:
        if "username" in self.model_fields_set and not valid_string(self.username):
            raise InvalidNameError()
        if "email" in self.model_fields_set and not valid_email(self.email):
            raise InvalidEmailError()


class UsersAPIClient:
    def __init__(self, client: BaseAPIClient):
        self._client = client

    async def read_current(self) -> User:
        """Read the user (or service account) owning the token."""
        response = await self._client.request("GET", "account/details")
        return decode_one(response.content, User)

    async def update_current(self, options: UserUpdateOptions) -> User:
        options.valid()
        response = await self._client.request("PATCH", "account/update", body=options)
        return decode_one(response.content, User)
