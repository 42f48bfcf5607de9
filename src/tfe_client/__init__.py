"""
tfe-client - async Python client for the HCP Terraform and Terraform
Enterprise APIs.

Resources are pydantic models decoded from JSON:API documents; every
resource family is reachable from a single ``Client``.
"""

__version__ = "0.4.0"

from .client import Client  # noqa: E402
from .config import ClientConfig  # noqa: E402
from .exceptions import (  # noqa: E402
    APIError,
    ConflictError,
    DecodeError,
    ResourceNotFoundError,
    TFEError,
    TransportError,
    ValidationError,
)
from .jsonapi import Pagination, ResourceList  # noqa: E402

__all__ = [
    "__version__",
    "Client",
    "ClientConfig",
    "APIError",
    "ConflictError",
    "DecodeError",
    "ResourceNotFoundError",
    "TFEError",
    "TransportError",
    "ValidationError",
    "Pagination",
    "ResourceList",
]
