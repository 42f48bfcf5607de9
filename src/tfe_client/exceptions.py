"""Exception taxonomy for the Terraform API client.

Every failure the client reports is one of the classes below. A class is the
identity of a failure condition: the same condition always raises the same
class with the same message, so callers can branch with ``except`` clauses
regardless of which resource produced the error.

Errors fall into four groups:

- ``ValidationError``: raised locally before any request is made.
- ``APIError``: the server answered with a non-success status.
- ``TransportError``: the request never produced a usable response.
- ``DecodeError``: the server answered but the body could not be understood.
"""

from typing import Any, List, Optional, Tuple, Type


class TFEError(Exception):
    """Base exception for all client errors."""

    message = "terraform API client error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ConfigurationError(TFEError):
    """Exception raised when the client configuration is unusable."""

    message = "invalid client configuration"


class MissingTokenError(ConfigurationError):
    message = "missing API token"


class InvalidAddressError(ConfigurationError):
    message = "invalid address"


class InvalidRequestBodyError(TFEError):
    """Raised when a request body is neither an options model nor a dict."""

    message = "request body must be None, an options model, a list of options models, or a dict"


# ---------------------------------------------------------------------------
# Client-side validation
# ---------------------------------------------------------------------------


class ValidationError(TFEError):
    """Exception raised when options fail local validation."""

    message = "invalid options"


class InvalidValueError(ValidationError):
    message = "invalid value"


class RequiredValueError(ValidationError):
    message = "value is required"


class InvalidOrganizationError(InvalidValueError):
    message = "invalid value for organization"


class InvalidNameError(InvalidValueError):
    message = "invalid value for name"


class InvalidEmailError(InvalidValueError):
    message = "invalid value for email"


class InvalidWorkspaceIDError(InvalidValueError):
    message = "invalid value for workspace ID"


class InvalidWorkspaceValueError(InvalidValueError):
    message = "invalid value for workspace"


class InvalidRunIDError(InvalidValueError):
    message = "invalid value for run ID"


class InvalidProjectIDError(InvalidValueError):
    message = "invalid value for project ID"


class InvalidTeamIDError(InvalidValueError):
    message = "invalid value for team ID"


class InvalidVariableIDError(InvalidValueError):
    message = "invalid value for variable ID"


class InvalidVariableSetIDError(InvalidValueError):
    message = "invalid variable set ID"


class InvalidConfigVersionIDError(InvalidValueError):
    message = "invalid value for configuration version ID"


class InvalidModuleIDError(InvalidValueError):
    message = "invalid value for module ID"


class InvalidNamespaceError(InvalidValueError):
    message = "invalid value for namespace"


class InvalidProviderError(InvalidValueError):
    message = "invalid value for provider"


class InvalidRegistryNameError(InvalidValueError):
    message = 'invalid value for registry-name. It must be either "private" or "public"'


class InvalidVersionError(InvalidValueError):
    message = "invalid value for version"


class InvalidUploadURLError(InvalidValueError):
    message = "invalid value for upload URL"


class InvalidCategoryError(InvalidValueError):
    message = 'category must be "terraform" or "env"'


class InvalidPaginationError(InvalidValueError):
    message = "invalid value for page size or number"


class InvalidConfigurationError(InvalidValueError):
    message = "invalid configuration"


class InvalidSMTPAuthError(InvalidConfigurationError):
    message = "invalid smtp auth type"


class RequiredAgentModeError(InvalidConfigurationError):
    message = 'specifying an agent pool ID requires "agent" execution mode'


class RequiredAgentPoolIDError(InvalidConfigurationError):
    message = '"agent" execution mode requires an agent pool ID to be specified'


class UnsupportedBothTriggerPatternsAndPrefixesError(InvalidConfigurationError):
    message = '"trigger_patterns" and "trigger_prefixes" cannot be populated at the same time'


class UnsupportedOperationsError(InvalidConfigurationError):
    message = "operations is deprecated and cannot be specified when execution mode is used"


class UnsupportedBothNamespaceAndPrivateRegistryNameError(InvalidConfigurationError):
    message = "namespace cannot be populated when registry name is private"


class RequiredNameError(RequiredValueError):
    message = "name is required"


class RequiredKeyError(RequiredValueError):
    message = "key is required"


class RequiredCategoryError(RequiredValueError):
    message = "category is required"


class RequiredWorkspaceError(RequiredValueError):
    message = "workspace is required"


class RequiredWorkspacesError(RequiredValueError):
    message = "workspaces is required"


class WorkspaceMinLimitError(RequiredValueError):
    message = "must provide at least one workspace"


class RequiredEmailError(RequiredValueError):
    message = "email is required"


class RequiredProviderError(RequiredValueError):
    message = "provider is required"


class RequiredNamespaceError(RequiredValueError):
    message = "namespace is required for public registry"


class RequiredVersionError(RequiredValueError):
    message = "version is required"


class RequiredGlobalFlagError(RequiredValueError):
    message = "global flag is required"


class RequiredSMTPAuthError(RequiredValueError):
    message = "smtp auth is required"


# ---------------------------------------------------------------------------
# Server-reported errors
# ---------------------------------------------------------------------------


class APIError(TFEError):
    """Exception raised for a non-success HTTP response.

    Attributes:
        status_code: HTTP status code of the response
        messages: Formatted error entries decoded from the body, if any
        body: Raw response body kept for diagnostics
    """

    message = "unexpected API error"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        messages: Optional[List[str]] = None,
        body: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.messages = messages or []
        self.body = body


class UnauthorizedError(APIError):
    message = "unauthorized"


class ForbiddenError(APIError):
    message = "forbidden"


class ResourceNotFoundError(APIError):
    message = "resource not found"


class InvalidRequestError(APIError):
    message = "invalid request"


class InvalidIncludeValueError(InvalidRequestError):
    message = 'invalid value for "include" field'


class ConflictError(APIError):
    message = "conflict"


class WorkspaceLockedError(ConflictError):
    message = "workspace already locked"


class WorkspaceNotLockedError(ConflictError):
    message = "workspace already unlocked"


class WorkspaceLockedByRunError(ConflictError):
    message = "unable to unlock workspace locked by run"


class WorkspaceStillProcessingError(ConflictError):
    message = "workspace is still processing"


class WorkspaceNotSafeToDeleteError(ConflictError):
    message = "workspace cannot be safely deleted"


class RateLimitError(APIError):
    """Exception raised when rate limiting persists after all retries."""

    message = "rate limit exceeded"

    def __init__(self, *args: Any, retry_after: Optional[float] = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.retry_after = retry_after


class ServerError(APIError):
    message = "server error"


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------


class TransportError(TFEError):
    """Exception raised when no usable response was received."""

    message = "transport error"


class NetworkConnectionError(TransportError):
    message = "cannot connect to server"


class NetworkTimeoutError(TransportError):
    message = "request timed out"


class DNSResolutionError(TransportError):
    message = "cannot resolve server address"


class SSLCertificateError(TransportError):
    message = "SSL certificate verification failed"


class TooManyRedirectsError(TransportError):
    """Raised when a response redirects more often than the client follows."""

    message = "too many redirects"


# ---------------------------------------------------------------------------
# Decoding errors
# ---------------------------------------------------------------------------


class DecodeError(TFEError):
    """Exception raised when a response body cannot be decoded."""

    message = "unable to decode response"


class UnresolvedRelationshipError(DecodeError):
    message = "included relationship missing from response"


# Server error details that identify a specific condition. Entries are
# checked in order against every formatted error message of the response;
# the status restricts the match when not None.
ERROR_DETAIL_TABLE: List[Tuple[Optional[int], str, Type[APIError]]] = [
    (400, "include parameter", InvalidIncludeValueError),
    (409, "already locked", WorkspaceLockedError),
    (409, "already unlocked", WorkspaceNotLockedError),
    (409, "locked by run", WorkspaceLockedByRunError),
    (409, "currently being processed", WorkspaceStillProcessingError),
    (409, "still being processed", WorkspaceStillProcessingError),
    (409, "still pending", WorkspaceStillProcessingError),
    (409, "workspace is not safe to delete", WorkspaceNotSafeToDeleteError),
    (409, "has resources", WorkspaceNotSafeToDeleteError),
]


def lookup_error_detail(status_code: int, messages: List[str]) -> Optional[Type[APIError]]:
    """Return the most specific sentinel matching the given error messages."""
    lowered = [m.lower() for m in messages]
    for status, needle, error_class in ERROR_DETAIL_TABLE:
        if status is not None and status != status_code:
            continue
        if any(needle in m for m in lowered):
            return error_class
    return None
