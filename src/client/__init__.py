"""Suite API client runtime - sessions, transport, paging and records."""

from .errors import (
    SuiteApiError,
    ClientConnectionError,
    AuthenticationError,
    ValidationError,
    ObjectLookupError,
    CodecError,
    ApiRequestError,
    ApiSemanticError,
    BootstrapTimeoutError,
    BootstrapFailedError,
)
from .models import (
    Credential,
    Principal,
    Session,
    PageInfo,
    PolicySummary,
    AlertDefinition,
    ResourceSummary,
    CustomGroup,
    ImportResult,
    AlertAssociation,
    ClusterState,
    ClusterNode,
)
from .pagination import fetch_all, extra_pages
from .session import acquire, split_principal
from .transport import SuiteApiClient

__all__ = [
    "SuiteApiError",
    "ClientConnectionError",
    "AuthenticationError",
    "ValidationError",
    "ObjectLookupError",
    "CodecError",
    "ApiRequestError",
    "ApiSemanticError",
    "BootstrapTimeoutError",
    "BootstrapFailedError",
    "Credential",
    "Principal",
    "Session",
    "PageInfo",
    "PolicySummary",
    "AlertDefinition",
    "ResourceSummary",
    "CustomGroup",
    "ImportResult",
    "AlertAssociation",
    "ClusterState",
    "ClusterNode",
    "fetch_all",
    "extra_pages",
    "acquire",
    "split_principal",
    "SuiteApiClient",
]
