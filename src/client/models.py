"""Typed records for Suite API responses.

The API answers with loosely shaped JSON. Each record here pins down which
fields are required and which are optional, and parses itself from the raw
dictionary the endpoint returns:

1. REQUIRED vs OPTIONAL
   - Identifiers and names are required; a record without them raises KeyError
   - Optional links (a group's policy) are ``None`` when absent, never ``""``

2. RAW RECORDS
   - Records that are sent back to the server (custom groups) keep the raw
     dictionary so unknown fields survive a read-modify-write cycle
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import certifi

from .errors import ApiSemanticError

LOCAL_AUTH_SOURCE = "local"
RESERVED_POLICY_NAME = "Base Settings"


def determine_verify(trust_all: bool, ca_bundle: Optional[str]):
    """Determine SSL verification setting."""
    if trust_all:
        return False
    if ca_bundle:
        return ca_bundle
    return certifi.where()


# =============================================================================
# Authentication
# =============================================================================


@dataclass(frozen=True)
class Credential:
    """A username/password pair; ``user@domain`` names a non-local auth source."""

    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class Principal:
    """Username and the auth source it is resolved against."""

    username: str
    auth_source: str = LOCAL_AUTH_SOURCE


@dataclass(frozen=True)
class Session:
    """Authenticated context for a single node.

    Immutable after creation. Every call made for ``node`` reuses this token
    and TLS trust setting.
    """

    node: str
    principal: Principal
    token: str = field(repr=False)
    issued_at: datetime
    expires_at: Optional[datetime] = None  # advisory, never enforced
    trust_all: bool = False
    ca_bundle: Optional[str] = None

    @property
    def verify(self):
        """The ``verify`` argument for requests: False or a CA bundle path."""
        return determine_verify(self.trust_all, self.ca_bundle)

    @property
    def base_url(self) -> str:
        return f"https://{self.node}/suite-api"


def epoch_millis_to_datetime(value: Any) -> Optional[datetime]:
    """Convert the API's epoch-millisecond timestamps, tolerating absence."""
    if value in (None, ""):
        return None
    try:
        return datetime.fromtimestamp(int(value) / 1000.0, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError):
        return None


# =============================================================================
# Paging
# =============================================================================


@dataclass
class PageInfo:
    """The ``pageInfo`` envelope of a list endpoint."""

    total_count: int
    page: int = 0
    page_size: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_page_size: int) -> "PageInfo":
        return cls(
            total_count=int(data.get("totalCount", 0)),
            page=int(data.get("page", 0)),
            page_size=int(data.get("pageSize") or default_page_size),
        )


# =============================================================================
# Inventory objects
# =============================================================================


@dataclass(frozen=True)
class PolicySummary:
    """A policy as listed by the internal policies endpoint."""

    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PolicySummary":
        return cls(id=data["id"], name=data["name"])

    @property
    def is_reserved(self) -> bool:
        return self.name == RESERVED_POLICY_NAME


@dataclass(frozen=True)
class AlertDefinition:
    id: str
    name: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertDefinition":
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class ResourceSummary:
    """An inventory resource identified by its adapter and resource kinds."""

    id: str
    name: str
    adapter_kind: Optional[str] = None
    resource_kind: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResourceSummary":
        key = data.get("resourceKey", {})
        return cls(
            id=data["identifier"],
            name=key.get("name", ""),
            adapter_kind=key.get("adapterKindKey"),
            resource_kind=key.get("resourceKindKey"),
        )


@dataclass
class CustomGroup:
    """A custom group and the policy applied to it, if any."""

    id: str
    name: str
    policy_id: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CustomGroup":
        key = data.get("resourceKey", {})
        return cls(
            id=data["id"],
            name=key.get("name") or data.get("name", ""),
            policy_id=data.get("policy") or None,
            raw=dict(data),
        )

    def with_policy(self, policy_id: str) -> Dict[str, Any]:
        """Return the raw record with ``policy`` replaced, ready for PUT."""
        record = dict(self.raw)
        record["policy"] = policy_id
        return record


# =============================================================================
# Operation results
# =============================================================================


@dataclass
class ImportResult:
    """Counters reported by the policy import endpoint.

    The endpoint answers 202 whether or not anything was imported, so the
    counters are the only real signal.
    """

    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportResult":
        return cls(
            created=_policy_names(data.get("created-policies")),
            updated=_policy_names(data.get("updated-policies")),
            skipped=_policy_names(data.get("skipped-policies")),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.skipped)

    def ensure_applied(self, node: Optional[str] = None) -> "ImportResult":
        """Raise ApiSemanticError when the import created, updated and skipped nothing."""
        if self.is_empty:
            raise ApiSemanticError(
                "import_policy",
                "import accepted (HTTP 202) but no policies were created, updated or skipped",
                node=node,
            )
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": len(self.created),
            "updated": len(self.updated),
            "skipped": len(self.skipped),
        }


def _policy_names(entries: Any) -> List[str]:
    names = []
    for entry in entries or []:
        if isinstance(entry, dict):
            names.append(str(entry.get("name") or entry.get("id") or ""))
        else:
            names.append(str(entry))
    return names


@dataclass
class AlertAssociation:
    """An alert definition and the policies that locally enable it."""

    alert_id: str
    alert_name: str
    policies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "alert_name": self.alert_name,
            "policies": list(self.policies),
        }


# =============================================================================
# Cluster bootstrap
# =============================================================================


class ClusterState(str, Enum):
    """Cluster states reported by the cluster-administration service."""

    NONE = "NONE"
    INITIALIZING = "INITIALIZING"
    INITIALIZED = "INITIALIZED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ClusterState":
        try:
            return cls(str(value or "").strip().upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ClusterNode:
    """A node taking part in cluster creation."""

    address: str
    thumbprint: str

    def to_dict(self) -> Dict[str, str]:
        return {"address": self.address, "thumbprint": self.thumbprint}
