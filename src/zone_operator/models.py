"""
Shared data models and constants used across the zone operator.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any


# ------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------

FINALIZER = "dns.zone/cleanup"

NS_TTL = 300

ACTION_CREATE = "CREATE"
ACTION_DELETE = "DELETE"


# ------------------------------------------------------------------
# Provider-side objects
# ------------------------------------------------------------------

@dataclass
class DelegationSet:
    """Authoritative name servers assigned to a hosted zone at creation."""
    id: str = ""
    name_servers: list[str] = field(default_factory=list)


@dataclass
class HostedZone:
    id: str  # bare id, "/hostedzone/" prefix stripped
    name: str  # canonical, with trailing dot
    private: bool = False


@dataclass
class RecordChange:
    """One entry of a record-set change batch."""
    action: str  # ACTION_CREATE or ACTION_DELETE
    name: str
    type: str
    ttl: int | None = None
    values: list[str] = field(default_factory=list)


# ------------------------------------------------------------------
# Declared resource
# ------------------------------------------------------------------

@dataclass
class DNSZoneSpec:
    domain_name: str
    root_domain_name: str = ""
    is_private_hosted_zone: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DNSZoneSpec:
        data = data or {}
        return cls(
            domain_name=data.get("domainName", "") or "",
            root_domain_name=data.get("rootDomainName", "") or "",
            is_private_hosted_zone=bool(data.get("isPrivateHostedZone", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "domainName": self.domain_name,
            "isPrivateHostedZone": self.is_private_hosted_zone,
        }
        if self.root_domain_name:
            out["rootDomainName"] = self.root_domain_name
        return out


@dataclass
class DNSZoneStatus:
    hosted_zone_created: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DNSZoneStatus:
        data = data or {}
        return cls(hosted_zone_created=bool(data.get("hostedZoneCreated", False)))

    def to_dict(self) -> dict[str, Any]:
        return {"hostedZoneCreated": self.hosted_zone_created}


@dataclass
class DNSZone:
    """A ``DNSZone`` custom resource as read from the store.

    ``raw`` keeps the object it was parsed from so that ``to_dict()`` can
    round-trip fields this model does not know about (labels, annotations,
    managedFields, ...).
    """
    name: str
    namespace: str = ""
    spec: DNSZoneSpec = field(default_factory=lambda: DNSZoneSpec(domain_name=""))
    status: DNSZoneStatus = field(default_factory=DNSZoneStatus)
    finalizers: list[str] = field(default_factory=list)
    deletion_timestamp: str | None = None
    resource_version: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    @property
    def is_marked_for_deletion(self) -> bool:
        return bool(self.deletion_timestamp)

    def has_finalizer(self, finalizer: str = FINALIZER) -> bool:
        return finalizer in self.finalizers

    def add_finalizer(self, finalizer: str = FINALIZER) -> bool:
        """Add *finalizer*; returns True if the list changed."""
        if finalizer in self.finalizers:
            return False
        self.finalizers.append(finalizer)
        return True

    def remove_finalizer(self, finalizer: str = FINALIZER) -> bool:
        """Remove *finalizer*; returns True if the list changed."""
        if finalizer not in self.finalizers:
            return False
        self.finalizers = [f for f in self.finalizers if f != finalizer]
        return True

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DNSZone:
        meta = data.get("metadata", {}) or {}
        return cls(
            name=meta.get("name", ""),
            namespace=meta.get("namespace", "") or "",
            spec=DNSZoneSpec.from_dict(data.get("spec")),
            status=DNSZoneStatus.from_dict(data.get("status")),
            finalizers=list(meta.get("finalizers") or []),
            deletion_timestamp=meta.get("deletionTimestamp") or None,
            resource_version=str(meta.get("resourceVersion", "") or ""),
            raw=copy.deepcopy(data),
        )

    def to_dict(self) -> dict[str, Any]:
        out = copy.deepcopy(self.raw)
        meta = out.setdefault("metadata", {})
        meta["name"] = self.name
        if self.namespace:
            meta["namespace"] = self.namespace
        meta["finalizers"] = list(self.finalizers)
        if self.resource_version:
            meta["resourceVersion"] = self.resource_version
        if self.deletion_timestamp:
            meta["deletionTimestamp"] = self.deletion_timestamp
        out["spec"] = self.spec.to_dict()
        out["status"] = self.status.to_dict()
        return out
