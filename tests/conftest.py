"""Shared in-memory fakes for the DNS provider and the resource store."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from zone_operator.domains import canonicalize
from zone_operator.errors import PersistConflict, ProviderError, ResourceNotFound, ZoneNotFound
from zone_operator.models import ACTION_CREATE, ACTION_DELETE, DelegationSet, DNSZone, HostedZone
from zone_operator.provider import DNSProvider
from zone_operator.store import ResourceStore


# =============================================================================
# Fake DNS provider
# =============================================================================


class FakeDNSProvider(DNSProvider):
    """In-memory hosted zones with a call log and injectable failures."""

    def __init__(self) -> None:
        self.zones: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple] = []
        self.failures: dict[str, Exception] = {}
        self._next_id = 1

    # -- test helpers ---------------------------------------------------

    def add_zone(self, name: str, private: bool = False) -> str:
        zone_id = f"Z{self._next_id:04d}"
        self._next_id += 1
        self.zones[zone_id] = {
            "name": canonicalize(name),
            "private": private,
            "delegation": DelegationSet(
                id=f"N{zone_id}",
                name_servers=[] if private else [f"ns-{zone_id.lower()}-{i}.awsdns.example" for i in range(1, 5)],
            ),
            "records": {},
        }
        return zone_id

    def zone_id_for(self, name: str) -> str | None:
        for zone_id, zone in self.zones.items():
            if zone["name"] == canonicalize(name):
                return zone_id
        return None

    def records(self, name: str) -> dict:
        return self.zones[self.zone_id_for(name)]["records"]

    def ops(self, op: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == op]

    def fail(self, op: str, exc: Exception) -> None:
        self.failures[op] = exc

    def _enter(self, op: str, *args) -> None:
        self.calls.append((op, *args))
        if op in self.failures:
            raise self.failures[op]

    # -- DNSProvider ----------------------------------------------------

    def list_zones(self) -> list[HostedZone]:
        self._enter("list_zones")
        return [HostedZone(id=i, name=z["name"], private=z["private"]) for i, z in self.zones.items()]

    def create_zone(self, name, private, caller_reference):
        self._enter("create_zone", name, private, caller_reference)
        zone_id = self.add_zone(name, private)
        zone = self.zones[zone_id]
        return (
            HostedZone(id=zone_id, name=zone["name"], private=private),
            copy.deepcopy(zone["delegation"]),
        )

    def delete_zone(self, zone_id):
        self._enter("delete_zone", zone_id)
        if zone_id not in self.zones:
            raise ZoneNotFound(zone_id)
        del self.zones[zone_id]

    def get_zone(self, zone_id):
        self._enter("get_zone", zone_id)
        if zone_id not in self.zones:
            raise ZoneNotFound(zone_id)
        return copy.deepcopy(self.zones[zone_id]["delegation"])

    def change_record_sets(self, zone_id, changes):
        self._enter("change_record_sets", zone_id, copy.deepcopy(changes))
        if zone_id not in self.zones:
            raise ZoneNotFound(zone_id)
        records = self.zones[zone_id]["records"]
        for change in changes:
            key = (change.name, change.type)
            if change.action == ACTION_CREATE:
                if key in records:
                    raise ProviderError(f"InvalidChangeBatch: {key} already exists")
                records[key] = (change.ttl, list(change.values))
            elif change.action == ACTION_DELETE:
                if records.get(key) != (change.ttl, list(change.values)):
                    raise ProviderError(f"InvalidChangeBatch: {key} does not match")
                del records[key]

    def list_record_sets(self, zone_id, name, record_type):
        self._enter("list_record_sets", zone_id, name, record_type)
        if zone_id not in self.zones:
            raise ZoneNotFound(zone_id)
        found = self.zones[zone_id]["records"].get((canonicalize(name), record_type))
        return [found] if found else []


# =============================================================================
# Fake resource store
# =============================================================================


class FakeStore(ResourceStore):
    """Resources keyed by namespace/name with resourceVersion checks.

    Like the API server, a resource marked for deletion disappears as soon as
    its last finalizer is removed.
    """

    def __init__(self) -> None:
        self.objects: dict[str, dict] = {}
        self.writes: list[tuple[str, str]] = []
        self.conflict_next_write = False

    def put(self, resource: DNSZone) -> None:
        data = resource.to_dict()
        data["metadata"]["resourceVersion"] = data["metadata"].get("resourceVersion") or "1"
        self.objects[resource.key] = data

    def stored(self, key: str) -> DNSZone | None:
        data = self.objects.get(key)
        return DNSZone.from_dict(data) if data else None

    def get(self, namespace, name):
        key = f"{namespace}/{name}" if namespace else name
        if key not in self.objects:
            raise ResourceNotFound(key)
        return DNSZone.from_dict(self.objects[key])

    def list(self):
        return [DNSZone.from_dict(d) for d in self.objects.values()]

    def _write(self, resource: DNSZone, kind: str) -> dict:
        key = resource.key
        if key not in self.objects:
            raise ResourceNotFound(key)
        if self.conflict_next_write:
            self.conflict_next_write = False
            raise PersistConflict(f"{kind} {key}: the object has been modified")
        current = self.objects[key]
        if current["metadata"]["resourceVersion"] != resource.resource_version:
            raise PersistConflict(f"{kind} {key}: stale resourceVersion")
        self.writes.append((kind, key))
        return current

    def update(self, resource):
        current = self._write(resource, "update")
        new = resource.to_dict()
        new["status"] = current.get("status", {})
        new["metadata"]["resourceVersion"] = str(int(current["metadata"]["resourceVersion"]) + 1)
        if new["metadata"].get("deletionTimestamp") and not new["metadata"]["finalizers"]:
            del self.objects[resource.key]
        else:
            self.objects[resource.key] = new
        return DNSZone.from_dict(new)

    def update_status(self, resource):
        current = self._write(resource, "update_status")
        new = copy.deepcopy(current)
        new["status"] = resource.status.to_dict()
        new["metadata"]["resourceVersion"] = str(int(current["metadata"]["resourceVersion"]) + 1)
        self.objects[resource.key] = new
        return DNSZone.from_dict(new)


# =============================================================================
# Helpers / fixtures
# =============================================================================


def make_zone(
    name: str = "app",
    domain: str = "x.example.com",
    root: str = "",
    private: bool = False,
    namespace: str = "default",
    finalizers: list[str] | None = None,
    created: bool = False,
    deleting: bool = False,
) -> DNSZone:
    spec: dict[str, Any] = {"domainName": domain, "isPrivateHostedZone": private}
    if root:
        spec["rootDomainName"] = root
    meta: dict[str, Any] = {
        "name": name,
        "namespace": namespace,
        "resourceVersion": "1",
        "finalizers": list(finalizers or []),
    }
    if deleting:
        meta["deletionTimestamp"] = "2024-05-01T12:00:00Z"
    return DNSZone.from_dict(
        {
            "apiVersion": "dns.zone/v1alpha1",
            "kind": "DNSZone",
            "metadata": meta,
            "spec": spec,
            "status": {"hostedZoneCreated": created},
        }
    )


@pytest.fixture
def provider() -> FakeDNSProvider:
    return FakeDNSProvider()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
