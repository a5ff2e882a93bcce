"""
AWS Route 53 implementation of the DNS provider interface.

Thin boto3 wrapper: every method issues the matching Route 53 call and
translates botocore failures into the operator's error taxonomy.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from .domains import canonicalize
from .errors import ProviderError, ProviderUnavailable, ZoneNotFound
from .models import DelegationSet, HostedZone, RecordChange
from .provider import DNSProvider

__all__ = ["Route53Provider", "build_route53_client"]

logger = logging.getLogger(__name__)

_ZONE_ID_PREFIX = "/hostedzone/"

# Error codes Route 53 returns for conditions that clear up on their own.
_TRANSIENT_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "PriorRequestNotComplete",
        "ServiceUnavailable",
        "InternalFailure",
        "InternalError",
        "RequestTimeout",
    }
)

_NETWORK_ERRORS = (
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)


def build_route53_client(
    region: str = "us-west-2",
    profile: str = "",
    max_attempts: int = 3,
):
    """Create a boto3 Route 53 client.

    Transport-level retries are left to botocore's ``standard`` mode; the
    operator itself never retries a failed call.
    """
    session = boto3.session.Session(profile_name=profile or None, region_name=region)
    config = Config(
        region_name=region,
        retries={"max_attempts": max_attempts, "mode": "standard"},
    )
    return session.client("route53", config=config)


def _strip_zone_id(zone_id: str) -> str:
    if zone_id.startswith(_ZONE_ID_PREFIX):
        return zone_id[len(_ZONE_ID_PREFIX):]
    return zone_id


def _delegation_set(data: dict[str, Any] | None) -> DelegationSet:
    # Private zones come back without a delegation set.
    data = data or {}
    return DelegationSet(
        id=data.get("Id", "") or "",
        name_servers=list(data.get("NameServers", []) or []),
    )


class Route53Provider(DNSProvider):
    """DNS provider backed by a boto3 Route 53 client."""

    def __init__(self, client: Any, vpc_id: str = "", vpc_region: str = ""):
        self.client = client
        self.vpc_id = vpc_id
        self.vpc_region = vpc_region

    def __repr__(self) -> str:
        return f"Route53Provider(vpc_id={self.vpc_id!r}, vpc_region={self.vpc_region!r})"

    # ------------------------------------------------------------------
    # Error translation
    # ------------------------------------------------------------------

    def _translate(self, exc: Exception, operation: str, target: str = "") -> Exception:
        """Map a botocore exception to the operator taxonomy."""
        if isinstance(exc, ClientError):
            error = exc.response.get("Error", {}) or {}
            code = error.get("Code", "")
            message = error.get("Message", "") or str(exc)
            status = (exc.response.get("ResponseMetadata", {}) or {}).get("HTTPStatusCode") or 0
            if code == "NoSuchHostedZone":
                return ZoneNotFound(target or message)
            if code in _TRANSIENT_CODES or status >= 500:
                return ProviderUnavailable(f"{operation} {target}: {code}: {message}".strip())
            return ProviderError(f"{operation} {target}: {code}: {message}".strip())
        if isinstance(exc, _NETWORK_ERRORS):
            return ProviderUnavailable(f"{operation} {target}: {exc}".strip())
        return ProviderError(f"{operation} {target}: {exc}".strip())

    # ------------------------------------------------------------------
    # Zones
    # ------------------------------------------------------------------

    def list_zones(self) -> list[HostedZone]:
        zones: list[HostedZone] = []
        try:
            paginator = self.client.get_paginator("list_hosted_zones")
            for page in paginator.paginate():
                for item in page.get("HostedZones", []):
                    zones.append(
                        HostedZone(
                            id=_strip_zone_id(item["Id"]),
                            name=item["Name"],
                            private=bool((item.get("Config") or {}).get("PrivateZone", False)),
                        )
                    )
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "ListHostedZones") from exc
        logger.debug("Listed %d hosted zone(s)", len(zones))
        return zones

    def create_zone(
        self, name: str, private: bool, caller_reference: str
    ) -> tuple[HostedZone, DelegationSet]:
        kwargs: dict[str, Any] = {
            "Name": name,
            "CallerReference": caller_reference,
            "HostedZoneConfig": {
                "Comment": "Managed by route53-zone-operator",
                "PrivateZone": private,
            },
        }
        if private:
            if not self.vpc_id:
                raise ProviderError(
                    f"CreateHostedZone {name}: private zones need aws.vpc_id in the config"
                )
            kwargs["VPC"] = {"VPCRegion": self.vpc_region, "VPCId": self.vpc_id}

        logger.debug("CreateHostedZone %s (private=%s, ref=%s)", name, private, caller_reference)
        try:
            resp = self.client.create_hosted_zone(**kwargs)
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "CreateHostedZone", name) from exc

        zone = resp["HostedZone"]
        return (
            HostedZone(id=_strip_zone_id(zone["Id"]), name=zone["Name"], private=private),
            _delegation_set(resp.get("DelegationSet")),
        )

    def delete_zone(self, zone_id: str) -> None:
        logger.debug("DeleteHostedZone %s", zone_id)
        try:
            self.client.delete_hosted_zone(Id=zone_id)
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "DeleteHostedZone", zone_id) from exc

    def get_zone(self, zone_id: str) -> DelegationSet:
        try:
            resp = self.client.get_hosted_zone(Id=zone_id)
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "GetHostedZone", zone_id) from exc
        return _delegation_set(resp.get("DelegationSet"))

    # ------------------------------------------------------------------
    # Record sets
    # ------------------------------------------------------------------

    def change_record_sets(self, zone_id: str, changes: list[RecordChange]) -> None:
        batch = []
        for change in changes:
            record_set: dict[str, Any] = {
                "Name": change.name,
                "Type": change.type,
                "ResourceRecords": [{"Value": v} for v in change.values],
            }
            if change.ttl is not None:
                record_set["TTL"] = change.ttl
            batch.append({"Action": change.action, "ResourceRecordSet": record_set})

        logger.debug("ChangeResourceRecordSets %s: %s", zone_id, batch)
        try:
            self.client.change_resource_record_sets(
                HostedZoneId=zone_id,
                ChangeBatch={"Comment": "route53-zone-operator", "Changes": batch},
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "ChangeResourceRecordSets", zone_id) from exc

    def list_record_sets(
        self, zone_id: str, name: str, record_type: str
    ) -> list[tuple[int | None, list[str]]]:
        wanted = canonicalize(name)
        try:
            resp = self.client.list_resource_record_sets(
                HostedZoneId=zone_id,
                StartRecordName=wanted,
                StartRecordType=record_type,
                MaxItems="1",
            )
        except (ClientError, BotoCoreError) as exc:
            raise self._translate(exc, "ListResourceRecordSets", zone_id) from exc

        # Listing starts at the requested name but may return the next record
        # set in sort order when there is no exact match.
        out: list[tuple[int | None, list[str]]] = []
        for rrset in resp.get("ResourceRecordSets", []):
            if canonicalize(rrset.get("Name", "")) != wanted or rrset.get("Type") != record_type:
                continue
            values = [r["Value"] for r in rrset.get("ResourceRecords", [])]
            out.append((rrset.get("TTL"), values))
        return out
