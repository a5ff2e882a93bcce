"""
Zone existence queries.

Every query re-lists the provider's zones; nothing is cached between calls,
so answers always reflect the provider's current state.  Provider errors
propagate unchanged and are never reported as "zone absent".
"""

from __future__ import annotations

import logging

from .domains import canonicalize
from .models import DelegationSet, HostedZone
from .provider import DNSProvider

__all__ = ["ZoneOracle"]

logger = logging.getLogger(__name__)


class ZoneOracle:
    """Answers "does a zone for *name* exist" and related lookups."""

    def __init__(self, provider: DNSProvider):
        self.provider = provider

    def find_zone(self, name: str) -> HostedZone | None:
        """Return the zone whose canonical name matches *name*, or None."""
        wanted = canonicalize(name)
        for zone in self.provider.list_zones():
            if zone.name.lower() == wanted:
                return zone
        return None

    def exists(self, name: str) -> bool:
        return self.find_zone(name) is not None

    def get_zone_id(self, name: str) -> str | None:
        zone = self.find_zone(name)
        return zone.id if zone else None

    def get_delegation_set(self, name: str) -> DelegationSet | None:
        zone = self.find_zone(name)
        if zone is None:
            return None
        return self.provider.get_zone(zone.id)

    def list_name_servers(self, name: str) -> list[str]:
        """Name servers of the zone for *name*; empty if the zone is absent."""
        delegation = self.get_delegation_set(name)
        if delegation is None:
            logger.debug("No hosted zone for %s — no name servers", name)
            return []
        return list(delegation.name_servers)
