"""
Idempotent hosted-zone create/delete primitives.
"""

from __future__ import annotations

import itertools
import logging
import time
from typing import Callable

from .domains import canonicalize, is_subdomain_of, strip_dot, validate_domain_name
from .errors import InvalidDomain, ZoneNotFound
from .linker import DelegationLinker
from .models import DelegationSet
from .oracle import ZoneOracle
from .provider import DNSProvider

__all__ = ["ZoneLifecycle"]

logger = logging.getLogger(__name__)

# Shared across instances so two lifecycles in one process never reuse a reference.
_reference_counter = itertools.count(1)


class ZoneLifecycle:
    """Ensure-style operations on hosted zones.

    Every call re-reads provider state through the oracle, so repeating a
    call after a partial failure picks up where the previous one stopped.
    """

    def __init__(
        self,
        provider: DNSProvider,
        oracle: ZoneOracle | None = None,
        linker: DelegationLinker | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.oracle = oracle or ZoneOracle(provider)
        self.linker = linker or DelegationLinker(provider, self.oracle)
        self._clock = clock

    def _caller_reference(self, name: str) -> str:
        """One-shot idempotency token for CreateHostedZone (max 128 chars)."""
        return f"{strip_dot(name)[:90]}-{self._clock():.6f}-{next(_reference_counter)}"

    def ensure_zone(self, name: str, is_private: bool = False) -> DelegationSet:
        """Return the delegation set of the zone for *name*, creating it if absent."""
        validate_domain_name(name)
        zone = self.oracle.find_zone(name)
        if zone is not None:
            logger.info("Hosted zone %s already exists (%s)", name, zone.id)
            return self.provider.get_zone(zone.id)

        zone, delegation = self.provider.create_zone(
            canonicalize(name), is_private, self._caller_reference(name)
        )
        logger.info(
            "Created hosted zone %s (%s) with %d name server(s)",
            name, zone.id, len(delegation.name_servers),
        )
        return delegation

    def ensure_zone_with_root(self, name: str, root: str, is_private: bool = False) -> DelegationSet:
        """Ensure the root zone, then the child zone, then the NS delegation.

        Raises:
            InvalidDomain: If *name* is not a strict subdomain of *root*.
            ZoneNotFound: If the root zone vanished before the link was written.
        """
        validate_domain_name(name)
        validate_domain_name(root, "root domain name")
        if not is_subdomain_of(name, root):
            raise InvalidDomain(f"{name!r} is not a subdomain of root domain {root!r}")

        self.ensure_zone(root, is_private)
        child = self.ensure_zone(name, is_private)

        if not child.name_servers:
            logger.warning("Zone %s has no name servers to delegate (private zone?)", name)
            return child

        # A previous pass may have written the link and then failed to
        # persist status; an identical record set means the work is done.
        # A differing one is left over from an earlier zone and is replaced.
        current = None
        root_id = self.oracle.get_zone_id(root)
        if root_id is not None:
            current = self.linker.current_values(root_id, name)
            if current is not None and sorted(current[1]) == sorted(child.name_servers):
                logger.info("NS delegation for %s already present in %s", name, root)
                return child
            if current is not None:
                logger.warning(
                    "Stale NS record for %s in %s (%s) will be replaced",
                    name, root, ", ".join(current[1]),
                )

        self.linker.link(root, name, child.name_servers, replace=current)
        return child

    def delete_zone(self, name: str) -> bool:
        """Delete the zone for *name*.

        Returns True if a zone was deleted, False if none existed.
        """
        zone_id = self.oracle.get_zone_id(name)
        if zone_id is None:
            logger.warning("Hosted zone %s not found — nothing to delete", name)
            return False
        try:
            self.provider.delete_zone(zone_id)
        except ZoneNotFound:
            logger.warning("Hosted zone %s (%s) disappeared before deletion", name, zone_id)
            return False
        logger.info("Deleted hosted zone %s (%s)", name, zone_id)
        return True
