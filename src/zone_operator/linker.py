"""
NS delegation between a root zone and a subdomain zone.

``link`` writes an NS record set for the child name into the parent zone;
``unlink`` removes it again.  Removal is best-effort: a missing parent zone
or an unreadable record set is logged and skipped so zone teardown is never
blocked on delegation cleanup.
"""

from __future__ import annotations

import logging

from .domains import canonicalize
from .errors import ProviderError, ZoneNotFound
from .models import ACTION_CREATE, ACTION_DELETE, NS_TTL, RecordChange
from .oracle import ZoneOracle
from .provider import DNSProvider

__all__ = ["DelegationLinker"]

logger = logging.getLogger(__name__)

NS = "NS"


class DelegationLinker:
    """Installs and removes NS delegation records."""

    def __init__(self, provider: DNSProvider, oracle: ZoneOracle | None = None):
        self.provider = provider
        self.oracle = oracle or ZoneOracle(provider)

    def link(
        self,
        parent_name: str,
        child_record_name: str,
        name_servers: list[str],
        replace: tuple[int | None, list[str]] | None = None,
    ) -> None:
        """Create the NS record set for *child_record_name* in the parent zone.

        *replace* is the ``(ttl, values)`` of a stale record set already in
        the parent; it is deleted in the same batch as the create.

        Raises:
            ZoneNotFound: If the parent zone does not exist.
        """
        parent_id = self.oracle.get_zone_id(parent_name)
        if parent_id is None:
            raise ZoneNotFound(parent_name)

        record_name = canonicalize(child_record_name)
        changes: list[RecordChange] = []
        if replace is not None:
            ttl, values = replace
            changes.append(
                RecordChange(action=ACTION_DELETE, name=record_name, type=NS, ttl=ttl, values=list(values))
            )
        changes.append(
            RecordChange(
                action=ACTION_CREATE,
                name=record_name,
                type=NS,
                ttl=NS_TTL,
                values=list(name_servers),
            )
        )
        self.provider.change_record_sets(parent_id, changes)
        logger.info(
            "Delegated %s to %d name server(s) in zone %s%s",
            child_record_name, len(name_servers), parent_name,
            " (replaced stale NS record)" if replace is not None else "",
        )

    def current_values(self, zone_id: str, record_name: str) -> tuple[int | None, list[str]] | None:
        """Return ``(ttl, values)`` of the NS record set, or None if absent."""
        matches = self.provider.list_record_sets(zone_id, canonicalize(record_name), NS)
        if not matches:
            return None
        return matches[0]

    def unlink(self, parent_name: str, child_record_name: str) -> bool:
        """Delete the NS record set for *child_record_name* from the parent zone.

        Returns True if a record set was deleted, False if there was nothing
        to delete (parent missing, record missing, or values unreadable).
        """
        parent_id = self.oracle.get_zone_id(parent_name)
        if parent_id is None:
            logger.warning(
                "Root zone %s not found — skipping removal of NS record %s",
                parent_name, child_record_name,
            )
            return False

        try:
            current = self.current_values(parent_id, child_record_name)
        except (ProviderError, ZoneNotFound) as exc:
            logger.warning(
                "Could not read NS record %s in zone %s — skipping removal: %s",
                child_record_name, parent_name, exc,
            )
            return False

        if current is None:
            logger.info("No NS record %s in zone %s — nothing to remove", child_record_name, parent_name)
            return False

        ttl, values = current
        change = RecordChange(
            action=ACTION_DELETE,
            name=canonicalize(child_record_name),
            type=NS,
            ttl=ttl,
            values=values,
        )
        self.provider.change_record_sets(parent_id, [change])
        logger.info("Removed NS record %s from zone %s", child_record_name, parent_name)
        return True
