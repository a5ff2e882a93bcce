"""
The narrow DNS provider interface the core is written against, plus a
wrapper that threads a cancellation signal through every provider call.
"""

from __future__ import annotations

import threading
import time
from abc import ABC, abstractmethod

from .errors import ReconcileCancelled
from .models import DelegationSet, HostedZone, RecordChange

__all__ = ["DNSProvider", "Cancellation", "CancellableProvider"]


class DNSProvider(ABC):
    """Hosted-zone operations consumed by the oracle, linker and lifecycle.

    Implementations raise ``ProviderUnavailable`` for transient failures and
    ``ProviderError`` for everything else the provider rejects.  They must
    not retry at this level beyond what the underlying SDK transport does.
    """

    @abstractmethod
    def list_zones(self) -> list[HostedZone]:
        """Return every hosted zone in the account."""

    @abstractmethod
    def create_zone(
        self, name: str, private: bool, caller_reference: str
    ) -> tuple[HostedZone, DelegationSet]:
        """Create a zone and return it with its assigned delegation set."""

    @abstractmethod
    def delete_zone(self, zone_id: str) -> None:
        ...

    @abstractmethod
    def get_zone(self, zone_id: str) -> DelegationSet:
        """Return the delegation set of the zone with *zone_id*."""

    @abstractmethod
    def change_record_sets(self, zone_id: str, changes: list[RecordChange]) -> None:
        """Apply *changes* to the zone as one atomic batch."""

    @abstractmethod
    def list_record_sets(
        self, zone_id: str, name: str, record_type: str
    ) -> list[tuple[int | None, list[str]]]:
        """Return ``(ttl, values)`` for record sets exactly matching *name*/*record_type*."""


class Cancellation:
    """A cancel flag with an optional deadline.

    ``cancel()`` may be called from another thread (e.g. a signal handler);
    the running pass notices at its next provider call.
    """

    def __init__(self, timeout: float | None = None, clock=time.monotonic):
        self._event = threading.Event()
        self._clock = clock
        self._deadline = clock() + timeout if timeout else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    def check(self, operation: str = "") -> None:
        """Raise ``ReconcileCancelled`` if cancelled or past the deadline."""
        if self._event.is_set():
            raise ReconcileCancelled(f"cancelled before {operation or 'provider call'}")
        if self._deadline is not None and self._clock() >= self._deadline:
            raise ReconcileCancelled(f"deadline exceeded before {operation or 'provider call'}")


class CancellableProvider(DNSProvider):
    """Delegates to *inner*, checking *cancellation* before each call."""

    def __init__(self, inner: DNSProvider, cancellation: Cancellation):
        self._inner = inner
        self._cancellation = cancellation

    def list_zones(self) -> list[HostedZone]:
        self._cancellation.check("list_zones")
        return self._inner.list_zones()

    def create_zone(self, name, private, caller_reference):
        self._cancellation.check("create_zone")
        return self._inner.create_zone(name, private, caller_reference)

    def delete_zone(self, zone_id):
        self._cancellation.check("delete_zone")
        return self._inner.delete_zone(zone_id)

    def get_zone(self, zone_id):
        self._cancellation.check("get_zone")
        return self._inner.get_zone(zone_id)

    def change_record_sets(self, zone_id, changes):
        self._cancellation.check("change_record_sets")
        return self._inner.change_record_sets(zone_id, changes)

    def list_record_sets(self, zone_id, name, record_type):
        self._cancellation.check("list_record_sets")
        return self._inner.list_record_sets(zone_id, name, record_type)
