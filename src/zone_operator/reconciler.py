"""
Reconciliation state machine for ``DNSZone`` resources.

One call to ``ZoneReconciler.reconcile`` performs a single pass for one
resource and returns (or raises) before the scheduler decides what to do
next.  State is derived from the stored resource on every pass:

    Absent           resource not in the store            -> nothing to do
    PendingDeletion  deletionTimestamp set                -> unlink, delete zone, drop finalizer
    Unprotected      no finalizer yet                     -> add finalizer, requeue
    Active           finalizer set, zone not yet created  -> ensure zone (+ delegation)
    Ready            finalizer set, zone created          -> no action

Every transition either commits its change to the store or raises without
committing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from .errors import ReconcileCancelled, ResourceNotFound, ZoneOperatorError
from .lifecycle import ZoneLifecycle
from .linker import DelegationLinker
from .models import FINALIZER, DNSZone
from .oracle import ZoneOracle
from .provider import CancellableProvider, Cancellation, DNSProvider
from .store import ResourceStore, split_key

__all__ = [
    "ReconcileResult",
    "ZoneReconciler",
    "STATE_ABSENT",
    "STATE_PENDING_DELETION",
    "STATE_UNPROTECTED",
    "STATE_ACTIVE",
    "STATE_READY",
    "derive_state",
]

logger = logging.getLogger(__name__)

STATE_ABSENT = "Absent"
STATE_PENDING_DELETION = "PendingDeletion"
STATE_UNPROTECTED = "Unprotected"
STATE_ACTIVE = "Active"
STATE_READY = "Ready"


@dataclass
class ReconcileResult:
    state: str
    requeue: bool = False


def derive_state(resource: DNSZone | None, finalizer: str = FINALIZER) -> str:
    """Map a stored resource to its reconciliation state."""
    if resource is None:
        return STATE_ABSENT
    if resource.is_marked_for_deletion:
        return STATE_PENDING_DELETION
    if not resource.has_finalizer(finalizer):
        return STATE_UNPROTECTED
    if not resource.status.hosted_zone_created:
        return STATE_ACTIVE
    return STATE_READY


class ZoneReconciler:
    """Drives one ``DNSZone`` resource toward its declared state."""

    def __init__(
        self,
        store: ResourceStore,
        provider: DNSProvider,
        finalizer: str = FINALIZER,
        pass_timeout: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.provider = provider
        self.finalizer = finalizer
        self.pass_timeout = pass_timeout
        self._clock = clock

    def _lifecycle(self, cancel: Cancellation) -> ZoneLifecycle:
        # Built per pass: nothing about the provider outlives a reconciliation.
        provider = CancellableProvider(self.provider, cancel)
        oracle = ZoneOracle(provider)
        linker = DelegationLinker(provider, oracle)
        return ZoneLifecycle(provider, oracle, linker, clock=self._clock)

    def reconcile(self, key: str, cancel: Cancellation | None = None) -> ReconcileResult:
        """Run one pass for the resource identified by ``namespace/name``."""
        namespace, name = split_key(key)
        try:
            resource = self.store.get(namespace, name)
        except ResourceNotFound:
            logger.debug("%s not found — nothing to reconcile", key)
            return ReconcileResult(STATE_ABSENT)

        cancel = cancel or Cancellation(self.pass_timeout)
        state = derive_state(resource, self.finalizer)
        logger.debug("%s is %s", key, state)

        if state == STATE_PENDING_DELETION:
            self._finalize(resource, self._lifecycle(cancel))
        elif state == STATE_UNPROTECTED:
            resource.add_finalizer(self.finalizer)
            self.store.update(resource)
            logger.info("%s: added finalizer %s", key, self.finalizer)
            return ReconcileResult(state, requeue=True)
        elif state == STATE_ACTIVE:
            self._create(resource, self._lifecycle(cancel))
        return ReconcileResult(state)

    def _create(self, resource: DNSZone, lifecycle: ZoneLifecycle) -> None:
        spec = resource.spec
        if spec.root_domain_name:
            lifecycle.ensure_zone_with_root(
                spec.domain_name, spec.root_domain_name, spec.is_private_hosted_zone
            )
        else:
            lifecycle.ensure_zone(spec.domain_name, spec.is_private_hosted_zone)

        resource.status.hosted_zone_created = True
        self.store.update_status(resource)
        logger.info("%s: hosted zone %s is ready", resource.key, spec.domain_name)

    def _finalize(self, resource: DNSZone, lifecycle: ZoneLifecycle) -> None:
        spec = resource.spec
        if not resource.has_finalizer(self.finalizer):
            logger.debug("%s: deletion in progress without our finalizer — skipping", resource.key)
            return

        if spec.root_domain_name:
            try:
                lifecycle.linker.unlink(spec.root_domain_name, spec.domain_name)
            except ReconcileCancelled:
                raise
            except ZoneOperatorError as exc:
                # Best-effort: zone deletion proceeds regardless.
                logger.error(
                    "%s: failed to remove NS record %s from %s: %s",
                    resource.key, spec.domain_name, spec.root_domain_name, exc,
                )

        lifecycle.delete_zone(spec.domain_name)

        resource.remove_finalizer(self.finalizer)
        self.store.update(resource)
        logger.info("%s: released finalizer after deleting %s", resource.key, spec.domain_name)
