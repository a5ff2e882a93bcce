"""
Polling scheduler that drives the reconciler.

Lists every ``DNSZone`` resource on each cycle and reconciles it.  Keys whose
pass failed are retried with exponential backoff; keys that asked for a
requeue are reconciled again straight away in the same cycle.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .errors import ZoneOperatorError
from .provider import Cancellation
from .reconciler import ZoneReconciler
from .store import ResourceStore

__all__ = ["ZoneController"]

logger = logging.getLogger(__name__)

# Upper bound on back-to-back requeues of one key within a single cycle.
_MAX_REQUEUES = 5


class ZoneController:
    """Repeatedly reconciles all resources in the store."""

    def __init__(
        self,
        store: ResourceStore,
        reconciler: ZoneReconciler,
        resync_seconds: float = 30,
        max_backoff_seconds: float = 300,
        pass_timeout_seconds: float | None = 120,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.reconciler = reconciler
        self.resync_seconds = resync_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.pass_timeout_seconds = pass_timeout_seconds
        self._clock = clock
        self._failures: dict[str, int] = {}
        self._not_before: dict[str, float] = {}
        self._current: Cancellation | None = None

    def backoff_for(self, failures: int) -> float:
        """Delay before retrying a key that failed *failures* times in a row."""
        if failures <= 0:
            return 0.0
        return min(self.resync_seconds * (2 ** (failures - 1)), self.max_backoff_seconds)

    def _record_failure(self, key: str) -> None:
        failures = self._failures.get(key, 0) + 1
        self._failures[key] = failures
        delay = self.backoff_for(failures)
        self._not_before[key] = self._clock() + delay
        logger.debug("%s failed %d time(s) — next attempt in %.0fs", key, failures, delay)

    def _record_success(self, key: str) -> None:
        self._failures.pop(key, None)
        self._not_before.pop(key, None)

    def reconcile_key(self, key: str) -> str:
        """Reconcile *key*, following requeues; return a short outcome string."""
        for _ in range(_MAX_REQUEUES):
            self._current = Cancellation(self.pass_timeout_seconds)
            try:
                result = self.reconciler.reconcile(key, self._current)
            except ZoneOperatorError as exc:
                logger.error("Reconcile %s failed: %s", key, exc)
                self._record_failure(key)
                return f"error: {exc}"
            finally:
                self._current = None
            if not result.requeue:
                self._record_success(key)
                return "ok"
        self._record_success(key)
        return "requeue"

    def run_once(self) -> dict[str, str]:
        """One cycle over every resource; returns key -> outcome."""
        outcomes: dict[str, str] = {}
        try:
            resources = self.store.list()
        except ZoneOperatorError as exc:
            logger.error("Failed to list resources: %s", exc)
            return outcomes

        now = self._clock()
        for resource in resources:
            key = resource.key
            if self._not_before.get(key, 0.0) > now:
                outcomes[key] = "backoff"
                continue
            outcomes[key] = self.reconcile_key(key)

        # Forget backoff state for resources that no longer exist.
        live = {r.key for r in resources}
        for key in list(self._failures):
            if key not in live:
                self._record_success(key)

        logger.info(
            "Cycle done: %d resource(s), %d error(s)",
            len(outcomes), sum(1 for o in outcomes.values() if o.startswith("error")),
        )
        return outcomes

    def run_forever(self, stop: threading.Event) -> None:
        """Cycle until *stop* is set; see ``stop_current`` to abort a running pass."""
        logger.info("Controller started (resync every %ss)", self.resync_seconds)
        while not stop.is_set():
            self.run_once()
            stop.wait(self.resync_seconds)
        logger.info("Controller stopped")

    def stop_current(self) -> None:
        """Cancel the pass that is running right now, if any."""
        current = self._current
        if current is not None:
            current.cancel()
