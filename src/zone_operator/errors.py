"""
Error taxonomy shared by the provider adapters, the store client and the
reconciler.

Absence of a zone or record is usually a normal outcome and is reported as
``None``/``False`` by the query helpers.  ``NotFound`` is only raised where
absence is a precondition failure (e.g. linking into a missing parent zone).
"""

from __future__ import annotations

__all__ = [
    "ZoneOperatorError",
    "ProviderError",
    "ProviderUnavailable",
    "NotFound",
    "ZoneNotFound",
    "ResourceNotFound",
    "InvalidDomain",
    "PersistConflict",
    "StoreError",
    "ReconcileCancelled",
]


class ZoneOperatorError(Exception):
    """Base class for all operator errors."""


class ProviderError(ZoneOperatorError):
    """The DNS provider rejected a request."""


class ProviderUnavailable(ProviderError):
    """Transient provider failure (throttling, network, 5xx).

    Never retried inside the core; the controller loop requeues the resource.
    """


class NotFound(ZoneOperatorError):
    """A zone, record or resource that was required does not exist."""


class ZoneNotFound(NotFound):
    """No hosted zone matches the given name or id."""

    def __init__(self, name: str):
        super().__init__(f"hosted zone not found: {name}")
        self.name = name


class ResourceNotFound(NotFound):
    """The declared resource is not present in the store."""

    def __init__(self, key: str):
        super().__init__(f"resource not found: {key}")
        self.key = key


class InvalidDomain(ZoneOperatorError):
    """Malformed domain name, or a child that is not under its declared root."""


class StoreError(ZoneOperatorError):
    """The resource store could not be reached or rejected a request."""


class PersistConflict(ZoneOperatorError):
    """A resource write lost a race with a concurrent update (HTTP 409)."""


class ReconcileCancelled(ZoneOperatorError):
    """The pass was cancelled or ran past its deadline."""
