"""
Declared-resource store: the interface the reconciler reads and writes
through, and a client for a Kubernetes-style API server.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .errors import PersistConflict, ResourceNotFound, StoreError
from .models import DNSZone

__all__ = ["ResourceStore", "KubeResourceStore", "split_key"]

logger = logging.getLogger(__name__)

# Transient API-server failures.  Writes carry a resourceVersion, so a
# retried PUT can at worst come back as a 409.
_DEFAULT_RETRY = Retry(
    total=3,
    backoff_factor=0.5,
    status_forcelist=[502, 503, 504],
    allowed_methods=["GET", "PUT"],
    raise_on_status=False,
)


def split_key(key: str) -> tuple[str, str]:
    """Split ``namespace/name`` (or a bare ``name``) into its parts."""
    if "/" in key:
        namespace, name = key.split("/", 1)
        return namespace, name
    return "", key


class ResourceStore(ABC):
    """Persistence for ``DNSZone`` resources."""

    @abstractmethod
    def get(self, namespace: str, name: str) -> DNSZone:
        """Return the resource; raise ``ResourceNotFound`` if it is gone."""

    @abstractmethod
    def list(self) -> list[DNSZone]:
        ...

    @abstractmethod
    def update(self, resource: DNSZone) -> DNSZone:
        """Write metadata/spec (finalizers included); return the stored copy."""

    @abstractmethod
    def update_status(self, resource: DNSZone) -> DNSZone:
        """Write the status subresource; return the stored copy."""


def _build_session(token: str, retry: Retry | None = None) -> requests.Session:
    """Create a requests.Session with bearer auth and a retry adapter."""
    session = requests.Session()
    session.headers.update(
        {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
    )
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    adapter = HTTPAdapter(max_retries=retry or _DEFAULT_RETRY)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class KubeResourceStore(ResourceStore):
    """Reads and writes ``DNSZone`` custom resources over the API server's REST API.

    Supports dependency injection for the session (for testing).
    """

    # (connect, read) in seconds.
    DEFAULT_TIMEOUT = (10, 30)

    def __init__(
        self,
        api_url: str,
        token: str = "",
        group: str = "dns.zone",
        version: str = "v1alpha1",
        plural: str = "dnszones",
        namespace: str = "",
        ca_file: str = "",
        session: requests.Session | None = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.group = group
        self.version = version
        self.plural = plural
        self.namespace = namespace
        self._verify: bool | str = ca_file or True
        self._token_hint = token[:4] + "***" if len(token) > 4 else "***"
        self.session = session or _build_session(token)

    def __repr__(self) -> str:
        return (
            f"KubeResourceStore(api_url={self.api_url!r}, namespace={self.namespace!r}, "
            f"token={self._token_hint!r})"
        )

    # ------------------------------------------------------------------
    # URL helpers
    # ------------------------------------------------------------------

    def _base(self) -> str:
        return f"{self.api_url}/apis/{self.group}/{self.version}"

    def _collection_url(self, namespace: str = "") -> str:
        if namespace:
            return f"{self._base()}/namespaces/{namespace}/{self.plural}"
        return f"{self._base()}/{self.plural}"

    def _item_url(self, namespace: str, name: str) -> str:
        return f"{self._collection_url(namespace)}/{name}"

    # ------------------------------------------------------------------
    # Internal request helper
    # ------------------------------------------------------------------

    def _request(self, method: str, url: str, key: str, body: dict | None = None) -> dict:
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method, url, json=body, timeout=self.DEFAULT_TIMEOUT, verify=self._verify
            )
        except (requests.RequestException, OSError) as exc:
            # OSError also covers an unreadable ca_file.
            raise StoreError(f"{method} {key}: {exc}") from exc

        if resp.status_code == 404:
            raise ResourceNotFound(key)
        if resp.status_code == 409:
            raise PersistConflict(f"{method} {key}: {self._message(resp)}")
        try:
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise StoreError(f"{method} {key}: HTTP {resp.status_code}: {self._message(resp)}") from exc
        try:
            data = resp.json()
        except ValueError as exc:
            raise StoreError(
                f"{method} {key}: HTTP {resp.status_code} with non-JSON body: {resp.text[:200]!r}"
            ) from exc
        if not isinstance(data, dict):
            raise StoreError(f"{method} {key}: expected a JSON object, got {type(data).__name__}")
        return data

    @staticmethod
    def _message(resp: requests.Response) -> str:
        """Best-effort extraction of the API server's Status message."""
        try:
            data = resp.json()
        except ValueError:
            return resp.text[:500]
        if isinstance(data, dict):
            return str(data.get("message", "") or data)[:500]
        return str(data)[:500]

    # ------------------------------------------------------------------
    # ResourceStore
    # ------------------------------------------------------------------

    def get(self, namespace: str, name: str) -> DNSZone:
        key = f"{namespace}/{name}" if namespace else name
        data = self._request("GET", self._item_url(namespace, name), key)
        return DNSZone.from_dict(data)

    def list(self) -> list[DNSZone]:
        data = self._request("GET", self._collection_url(self.namespace), self.plural)
        items: list[dict[str, Any]] = data.get("items", []) or []
        resources = [DNSZone.from_dict(item) for item in items]
        logger.debug("Listed %d %s", len(resources), self.plural)
        return resources

    def update(self, resource: DNSZone) -> DNSZone:
        url = self._item_url(resource.namespace, resource.name)
        data = self._request("PUT", url, resource.key, resource.to_dict())
        return DNSZone.from_dict(data)

    def update_status(self, resource: DNSZone) -> DNSZone:
        url = self._item_url(resource.namespace, resource.name) + "/status"
        data = self._request("PUT", url, resource.key, resource.to_dict())
        return DNSZone.from_dict(data)
