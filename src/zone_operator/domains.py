"""
Domain-name helpers: canonical form, root-domain classification and
subdomain containment.

The classifier assumes single-label TLDs (``example.com`` is a root,
``example.co.uk`` is treated as a subdomain of ``co.uk``).
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .errors import InvalidDomain

__all__ = [
    "DomainClass",
    "canonicalize",
    "classify",
    "is_subdomain_of",
    "strip_dot",
    "validate_domain_name",
]

# One DNS label: 1-63 chars, alphanumerics and hyphens, no leading/trailing
# hyphen.  Underscores are allowed for service labels like _acme-challenge.
_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9_\-]{1,63}(?<!-)$")

_MAX_NAME_LENGTH = 253


class DomainClass(NamedTuple):
    is_root: bool
    root: str


def strip_dot(name: str) -> str:
    """Return *name* without a trailing dot."""
    return name[:-1] if name.endswith(".") else name


def canonicalize(name: str) -> str:
    """Return the provider's canonical form: lower-case with a trailing dot."""
    return strip_dot(name.strip()).lower() + "."


def validate_domain_name(name: str, label: str = "domain name") -> None:
    """Validate that *name* is a syntactically legal domain name.

    Raises:
        InvalidDomain: If the name is empty, too long, or has a bad label.
    """
    bare = strip_dot(name or "")
    if not bare:
        raise InvalidDomain(f"Invalid {label}: empty")
    if len(bare) > _MAX_NAME_LENGTH:
        raise InvalidDomain(f"Invalid {label}: {name!r} is longer than {_MAX_NAME_LENGTH} characters")
    for part in bare.split("."):
        if not _LABEL_RE.match(part):
            raise InvalidDomain(f"Invalid {label}: {name!r} — bad label {part!r}")


def classify(name: str) -> DomainClass:
    """Decide whether *name* is a root domain and derive its root.

    >>> classify("example.com")
    DomainClass(is_root=True, root='example.com')
    >>> classify("a.example.com")
    DomainClass(is_root=False, root='example.com')
    """
    bare = strip_dot(name)
    parts = bare.split(".")
    if len(parts) <= 2:
        return DomainClass(is_root=True, root=bare)
    return DomainClass(is_root=False, root=".".join(parts[-2:]))


def is_subdomain_of(name: str, root: str) -> bool:
    """True if *name* is strictly below *root* by whole labels."""
    child = strip_dot(name).lower().split(".")
    parent = strip_dot(root).lower().split(".")
    if not root or len(child) <= len(parent):
        return False
    return child[-len(parent):] == parent
