"""
Route 53 hosted zone operator.

Reconciles ``DNSZone`` resources into Route 53 hosted zones, optionally
delegating a subdomain zone from its root domain's zone via NS records.
"""

__version__ = "0.1.0"
