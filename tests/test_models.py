"""Tests for the DNSZone resource model."""

from zone_operator.models import FINALIZER, DNSZone

RAW = {
    "apiVersion": "dns.zone/v1alpha1",
    "kind": "DNSZone",
    "metadata": {
        "name": "app",
        "namespace": "default",
        "resourceVersion": "42",
        "labels": {"team": "platform"},
        "finalizers": ["other/keep"],
    },
    "spec": {"domainName": "x.example.com", "rootDomainName": "example.com"},
}


def test_from_dict_defaults():
    zone = DNSZone.from_dict(RAW)
    assert zone.key == "default/app"
    assert zone.spec.domain_name == "x.example.com"
    assert zone.spec.root_domain_name == "example.com"
    assert zone.spec.is_private_hosted_zone is False
    assert zone.status.hosted_zone_created is False
    assert zone.resource_version == "42"
    assert zone.is_marked_for_deletion is False


def test_to_dict_keeps_unknown_metadata():
    zone = DNSZone.from_dict(RAW)
    zone.add_finalizer()
    zone.status.hosted_zone_created = True

    out = zone.to_dict()
    assert out["metadata"]["labels"] == {"team": "platform"}
    assert out["metadata"]["finalizers"] == ["other/keep", FINALIZER]
    assert out["metadata"]["resourceVersion"] == "42"
    assert out["status"] == {"hostedZoneCreated": True}
    # The source mapping is untouched.
    assert RAW["metadata"]["finalizers"] == ["other/keep"]


def test_finalizer_helpers_report_changes():
    zone = DNSZone.from_dict(RAW)
    assert zone.has_finalizer() is False
    assert zone.add_finalizer() is True
    assert zone.add_finalizer() is False
    assert zone.remove_finalizer() is True
    assert zone.remove_finalizer() is False
    assert zone.finalizers == ["other/keep"]


def test_cluster_scoped_key():
    zone = DNSZone.from_dict({"metadata": {"name": "app"}, "spec": {"domainName": "a.com"}})
    assert zone.key == "app"
    assert "namespace" not in zone.to_dict()["metadata"]


def test_deletion_timestamp():
    data = {**RAW, "metadata": {**RAW["metadata"], "deletionTimestamp": "2024-05-01T12:00:00Z"}}
    zone = DNSZone.from_dict(data)
    assert zone.is_marked_for_deletion is True
    assert zone.to_dict()["metadata"]["deletionTimestamp"] == "2024-05-01T12:00:00Z"
