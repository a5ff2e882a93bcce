"""Tests for DelegationLinker link/unlink."""

import pytest

from zone_operator.errors import ProviderError, ProviderUnavailable, ZoneNotFound
from zone_operator.linker import DelegationLinker
from zone_operator.models import ACTION_CREATE, ACTION_DELETE, NS_TTL

NAME_SERVERS = ["ns-1.awsdns.example", "ns-2.awsdns.example"]


def test_link_writes_single_ns_create(provider):
    root_id = provider.add_zone("example.com")
    DelegationLinker(provider).link("example.com", "x.example.com", NAME_SERVERS)

    (call,) = provider.ops("change_record_sets")
    _, zone_id, changes = call
    assert zone_id == root_id
    assert len(changes) == 1
    change = changes[0]
    assert change.action == ACTION_CREATE
    assert change.name == "x.example.com."
    assert change.type == "NS"
    assert change.ttl == NS_TTL == 300
    assert change.values == NAME_SERVERS
    assert provider.records("example.com")[("x.example.com.", "NS")] == (300, NAME_SERVERS)


def test_link_missing_parent_is_fatal(provider):
    with pytest.raises(ZoneNotFound):
        DelegationLinker(provider).link("example.com", "x.example.com", NAME_SERVERS)
    assert provider.ops("change_record_sets") == []


def test_unlink_deletes_exact_existing_values(provider):
    provider.add_zone("example.com")
    # Existing record with a different TTL and order than we would write.
    provider.records("example.com")[("x.example.com.", "NS")] = (172800, list(reversed(NAME_SERVERS)))

    assert DelegationLinker(provider).unlink("example.com", "x.example.com") is True

    (call,) = provider.ops("change_record_sets")
    change = call[2][0]
    assert change.action == ACTION_DELETE
    assert change.ttl == 172800
    assert change.values == list(reversed(NAME_SERVERS))
    assert provider.records("example.com") == {}


def test_unlink_missing_parent_is_soft(provider, caplog):
    assert DelegationLinker(provider).unlink("example.com", "x.example.com") is False
    assert "not found" in caplog.text
    assert provider.ops("change_record_sets") == []


def test_unlink_missing_record_is_noop(provider):
    provider.add_zone("example.com")
    assert DelegationLinker(provider).unlink("example.com", "x.example.com") is False
    assert provider.ops("change_record_sets") == []


def test_unlink_unreadable_values_is_soft(provider):
    provider.add_zone("example.com")
    provider.fail("list_record_sets", ProviderUnavailable("Throttling"))
    assert DelegationLinker(provider).unlink("example.com", "x.example.com") is False
    assert provider.ops("change_record_sets") == []


def test_unlink_delete_failure_propagates(provider):
    provider.add_zone("example.com")
    provider.records("example.com")[("x.example.com.", "NS")] = (300, NAME_SERVERS)
    provider.fail("change_record_sets", ProviderError("InvalidChangeBatch"))
    with pytest.raises(ProviderError):
        DelegationLinker(provider).unlink("example.com", "x.example.com")


def test_link_then_unlink_leaves_parent_clean(provider):
    provider.add_zone("example.com")
    linker = DelegationLinker(provider)
    linker.link("example.com", "x.example.com", NAME_SERVERS)
    assert linker.unlink("example.com", "x.example.com") is True
    assert provider.records("example.com") == {}


def test_link_replaces_stale_record_in_one_batch(provider):
    provider.add_zone("example.com")
    stale = (172800, ["ns-old-1", "ns-old-2"])
    provider.records("example.com")[("x.example.com.", "NS")] = stale

    DelegationLinker(provider).link("example.com", "x.example.com", NAME_SERVERS, replace=stale)

    (call,) = provider.ops("change_record_sets")
    changes = call[2]
    assert [(c.action, c.ttl, c.values) for c in changes] == [
        (ACTION_DELETE, 172800, ["ns-old-1", "ns-old-2"]),
        (ACTION_CREATE, 300, NAME_SERVERS),
    ]
    assert provider.records("example.com")[("x.example.com.", "NS")] == (300, NAME_SERVERS)
