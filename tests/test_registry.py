"""Tests for stamper registry operations."""

import hashlib
import time

import pytest

from stamper.registry.errors import InvalidArgumentError, NotFoundError
from stamper.registry.models import PackageVersion, WriteOutcome, sha256_hex
from stamper.registry.service import DEFAULT_CONTENT, PackageRegistry
from stamper.registry.storage import MemoryStore

HELLO_SHA256 = "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"


def test_sha256_hex_matches_hashlib():
    assert sha256_hex("hello") == HELLO_SHA256
    assert sha256_hex("ünïcode") == hashlib.sha256("ünïcode".encode("utf-8")).hexdigest()


def test_package_version_hash_is_computed():
    pkg = PackageVersion(owner="alice", name="tool", version="0.1.0", content="hello")
    assert pkg.key == "alice/tool/0.1.0"
    assert pkg.content_hash == HELLO_SHA256
    pkg.content = "changed"
    assert pkg.content_hash == sha256_hex("changed")


def test_create_then_get_uses_default_version(registry, store):
    result = registry.create_version("alice", "tool", None, "hello")

    assert result.outcome is WriteOutcome.CREATED
    assert result.created
    assert result.hash == HELLO_SHA256
    assert store.get("alice/tool/0.1.0") == "hello"

    fetched = registry.get_version("alice", "tool")
    assert fetched.package.content == "hello"
    assert fetched.package.version == "0.1.0"


def test_create_without_content_writes_default(registry, store):
    result = registry.create_version("alice", "tool", "1.0.0")
    assert store.get("alice/tool/1.0.0") == DEFAULT_CONTENT
    assert result.hash == sha256_hex(DEFAULT_CONTENT)

    registry.create_version("alice", "other", "1.0.0", "")
    assert store.get("alice/other/1.0.0") == DEFAULT_CONTENT


def test_create_twice_redirects_to_update(registry, store):
    first = registry.create_version("alice", "tool", "1.0.0", "one")
    second = registry.create_version("alice", "tool", "1.0.0", "two")

    assert first.outcome is WriteOutcome.CREATED
    assert second.outcome is WriteOutcome.UPDATED
    assert second.hash == sha256_hex("two")
    assert store.get("alice/tool/1.0.0") == "two"
    assert store.list() == ["alice/tool/1.0.0"]


def test_create_twice_matches_create_then_update():
    via_create = PackageRegistry(MemoryStore())
    via_create.create_version("alice", "tool", None, "one")
    a = via_create.create_version("alice", "tool", None, "two")

    via_update = PackageRegistry(MemoryStore())
    via_update.create_version("alice", "tool", None, "one")
    b = via_update.update_version("alice", "tool", None, "two")

    assert a.to_dict() == b.to_dict()
    assert via_create.store.list() == via_update.store.list()
    assert via_create.store.get("alice/tool/0.1.0") == via_update.store.get("alice/tool/0.1.0")


def test_create_existing_without_content_is_invalid(registry, store):
    registry.create_version("alice", "tool", None, "hello")
    with pytest.raises(InvalidArgumentError):
        registry.create_version("alice", "tool")
    assert store.get("alice/tool/0.1.0") == "hello"


def test_update_missing_version_is_not_found(registry, store):
    with pytest.raises(NotFoundError):
        registry.update_version("alice", "tool", "9.9.9", "content")
    assert store.list() == []


def test_update_empty_content_is_invalid_and_leaves_state(registry, store):
    registry.create_version("alice", "tool", None, "hello")

    for empty in (None, ""):
        with pytest.raises(InvalidArgumentError):
            registry.update_version("alice", "tool", None, empty)

    assert store.get("alice/tool/0.1.0") == "hello"


def test_update_content_check_happens_before_storage():
    class ExplodingStore(MemoryStore):
        def get(self, key):
            raise AssertionError("storage touched")

    registry = PackageRegistry(ExplodingStore())
    with pytest.raises(InvalidArgumentError):
        registry.update_version("alice", "tool", None, "")


def test_update_is_idempotent(registry):
    registry.create_version("alice", "tool", None, "hello")
    a = registry.update_version("alice", "tool", None, "again")
    b = registry.update_version("alice", "tool", None, "again")
    assert a.hash == b.hash == sha256_hex("again")
    assert registry.get_version("alice", "tool").package.content == "again"


def test_write_result_messages(registry):
    created = registry.create_version("alice", "tool", None, "hello")
    updated = registry.update_version("alice", "tool", None, "hi")
    assert created.to_dict() == {
        "message": "Package version initialized successfully",
        "owner": "alice",
        "name": "tool",
        "version": "0.1.0",
        "hash": HELLO_SHA256,
    }
    assert updated.message == "Package version updated successfully"


def test_write_result_reports_sanitized_parts(registry, store):
    result = registry.create_version("al ice", "to/ol", "1 0", "x")
    assert (result.package.owner, result.package.name, result.package.version) == ("al_ice", "to_ol", "1_0")
    assert store.get("al_ice/to_ol/1_0") == "x"


def test_get_missing_version_is_not_found(registry):
    registry.create_version("alice", "tool", "1.0.0", "hello")
    with pytest.raises(NotFoundError):
        registry.get_version("alice", "tool")
    with pytest.raises(NotFoundError):
        registry.get_version("bob", "tool", "1.0.0")


def test_get_stamps_response_time(registry):
    registry.create_version("alice", "tool", None, "hello")
    before = int(time.time() * 1000)
    fetched = registry.get_version("alice", "tool")
    after = int(time.time() * 1000)
    assert before <= fetched.served_at <= after


def test_missing_owner_is_rejected(registry, store):
    with pytest.raises(InvalidArgumentError):
        registry.create_version(None, "tool", None, "hello")
    assert store.list() == []


def test_search_example(registry):
    registry.create_version("alice", "tool", None, "hello")
    result = registry.search_packages("too", 5)
    assert result.to_dict() == {
        "query": "too",
        "count": 1,
        "results": [{"name": "alice/tool/0.1.0", "value": "hello"}],
    }


def test_search_is_case_insensitive(registry):
    registry.create_version("Alice", "Tool", None, "hello")
    result = registry.search_packages("alice/TOOL")
    assert result.query == "alice_TOOL"
    assert result.count == 0

    result = registry.search_packages("TOOL")
    assert [hit.name for hit in result.results] == ["Alice/Tool/0.1.0"]


def test_search_sanitizes_query(registry):
    registry.create_version("alice", "my_tool", None, "x")
    result = registry.search_packages("my tool")
    assert result.query == "my_tool"
    assert result.count == 1


def test_search_stops_at_limit_in_store_order(registry):
    for i in range(5):
        registry.create_version("alice", f"pkg{i}", None, f"c{i}")

    result = registry.search_packages("pkg", 2)
    assert [hit.name for hit in result.results] == ["alice/pkg0/0.1.0", "alice/pkg1/0.1.0"]


@pytest.mark.parametrize("limit", [None, "abc", "0", -3])
def test_search_limit_falls_back_to_default(registry, limit):
    for i in range(12):
        registry.create_version("alice", f"pkg{i}", None, "x")

    assert registry.search_packages("pkg", limit).count == 10


def test_search_limit_accepts_numeric_strings(registry):
    for i in range(12):
        registry.create_version("alice", f"pkg{i}", None, "x")

    assert registry.search_packages("pkg", "11").count == 11
    assert registry.search_packages("pkg", 50).count == 12


def test_search_empty_query_matches_everything(registry):
    registry.create_version("alice", "a", None, "x")
    registry.create_version("bob", "b", None, "y")
    assert registry.search_packages(None).count == 2
