"""Tests for the in-memory adapters."""

from datetime import UTC, datetime, timedelta

import pytest

from bootpedia.adapters import InMemoryBlobStore, InMemoryDocumentStore, InMemoryKeyValueStore, StaticAuth
from bootpedia.core.errors import BlobStoreError, NotFoundError
from bootpedia.core.protocols import Predicate

BASE = datetime(2024, 1, 1, tzinfo=UTC)


@pytest.fixture
def store():
    return InMemoryDocumentStore(
        {
            "tutorials": {
                "old": {"title": "Old", "createdAt": BASE},
                "new": {"title": "New", "createdAt": (BASE + timedelta(days=2)).isoformat()},
                "mid": {"title": "Mid", "createdAt": BASE + timedelta(days=1)},
                "undated": {"title": "Undated"},
            }
        }
    )


class TestSnapshot:
    def test_newest_first_with_missing_last(self, store):
        ids = [r.id for r in store.snapshot("tutorials", "createdAt").records]
        assert ids == ["new", "mid", "old", "undated"]

    def test_ascending(self, store):
        ids = [r.id for r in store.snapshot("tutorials", "createdAt", descending=False).records]
        assert ids == ["undated", "old", "mid", "new"]

    def test_records_are_copies(self, store):
        record = store.snapshot("tutorials").records[0]
        record.data["title"] = "changed"
        assert all(r.data["title"] != "changed" for r in store.snapshot("tutorials").records)

    def test_unknown_collection_is_empty(self, store):
        assert len(store.snapshot("nothing")) == 0


class TestSubscribe:
    @pytest.mark.asyncio
    async def test_initial_snapshot_then_one_per_mutation(self, store):
        stream = store.subscribe("tutorials", "createdAt")

        first = await anext(stream)
        assert len(first) == 4
        assert store.subscriber_count("tutorials") == 1

        new_id = await store.insert("tutorials", {"title": "Newest", "createdAt": BASE + timedelta(days=9)})
        second = await anext(stream)
        assert second.records[0].id == new_id

        await store.remove("tutorials", "old")
        third = await anext(stream)
        assert "old" not in {r.id for r in third.records}

        await stream.aclose()
        assert store.subscriber_count("tutorials") == 0

    @pytest.mark.asyncio
    async def test_fan_out_to_every_subscriber(self, store):
        a = store.subscribe("tutorials", "createdAt")
        b = store.subscribe("tutorials", "createdAt", descending=False)
        await anext(a)
        await anext(b)

        await store.patch("tutorials", "old", {"title": "Patched"})

        snap_a, snap_b = await anext(a), await anext(b)
        assert snap_a.records[2].data["title"] == "Patched"
        assert snap_b.records[1].data["title"] == "Patched"
        await a.aclose()
        await b.aclose()

    @pytest.mark.asyncio
    async def test_fail_subscribers(self, store):
        stream = store.subscribe("tutorials", "createdAt")
        await anext(stream)

        store.fail_subscribers("tutorials", ConnectionError("offline"))

        with pytest.raises(ConnectionError):
            await anext(stream)
        assert store.subscriber_count("tutorials") == 0


class TestWrites:
    @pytest.mark.asyncio
    async def test_insert_generates_unique_ids(self, store):
        first = await store.insert("categories", {"name": "A"})
        second = await store.insert("categories", {"name": "B"})
        assert first != second
        assert (await store.get_one("categories", first)) == {"name": "A"}

    @pytest.mark.asyncio
    async def test_patch_merges(self, store):
        await store.patch("tutorials", "old", {"views": 3})
        assert await store.get_one("tutorials", "old") == {"title": "Old", "createdAt": BASE, "views": 3}

    @pytest.mark.asyncio
    async def test_patch_missing_raises_not_found(self, store):
        with pytest.raises(NotFoundError) as exc_info:
            await store.patch("tutorials", "ghost", {"views": 1})
        assert exc_info.value.context.document_id == "ghost"
        assert exc_info.value.context.collection == "tutorials"

    @pytest.mark.asyncio
    async def test_remove_missing_is_noop(self, store):
        await store.remove("tutorials", "ghost")
        assert len(store.snapshot("tutorials")) == 4

    @pytest.mark.asyncio
    async def test_get_one_missing(self, store):
        assert await store.get_one("tutorials", "ghost") is None


class TestQueryOnce:
    @pytest.mark.asyncio
    async def test_predicates(self):
        store = InMemoryDocumentStore(
            {
                "tutorials": {
                    "a": {"category": "backup", "tags": ["grub", "mbr"]},
                    "b": {"category": "backup", "tags": ["bcd"]},
                    "c": {"category": "bcd-mbr", "tags": []},
                }
            }
        )
        by_category = await store.query_once("tutorials", [Predicate("category", "==", "backup")])
        assert sorted(r.id for r in by_category) == ["a", "b"]

        tagged = await store.query_once(
            "tutorials", [Predicate("category", "!=", "bcd-mbr"), Predicate("tags", "array-contains", "grub")]
        )
        assert [r.id for r in tagged] == ["a"]

        chosen = await store.query_once("tutorials", [Predicate("category", "in", ["bcd-mbr"])])
        assert [r.id for r in chosen] == ["c"]

    @pytest.mark.asyncio
    async def test_unsupported_operator(self, store):
        with pytest.raises(ValueError):
            await store.query_once("tutorials", [Predicate("title", ">", "A")])


class TestBlobStore:
    @pytest.mark.asyncio
    async def test_resolves_and_records_calls(self):
        blobs = InMemoryBlobStore({"tutorials/a.png": "https://cdn/a.png"})
        assert await blobs.resolve_url("tutorials/a.png") == "https://cdn/a.png"
        assert blobs.calls == ["tutorials/a.png"]

    @pytest.mark.asyncio
    async def test_missing_object(self):
        with pytest.raises(BlobStoreError) as exc_info:
            await InMemoryBlobStore().resolve_url("tutorials/a.png")
        assert exc_info.value.code == "object-not-found"

    @pytest.mark.asyncio
    async def test_scripted_failures_then_success(self):
        blobs = InMemoryBlobStore({"a": "https://cdn/a"})
        blobs.fail("a", BlobStoreError("storage/retry-limit-exceeded"))
        with pytest.raises(BlobStoreError) as exc_info:
            await blobs.resolve_url("a")
        assert exc_info.value.code == "retry-limit-exceeded"
        assert exc_info.value.transient
        assert await blobs.resolve_url("a") == "https://cdn/a"


def test_static_auth():
    auth = StaticAuth()
    assert not auth.is_authenticated
    auth.sign_in()
    assert auth.is_authenticated
    auth.sign_out()
    assert not auth.is_authenticated


def test_key_value_store():
    kv = InMemoryKeyValueStore({"a": "1"})
    kv.set("b", "2")
    assert (kv.get("a"), kv.get("b"), kv.get("c")) == ("1", "2", None)
