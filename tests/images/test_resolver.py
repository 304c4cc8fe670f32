"""Tests for bootpedia.images.resolver — cache, retry and per-handle cancellation."""

import asyncio

import pytest

from bootpedia.adapters import InMemoryBlobStore
from bootpedia.core.cache import ImageUrlCache
from bootpedia.core.errors import BlobStoreError, ImageErrorKind, ImageResolutionError
from bootpedia.core.retry import LinearBackoff
from bootpedia.images.resolver import ImageState, ImageUrlResolver, is_url


class FakeClock:
    def __init__(self):
        self.value = 0.0

    def __call__(self):
        return self.value


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def blobs():
    return InMemoryBlobStore(
        {
            "tutorials/grub.png": "https://cdn.example/grub.png?token=1",
            "tutorials/bcd.png": "https://cdn.example/bcd.png?token=2",
        }
    )


@pytest.fixture
def resolver(blobs, clock, sleep, settings):
    cache = ImageUrlCache(ttl_seconds=1800, clock=clock)
    return ImageUrlResolver(blobs, cache, sleep=sleep, settings=settings)


def transient():
    return BlobStoreError("retry-limit-exceeded", "Max retry time exceeded")


@pytest.mark.parametrize(
    "value, expected",
    [("https://x/y.png", True), ("http://x", True), ("grub.png", False), ("ftp://x", False)],
)
def test_is_url(value, expected):
    assert is_url(value) is expected


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolves_with_path_prefix(self, resolver, blobs):
        assert await resolver.resolve("grub.png") == "https://cdn.example/grub.png?token=1"
        assert blobs.calls == ["tutorials/grub.png"]

    @pytest.mark.asyncio
    async def test_blank_identifier(self, resolver, blobs):
        assert await resolver.resolve("") == ""
        assert await resolver.resolve(None) == ""
        assert blobs.calls == []

    @pytest.mark.asyncio
    async def test_url_passes_through_uncached(self, resolver, blobs):
        url = "https://images.example/a.jpg"
        assert await resolver.resolve(url) == url
        assert blobs.calls == []
        assert resolver.cache.size() == 0

    @pytest.mark.asyncio
    async def test_one_call_within_ttl(self, resolver, blobs, clock):
        await resolver.resolve("grub.png")
        clock.value = 1799
        await resolver.resolve("grub.png")
        assert len(blobs.calls) == 1

    @pytest.mark.asyncio
    async def test_second_call_after_expiry(self, resolver, blobs, clock):
        await resolver.resolve("grub.png")
        clock.value = 1800
        await resolver.resolve("grub.png")
        assert len(blobs.calls) == 2

    @pytest.mark.asyncio
    async def test_cache_entry_times(self, resolver, clock):
        clock.value = 100
        await resolver.resolve("grub.png")
        entry = resolver.cache.get("grub.png")
        assert (entry.created_at, entry.expires_at) == (100, 1900)

    @pytest.mark.asyncio
    async def test_clear_cache_forces_new_call(self, resolver, blobs):
        await resolver.resolve("grub.png")
        resolver.clear_cache("grub.png")
        await resolver.resolve("grub.png")
        assert len(blobs.calls) == 2

    @pytest.mark.asyncio
    async def test_sweep_and_stats(self, resolver, clock):
        await resolver.resolve("grub.png")
        clock.value = 1000
        await resolver.resolve("bcd.png")
        clock.value = 2000
        assert resolver.stats().expired == 1
        assert resolver.sweep() == 1
        assert resolver.stats().total_cached == 1


class TestRetry:
    @pytest.mark.asyncio
    async def test_transient_errors_retry_with_linear_backoff(self, resolver, blobs, sleep):
        blobs.fail("tutorials/grub.png", transient(), transient())
        assert await resolver.resolve("grub.png") == "https://cdn.example/grub.png?token=1"
        assert len(blobs.calls) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, resolver, blobs, sleep):
        blobs.fail("tutorials/grub.png", transient(), transient(), transient())
        with pytest.raises(ImageResolutionError) as exc_info:
            await resolver.resolve("grub.png")
        assert exc_info.value.kind is ImageErrorKind.UNKNOWN
        assert len(blobs.calls) == 3
        assert sleep.delays == [1.0, 2.0]
        assert resolver.cache.size() == 0

    @pytest.mark.asyncio
    async def test_network_message_is_transient(self, resolver, blobs, sleep):
        blobs.fail("tutorials/grub.png", BlobStoreError("unknown", "A network error has occurred"))
        await resolver.resolve("grub.png")
        assert len(blobs.calls) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "code, kind",
        [("object-not-found", ImageErrorKind.NOT_FOUND), ("unauthorized", ImageErrorKind.UNAUTHORIZED)],
    )
    async def test_permanent_errors_are_not_retried(self, resolver, blobs, sleep, code, kind):
        blobs.fail("tutorials/grub.png", BlobStoreError(code))
        with pytest.raises(ImageResolutionError) as exc_info:
            await resolver.resolve("grub.png")
        assert exc_info.value.kind is kind
        assert len(blobs.calls) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_missing_object(self, resolver):
        with pytest.raises(ImageResolutionError) as exc_info:
            await resolver.resolve("nope.png")
        assert exc_info.value.kind is ImageErrorKind.NOT_FOUND
        assert exc_info.value.message == "Image not found"

    @pytest.mark.asyncio
    async def test_custom_strategy(self, blobs, sleep, settings):
        resolver = ImageUrlResolver(blobs, strategy=LinearBackoff(max_attempts=1), sleep=sleep, settings=settings)
        blobs.fail("tutorials/grub.png", transient())
        with pytest.raises(ImageResolutionError):
            await resolver.resolve("grub.png")
        assert len(blobs.calls) == 1


class TestPrefetch:
    @pytest.mark.asyncio
    async def test_prefetch_skips_and_tolerates_failures(self, resolver, blobs):
        await resolver.resolve("bcd.png")
        blobs.calls.clear()

        cached = await resolver.prefetch(
            ["grub.png", "grub.png", "bcd.png", "", None, "https://x/y.png", "missing.png"]
        )

        assert cached == 1
        assert blobs.calls == ["tutorials/grub.png", "tutorials/missing.png"]
        assert "grub.png" in resolver.cache

    @pytest.mark.asyncio
    async def test_prefetch_empty(self, resolver):
        assert await resolver.prefetch([]) == 0


class TestImageHandle:
    @pytest.mark.asyncio
    async def test_blank_is_idle(self, resolver):
        handle = resolver.watch(None)
        assert handle.state is ImageState.IDLE
        assert handle.url == ""
        assert await handle.wait() is ImageState.IDLE

    @pytest.mark.asyncio
    async def test_url_resolves_immediately(self, resolver):
        handle = resolver.watch("https://x/y.png")
        assert handle.state is ImageState.RESOLVED
        assert handle.url == "https://x/y.png"

    @pytest.mark.asyncio
    async def test_resolving_then_resolved(self, resolver):
        handle = resolver.watch("grub.png")
        assert handle.state is ImageState.RESOLVING
        assert handle.loading

        assert await handle.wait() is ImageState.RESOLVED
        assert handle.url == "https://cdn.example/grub.png?token=1"
        assert not handle.loading

    @pytest.mark.asyncio
    async def test_cache_hit_is_immediate(self, resolver, blobs):
        await resolver.resolve("grub.png")
        handle = resolver.watch("grub.png")
        assert handle.state is ImageState.RESOLVED
        assert len(blobs.calls) == 1

    @pytest.mark.asyncio
    async def test_failure_state(self, resolver):
        handle = resolver.watch("missing.png")
        assert await handle.wait() is ImageState.FAILED
        assert handle.error.kind is ImageErrorKind.NOT_FOUND
        assert handle.url == ""

    @pytest.mark.asyncio
    async def test_close_before_resolution_never_resolves(self, blobs, settings):
        blobs.gate = asyncio.Event()
        resolver = ImageUrlResolver(blobs, settings=settings)
        handle = resolver.watch("grub.png")
        await asyncio.sleep(0)

        handle.close()
        blobs.gate.set()
        await asyncio.sleep(0.01)

        assert handle.state is ImageState.IDLE
        assert handle.url == ""
        assert "grub.png" not in resolver.cache

    @pytest.mark.asyncio
    async def test_last_request_wins(self, blobs, settings):
        blobs.gate = asyncio.Event()
        resolver = ImageUrlResolver(blobs, settings=settings)
        handle = resolver.watch("grub.png")
        await asyncio.sleep(0)

        handle.set_identifier("bcd.png")
        blobs.gate.set()

        assert await handle.wait() is ImageState.RESOLVED
        assert handle.url == "https://cdn.example/bcd.png?token=2"
        assert handle.identifier == "bcd.png"

    @pytest.mark.asyncio
    async def test_set_identifier_to_blank_cancels(self, blobs, settings):
        blobs.gate = asyncio.Event()
        resolver = ImageUrlResolver(blobs, settings=settings)
        handle = resolver.watch("grub.png")
        await asyncio.sleep(0)

        handle.set_identifier("")
        blobs.gate.set()
        await asyncio.sleep(0.01)

        assert handle.state is ImageState.IDLE
        assert handle.url == ""

    @pytest.mark.asyncio
    async def test_retry_after_failure(self, resolver, blobs):
        handle = resolver.watch("late.png")
        assert await handle.wait() is ImageState.FAILED

        blobs.objects["tutorials/late.png"] = "https://cdn.example/late.png"
        handle.retry()
        assert handle.error is None
        assert await handle.wait() is ImageState.RESOLVED
        assert handle.url == "https://cdn.example/late.png"

    @pytest.mark.asyncio
    async def test_handle_clear_cache(self, resolver):
        handle = resolver.watch("grub.png")
        await handle.wait()
        handle.clear_cache()
        assert "grub.png" not in resolver.cache

    @pytest.mark.asyncio
    async def test_sibling_handles_are_independent(self, resolver):
        good = resolver.watch("grub.png")
        bad = resolver.watch("missing.png")
        assert await good.wait() is ImageState.RESOLVED
        assert await bad.wait() is ImageState.FAILED


class TestSharedRequests:
    @pytest.mark.asyncio
    async def test_concurrent_resolves_share_one_call(self, resolver, blobs):
        first, second = await asyncio.gather(resolver.resolve("grub.png"), resolver.resolve("grub.png"))
        assert first == second == "https://cdn.example/grub.png?token=1"
        assert blobs.calls == ["tutorials/grub.png"]
        assert resolver.in_flight() == 0

    @pytest.mark.asyncio
    async def test_shared_failure_reaches_every_caller(self, resolver, blobs):
        results = await asyncio.gather(
            resolver.resolve("missing.png"), resolver.resolve("missing.png"), return_exceptions=True
        )
        assert all(isinstance(r, ImageResolutionError) for r in results)
        assert blobs.calls == ["tutorials/missing.png"]

    @pytest.mark.asyncio
    async def test_handles_on_one_identifier_share_one_call(self, blobs, settings):
        blobs.gate = asyncio.Event()
        resolver = ImageUrlResolver(blobs, settings=settings)
        first = resolver.watch("grub.png")
        second = resolver.watch("grub.png")
        await asyncio.sleep(0.01)
        assert resolver.in_flight() == 1

        blobs.gate.set()

        assert await first.wait() is ImageState.RESOLVED
        assert await second.wait() is ImageState.RESOLVED
        assert blobs.calls == ["tutorials/grub.png"]

    @pytest.mark.asyncio
    async def test_closing_one_handle_keeps_the_shared_call(self, blobs, settings):
        blobs.gate = asyncio.Event()
        resolver = ImageUrlResolver(blobs, settings=settings)
        closed = resolver.watch("grub.png")
        kept = resolver.watch("grub.png")
        await asyncio.sleep(0.01)

        closed.close()
        blobs.gate.set()

        assert await kept.wait() is ImageState.RESOLVED
        assert kept.url == "https://cdn.example/grub.png?token=1"
        assert closed.state is ImageState.IDLE
        assert len(blobs.calls) == 1

    @pytest.mark.asyncio
    async def test_closing_the_last_handle_cancels_the_call(self, blobs, settings):
        blobs.gate = asyncio.Event()
        resolver = ImageUrlResolver(blobs, settings=settings)
        handle = resolver.watch("grub.png")
        await asyncio.sleep(0.01)
        assert resolver.in_flight() == 1

        handle.close()
        await asyncio.sleep(0.01)
        blobs.gate.set()
        await asyncio.sleep(0.01)

        assert resolver.in_flight() == 0
        assert "grub.png" not in resolver.cache
